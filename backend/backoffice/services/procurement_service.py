# Overview: Purchase requests and purchase orders, from draft to stock receipt.

"""
Procurement Service

FLOW:
1. create_purchase_request: DRAFT, numbered PR-YYYY-NNNN, lines priced at unit cost
2. submit_purchase_request: DRAFT -> SUBMITTED and queue an approval
3. (approval decided) SUBMITTED -> APPROVED | REJECTED via the decision handler below
4. create_purchase_order: APPROVED request -> ISSUED order, request -> CONVERTED
5. receive_purchase_order: ISSUED -> RECEIVED, every line booked IN to stock

A request converts to at most one order: checked up front and backed by a
unique constraint on purchase_orders.purchase_request_id.
"""

from __future__ import annotations

from ..errors import ConflictError, InvalidStateError, ValidationError
from ..extensions import db
from ..models import Product, PurchaseOrder, PurchaseOrderItem, PurchaseRequest, PurchaseRequestItem, Supplier
from ..money import ZERO, line_total, round_money, to_money, to_quantity
from ..time_utils import utcnow
from . import audit_service
from .approval_service import DECISION_APPROVED, ENTITY_PURCHASE_REQUEST, decision_handler, request_approval
from .document_service import PREFIX_PURCHASE_ORDER, PREFIX_PURCHASE_REQUEST, allocate_doc_number
from .lifecycle_service import KIND_PURCHASE_ORDER, KIND_PURCHASE_REQUEST, apply_transition, initial_state
from .stock_service import MOVEMENT_IN, apply_movement
from .tenant_service import get_scoped

ENTITY_PURCHASE_ORDER = "PURCHASE_ORDER"

PR_STATUS_DRAFT = "DRAFT"
PR_STATUS_SUBMITTED = "SUBMITTED"
PR_STATUS_APPROVED = "APPROVED"
PR_STATUS_REJECTED = "REJECTED"
PR_STATUS_CONVERTED = "CONVERTED"

PO_STATUS_ISSUED = "ISSUED"
PO_STATUS_RECEIVED = "RECEIVED"


def _build_items(org_id: int, items) -> list[PurchaseRequestItem]:
    if not items:
        raise ValidationError("At least one item is required", details={"items": "at least one item is required"})

    built = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError("Invalid item", details={f"items[{index}]": "must be an object"})
        product = get_scoped(Product, raw.get("product_id"), org_id, label="Product")
        quantity = to_quantity(raw.get("quantity"), field=f"items[{index}].quantity")
        unit_cost = to_money(raw.get("unit_cost", product.cost), field=f"items[{index}].unit_cost")
        built.append(PurchaseRequestItem(
            product_id=product.id,
            quantity=quantity,
            unit_cost=unit_cost,
            line_total=line_total(quantity, unit_cost),
        ))
    return built


def _validate_supplier(org_id: int, supplier_id):
    if supplier_id is None:
        return None
    return get_scoped(Supplier, supplier_id, org_id, label="Supplier").id


def create_purchase_request(ctx, *, items, supplier_id=None, note: str | None = None) -> PurchaseRequest:
    """Create a DRAFT request at the actor's branch."""
    branch_id = ctx.require_branch()
    supplier_id = _validate_supplier(ctx.org_id, supplier_id)
    lines = _build_items(ctx.org_id, items)

    pr = PurchaseRequest(
        org_id=ctx.org_id,
        branch_id=branch_id,
        supplier_id=supplier_id,
        number=allocate_doc_number(PurchaseRequest, org_id=ctx.org_id, prefix=PREFIX_PURCHASE_REQUEST),
        status=initial_state(KIND_PURCHASE_REQUEST),
        note=note,
        created_by_user_id=ctx.user_id,
    )
    pr.items = lines
    db.session.add(pr)
    db.session.flush()

    audit_service.record_for(
        ctx,
        audit_service.ACTION_CREATE,
        ENTITY_PURCHASE_REQUEST,
        pr.id,
        branch_id=branch_id,
        details={"number": pr.number, "status": pr.status},
    )
    return pr


def update_purchase_request(ctx, pr_id: int, *, items=None, supplier_id=None, note=None) -> PurchaseRequest:
    """Replace the lines (and optionally supplier/note) of a DRAFT request."""
    pr = get_scoped(PurchaseRequest, pr_id, ctx.org_id, label="Purchase request", lock=True)
    if pr.status != PR_STATUS_DRAFT:
        raise InvalidStateError(
            f"Only draft purchase requests can be edited (status is {pr.status})",
            details={"status": pr.status},
        )

    if items is not None:
        pr.items = _build_items(ctx.org_id, items)
    if supplier_id is not None:
        pr.supplier_id = _validate_supplier(ctx.org_id, supplier_id)
    if note is not None:
        pr.note = note
    db.session.flush()

    audit_service.record_for(
        ctx,
        audit_service.ACTION_UPDATE,
        ENTITY_PURCHASE_REQUEST,
        pr.id,
        branch_id=pr.branch_id,
        details={"number": pr.number, "items": len(pr.items)},
    )
    return pr


def submit_purchase_request(ctx, pr_id: int) -> PurchaseRequest:
    """DRAFT -> SUBMITTED plus exactly one PENDING approval."""
    pr = get_scoped(PurchaseRequest, pr_id, ctx.org_id, label="Purchase request", lock=True)
    from_status, to_status = apply_transition(KIND_PURCHASE_REQUEST, pr, "SUBMIT")
    pr.submitted_at = utcnow()

    approval = request_approval(
        org_id=ctx.org_id,
        branch_id=pr.branch_id,
        entity_type=ENTITY_PURCHASE_REQUEST,
        entity_id=pr.id,
        requested_by_user_id=ctx.user_id,
    )

    audit_service.record_for(
        ctx,
        audit_service.ACTION_SUBMIT,
        ENTITY_PURCHASE_REQUEST,
        pr.id,
        branch_id=pr.branch_id,
        details={"number": pr.number, "approval_id": approval.id, "from": from_status, "to": to_status},
    )
    return pr


@decision_handler(ENTITY_PURCHASE_REQUEST)
def _on_purchase_request_decision(approval, decision: str, ctx) -> None:
    pr = get_scoped(PurchaseRequest, approval.entity_id, ctx.org_id, label="Purchase request", lock=True)
    if decision == DECISION_APPROVED:
        apply_transition(KIND_PURCHASE_REQUEST, pr, "APPROVE")
        pr.approved_at = utcnow()
    else:
        apply_transition(KIND_PURCHASE_REQUEST, pr, "REJECT")
        pr.rejected_at = utcnow()


def create_purchase_order(ctx, pr_id: int, *, note: str | None = None) -> PurchaseOrder:
    """
    Convert an APPROVED request into an ISSUED order.

    Raises:
        ConflictError: an order already exists for this request
        InvalidStateError: request is not APPROVED
    """
    pr = get_scoped(PurchaseRequest, pr_id, ctx.org_id, label="Purchase request", lock=True)

    existing = db.session.query(PurchaseOrder.id).filter_by(purchase_request_id=pr.id).first()
    if existing is not None:
        raise ConflictError(
            f"A purchase order already exists for {pr.number}",
            details={"purchase_order_id": existing[0]},
        )

    apply_transition(KIND_PURCHASE_REQUEST, pr, "CONVERT")
    pr.converted_at = utcnow()

    po = PurchaseOrder(
        org_id=ctx.org_id,
        branch_id=pr.branch_id,
        supplier_id=pr.supplier_id,
        purchase_request_id=pr.id,
        number=allocate_doc_number(PurchaseOrder, org_id=ctx.org_id, prefix=PREFIX_PURCHASE_ORDER),
        status=initial_state(KIND_PURCHASE_ORDER),
        note=note,
        created_by_user_id=ctx.user_id,
        issued_at=utcnow(),
    )
    po.items = [
        PurchaseOrderItem(
            product_id=item.product_id,
            quantity=item.quantity,
            unit_cost=item.unit_cost,
            line_total=item.line_total,
        )
        for item in pr.items
    ]
    po.total = round_money(sum((item.line_total for item in po.items), ZERO))
    db.session.add(po)
    db.session.flush()

    audit_service.record_for(
        ctx,
        audit_service.ACTION_CREATE,
        ENTITY_PURCHASE_ORDER,
        po.id,
        branch_id=po.branch_id,
        details={"number": po.number, "from_pr": pr.number, "total": po.total},
    )
    return po


def receive_purchase_order(ctx, po_id: int) -> PurchaseOrder:
    """ISSUED -> RECEIVED; each line adds its quantity to the order's branch."""
    po = get_scoped(PurchaseOrder, po_id, ctx.org_id, label="Purchase order", lock=True)
    from_status, to_status = apply_transition(KIND_PURCHASE_ORDER, po, "RECEIVE")

    for item in po.items:
        apply_movement(
            org_id=ctx.org_id,
            branch_id=po.branch_id,
            product_id=item.product_id,
            movement_type=MOVEMENT_IN,
            quantity=item.quantity,
            reference=po.number,
            note="PO received",
            user_id=ctx.user_id,
        )

    po.received_at = utcnow()
    po.received_by_user_id = ctx.user_id

    audit_service.record_for(
        ctx,
        audit_service.ACTION_STATUS_CHANGE,
        ENTITY_PURCHASE_ORDER,
        po.id,
        branch_id=po.branch_id,
        details={"number": po.number, "from": from_status, "to": to_status},
    )
    return po


def list_purchase_requests(org_id: int, *, status: str | None = None) -> list[PurchaseRequest]:
    query = db.session.query(PurchaseRequest).filter_by(org_id=org_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(PurchaseRequest.created_at.desc(), PurchaseRequest.id.desc()).all()


def list_purchase_orders(org_id: int, *, status: str | None = None) -> list[PurchaseOrder]:
    query = db.session.query(PurchaseOrder).filter_by(org_id=org_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()).all()
