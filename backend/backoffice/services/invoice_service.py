# Overview: Invoices and payments: pricing, issuing against stock, and settlement.

"""
Invoice Service

LIFECYCLE:
1. DRAFT: created with fixed totals (subtotal, tax, total)
2. ISSUED: stock deducted for every line that references a product
3. PAID: reached once the sum of recorded payments covers the total

WHY totals are fixed at creation: the issued document must match what the
customer was quoted; later product price changes never alter an invoice.
"""

from __future__ import annotations

from decimal import Decimal

from ..errors import InvoiceNotIssuedError, ValidationError
from ..extensions import db
from ..models import Customer, Invoice, InvoiceItem, Payment, Product
from ..money import ZERO, line_total, money_str, round_money, to_decimal, to_money, to_quantity
from ..time_utils import parse_iso_date, utcnow
from . import audit_service
from .document_service import PREFIX_INVOICE, allocate_doc_number
from .lifecycle_service import KIND_INVOICE, apply_transition, initial_state
from .stock_service import MOVEMENT_OUT, apply_movement
from .tenant_service import get_scoped, resolve_branch_id

ENTITY_INVOICE = "INVOICE"
ENTITY_PAYMENT = "PAYMENT"

INVOICE_STATUS_DRAFT = "DRAFT"
INVOICE_STATUS_ISSUED = "ISSUED"
INVOICE_STATUS_PAID = "PAID"

DEFAULT_TAX_PERCENT = Decimal("11")


def compute_totals(lines: list[InvoiceItem], tax_percent: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    """(subtotal, tax, total) with tax = subtotal * tax_percent / 100, each rounded to cents."""
    subtotal = round_money(sum((line.line_total for line in lines), ZERO))
    tax = round_money(subtotal * tax_percent / Decimal("100"))
    return subtotal, tax, subtotal + tax


def _parse_tax_percent(value) -> Decimal:
    pct = to_decimal(value, field="tax_percent")
    if pct < ZERO or pct > Decimal("100"):
        raise ValidationError("tax_percent must be between 0 and 100", details={"tax_percent": "must be 0-100"})
    return pct


def _build_items(org_id: int, items) -> list[InvoiceItem]:
    if not items:
        raise ValidationError("At least one item is required", details={"items": "at least one item is required"})

    built = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            raise ValidationError("Invalid item", details={f"items[{index}]": "must be an object"})

        product = None
        if raw.get("product_id") is not None:
            product = get_scoped(Product, raw["product_id"], org_id, label="Product")

        description = (raw.get("description") or (product.name if product else "")).strip()
        if not description:
            raise ValidationError(
                "Item description is required",
                details={f"items[{index}].description": "required"},
            )
        quantity = to_quantity(raw.get("quantity"), field=f"items[{index}].quantity")
        default_price = product.price if product is not None else None
        unit_price = to_money(raw.get("unit_price", default_price), field=f"items[{index}].unit_price")

        built.append(InvoiceItem(
            product_id=product.id if product else None,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            line_total=line_total(quantity, unit_price),
        ))
    return built


def create_invoice(ctx, *, customer_id, items, tax_percent=None, due_date=None, notes=None,
                   default_tax_percent=DEFAULT_TAX_PERCENT) -> Invoice:
    """Create a DRAFT invoice at the actor's branch (or the org's first branch)."""
    customer = get_scoped(Customer, customer_id, ctx.org_id, label="Customer")
    branch_id = resolve_branch_id(ctx)
    pct = _parse_tax_percent(default_tax_percent if tax_percent is None else tax_percent)
    lines = _build_items(ctx.org_id, items)
    subtotal, tax, total = compute_totals(lines, pct)

    try:
        due = parse_iso_date(due_date)
    except ValueError:
        raise ValidationError("due_date must be an ISO date", details={"due_date": "invalid date"})

    invoice = Invoice(
        org_id=ctx.org_id,
        branch_id=branch_id,
        customer_id=customer.id,
        invoice_number=allocate_doc_number(Invoice, org_id=ctx.org_id, prefix=PREFIX_INVOICE),
        status=initial_state(KIND_INVOICE),
        due_date=due,
        notes=notes,
        subtotal=subtotal,
        tax_percent=pct,
        tax=tax,
        total=total,
        created_by_user_id=ctx.user_id,
    )
    invoice.items = lines
    db.session.add(invoice)
    db.session.flush()

    audit_service.record_for(
        ctx,
        audit_service.ACTION_CREATE,
        ENTITY_INVOICE,
        invoice.id,
        branch_id=branch_id,
        details={"invoice_number": invoice.invoice_number, "total": total},
    )
    return invoice


def issue_invoice(ctx, invoice_id: int) -> Invoice:
    """
    DRAFT -> ISSUED, deducting stock for every product line at the invoice's branch.

    Any line short on stock aborts the whole issue (nothing is deducted).
    """
    invoice = get_scoped(Invoice, invoice_id, ctx.org_id, label="Invoice", lock=True)
    from_status, to_status = apply_transition(KIND_INVOICE, invoice, "ISSUE")

    for item in invoice.items:
        if item.product_id is None:
            continue
        apply_movement(
            org_id=ctx.org_id,
            branch_id=invoice.branch_id,
            product_id=item.product_id,
            movement_type=MOVEMENT_OUT,
            quantity=item.quantity,
            reference=invoice.invoice_number,
            note="Invoice issued",
            user_id=ctx.user_id,
            label=f"item {item.description}",
        )

    invoice.issued_at = utcnow()

    audit_service.record_for(
        ctx,
        audit_service.ACTION_STATUS_CHANGE,
        ENTITY_INVOICE,
        invoice.id,
        branch_id=invoice.branch_id,
        details={"invoice_number": invoice.invoice_number, "from": from_status, "to": to_status},
    )
    return invoice


def get_paid_amount(invoice_id: int) -> Decimal:
    amounts = db.session.query(Payment.amount).filter_by(invoice_id=invoice_id).all()
    return round_money(sum((row[0] for row in amounts), ZERO))


def record_payment(ctx, *, invoice_id, amount, method, reference=None) -> Payment:
    """
    Record a payment against a non-draft invoice.

    The first payment that brings the paid total to at least the invoice
    total moves ISSUED -> PAID (with its own status-change audit row).
    Payments on an already PAID invoice are recorded without a transition.
    """
    amount = to_money(amount, field="amount", allow_zero=False)
    method = (method or "").strip()
    if len(method) < 2 or len(method) > 60:
        raise ValidationError("method must be 2-60 characters", details={"method": "must be 2-60 characters"})

    invoice = get_scoped(Invoice, invoice_id, ctx.org_id, label="Invoice", lock=True)
    if invoice.status == INVOICE_STATUS_DRAFT:
        raise InvoiceNotIssuedError(
            "Invoice must be issued before recording payments",
            details={"status": invoice.status},
        )

    payment = Payment(
        org_id=ctx.org_id,
        branch_id=invoice.branch_id,
        invoice=invoice,
        amount=amount,
        method=method,
        reference=reference,
        recorded_by_user_id=ctx.user_id,
    )
    db.session.add(payment)
    db.session.flush()

    paid = get_paid_amount(invoice.id)
    if paid >= invoice.total and invoice.status == INVOICE_STATUS_ISSUED:
        from_status, to_status = apply_transition(KIND_INVOICE, invoice, "MARK_PAID")
        invoice.paid_at = utcnow()
        audit_service.record_for(
            ctx,
            audit_service.ACTION_STATUS_CHANGE,
            ENTITY_INVOICE,
            invoice.id,
            branch_id=invoice.branch_id,
            details={"invoice_number": invoice.invoice_number, "from": from_status, "to": to_status, "paid": paid},
        )

    audit_service.record_for(
        ctx,
        audit_service.ACTION_CREATE,
        ENTITY_PAYMENT,
        payment.id,
        branch_id=invoice.branch_id,
        details={"invoice_number": invoice.invoice_number, "amount": amount, "method": method},
    )
    return payment


def invoice_summary(invoice: Invoice) -> dict:
    """Invoice read model with the outstanding balance."""
    data = invoice.to_dict()
    paid = get_paid_amount(invoice.id)
    data["paid_amount"] = money_str(paid)
    data["balance_due"] = money_str(max(invoice.total - paid, ZERO))
    return data


def list_invoices(org_id: int, *, status: str | None = None) -> list[Invoice]:
    query = db.session.query(Invoice).filter_by(org_id=org_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def list_payments(org_id: int) -> list[dict]:
    """Payments newest first, each tagged with its invoice number."""
    rows = (
        db.session.query(Payment, Invoice.invoice_number)
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .filter(Payment.org_id == org_id, Invoice.org_id == org_id)
        .order_by(Payment.paid_at.desc(), Payment.id.desc())
        .all()
    )
    payments = []
    for payment, invoice_number in rows:
        data = payment.to_dict()
        data["invoice_number"] = invoice_number
        payments.append(data)
    return payments
