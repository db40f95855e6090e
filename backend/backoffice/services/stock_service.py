# Overview: Stock ledger: per-branch quantities plus the append-only movement history.

"""
Stock Ledger Service

WHY: Every change to on-hand stock goes through apply_movement so that the
current StockLevel row and the StockMovement history are written together
in one transaction and can never drift apart.

MOVEMENT TYPES:
- IN:       +quantity at branch_id (purchase receipts, manual receipts)
- OUT:      -quantity at branch_id (invoice issue, manual issue)
- TRANSFER: -quantity at branch_id, +quantity at to_branch_id

A TRANSFER is recorded as ONE movement row against the source branch; the
destination is credited through to_branch_id. Reconciliation counts that
row as inbound for the destination.

INVARIANTS:
- quantity on a movement is always > 0.
- A stock level never goes negative: an outbound movement larger than the
  locked, current quantity fails with InsufficientStockError and writes nothing.
- level == signed sum of movements for (org, branch, product).
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import or_

from ..errors import InsufficientStockError, ValidationError
from ..extensions import db
from ..models import Product, StockLevel, StockMovement
from ..money import ZERO, quantity_str, round_quantity, to_quantity
from . import audit_service
from .concurrency import lock_for_update
from .tenant_service import get_scoped, require_branch_in_org

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_TRANSFER = "TRANSFER"
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_TRANSFER)

ENTITY_STOCK_MOVEMENT = "STOCK_MOVEMENT"

RECENT_MOVEMENTS_LIMIT = 100


def get_stock_level(org_id: int, branch_id: int, product_id: int, *, lock: bool = False) -> StockLevel | None:
    query = db.session.query(StockLevel).filter_by(org_id=org_id, branch_id=branch_id, product_id=product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def get_quantity_on_hand(org_id: int, branch_id: int, product_id: int) -> Decimal:
    level = get_stock_level(org_id, branch_id, product_id)
    return level.quantity if level is not None else ZERO


def _credit(org_id: int, branch_id: int, product_id: int, quantity: Decimal) -> StockLevel:
    """Add to a level, creating the row on first receipt."""
    level = get_stock_level(org_id, branch_id, product_id, lock=True)
    if level is None:
        level = StockLevel(org_id=org_id, branch_id=branch_id, product_id=product_id, quantity=quantity)
        db.session.add(level)
    else:
        level.quantity = round_quantity(level.quantity + quantity)
    return level


def _debit(org_id: int, branch_id: int, product: Product, quantity: Decimal, *, label: str | None = None) -> StockLevel:
    level = get_stock_level(org_id, branch_id, product.id, lock=True)
    available = level.quantity if level is not None else ZERO
    if available < quantity:
        raise InsufficientStockError(
            f"Insufficient stock for {label or product.name}: available {quantity_str(available)}, "
            f"requested {quantity_str(quantity)}",
            details={
                "product_id": product.id,
                "branch_id": branch_id,
                "available": quantity_str(available),
                "requested": quantity_str(quantity),
            },
        )
    level.quantity = round_quantity(available - quantity)
    return level


def apply_movement(
    *,
    org_id: int,
    branch_id: int,
    product_id: int,
    movement_type: str,
    quantity,
    to_branch_id: int | None = None,
    reference: str | None = None,
    note: str | None = None,
    user_id: int | None = None,
    label: str | None = None,
) -> StockMovement:
    """
    Apply one stock movement inside the caller's transaction.

    Validates tenant ownership of the product and every branch, adjusts the
    affected level(s) under row locks, and appends the movement row.

    Raises:
        NotFoundError: product or branch not in org
        ValidationError: bad type/quantity, transfer without a distinct destination
        InsufficientStockError: outbound quantity exceeds the current level
    """
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(
            f"Invalid movement type: {movement_type}",
            details={"type": f"must be one of {', '.join(MOVEMENT_TYPES)}"},
        )
    qty = to_quantity(quantity)

    product = get_scoped(Product, product_id, org_id, label="Product")
    require_branch_in_org(branch_id, org_id)

    if movement_type == MOVEMENT_TRANSFER:
        if to_branch_id is None:
            raise ValidationError("Transfer requires a destination branch", details={"to_branch_id": "required"})
        if to_branch_id == branch_id:
            raise ValidationError(
                "Cannot transfer to the same branch",
                details={"to_branch_id": "must differ from branch_id"},
            )
        require_branch_in_org(to_branch_id, org_id)
    else:
        to_branch_id = None

    if movement_type == MOVEMENT_IN:
        _credit(org_id, branch_id, product.id, qty)
    else:
        _debit(org_id, branch_id, product, qty, label=label)
        if movement_type == MOVEMENT_TRANSFER:
            _credit(org_id, to_branch_id, product.id, qty)

    movement = StockMovement(
        org_id=org_id,
        branch_id=branch_id,
        product_id=product.id,
        to_branch_id=to_branch_id,
        type=movement_type,
        quantity=qty,
        reference=reference,
        note=note,
        created_by_user_id=user_id,
    )
    db.session.add(movement)
    db.session.flush()
    return movement


def record_movement(ctx, *, branch_id: int, product_id: int, movement_type: str, quantity,
                    to_branch_id: int | None = None, reference: str | None = None,
                    note: str | None = None) -> StockMovement:
    """Manual movement entered by a user: one ledger row plus its audit row."""
    movement = apply_movement(
        org_id=ctx.org_id,
        branch_id=branch_id,
        product_id=product_id,
        movement_type=movement_type,
        quantity=quantity,
        to_branch_id=to_branch_id,
        reference=reference,
        note=note,
        user_id=ctx.user_id,
    )
    audit_service.record_for(
        ctx, audit_service.ACTION_POST, ENTITY_STOCK_MOVEMENT, movement.id,
        branch_id=branch_id,
        details={
            "type": movement.type,
            "quantity": quantity_str(movement.quantity),
            "branch_id": branch_id,
            "to_branch_id": movement.to_branch_id,
            "reference": reference,
            "sku": movement.product.sku,
        },
    )
    return movement


def ledger_quantity(org_id: int, branch_id: int, product_id: int) -> Decimal:
    """Signed sum of every movement affecting (branch, product)."""
    movements = (
        db.session.query(StockMovement)
        .filter(
            StockMovement.org_id == org_id,
            StockMovement.product_id == product_id,
            or_(StockMovement.branch_id == branch_id, StockMovement.to_branch_id == branch_id),
        )
        .all()
    )
    total = ZERO
    for m in movements:
        if m.branch_id == branch_id:
            total += m.quantity if m.type == MOVEMENT_IN else -m.quantity
        elif m.type == MOVEMENT_TRANSFER:
            # inbound leg of a transfer recorded at the source branch
            total += m.quantity
    return round_quantity(total)


def reconcile_stock(org_id: int | None = None, *, branch_id: int | None = None,
                    product_id: int | None = None) -> list[dict]:
    """
    Compare every stock level against its movement history.

    Returns one dict per (branch, product) whose level differs from the
    ledger; an empty list means the books reconcile.
    """
    query = db.session.query(StockLevel)
    if org_id is not None:
        query = query.filter_by(org_id=org_id)
    if branch_id is not None:
        query = query.filter_by(branch_id=branch_id)
    if product_id is not None:
        query = query.filter_by(product_id=product_id)

    discrepancies = []
    for level in query.order_by(StockLevel.id.asc()).all():
        expected = ledger_quantity(level.org_id, level.branch_id, level.product_id)
        if round_quantity(level.quantity) != expected:
            discrepancies.append({
                "org_id": level.org_id,
                "branch_id": level.branch_id,
                "product_id": level.product_id,
                "level": quantity_str(level.quantity),
                "ledger": quantity_str(expected),
            })
    return discrepancies


def list_movements(org_id: int, *, branch_id: int | None = None, product_id: int | None = None,
                   limit: int = RECENT_MOVEMENTS_LIMIT) -> list[StockMovement]:
    query = db.session.query(StockMovement).filter_by(org_id=org_id)
    if branch_id is not None:
        query = query.filter(or_(StockMovement.branch_id == branch_id, StockMovement.to_branch_id == branch_id))
    if product_id is not None:
        query = query.filter_by(product_id=product_id)
    return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit).all()


def stock_summary(org_id: int, *, branch_id: int | None = None) -> list[dict]:
    """Levels joined with product data and a low-stock flag (quantity <= threshold)."""
    query = (
        db.session.query(StockLevel, Product)
        .join(Product, Product.id == StockLevel.product_id)
        .filter(StockLevel.org_id == org_id, Product.org_id == org_id)
    )
    if branch_id is not None:
        query = query.filter(StockLevel.branch_id == branch_id)

    rows = []
    for level, product in query.order_by(Product.name.asc(), StockLevel.branch_id.asc()).all():
        rows.append({
            "branch_id": level.branch_id,
            "product_id": product.id,
            "sku": product.sku,
            "name": product.name,
            "unit": product.unit,
            "quantity": quantity_str(level.quantity),
            "low_stock_threshold": product.low_stock_threshold,
            "low_stock": level.quantity <= product.low_stock_threshold,
        })
    return rows
