# Overview: Read-only dashboards and quick search over an organization's documents.

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import or_

from ..extensions import db
from ..models import (
    Approval,
    Customer,
    Expense,
    Invoice,
    Payment,
    Product,
    PurchaseOrder,
    StockLevel,
    Supplier,
)
from ..money import ZERO, money_str, round_money
from ..time_utils import to_iso_date, utcnow
from .approval_service import APPROVAL_PENDING
from .expense_service import EXPENSE_STATUS_REJECTED
from .invoice_service import INVOICE_STATUS_ISSUED, INVOICE_STATUS_PAID
from .procurement_service import PO_STATUS_ISSUED

RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_RANGE = "30d"

OPEN_PO_STATUSES = ("DRAFT", PO_STATUS_ISSUED)

SEARCH_MIN_LENGTH = 2
SEARCH_LIMIT_PER_TYPE = 5


def resolve_range(range_key: str | None) -> tuple[str, int]:
    """Unknown ranges fall back to the 30-day window."""
    key = (range_key or "").strip().lower()
    if key not in RANGE_DAYS:
        key = DEFAULT_RANGE
    return key, RANGE_DAYS[key]


def _sum_money(values) -> Decimal:
    return round_money(sum((v for v in values if v is not None), ZERO))


def overview(org_id: int, *, range_key: str | None = None) -> dict:
    """
    KPI summary for the last 7, 30 or 90 days.

    Revenue counts invoices issued in the window (ISSUED or PAID); expenses
    count non-rejected expenses dated in the window. Receivables, payables,
    low stock and pending approvals describe the current state, not the window.
    """
    key, days = resolve_range(range_key)
    now = utcnow()
    since_day = (now - timedelta(days=days - 1)).date()
    since = datetime.combine(since_day, time.min)

    invoices = (
        db.session.query(Invoice.issued_at, Invoice.total)
        .filter(
            Invoice.org_id == org_id,
            Invoice.status.in_((INVOICE_STATUS_ISSUED, INVOICE_STATUS_PAID)),
            Invoice.issued_at >= since,
        )
        .all()
    )
    expenses = (
        db.session.query(Expense.date, Expense.amount)
        .filter(
            Expense.org_id == org_id,
            Expense.status != EXPENSE_STATUS_REJECTED,
            Expense.date >= since_day,
        )
        .all()
    )
    received = (
        db.session.query(Payment.amount)
        .filter(Payment.org_id == org_id, Payment.paid_at >= since)
        .all()
    )

    open_invoice_totals = (
        db.session.query(Invoice.total)
        .filter(Invoice.org_id == org_id, Invoice.status == INVOICE_STATUS_ISSUED)
        .all()
    )
    open_invoice_payments = (
        db.session.query(Payment.amount)
        .join(Invoice, Invoice.id == Payment.invoice_id)
        .filter(Invoice.org_id == org_id, Invoice.status == INVOICE_STATUS_ISSUED)
        .all()
    )
    open_orders = (
        db.session.query(PurchaseOrder.total)
        .filter(PurchaseOrder.org_id == org_id, PurchaseOrder.status.in_(OPEN_PO_STATUSES))
        .all()
    )

    low_stock = (
        db.session.query(StockLevel.id)
        .join(Product, Product.id == StockLevel.product_id)
        .filter(StockLevel.org_id == org_id, StockLevel.quantity <= Product.low_stock_threshold)
        .count()
    )
    pending_approvals = (
        db.session.query(Approval.id)
        .filter_by(org_id=org_id, status=APPROVAL_PENDING)
        .count()
    )

    revenue = _sum_money(total for _, total in invoices)
    expense_total = _sum_money(amount for _, amount in expenses)
    receivables = _sum_money(t for (t,) in open_invoice_totals) - _sum_money(a for (a,) in open_invoice_payments)

    trend = {since_day + timedelta(days=offset): [ZERO, ZERO] for offset in range(days)}
    for issued_at, total in invoices:
        bucket = trend.get(issued_at.date())
        if bucket is not None:
            bucket[0] += total
    for day, amount in expenses:
        bucket = trend.get(day)
        if bucket is not None:
            bucket[1] += amount

    return {
        "range": key,
        "kpis": {
            "revenue": money_str(revenue),
            "expenses": money_str(expense_total),
            "net_profit": money_str(revenue - expense_total),
            "received_payments": money_str(_sum_money(a for (a,) in received)),
            "receivables": money_str(max(receivables, ZERO)),
            "payables": money_str(_sum_money(t for (t,) in open_orders)),
            "open_purchase_orders": len(open_orders),
            "low_stock": low_stock,
            "pending_approvals": pending_approvals,
        },
        "trend": [
            {"date": to_iso_date(day), "revenue": money_str(values[0]), "expenses": money_str(values[1])}
            for day, values in sorted(trend.items())
        ],
    }


def search(org_id: int, q: str | None) -> list[dict]:
    """
    Case-insensitive lookup across customers, invoices, products and suppliers.

    Terms shorter than two characters return nothing; each type contributes
    at most five hits.
    """
    term = (q or "").strip()
    if len(term) < SEARCH_MIN_LENGTH:
        return []
    pattern = f"%{term}%"

    customers = (
        db.session.query(Customer)
        .filter(Customer.org_id == org_id, Customer.name.ilike(pattern))
        .order_by(Customer.name.asc())
        .limit(SEARCH_LIMIT_PER_TYPE)
        .all()
    )
    invoices = (
        db.session.query(Invoice)
        .filter(Invoice.org_id == org_id, Invoice.invoice_number.ilike(pattern))
        .order_by(Invoice.id.desc())
        .limit(SEARCH_LIMIT_PER_TYPE)
        .all()
    )
    products = (
        db.session.query(Product)
        .filter(Product.org_id == org_id, or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
        .order_by(Product.name.asc())
        .limit(SEARCH_LIMIT_PER_TYPE)
        .all()
    )
    suppliers = (
        db.session.query(Supplier)
        .filter(Supplier.org_id == org_id, Supplier.name.ilike(pattern))
        .order_by(Supplier.name.asc())
        .limit(SEARCH_LIMIT_PER_TYPE)
        .all()
    )

    results = [
        {"type": "customer", "id": c.id, "name": c.name, "subtitle": c.email or "Customer"}
        for c in customers
    ]
    results += [
        {"type": "invoice", "id": inv.id, "name": inv.invoice_number, "subtitle": inv.status}
        for inv in invoices
    ]
    results += [
        {"type": "product", "id": p.id, "name": p.name, "subtitle": p.sku}
        for p in products
    ]
    results += [
        {"type": "supplier", "id": s.id, "name": s.name, "subtitle": s.email or "Supplier"}
        for s in suppliers
    ]
    return results
