# Overview: Expenses: auto-approval for senior roles, approval queue for everyone else.

from __future__ import annotations

from ..errors import ValidationError
from ..extensions import db
from ..models import Expense
from ..money import to_money
from ..permissions.roles import Role, has_minimum_role
from ..time_utils import parse_iso_date, utcnow
from . import audit_service
from .approval_service import DECISION_APPROVED, ENTITY_EXPENSE, decision_handler, request_approval
from .lifecycle_service import KIND_EXPENSE, apply_transition, initial_state
from .tenant_service import get_scoped

EXPENSE_STATUS_SUBMITTED = "SUBMITTED"
EXPENSE_STATUS_APPROVED = "APPROVED"
EXPENSE_STATUS_REJECTED = "REJECTED"
EXPENSE_STATUS_PAID = "PAID"


def _required_text(value, field: str, max_length: int) -> str:
    text = (value or "").strip()
    if len(text) < 2 or len(text) > max_length:
        raise ValidationError(
            f"{field} must be 2-{max_length} characters",
            details={field: f"must be 2-{max_length} characters"},
        )
    return text


def create_expense(ctx, *, vendor, category, amount, date, note=None, attachment=None,
                   auto_approve_min_role=Role.MANAGER) -> Expense:
    """
    Record an expense.

    Actors at or above ``auto_approve_min_role`` create it APPROVED (approved
    by themselves); anyone else creates it SUBMITTED with a PENDING approval.
    """
    vendor = _required_text(vendor, "vendor", 120)
    category = _required_text(category, "category", 80)
    amount = to_money(amount, field="amount", allow_zero=False)
    try:
        expense_date = parse_iso_date(date)
    except ValueError:
        expense_date = None
    if expense_date is None:
        raise ValidationError("date must be an ISO date", details={"date": "invalid date"})

    auto_approved = has_minimum_role(ctx.role, auto_approve_min_role)
    status = initial_state(KIND_EXPENSE, EXPENSE_STATUS_APPROVED if auto_approved else EXPENSE_STATUS_SUBMITTED)

    expense = Expense(
        org_id=ctx.org_id,
        branch_id=ctx.branch_id,
        vendor=vendor,
        category=category,
        amount=amount,
        date=expense_date,
        note=note,
        attachment=attachment,
        status=status,
        created_by_user_id=ctx.user_id,
        approved_by_user_id=ctx.user_id if auto_approved else None,
    )
    db.session.add(expense)
    db.session.flush()

    details = {"amount": amount, "status": status, "vendor": vendor}
    if not auto_approved:
        approval = request_approval(
            org_id=ctx.org_id,
            branch_id=ctx.branch_id,
            entity_type=ENTITY_EXPENSE,
            entity_id=expense.id,
            requested_by_user_id=ctx.user_id,
        )
        details["approval_id"] = approval.id

    audit_service.record_for(ctx, audit_service.ACTION_CREATE, ENTITY_EXPENSE, expense.id, details=details)
    return expense


@decision_handler(ENTITY_EXPENSE)
def _on_expense_decision(approval, decision: str, ctx) -> None:
    expense = get_scoped(Expense, approval.entity_id, ctx.org_id, label="Expense", lock=True)
    if decision == DECISION_APPROVED:
        apply_transition(KIND_EXPENSE, expense, "APPROVE")
        expense.approved_by_user_id = ctx.user_id
    else:
        apply_transition(KIND_EXPENSE, expense, "REJECT")


def mark_expense_paid(ctx, expense_id: int) -> Expense:
    """APPROVED -> PAID."""
    expense = get_scoped(Expense, expense_id, ctx.org_id, label="Expense", lock=True)
    from_status, to_status = apply_transition(KIND_EXPENSE, expense, "MARK_PAID")
    expense.paid_at = utcnow()

    audit_service.record_for(
        ctx,
        audit_service.ACTION_STATUS_CHANGE,
        ENTITY_EXPENSE,
        expense.id,
        branch_id=expense.branch_id,
        details={"from": from_status, "to": to_status, "amount": expense.amount},
    )
    return expense


def list_expenses(org_id: int, *, status: str | None = None) -> list[Expense]:
    query = db.session.query(Expense).filter_by(org_id=org_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Expense.date.desc(), Expense.id.desc()).all()
