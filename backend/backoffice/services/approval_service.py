# Overview: Approval engine: queue decisions for documents and resolve each exactly once.

"""
Approval Engine

LIFECYCLE: PENDING -> APPROVED | REJECTED (terminal, resolved exactly once).

A decision is applied to the approval AND to the document it guards in the
same transaction. Document-specific follow-up lives with the owning service,
registered here with @decision_handler(entity_type):

    @decision_handler(ENTITY_PURCHASE_REQUEST)
    def _on_purchase_request_decision(approval, decision, ctx): ...

Concurrency: the approval row is locked before its status is checked; the
version_id column makes a racing second decision fail at flush (retried,
then seen as already decided).
"""

from __future__ import annotations

from ..errors import AlreadyDecidedError, ValidationError
from ..extensions import db
from ..models import Approval
from ..time_utils import utcnow
from . import audit_service
from .lifecycle_service import KIND_APPROVAL, apply_transition
from .tenant_service import get_scoped

ENTITY_PURCHASE_REQUEST = "PURCHASE_REQUEST"
ENTITY_EXPENSE = "EXPENSE"

APPROVAL_PENDING = "PENDING"
DECISION_APPROVED = "APPROVED"
DECISION_REJECTED = "REJECTED"
DECISIONS = (DECISION_APPROVED, DECISION_REJECTED)

_DECISION_ACTIONS = {DECISION_APPROVED: "APPROVE", DECISION_REJECTED: "REJECT"}

_DECISION_HANDLERS = {}


def decision_handler(entity_type: str):
    """Register the follow-up applied to an entity when its approval is decided."""
    def register(func):
        _DECISION_HANDLERS[entity_type] = func
        return func
    return register


def request_approval(
    *,
    org_id: int,
    entity_type: str,
    entity_id: int,
    requested_by_user_id: int | None,
    branch_id: int | None = None,
) -> Approval:
    """Queue a PENDING approval for a document (caller's transaction)."""
    approval = Approval(
        org_id=org_id,
        branch_id=branch_id,
        entity_type=entity_type,
        entity_id=entity_id,
        purchase_request_id=entity_id if entity_type == ENTITY_PURCHASE_REQUEST else None,
        expense_id=entity_id if entity_type == ENTITY_EXPENSE else None,
        status=APPROVAL_PENDING,
        requested_by_user_id=requested_by_user_id,
    )
    db.session.add(approval)
    db.session.flush()
    return approval


def normalize_decision(decision) -> str:
    value = str(decision or "").strip().upper()
    if value not in DECISIONS:
        raise ValidationError(
            "Decision must be APPROVED or REJECTED",
            details={"decision": "must be APPROVED or REJECTED"},
        )
    return value


def decide(ctx, approval_id: int, decision, note: str | None = None) -> Approval:
    """
    Resolve a pending approval and apply its follow-up to the guarded document.

    Raises:
        NotFoundError: approval missing or in another organization
        AlreadyDecidedError: approval is not PENDING
        InvalidStateError: guarded document is no longer in the awaited state
    """
    decision = normalize_decision(decision)
    approval = get_scoped(Approval, approval_id, ctx.org_id, label="Approval", lock=True)

    if approval.status != APPROVAL_PENDING:
        raise AlreadyDecidedError(
            f"Approval already {approval.status.lower()}",
            details={"status": approval.status},
        )

    from_status, to_status = apply_transition(KIND_APPROVAL, approval, _DECISION_ACTIONS[decision])
    approval.approver_user_id = ctx.user_id
    approval.note = note
    approval.acted_at = utcnow()

    handler = _DECISION_HANDLERS.get(approval.entity_type)
    if handler is not None:
        handler(approval, decision, ctx)

    audit_service.record_for(
        ctx,
        decision,
        approval.entity_type,
        approval.entity_id,
        branch_id=approval.branch_id,
        details={"approval_id": approval.id, "note": note, "from": from_status, "to": to_status},
    )
    db.session.flush()
    return approval


def list_pending(org_id: int, *, entity_type: str | None = None) -> list[Approval]:
    query = db.session.query(Approval).filter_by(org_id=org_id, status=APPROVAL_PENDING)
    if entity_type:
        query = query.filter_by(entity_type=entity_type)
    return query.order_by(Approval.requested_at.asc(), Approval.id.asc()).all()
