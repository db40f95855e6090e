# Overview: Service-layer operations for the audit trail; append-only, transactional.

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..extensions import db
from ..models import AuditLog
"""
Audit Trail Invariants (authoritative)

- Exactly one audit row per state-changing command (plus the linked status
  change when a payment settles an invoice).
- Written inside the same DB transaction as the change; rolled back with it.
- No domain logic here and no updates/deletes of existing rows.
"""

# Actions
ACTION_CREATE = "CREATE"
ACTION_UPDATE = "UPDATE"
ACTION_SUBMIT = "SUBMIT"
ACTION_STATUS_CHANGE = "STATUS_CHANGE"
ACTION_POST = "POST"

MIN_LIST_LIMIT = 10
MAX_LIST_LIMIT = 200


def _json_safe(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def record(
    *,
    org_id: int,
    action: str,
    entity: str,
    entity_id: int,
    user_id: int | None = None,
    branch_id: int | None = None,
    details: Optional[dict] = None,
) -> AuditLog:
    """Append one audit row in the current transaction."""
    entry = AuditLog(
        org_id=org_id,
        branch_id=branch_id,
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        details=_json_safe(details) if details is not None else None,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def record_for(ctx, action: str, entity: str, entity_id: int, *, branch_id=None, details=None) -> AuditLog:
    """Shortcut when the acting user is the workflow actor."""
    return record(
        org_id=ctx.org_id,
        user_id=ctx.user_id,
        branch_id=branch_id if branch_id is not None else ctx.branch_id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        details=details,
    )


def clamp_limit(limit, default: int = 50) -> int:
    try:
        value = int(limit) if limit is not None else default
    except (TypeError, ValueError):
        value = default
    return max(MIN_LIST_LIMIT, min(MAX_LIST_LIMIT, value))


def list_audit_logs(org_id: int, *, limit=None, default_limit: int = 50, entity: str | None = None) -> list[AuditLog]:
    """Newest first, limit clamped to [10, 200]."""
    query = db.session.query(AuditLog).filter_by(org_id=org_id)
    if entity:
        query = query.filter_by(entity=entity)
    return (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(clamp_limit(limit, default_limit))
        .all()
    )
