"""
Multi-Tenant Service: Tenant Validation and Scoping Helpers

WHY: Centralize tenant validation for reuse across services. Every command
runs for exactly one organization and cross-tenant access must be denied.

SECURITY INVARIANTS:
1. Every ID taken from client input is looked up together with the actor's org_id.
2. A record owned by another organization is reported as NotFound, exactly
   like a record that does not exist, so callers cannot discover other tenants' ids.
3. Cross-tenant attempts are logged.
"""

from __future__ import annotations

from flask import current_app, has_app_context

from ..errors import NotFoundError
from ..extensions import db
from ..models import Branch
from .concurrency import lock_for_update


def _log_cross_tenant_attempt(label: str, entity_id, org_id: int) -> None:
    if has_app_context():
        current_app.logger.warning(
            "Cross-tenant or missing %s lookup denied: id=%s org_id=%s", label, entity_id, org_id
        )


def get_scoped(model, entity_id, org_id: int, *, label: str | None = None, lock: bool = False):
    """
    Load ``model`` by id within ``org_id`` or raise NotFoundError.

    With lock=True the row is selected FOR UPDATE (and refreshed), which is
    what every state-changing command uses before checking a guard.
    """
    label = label or model.__name__
    if entity_id is None:
        raise NotFoundError(f"{label} not found")

    query = db.session.query(model).filter(model.id == entity_id, model.org_id == org_id)
    if lock:
        query = lock_for_update(query)
    instance = query.first()
    if instance is None:
        _log_cross_tenant_attempt(label, entity_id, org_id)
        raise NotFoundError(f"{label} not found")
    return instance


def require_branch_in_org(branch_id: int, org_id: int) -> Branch:
    """Validate that a branch belongs to the organization."""
    return get_scoped(Branch, branch_id, org_id, label="Branch")


def get_org_branches(org_id: int) -> list[Branch]:
    return (
        db.session.query(Branch)
        .filter_by(org_id=org_id)
        .order_by(Branch.created_at.asc(), Branch.id.asc())
        .all()
    )


def resolve_branch_id(ctx) -> int:
    """
    Actor's branch, else the organization's oldest branch.

    Used by documents that may be raised by org-level users (invoices).
    """
    if ctx.branch_id is not None:
        return require_branch_in_org(ctx.branch_id, ctx.org_id).id
    branches = get_org_branches(ctx.org_id)
    if not branches:
        raise NotFoundError("Branch not found")
    return branches[0].id
