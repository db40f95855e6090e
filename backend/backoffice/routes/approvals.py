# backend/backoffice/routes/approvals.py
"""
Approval queue API routes.
"""
from flask import Blueprint, g, request

from ..decorators import require_actor
from ..services import workflow_service
from . import json_body, respond

approvals_bp = Blueprint("approvals", __name__, url_prefix="/api/approvals")


@approvals_bp.route("", methods=["GET"])
@require_actor
def list_pending_approvals():
    return respond(workflow_service.list_pending_approvals(g.actor, entity_type=request.args.get("entity_type")))


@approvals_bp.route("/<int:approval_id>", methods=["PATCH"])
@require_actor
def decide_approval(approval_id: int):
    """
    Request body:
    {
        "decision": "APPROVED" | "REJECTED",
        "note": str (optional)
    }

    Returns:
        200: Decided
        403: Role below the configured approval threshold
        404: Approval not found
        409: Already decided
    """
    return respond(workflow_service.decide_approval(g.actor, approval_id, json_body()))
