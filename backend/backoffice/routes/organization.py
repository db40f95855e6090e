# backend/backoffice/routes/organization.py
"""
Branch, supplier and audit log API routes.
"""
from flask import Blueprint, g, request

from ..decorators import require_actor
from ..services import workflow_service
from . import json_body, respond

organization_bp = Blueprint("organization", __name__, url_prefix="/api")


@organization_bp.route("/branches", methods=["GET"])
@require_actor
def list_branches():
    return respond(workflow_service.list_branches(g.actor))


@organization_bp.route("/branches", methods=["POST"])
@require_actor
def create_branch():
    return respond(workflow_service.create_branch(g.actor, json_body()))


@organization_bp.route("/suppliers", methods=["GET"])
@require_actor
def list_suppliers():
    return respond(workflow_service.list_suppliers(g.actor))


@organization_bp.route("/suppliers", methods=["POST"])
@require_actor
def create_supplier():
    return respond(workflow_service.create_supplier(g.actor, json_body()))


@organization_bp.route("/audit-logs", methods=["GET"])
@require_actor
def list_audit_logs():
    """Newest first. ?limit= is clamped to 10..200 (default 50); ?entity= filters."""
    return respond(workflow_service.list_audit_logs(
        g.actor,
        limit=request.args.get("limit"),
        entity=request.args.get("entity"),
    ))
