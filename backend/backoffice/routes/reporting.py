# backend/backoffice/routes/reporting.py
"""
Dashboard and search API routes (read-only).
"""
from flask import Blueprint, g, request

from ..decorators import require_actor
from ..services import workflow_service
from . import respond

reporting_bp = Blueprint("reporting", __name__, url_prefix="/api")


@reporting_bp.route("/overview", methods=["GET"])
@require_actor
def overview():
    """KPI summary; ?range= is 7d, 30d (default) or 90d."""
    return respond(workflow_service.get_overview(g.actor, range_key=request.args.get("range")))


@reporting_bp.route("/search", methods=["GET"])
@require_actor
def search():
    """?q= (at least 2 characters) across customers, invoices, products and suppliers."""
    return respond(workflow_service.search(g.actor, q=request.args.get("q")))
