# backend/backoffice/routes/procurement.py
"""
Purchase request and purchase order API routes.
"""
from flask import Blueprint, g, request

from ..decorators import require_actor
from ..services import workflow_service
from . import json_body, respond

procurement_bp = Blueprint("procurement", __name__, url_prefix="/api")


@procurement_bp.route("/purchase-requests", methods=["GET"])
@require_actor
def list_purchase_requests():
    return respond(workflow_service.list_purchase_requests(g.actor, status=request.args.get("status")))


@procurement_bp.route("/purchase-requests", methods=["POST"])
@require_actor
def create_purchase_request():
    """
    Request body:
    {
        "items": [{"product_id": int, "quantity": number, "unit_cost": number}],
        "supplier_id": int (optional),
        "note": str (optional)
    }
    """
    return respond(workflow_service.create_purchase_request(g.actor, json_body()))


@procurement_bp.route("/purchase-requests/<int:pr_id>", methods=["PATCH"])
@require_actor
def update_purchase_request(pr_id: int):
    return respond(workflow_service.update_purchase_request(g.actor, pr_id, json_body()))


@procurement_bp.route("/purchase-requests/<int:pr_id>/submit", methods=["POST"])
@require_actor
def submit_purchase_request(pr_id: int):
    return respond(workflow_service.submit_purchase_request(g.actor, pr_id))


@procurement_bp.route("/purchase-requests/<int:pr_id>/purchase-order", methods=["POST"])
@require_actor
def create_purchase_order(pr_id: int):
    return respond(workflow_service.create_purchase_order(g.actor, pr_id, json_body()))


@procurement_bp.route("/purchase-orders", methods=["GET"])
@require_actor
def list_purchase_orders():
    return respond(workflow_service.list_purchase_orders(g.actor, status=request.args.get("status")))


@procurement_bp.route("/purchase-orders/<int:po_id>/receive", methods=["POST"])
@require_actor
def receive_purchase_order(po_id: int):
    return respond(workflow_service.receive_purchase_order(g.actor, po_id))
