# backend/backoffice/routes/inventory.py
"""
Product, stock level and stock movement API routes.
"""
from flask import Blueprint, g, request

from ..decorators import require_actor
from ..services import workflow_service
from . import json_body, respond

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


@inventory_bp.route("/products", methods=["GET"])
@require_actor
def list_products():
    return respond(workflow_service.list_products(g.actor))


@inventory_bp.route("/products", methods=["POST"])
@require_actor
def create_product():
    return respond(workflow_service.create_product(g.actor, json_body()))


@inventory_bp.route("/products/<int:product_id>", methods=["PATCH"])
@require_actor
def update_product_pricing(product_id: int):
    return respond(workflow_service.update_product_pricing(g.actor, product_id, json_body()))


@inventory_bp.route("/stock", methods=["GET"])
@require_actor
def stock_summary():
    return respond(workflow_service.get_stock_summary(g.actor, branch_id=request.args.get("branch_id")))


@inventory_bp.route("/stock/movements", methods=["GET"])
@require_actor
def list_stock_movements():
    return respond(workflow_service.list_stock_movements(
        g.actor,
        branch_id=request.args.get("branch_id"),
        product_id=request.args.get("product_id"),
    ))


@inventory_bp.route("/stock/movements", methods=["POST"])
@require_actor
def record_stock_movement():
    """
    Request body:
    {
        "product_id": int,
        "type": "IN" | "OUT" | "TRANSFER",
        "quantity": number,
        "branch_id": int (optional, defaults to the actor's branch),
        "to_branch_id": int (TRANSFER only),
        "reference": str (optional),
        "note": str (optional)
    }
    """
    return respond(workflow_service.record_stock_movement(g.actor, json_body()))
