# backend/backoffice/routes/sales.py
"""
Invoice, payment and customer API routes.
"""
from flask import Blueprint, g, request

from ..decorators import require_actor
from ..services import workflow_service
from . import json_body, respond

sales_bp = Blueprint("sales", __name__, url_prefix="/api")


@sales_bp.route("/customers", methods=["GET"])
@require_actor
def list_customers():
    """Optional ?q= filters on name, email or phone."""
    return respond(workflow_service.list_customers(g.actor, q=request.args.get("q")))


@sales_bp.route("/customers", methods=["POST"])
@require_actor
def create_customer():
    return respond(workflow_service.create_customer(g.actor, json_body()))


@sales_bp.route("/invoices", methods=["GET"])
@require_actor
def list_invoices():
    return respond(workflow_service.list_invoices(g.actor, status=request.args.get("status")))


@sales_bp.route("/invoices", methods=["POST"])
@require_actor
def create_invoice():
    """
    Request body:
    {
        "customer_id": int,
        "items": [{"product_id": int (optional), "description": str, "quantity": number, "unit_price": number}],
        "tax_percent": number (optional, default from config),
        "due_date": "YYYY-MM-DD" (optional),
        "notes": str (optional)
    }
    """
    return respond(workflow_service.create_invoice(g.actor, json_body()))


@sales_bp.route("/invoices/<int:invoice_id>", methods=["GET"])
@require_actor
def get_invoice(invoice_id: int):
    return respond(workflow_service.get_invoice(g.actor, invoice_id))


@sales_bp.route("/invoices/<int:invoice_id>/issue", methods=["POST"])
@require_actor
def issue_invoice(invoice_id: int):
    return respond(workflow_service.issue_invoice(g.actor, invoice_id))


@sales_bp.route("/invoices/<int:invoice_id>/payments", methods=["POST"])
@require_actor
def record_payment(invoice_id: int):
    """Request body: {"amount": number, "method": str, "reference": str (optional)}"""
    return respond(workflow_service.record_payment(g.actor, invoice_id, json_body()))


@sales_bp.route("/payments", methods=["GET"])
@require_actor
def list_payments():
    return respond(workflow_service.list_payments(g.actor))
