# backend/backoffice/routes/finance.py
"""
Expense and journal entry API routes.
"""
from flask import Blueprint, g, request

from ..decorators import require_actor
from ..services import workflow_service
from . import json_body, respond

finance_bp = Blueprint("finance", __name__, url_prefix="/api")


@finance_bp.route("/expenses", methods=["GET"])
@require_actor
def list_expenses():
    return respond(workflow_service.list_expenses(g.actor, status=request.args.get("status")))


@finance_bp.route("/expenses", methods=["POST"])
@require_actor
def create_expense():
    return respond(workflow_service.create_expense(g.actor, json_body()))


@finance_bp.route("/expenses/<int:expense_id>/pay", methods=["POST"])
@require_actor
def mark_expense_paid(expense_id: int):
    return respond(workflow_service.mark_expense_paid(g.actor, expense_id))


@finance_bp.route("/journal-entries", methods=["GET"])
@require_actor
def list_journal_entries():
    return respond(workflow_service.list_journal_entries(g.actor))


@finance_bp.route("/journal-entries", methods=["POST"])
@require_actor
def create_journal_entry():
    """
    Request body:
    {
        "description": str,
        "date": "YYYY-MM-DD",
        "lines": [{"account_name": str, "debit": number, "credit": number, "note": str (optional)}]
    }
    """
    return respond(workflow_service.create_journal_entry(g.actor, json_body()))


@finance_bp.route("/journal-entries/<int:entry_id>/post", methods=["POST"])
@require_actor
def post_journal_entry(entry_id: int):
    return respond(workflow_service.post_journal_entry(g.actor, entry_id))
