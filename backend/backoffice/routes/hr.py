# backend/backoffice/routes/hr.py
"""
Employee and attendance API routes.
"""
from flask import Blueprint, g, request

from ..decorators import require_actor
from ..services import workflow_service
from . import json_body, respond

hr_bp = Blueprint("hr", __name__, url_prefix="/api")


@hr_bp.route("/employees", methods=["GET"])
@require_actor
def list_employees():
    return respond(workflow_service.list_employees(g.actor))


@hr_bp.route("/employees", methods=["POST"])
@require_actor
def create_employee():
    return respond(workflow_service.create_employee(g.actor, json_body()))


@hr_bp.route("/attendance", methods=["POST"])
@require_actor
def record_attendance():
    return respond(workflow_service.record_attendance(g.actor, json_body()))


@hr_bp.route("/attendance", methods=["GET"])
@require_actor
def list_attendance():
    """Latest 100 rows; ?date=YYYY-MM-DD narrows to one day."""
    return respond(workflow_service.list_attendance(g.actor, date=request.args.get("date")))
