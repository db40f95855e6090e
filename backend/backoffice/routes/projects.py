# backend/backoffice/routes/projects.py
"""
Project and task board API routes.
"""
from flask import Blueprint, g

from ..decorators import require_actor
from ..services import workflow_service
from . import json_body, respond

projects_bp = Blueprint("projects", __name__, url_prefix="/api")


@projects_bp.route("/projects", methods=["GET"])
@require_actor
def list_projects():
    return respond(workflow_service.list_projects(g.actor))


@projects_bp.route("/projects", methods=["POST"])
@require_actor
def create_project():
    return respond(workflow_service.create_project(g.actor, json_body()))


@projects_bp.route("/projects/<int:project_id>/tasks", methods=["GET"])
@require_actor
def list_tasks(project_id: int):
    return respond(workflow_service.list_tasks(g.actor, project_id))


@projects_bp.route("/projects/<int:project_id>/tasks", methods=["POST"])
@require_actor
def create_task(project_id: int):
    return respond(workflow_service.create_task(g.actor, project_id, json_body()))


@projects_bp.route("/tasks/<int:task_id>", methods=["PATCH"])
@require_actor
def move_task(task_id: int):
    return respond(workflow_service.move_task(g.actor, task_id, json_body()))


@projects_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@require_actor
def delete_task(task_id: int):
    return respond(workflow_service.delete_task(g.actor, task_id))
