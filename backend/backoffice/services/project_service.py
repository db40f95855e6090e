# Overview: Projects and their kanban task boards.

from __future__ import annotations

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import Employee, Project, Task
from ..money import to_money
from ..time_utils import parse_iso_date
from . import audit_service
from .catalog_service import clean_text
from .tenant_service import get_scoped

ENTITY_PROJECT = "PROJECT"
ENTITY_TASK = "TASK"

PROJECT_STATUSES = ("PLANNING", "ACTIVE", "ON_HOLD", "DONE")
TASK_STATUSES = ("BACKLOG", "IN_PROGRESS", "DONE")


def _choice(value, field: str, choices, default=None) -> str:
    if value is None and default is not None:
        return default
    normalized = str(value or "").strip().upper()
    if normalized not in choices:
        raise ValidationError(f"Invalid {field}", details={field: f"must be one of {', '.join(choices)}"})
    return normalized


def _date(value, field: str):
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date", details={field: "invalid date"})


def create_project(ctx, *, code, name, client=None, budget=0, status=None, start_date=None, end_date=None) -> Project:
    code = clean_text(code, "code", min_length=2, max_length=32).upper()
    if db.session.query(Project.id).filter_by(org_id=ctx.org_id, code=code).first():
        raise ConflictError(f"Project code {code} already exists")

    project = Project(
        org_id=ctx.org_id,
        code=code,
        name=clean_text(name, "name", min_length=2, max_length=255),
        client=clean_text(client, "client", required=False),
        budget=to_money(budget, field="budget"),
        status=_choice(status, "status", PROJECT_STATUSES, default="PLANNING"),
        start_date=_date(start_date, "start_date"),
        end_date=_date(end_date, "end_date"),
    )
    db.session.add(project)
    db.session.flush()
    audit_service.record_for(ctx, audit_service.ACTION_CREATE, ENTITY_PROJECT, project.id, details={"code": code})
    return project


def create_task(ctx, *, project_id, title, description=None, status=None, assignee_id=None, due_date=None) -> Task:
    project = get_scoped(Project, project_id, ctx.org_id, label="Project")
    if assignee_id is not None:
        get_scoped(Employee, assignee_id, ctx.org_id, label="Employee")

    task = Task(
        org_id=ctx.org_id,
        project_id=project.id,
        title=clean_text(title, "title", min_length=2, max_length=255),
        description=description,
        status=_choice(status, "status", TASK_STATUSES, default="BACKLOG"),
        assignee_id=assignee_id,
        due_date=_date(due_date, "due_date"),
    )
    db.session.add(task)
    db.session.flush()
    audit_service.record_for(
        ctx, "CREATE_TASK", ENTITY_TASK, task.id, details={"project_id": project.id, "title": task.title},
    )
    return task


def move_task(ctx, task_id, *, status) -> Task:
    task = get_scoped(Task, task_id, ctx.org_id, label="Task", lock=True)
    new_status = _choice(status, "status", TASK_STATUSES)
    previous = task.status
    task.status = new_status
    db.session.flush()
    audit_service.record_for(
        ctx, "MOVE_TASK", ENTITY_TASK, task.id, details={"from": previous, "to": new_status},
    )
    return task


def delete_task(ctx, task_id) -> dict:
    task = get_scoped(Task, task_id, ctx.org_id, label="Task", lock=True)
    snapshot = {"id": task.id, "project_id": task.project_id, "title": task.title}
    db.session.delete(task)
    db.session.flush()
    audit_service.record_for(ctx, "DELETE_TASK", ENTITY_TASK, snapshot["id"], details=snapshot)
    return snapshot


def list_projects(org_id: int) -> list[Project]:
    return db.session.query(Project).filter_by(org_id=org_id).order_by(Project.created_at.desc(), Project.id.desc()).all()


def list_tasks(org_id: int, project_id) -> list[Task]:
    project = get_scoped(Project, project_id, org_id, label="Project")
    return db.session.query(Task).filter_by(org_id=org_id, project_id=project.id).order_by(Task.id.asc()).all()
