from __future__ import annotations

from ..extensions import db
from backoffice.money import money_str
from backoffice.time_utils import to_iso_date, to_utc_z


class Project(db.Model):
    __tablename__ = "projects"
    __table_args__ = (
        db.UniqueConstraint("org_id", "code", name="uq_projects_org_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    code = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    client = db.Column(db.String(255), nullable=True)
    budget = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="PLANNING")
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    tasks = db.relationship("Task", backref="project", lazy=True, order_by="Task.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "code": self.code,
            "name": self.name,
            "client": self.client,
            "budget": money_str(self.budget),
            "status": self.status,
            "start_date": to_iso_date(self.start_date),
            "end_date": to_iso_date(self.end_date),
            "created_at": to_utc_z(self.created_at),
        }


class Task(db.Model):
    """Kanban task on a project board (BACKLOG, IN_PROGRESS, DONE)."""
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="BACKLOG")
    assignee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "assignee_id": self.assignee_id,
            "due_date": to_iso_date(self.due_date),
            "created_at": to_utc_z(self.created_at),
        }
