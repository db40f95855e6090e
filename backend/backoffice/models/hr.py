from __future__ import annotations

from ..extensions import db
from backoffice.money import money_str
from backoffice.time_utils import to_iso_date, to_utc_z


class Employee(db.Model):
    __tablename__ = "employees"
    __table_args__ = (
        db.UniqueConstraint("org_id", "employee_code", name="uq_employees_org_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)

    employee_code = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    position = db.Column(db.String(120), nullable=True)
    base_salary = db.Column(db.Numeric(18, 2), nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "branch_id": self.branch_id,
            "employee_code": self.employee_code,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "position": self.position,
            "base_salary": money_str(self.base_salary),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Attendance(db.Model):
    """One row per employee per day; re-recording the same day updates it."""
    __tablename__ = "attendance"
    __table_args__ = (
        db.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(16), nullable=False)
    hours = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    note = db.Column(db.String(255), nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "branch_id": self.branch_id,
            "employee_id": self.employee_id,
            "date": to_iso_date(self.date),
            "status": self.status,
            "hours": str(self.hours) if self.hours is not None else None,
            "note": self.note,
            "updated_at": to_utc_z(self.updated_at),
        }
