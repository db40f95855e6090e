# Overview: Employees and daily attendance.

from __future__ import annotations

from decimal import Decimal

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import Attendance, Employee
from ..money import ZERO, to_decimal, to_money
from ..time_utils import parse_iso_date
from . import audit_service
from .catalog_service import clean_text
from .tenant_service import get_scoped, require_branch_in_org

ENTITY_EMPLOYEE = "EMPLOYEE"
ENTITY_ATTENDANCE = "ATTENDANCE"

ATTENDANCE_STATUSES = ("PRESENT", "SICK", "LEAVE", "ABSENT")
MAX_HOURS = Decimal("24")
RECENT_ATTENDANCE_LIMIT = 100


def create_employee(ctx, *, employee_code, name, email=None, phone=None, position=None,
                    base_salary=0, branch_id=None) -> Employee:
    code = clean_text(employee_code, "employee_code", min_length=2, max_length=32).upper()
    if db.session.query(Employee.id).filter_by(org_id=ctx.org_id, employee_code=code).first():
        raise ConflictError(f"Employee code {code} already exists")
    if branch_id is not None:
        require_branch_in_org(branch_id, ctx.org_id)

    employee = Employee(
        org_id=ctx.org_id,
        branch_id=branch_id if branch_id is not None else ctx.branch_id,
        employee_code=code,
        name=clean_text(name, "name", min_length=2, max_length=120),
        email=clean_text(email, "email", required=False),
        phone=clean_text(phone, "phone", max_length=64, required=False),
        position=clean_text(position, "position", max_length=120, required=False),
        base_salary=to_money(base_salary, field="base_salary"),
    )
    db.session.add(employee)
    db.session.flush()
    audit_service.record_for(
        ctx, audit_service.ACTION_CREATE, ENTITY_EMPLOYEE, employee.id, details={"employee_code": code},
    )
    return employee


def record_attendance(ctx, *, employee_id, date, status, hours=0, note=None) -> Attendance:
    """
    Record one employee's day. Re-recording the same (employee, date) updates
    the existing row instead of creating a second one.
    """
    employee = get_scoped(Employee, employee_id, ctx.org_id, label="Employee")

    try:
        day = parse_iso_date(date)
    except ValueError:
        day = None
    if day is None:
        raise ValidationError("date must be an ISO date", details={"date": "invalid date"})

    status = str(status or "").strip().upper()
    if status not in ATTENDANCE_STATUSES:
        raise ValidationError(
            "Invalid attendance status",
            details={"status": f"must be one of {', '.join(ATTENDANCE_STATUSES)}"},
        )
    hours = to_decimal(hours if hours is not None else 0, field="hours")
    if hours < ZERO or hours > MAX_HOURS:
        raise ValidationError("hours must be between 0 and 24", details={"hours": "must be 0-24"})

    attendance = db.session.query(Attendance).filter_by(employee_id=employee.id, date=day).first()
    if attendance is None:
        attendance = Attendance(org_id=ctx.org_id, branch_id=employee.branch_id, employee_id=employee.id, date=day)
        db.session.add(attendance)
        action = audit_service.ACTION_CREATE
    else:
        action = audit_service.ACTION_UPDATE
    attendance.status = status
    attendance.hours = hours
    attendance.note = note
    db.session.flush()

    audit_service.record_for(
        ctx, action, ENTITY_ATTENDANCE, attendance.id,
        branch_id=attendance.branch_id,
        details={"employee_id": employee.id, "date": day, "status": status, "hours": hours},
    )
    return attendance


def list_employees(org_id: int) -> list[Employee]:
    return db.session.query(Employee).filter_by(org_id=org_id).order_by(Employee.name.asc()).all()


def list_attendance(org_id: int, *, date=None, limit: int = RECENT_ATTENDANCE_LIMIT) -> list[dict]:
    """Latest attendance rows, each with the employee's name and code."""
    query = (
        db.session.query(Attendance, Employee)
        .join(Employee, Employee.id == Attendance.employee_id)
        .filter(Attendance.org_id == org_id, Employee.org_id == org_id)
    )
    try:
        day = parse_iso_date(date)
    except ValueError:
        raise ValidationError("date must be an ISO date", details={"date": "invalid date"})
    if day is not None:
        query = query.filter(Attendance.date == day)

    rows = []
    for attendance, employee in query.order_by(Attendance.date.desc(), Attendance.id.asc()).limit(limit).all():
        data = attendance.to_dict()
        data["employee_name"] = employee.name
        data["employee_code"] = employee.employee_code
        rows.append(data)
    return rows
