# Overview: Pytest coverage for employees, attendance, projects and the task board.

from decimal import Decimal

import pytest

from backoffice.models import Attendance, AuditLog, Task
from backoffice.services import workflow_service


@pytest.fixture
def employee(db_session, manager_a):
    result = workflow_service.create_employee(manager_a, {
        "employee_code": "emp-001", "name": "Budi Santoso", "position": "Picker", "base_salary": "4500000",
    })
    assert result.ok, result.message
    return result.data


@pytest.fixture
def project(db_session, staff_a):
    result = workflow_service.create_project(staff_a, {
        "code": "wh-2024", "name": "Warehouse relayout", "budget": "25000000", "start_date": "2024-04-01",
    })
    assert result.ok, result.message
    return result.data


class TestEmployees:
    def test_create_employee(self, employee, manager_a):
        assert employee["employee_code"] == "EMP-001"
        assert employee["base_salary"] == "4500000.00"
        assert employee["branch_id"] == manager_a.branch_id

    def test_duplicate_code_is_conflict(self, employee, manager_a):
        result = workflow_service.create_employee(manager_a, {"employee_code": "EMP-001", "name": "Someone Else"})

        assert result.error_kind == "Conflict"

    def test_staff_cannot_manage_employees(self, db_session, staff_a):
        result = workflow_service.create_employee(staff_a, {"employee_code": "E-2", "name": "Nope"})

        assert result.error_kind == "Forbidden"


class TestAttendance:
    def test_record_then_correct_same_day(self, db_session, manager_a, employee):
        first = workflow_service.record_attendance(manager_a, {
            "employee_id": employee["id"], "date": "2024-04-02", "status": "present", "hours": "7.5",
        })
        assert first.ok, first.message
        assert first.data["status"] == "PRESENT"
        assert Decimal(first.data["hours"]) == Decimal("7.5")

        second = workflow_service.record_attendance(manager_a, {
            "employee_id": employee["id"], "date": "2024-04-02", "status": "SICK",
        })
        assert second.ok
        assert second.data["id"] == first.data["id"]
        assert db_session.query(Attendance).count() == 1
        assert db_session.get(Attendance, first.data["id"]).status == "SICK"

        actions = [row.action for row in db_session.query(AuditLog).filter_by(entity="ATTENDANCE").order_by(AuditLog.id)]
        assert actions == ["CREATE", "UPDATE"]

    @pytest.mark.parametrize("override", [
        {"status": "HOLIDAY"},
        {"hours": 25},
        {"hours": -1},
        {"date": "yesterday"},
    ])
    def test_invalid_attendance_rejected(self, db_session, manager_a, employee, override):
        payload = {"employee_id": employee["id"], "date": "2024-04-02", "status": "PRESENT", "hours": 8}
        payload.update(override)

        result = workflow_service.record_attendance(manager_a, payload)

        assert result.error_kind == "ValidationError"
        assert db_session.query(Attendance).count() == 0

    def test_foreign_employee_not_found(self, db_session, manager_b, employee):
        result = workflow_service.record_attendance(manager_b, {
            "employee_id": employee["id"], "date": "2024-04-02", "status": "PRESENT",
        })

        assert result.error_kind == "NotFound"


class TestProjects:
    def test_create_project_defaults(self, project):
        assert project["code"] == "WH-2024"
        assert project["status"] == "PLANNING"
        assert project["budget"] == "25000000.00"
        assert project["start_date"] == "2024-04-01"

    def test_invalid_status_rejected(self, db_session, staff_a):
        result = workflow_service.create_project(staff_a, {"code": "X-1", "name": "Bad", "status": "STALLED"})

        assert result.error_kind == "ValidationError"

    def test_task_board_lifecycle(self, db_session, staff_a, project, employee):
        created = workflow_service.create_task(staff_a, project["id"], {
            "title": "Measure racks", "assignee_id": employee["id"], "due_date": "2024-04-10",
        })
        assert created.ok, created.message
        assert created.data["status"] == "BACKLOG"

        moved = workflow_service.move_task(staff_a, created.data["id"], {"status": "in_progress"})
        assert moved.data["status"] == "IN_PROGRESS"
        move_audit = db_session.query(AuditLog).filter_by(action="MOVE_TASK").one()
        assert move_audit.details == {"from": "BACKLOG", "to": "IN_PROGRESS"}

        listed = workflow_service.list_tasks(staff_a, project["id"])
        assert [t["title"] for t in listed.data] == ["Measure racks"]

        deleted = workflow_service.delete_task(staff_a, created.data["id"])
        assert deleted.ok
        assert deleted.data["title"] == "Measure racks"
        assert db_session.query(Task).count() == 0
        assert db_session.query(AuditLog).filter_by(action="DELETE_TASK").count() == 1

    def test_bad_task_status_rejected(self, db_session, staff_a, project):
        created = workflow_service.create_task(staff_a, project["id"], {"title": "Paint floor"})

        result = workflow_service.move_task(staff_a, created.data["id"], {"status": "ARCHIVED"})

        assert result.error_kind == "ValidationError"
        assert db_session.get(Task, created.data["id"]).status == "BACKLOG"

    def test_tasks_of_foreign_project_hidden(self, db_session, manager_b, project):
        assert workflow_service.list_tasks(manager_b, project["id"]).error_kind == "NotFound"
        assert workflow_service.create_task(manager_b, project["id"], {"title": "Sneak"}).error_kind == "NotFound"
