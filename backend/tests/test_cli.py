# Overview: Pytest coverage for the Flask CLI command groups.

from decimal import Decimal

import pytest

from backoffice.models import Branch, Organization, StockLevel, User


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


class TestOrgCommands:
    def test_create_and_list(self, runner, db_session):
        result = runner.invoke(args=["orgs", "create", "--name", "Gamma Ltd", "--code", "GAMMA"])
        assert "PASS Created organization" in result.output
        assert db_session.query(Organization).filter_by(code="GAMMA").count() == 1

        listed = runner.invoke(args=["orgs", "list"])
        assert "Gamma Ltd" in listed.output

    def test_duplicate_code_fails(self, runner, db_session, org_a):
        result = runner.invoke(args=["orgs", "create", "--name", "Copy", "--code", "ACME"])

        assert "FAIL" in result.output
        assert db_session.query(Organization).count() == 1


class TestBranchCommands:
    def test_create_branch_uppercases_code(self, runner, db_session, org_a):
        result = runner.invoke(args=["branches", "create", "--org-id", str(org_a.id), "--name", "Depot", "--code", "dp"])

        assert "PASS Created branch" in result.output
        assert db_session.query(Branch).filter_by(org_id=org_a.id, code="DP").count() == 1

    def test_unknown_org(self, runner, db_session):
        result = runner.invoke(args=["branches", "create", "--org-id", "999", "--name", "X", "--code", "X"])

        assert "FAIL Organization ID 999 not found" in result.output


class TestUserCommands:
    def test_create_user_with_password(self, runner, db_session, org_a, branch_a):
        result = runner.invoke(args=[
            "users", "create",
            "--org-id", str(org_a.id),
            "--name", "Sari",
            "--email", "sari@acme.test",
            "--password", "Str0ngPassw0rd",
            "--role", "manager",
            "--branch-id", str(branch_a.id),
        ])

        assert "PASS Created user" in result.output, result.output
        user = db_session.query(User).filter_by(email="sari@acme.test").one()
        assert user.role == "MANAGER"
        assert user.password_hash and user.password_hash.startswith("$2")

    def test_duplicate_email_fails(self, runner, db_session, org_a, staff_a):
        result = runner.invoke(args=[
            "users", "create", "--org-id", str(org_a.id), "--name", "Dup",
            "--email", "staff@acme.test", "--role", "STAFF",
        ])

        assert "FAIL" in result.output
        assert db_session.query(User).filter_by(email="staff@acme.test").count() == 1


class TestPermCommands:
    def test_check_respects_catalogue(self, runner, db_session):
        assert "DENY STAFF may not DECIDE_APPROVAL" in runner.invoke(args=["perms", "check", "staff", "DECIDE_APPROVAL"]).output
        assert "PASS MANAGER may DECIDE_APPROVAL" in runner.invoke(args=["perms", "check", "MANAGER", "DECIDE_APPROVAL"]).output

    def test_check_unknown_action(self, runner, db_session):
        assert "FAIL Unknown action" in runner.invoke(args=["perms", "check", "STAFF", "FLY"]).output

    def test_list_by_category(self, runner, db_session):
        output = runner.invoke(args=["perms", "list", "--category", "finance"]).output

        assert "POST_JOURNAL_ENTRY" in output
        assert "RECORD_STOCK_MOVEMENT" not in output


class TestStockReconcile:
    def test_clean_ledger_passes(self, runner, db_session, staff_a, product_a, stock_in):
        stock_in(staff_a, product_a, 4)

        result = runner.invoke(args=["stock", "reconcile"])

        assert result.exit_code == 0
        assert "PASS Stock levels match the movement ledger." in result.output

    def test_drift_fails(self, runner, db_session, staff_a, product_a, stock_in):
        stock_in(staff_a, product_a, 4)
        level = db_session.query(StockLevel).filter_by(product_id=product_a.id).one()
        level.quantity = Decimal("9")
        db_session.commit()

        result = runner.invoke(args=["stock", "reconcile", "--org-id", str(staff_a.org_id)])

        assert result.exit_code == 1
        assert f"product={product_a.id}" in result.output
