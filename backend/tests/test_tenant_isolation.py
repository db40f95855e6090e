# Overview: Pytest coverage for tenant isolation behavior.

"""
Multi-Tenant Isolation Tests

SECURITY TESTS: Prove that cross-tenant access is denied for every document type.

These tests create two organizations and verify that:
1. An actor in Org B cannot read or change documents of Org A
2. Passing a foreign branch_id, product_id or customer_id is rejected
3. Foreign records are reported as NotFound, exactly like missing ones
4. List endpoints never leak rows of another tenant
"""

import pytest

from backoffice.errors import NotFoundError
from backoffice.models import Approval, Invoice, Product, PurchaseRequest
from backoffice.services import workflow_service
from backoffice.services.tenant_service import get_org_branches, get_scoped, require_branch_in_org


class TestTenantServiceHelpers:
    """Test tenant_service helper functions."""

    def test_require_branch_in_org_valid(self, db_session, org_a, branch_a):
        assert require_branch_in_org(branch_a.id, org_a.id).id == branch_a.id

    def test_require_branch_in_org_cross_tenant(self, db_session, org_a, branch_b):
        with pytest.raises(NotFoundError):
            require_branch_in_org(branch_b.id, org_a.id)

    def test_require_branch_in_org_nonexistent(self, db_session, org_a):
        with pytest.raises(NotFoundError):
            require_branch_in_org(99999, org_a.id)

    def test_foreign_and_missing_look_identical(self, db_session, org_a, product_b):
        with pytest.raises(NotFoundError) as foreign:
            get_scoped(Product, product_b.id, org_a.id, label="Product")
        with pytest.raises(NotFoundError) as missing:
            get_scoped(Product, 424242, org_a.id, label="Product")

        assert foreign.value.message == missing.value.message

    def test_get_org_branches_oldest_first(self, db_session, org_a, org_b, branch_a, branch_a2, branch_b):
        assert [b.id for b in get_org_branches(org_a.id)] == [branch_a.id, branch_a2.id]
        assert [b.id for b in get_org_branches(org_b.id)] == [branch_b.id]


class TestCrossTenantCommands:
    def _pr(self, staff_a, product_a):
        created = workflow_service.create_purchase_request(staff_a, {
            "items": [{"product_id": product_a.id, "quantity": 2, "unit_cost": 100}],
        })
        assert created.ok
        return created.data["id"]

    def test_cannot_submit_foreign_purchase_request(self, db_session, staff_a, manager_b, product_a):
        pr_id = self._pr(staff_a, product_a)

        result = workflow_service.submit_purchase_request(manager_b, pr_id)

        assert result.error_kind == "NotFound"
        assert db_session.get(PurchaseRequest, pr_id).status == "DRAFT"
        assert db_session.query(Approval).count() == 0

    def test_cannot_reference_foreign_product(self, db_session, manager_b, product_a):
        result = workflow_service.create_purchase_request(manager_b, {
            "items": [{"product_id": product_a.id, "quantity": 1, "unit_cost": 100}],
        })

        assert result.error_kind == "NotFound"
        assert db_session.query(PurchaseRequest).count() == 0

    def test_cannot_invoice_foreign_customer(self, db_session, manager_b, customer_a):
        result = workflow_service.create_invoice(manager_b, {
            "customer_id": customer_a.id,
            "items": [{"description": "Anything", "quantity": 1, "unit_price": 1}],
        })

        assert result.error_kind == "NotFound"
        assert db_session.query(Invoice).count() == 0

    def test_cannot_issue_or_pay_foreign_invoice(self, db_session, staff_a, manager_b, customer_a):
        created = workflow_service.create_invoice(staff_a, {
            "customer_id": customer_a.id,
            "items": [{"description": "Service", "quantity": 1, "unit_price": 100}],
        })

        assert workflow_service.issue_invoice(manager_b, created.data["id"]).error_kind == "NotFound"
        assert workflow_service.get_invoice(manager_b, created.data["id"]).error_kind == "NotFound"
        assert db_session.get(Invoice, created.data["id"]).status == "DRAFT"

    def test_cannot_move_stock_into_foreign_branch(self, db_session, manager_b, product_b, branch_a):
        result = workflow_service.record_stock_movement(manager_b, {
            "product_id": product_b.id, "type": "IN", "quantity": 5, "branch_id": branch_a.id,
        })

        assert result.error_kind == "NotFound"

    def test_cannot_pay_foreign_expense(self, db_session, manager_a, manager_b):
        created = workflow_service.create_expense(manager_a, {
            "vendor": "PLN", "category": "Utilities", "amount": 10, "date": "2024-03-01",
        })

        assert workflow_service.mark_expense_paid(manager_b, created.data["id"]).error_kind == "NotFound"

    def test_cannot_post_foreign_journal_entry(self, db_session, manager_a, manager_b):
        created = workflow_service.create_journal_entry(manager_a, {
            "description": "Opening",
            "date": "2024-01-01",
            "lines": [{"account_name": "Cash", "debit": 5}, {"account_name": "Capital", "credit": 5}],
        })

        assert workflow_service.post_journal_entry(manager_b, created.data["id"]).error_kind == "NotFound"


class TestListsAreScoped:
    def test_lists_only_show_own_tenant(
        self, db_session, staff_a, manager_a, manager_b, product_a, product_b, customer_a, stock_in
    ):
        stock_in(staff_a, product_a, 3)
        stock_in(manager_b, product_b, 7)
        workflow_service.create_purchase_request(staff_a, {
            "items": [{"product_id": product_a.id, "quantity": 1, "unit_cost": 1}],
        })
        workflow_service.create_invoice(staff_a, {
            "customer_id": customer_a.id,
            "items": [{"description": "Service", "quantity": 1, "unit_price": 100}],
        })

        assert workflow_service.list_purchase_requests(manager_b).data == []
        assert workflow_service.list_invoices(manager_b).data == []
        assert [p["id"] for p in workflow_service.list_products(manager_b).data] == [product_b.id]
        assert [m["product_id"] for m in workflow_service.list_stock_movements(manager_b).data] == [product_b.id]
        summary = workflow_service.get_stock_summary(manager_b).data
        assert [row["product_id"] for row in summary] == [product_b.id]

    def test_audit_log_is_per_tenant(self, db_session, staff_a, admin_a, manager_b, product_a):
        workflow_service.create_purchase_request(staff_a, {
            "items": [{"product_id": product_a.id, "quantity": 1, "unit_cost": 1}],
        })
        workflow_service.create_expense(manager_b, {
            "vendor": "PLN", "category": "Utilities", "amount": 10, "date": "2024-03-01",
        })

        entries = workflow_service.list_audit_logs(admin_a).data

        assert entries
        assert {entry["org_id"] for entry in entries} == {admin_a.org_id}
