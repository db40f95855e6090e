# Overview: Pytest coverage for list endpoints, the KPI overview and quick search.

import pytest

from backoffice.models import Approval
from backoffice.services import workflow_service
from backoffice.services.reporting_service import resolve_range
from backoffice.time_utils import utcnow


def _issued_invoice(staff_a, customer_a, product_a, quantity=2):
    created = workflow_service.create_invoice(staff_a, {
        "customer_id": customer_a.id,
        "items": [{"product_id": product_a.id, "quantity": quantity}],
    })
    assert created.ok, created.message
    issued = workflow_service.issue_invoice(staff_a, created.data["id"])
    assert issued.ok, issued.message
    return issued.data


@pytest.fixture
def employee(db_session, manager_a):
    result = workflow_service.create_employee(manager_a, {"employee_code": "EMP-7", "name": "Siti Aminah"})
    assert result.ok, result.message
    return result.data


class TestAttendanceList:
    def test_newest_first_with_employee_name(self, db_session, manager_a, employee):
        for day, status in (("2024-05-01", "PRESENT"), ("2024-05-02", "SICK")):
            result = workflow_service.record_attendance(manager_a, {
                "employee_id": employee["id"], "date": day, "status": status,
            })
            assert result.ok, result.message

        result = workflow_service.list_attendance(manager_a)

        assert result.ok, result.message
        assert [row["date"] for row in result.data] == ["2024-05-02", "2024-05-01"]
        assert result.data[0]["employee_name"] == "Siti Aminah"
        assert result.data[0]["employee_code"] == "EMP-7"

    def test_date_filter(self, db_session, manager_a, viewer_a, employee):
        for day in ("2024-05-01", "2024-05-02"):
            assert workflow_service.record_attendance(manager_a, {
                "employee_id": employee["id"], "date": day, "status": "PRESENT",
            }).ok

        result = workflow_service.list_attendance(viewer_a, date="2024-05-01")

        assert result.ok, result.message
        assert [row["date"] for row in result.data] == ["2024-05-01"]

    def test_invalid_date_is_validation_error(self, db_session, manager_a):
        result = workflow_service.list_attendance(manager_a, date="05/01/2024")

        assert result.error_kind == "ValidationError"
        assert result.details == {"date": "invalid date"}

    def test_other_tenant_sees_nothing(self, db_session, manager_a, manager_b, employee):
        assert workflow_service.record_attendance(manager_a, {
            "employee_id": employee["id"], "date": "2024-05-01", "status": "PRESENT",
        }).ok

        assert workflow_service.list_attendance(manager_b).data == []


class TestCustomerAndSupplierLists:
    def test_customer_search_matches_name_email_or_phone(self, db_session, manager_a):
        for payload in (
            {"name": "Toko Maju", "email": "maju@example.test"},
            {"name": "CV Sentosa", "phone": "0812-555"},
            {"name": "Warung Jaya"},
        ):
            assert workflow_service.create_customer(manager_a, payload).ok

        everyone = workflow_service.list_customers(manager_a)
        by_email = workflow_service.list_customers(manager_a, q="MAJU@")
        by_phone = workflow_service.list_customers(manager_a, q="555")

        assert [c["name"] for c in everyone.data] == ["Warung Jaya", "CV Sentosa", "Toko Maju"]
        assert [c["name"] for c in by_email.data] == ["Toko Maju"]
        assert [c["name"] for c in by_phone.data] == ["CV Sentosa"]

    def test_customers_are_tenant_scoped(self, db_session, manager_b, customer_a):
        assert workflow_service.list_customers(manager_b).data == []

    def test_suppliers_sorted_by_name(self, db_session, manager_a, viewer_a, supplier_a):
        assert workflow_service.create_supplier(manager_a, {"name": "Alpha Supply"}).ok

        result = workflow_service.list_suppliers(viewer_a)

        assert result.ok, result.message
        assert [s["name"] for s in result.data] == ["Alpha Supply", "PT Pemasok"]


class TestPaymentList:
    def test_payments_carry_invoice_number(self, db_session, staff_a, manager_b, customer_a, product_a, stock_in):
        stock_in(staff_a, product_a, 10)
        invoice = _issued_invoice(staff_a, customer_a, product_a)
        for amount in ("10000", "20000"):
            assert workflow_service.record_payment(staff_a, invoice["id"], {"amount": amount, "method": "CASH"}).ok

        result = workflow_service.list_payments(staff_a)

        assert result.ok, result.message
        assert [p["amount"] for p in result.data] == ["20000.00", "10000.00"]
        assert {p["invoice_number"] for p in result.data} == {invoice["invoice_number"]}
        assert workflow_service.list_payments(manager_b).data == []


class TestOverview:
    def test_kpis_for_the_default_window(
        self, db_session, staff_a, manager_a, manager_b, customer_a, product_a, stock_in
    ):
        stock_in(staff_a, product_a, 6)
        invoice = _issued_invoice(staff_a, customer_a, product_a)
        assert workflow_service.record_payment(staff_a, invoice["id"], {"amount": "50000", "method": "CASH"}).ok

        today = utcnow().date().isoformat()
        assert workflow_service.create_expense(manager_a, {
            "vendor": "PLN", "category": "Utilities", "amount": "250000", "date": today,
        }).ok
        assert workflow_service.create_expense(staff_a, {
            "vendor": "Old", "category": "Misc", "amount": "100000", "date": "2020-01-01",
        }).ok

        pr = workflow_service.create_purchase_request(staff_a, {
            "items": [{"product_id": product_a.id, "quantity": 3, "unit_cost": 10000}],
        })
        assert workflow_service.submit_purchase_request(staff_a, pr.data["id"]).ok
        approval = db_session.query(Approval).filter_by(entity_type="PURCHASE_REQUEST").one()
        assert workflow_service.decide_approval(manager_a, approval.id, {"decision": "APPROVED"}).ok
        assert workflow_service.create_purchase_order(staff_a, pr.data["id"]).ok

        result = workflow_service.get_overview(manager_a)

        assert result.ok, result.message
        assert result.data["range"] == "30d"
        assert result.data["kpis"] == {
            "revenue": "77700.00",
            "expenses": "250000.00",
            "net_profit": "-172300.00",
            "received_payments": "50000.00",
            "receivables": "27700.00",
            "payables": "30000.00",
            "open_purchase_orders": 1,
            "low_stock": 1,
            "pending_approvals": 1,
        }
        trend = result.data["trend"]
        assert len(trend) == 30
        assert trend[-1] == {"date": today, "revenue": "77700.00", "expenses": "250000.00"}

        other = workflow_service.get_overview(manager_b).data["kpis"]
        assert other["revenue"] == "0.00"
        assert other["pending_approvals"] == 0

    def test_paid_invoice_leaves_no_receivable(self, db_session, staff_a, viewer_a, customer_a, product_a, stock_in):
        stock_in(staff_a, product_a, 10)
        invoice = _issued_invoice(staff_a, customer_a, product_a)
        assert workflow_service.record_payment(staff_a, invoice["id"], {"amount": "77700", "method": "CASH"}).ok

        kpis = workflow_service.get_overview(viewer_a, range_key="7d").data["kpis"]

        assert kpis["revenue"] == "77700.00"
        assert kpis["receivables"] == "0.00"
        assert kpis["low_stock"] == 0

    @pytest.mark.parametrize("given, expected, days", [
        ("7d", "7d", 7),
        ("90D", "90d", 90),
        ("bogus", "30d", 30),
        (None, "30d", 30),
    ])
    def test_range_resolution(self, db_session, viewer_a, given, expected, days):
        assert resolve_range(given) == (expected, days)

        result = workflow_service.get_overview(viewer_a, range_key=given)

        assert result.data["range"] == expected
        assert len(result.data["trend"]) == days


class TestSearch:
    def test_short_term_returns_nothing(self, db_session, viewer_a, product_a):
        assert workflow_service.search(viewer_a, q="w").data == []
        assert workflow_service.search(viewer_a, q=None).data == []

    def test_each_type_is_capped_at_five(self, db_session, manager_a, viewer_a):
        for n in range(7):
            assert workflow_service.create_customer(manager_a, {"name": f"Toko {n}"}).ok

        hits = workflow_service.search(viewer_a, q="toko").data

        assert len(hits) == 5
        assert {hit["type"] for hit in hits} == {"customer"}
        assert hits[0]["subtitle"] == "Customer"

    def test_product_matches_sku(self, db_session, viewer_a, product_a, product_a2):
        hits = workflow_service.search(viewer_a, q="gad-").data

        assert hits == [{"type": "product", "id": product_a2.id, "name": "Gadget", "subtitle": "GAD-1"}]

    def test_invoice_and_supplier_hits(self, db_session, staff_a, viewer_a, customer_a, supplier_a, product_a, stock_in):
        stock_in(staff_a, product_a, 5)
        invoice = _issued_invoice(staff_a, customer_a, product_a, quantity=1)

        by_number = workflow_service.search(viewer_a, q=invoice["invoice_number"]).data
        by_supplier = workflow_service.search(viewer_a, q="pemasok").data

        assert [(h["type"], h["id"], h["subtitle"]) for h in by_number] == [("invoice", invoice["id"], "ISSUED")]
        assert [(h["type"], h["name"]) for h in by_supplier] == [("supplier", "PT Pemasok")]

    def test_search_is_tenant_scoped(self, db_session, viewer_a, manager_b, product_a, product_b):
        mine = workflow_service.search(viewer_a, q="beta").data
        theirs = workflow_service.search(manager_b, q="beta").data

        assert mine == []
        assert [h["id"] for h in theirs] == [product_b.id]


class TestReadRoutes:
    def test_overview_and_search_over_http(self, client, viewer_a, product_a, auth_headers):
        overview = client.get("/api/overview?range=7d", headers=auth_headers(viewer_a))
        search = client.get("/api/search?q=widget", headers=auth_headers(viewer_a))

        assert overview.status_code == 200
        assert overview.get_json()["data"]["range"] == "7d"
        assert search.status_code == 200
        assert [h["name"] for h in search.get_json()["data"]] == ["Widget"]

    def test_list_routes(self, client, viewer_a, customer_a, supplier_a, auth_headers):
        headers = auth_headers(viewer_a)

        customers = client.get("/api/customers?q=pelanggan", headers=headers)
        suppliers = client.get("/api/suppliers", headers=headers)
        payments = client.get("/api/payments", headers=headers)
        attendance = client.get("/api/attendance", headers=headers)

        assert [c["name"] for c in customers.get_json()["data"]] == ["PT Pelanggan"]
        assert [s["name"] for s in suppliers.get_json()["data"]] == ["PT Pemasok"]
        assert payments.get_json() == {"ok": True, "data": []}
        assert attendance.get_json() == {"ok": True, "data": []}

    def test_bad_attendance_date_is_422(self, client, viewer_a, auth_headers):
        resp = client.get("/api/attendance?date=yesterday", headers=auth_headers(viewer_a))

        assert resp.status_code == 422
        assert resp.get_json()["details"] == {"date": "invalid date"}

    def test_routes_require_an_actor(self, client, db_session):
        assert client.get("/api/overview").status_code == 401
