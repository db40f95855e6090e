# Overview: Pytest coverage for the unit-of-work runner, optimistic versions and atomic rollback.

import threading
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from backoffice import create_app
from backoffice.context import ActorContext
from backoffice.errors import ConflictError, InvalidStateError
from backoffice.extensions import db
from backoffice.models import (
    Approval,
    AuditLog,
    Branch,
    Organization,
    Product,
    PurchaseRequest,
    StockLevel,
    StockMovement,
    User,
)
from backoffice.services import approval_service, stock_service, workflow_service
from backoffice.services.concurrency import run_in_transaction


def _flaky(error, failures):
    calls = {"count": 0}

    def op():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise error
        return "done"

    return op, calls


class TestRunInTransaction:
    def test_retries_after_stale_version(self, db_session):
        op, calls = _flaky(StaleDataError("version mismatch"), failures=1)

        assert run_in_transaction(op, attempts=3, backoff_base=0) == "done"
        assert calls["count"] == 2

    def test_exhausted_unique_race_becomes_conflict(self, db_session):
        op, calls = _flaky(IntegrityError("INSERT", {}, Exception("duplicate")), failures=10)

        with pytest.raises(ConflictError):
            run_in_transaction(op, attempts=3, backoff_base=0)
        assert calls["count"] == 3

    def test_exhausted_lock_error_is_reraised(self, db_session):
        op, calls = _flaky(OperationalError("SELECT", {}, Exception("database is locked")), failures=10)

        with pytest.raises(OperationalError):
            run_in_transaction(op, attempts=2, backoff_base=0)
        assert calls["count"] == 2

    def test_business_errors_are_not_retried(self, db_session):
        op, calls = _flaky(InvalidStateError("nope"), failures=10)

        with pytest.raises(InvalidStateError):
            run_in_transaction(op, attempts=3, backoff_base=0)
        assert calls["count"] == 1

    def test_failure_rolls_back_pending_writes(self, db_session, org_a):
        def op():
            db_session.add(AuditLog(org_id=org_a.id, action="CREATE", entity="TEST", entity_id=1))
            db_session.flush()
            raise InvalidStateError("abort")

        with pytest.raises(InvalidStateError):
            run_in_transaction(op, attempts=1, backoff_base=0)
        assert db_session.query(AuditLog).count() == 0


class TestOptimisticVersions:
    def test_concurrent_update_is_detected_at_flush(self, db_session, product_a):
        product = db_session.get(Product, product_a.id)
        db_session.execute(
            text("UPDATE products SET version_id = version_id + 1 WHERE id = :id"), {"id": product.id}
        )

        product.price = Decimal("1.00")
        with pytest.raises(StaleDataError):
            db_session.flush()
        db_session.rollback()

    def test_version_increments_on_update(self, db_session, manager_a, product_a):
        before = db_session.get(Product, product_a.id).version_id

        result = workflow_service.update_product_pricing(manager_a, product_a.id, {"price": "36000"})

        assert result.ok, result.message
        assert db_session.get(Product, product_a.id).version_id == before + 1


class TestOrchestratorAtomicity:
    def test_retry_then_success_is_reported_ok(self, app, db_session, staff_a):
        op, calls = _flaky(StaleDataError("version mismatch"), failures=2)

        result = workflow_service.execute("FlakyCommand", staff_a, "VIEW_INVENTORY", op)

        assert result.ok
        assert result.data == "done"
        assert calls["count"] == 3

    def test_exhausted_retries_report_conflict(self, app, db_session, staff_a):
        op, _ = _flaky(StaleDataError("version mismatch"), failures=10)

        result = workflow_service.execute("FlakyCommand", staff_a, "VIEW_INVENTORY", op)

        assert result.error_kind == "Conflict"
        assert result.status_code == 409

    def test_unexpected_error_rolls_back_everything(
        self, monkeypatch, db_session, staff_a, manager_a, product_a
    ):
        created = workflow_service.create_purchase_request(staff_a, {
            "items": [{"product_id": product_a.id, "quantity": 1, "unit_cost": 10}],
        })
        assert workflow_service.submit_purchase_request(staff_a, created.data["id"]).ok
        approval_id = db_session.query(Approval.id).scalar()
        audit_rows = db_session.query(AuditLog).count()

        def explode(approval, decision, ctx):
            raise RuntimeError("downstream failure")

        monkeypatch.setitem(approval_service._DECISION_HANDLERS, "PURCHASE_REQUEST", explode)

        result = workflow_service.decide_approval(manager_a, approval_id, {"decision": "APPROVED"})

        assert result.error_kind == "Unexpected"
        assert result.status_code == 500
        assert result.message == "Unexpected error"
        assert db_session.get(Approval, approval_id).status == "PENDING"
        assert db_session.get(PurchaseRequest, created.data["id"]).status == "SUBMITTED"
        assert db_session.query(AuditLog).count() == audit_rows


@pytest.fixture
def file_app(tmp_path):
    """A second app on a file-backed SQLite database so threads get real connections."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path}/race.db",
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UNIT_OF_WORK_ATTEMPTS': 5,
        'UNIT_OF_WORK_BACKOFF': 0.01,
    })
    with app.app_context():
        db.create_all()
        org = Organization(name="Race Org", code="RACE", is_active=True)
        db.session.add(org)
        db.session.flush()
        branch = Branch(org_id=org.id, name="Head Office", code="HQ")
        db.session.add(branch)
        db.session.flush()
        user = User(org_id=org.id, branch_id=branch.id, name="staff", email="staff@race.test",
                    role="STAFF", is_active=True)
        product = Product(org_id=org.id, sku="LAST-1", name="Last Unit", unit="pcs", cost=10, price=20)
        db.session.add_all([user, product])
        db.session.commit()
        app.config["RACE_ACTOR"] = ActorContext.for_user(user)
        app.config["RACE_PRODUCT_ID"] = product.id
        app.config["RACE_BRANCH_ID"] = branch.id
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


def _race(app, command, workers=2):
    """Start ``workers`` threads together, each running ``command`` in its own app context."""
    barrier = threading.Barrier(workers)
    results = []
    lock = threading.Lock()

    def worker():
        with app.app_context():
            try:
                barrier.wait()
                result = command()
                with lock:
                    results.append(result)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


class TestThreadedRaces:
    def test_only_one_out_takes_the_last_unit(self, file_app):
        ctx = file_app.config["RACE_ACTOR"]
        product_id = file_app.config["RACE_PRODUCT_ID"]
        with file_app.app_context():
            seeded = workflow_service.record_stock_movement(ctx, {"product_id": product_id, "type": "IN", "quantity": 1})
            assert seeded.ok, seeded.message
            db.session.remove()

        results = _race(file_app, lambda: workflow_service.record_stock_movement(
            ctx, {"product_id": product_id, "type": "OUT", "quantity": 1},
        ))

        assert len(results) == 2
        assert sorted(r.ok for r in results) == [False, True]
        loser = next(r for r in results if not r.ok)
        assert loser.error_kind in ("InsufficientStock", "Conflict")
        with file_app.app_context():
            level = db.session.query(StockLevel).filter_by(product_id=product_id).one()
            assert level.quantity == Decimal("0")
            assert db.session.query(StockMovement).filter_by(type="OUT").count() == 1
            assert stock_service.reconcile_stock() == []

    def test_only_one_submit_queues_an_approval(self, file_app):
        ctx = file_app.config["RACE_ACTOR"]
        product_id = file_app.config["RACE_PRODUCT_ID"]
        with file_app.app_context():
            created = workflow_service.create_purchase_request(ctx, {
                "items": [{"product_id": product_id, "quantity": 1, "unit_cost": 10}],
            })
            assert created.ok, created.message
            pr_id = created.data["id"]
            db.session.remove()

        results = _race(file_app, lambda: workflow_service.submit_purchase_request(ctx, pr_id))

        assert len(results) == 2
        assert sorted(r.ok for r in results) == [False, True]
        loser = next(r for r in results if not r.ok)
        assert loser.error_kind in ("InvalidState", "Conflict")
        with file_app.app_context():
            assert db.session.get(PurchaseRequest, pr_id).status == "SUBMITTED"
            assert db.session.query(Approval).filter_by(entity_id=pr_id, status="PENDING").count() == 1
            assert db.session.query(AuditLog).filter_by(action="SUBMIT").count() == 1
