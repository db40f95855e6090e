# Overview: Pytest coverage for the stock ledger (levels, movements, reconciliation).

from decimal import Decimal

import pytest

from backoffice.errors import NotFoundError, ValidationError
from backoffice.models import AuditLog, StockLevel, StockMovement
from backoffice.services import stock_service, workflow_service


def _move(ctx, product, movement_type, quantity, **extra):
    payload = {"product_id": product.id, "type": movement_type, "quantity": quantity}
    payload.update(extra)
    return workflow_service.record_stock_movement(ctx, payload)


class TestApplyMovement:
    def test_first_receipt_creates_level(self, db_session, staff_a, branch_a, product_a):
        result = _move(staff_a, product_a, "IN", 10)

        assert result.ok
        assert result.status_code == 201
        assert result.data["type"] == "IN"
        assert stock_service.get_quantity_on_hand(staff_a.org_id, branch_a.id, product_a.id) == Decimal("10")

    def test_out_decrements(self, db_session, staff_a, branch_a, product_a, stock_in):
        stock_in(staff_a, product_a, 10)
        result = _move(staff_a, product_a, "OUT", 4, reference="ADJ-1")

        assert result.ok
        assert stock_service.get_quantity_on_hand(staff_a.org_id, branch_a.id, product_a.id) == Decimal("6")

    def test_out_beyond_available_fails_without_writes(self, db_session, staff_a, branch_a, product_a, stock_in):
        """No oversell: the level is unchanged and no movement or audit row is written."""
        stock_in(staff_a, product_a, 3)
        movements_before = db_session.query(StockMovement).count()
        audits_before = db_session.query(AuditLog).count()

        result = _move(staff_a, product_a, "OUT", 5)

        assert not result.ok
        assert result.error_kind == "InsufficientStock"
        assert result.details["available"] == "3.000"
        assert result.details["requested"] == "5.000"
        assert stock_service.get_quantity_on_hand(staff_a.org_id, branch_a.id, product_a.id) == Decimal("3")
        assert db_session.query(StockMovement).count() == movements_before
        assert db_session.query(AuditLog).count() == audits_before

    def test_out_with_no_level_row_fails(self, db_session, staff_a, product_a):
        result = _move(staff_a, product_a, "OUT", 1)

        assert result.error_kind == "InsufficientStock"
        assert db_session.query(StockLevel).count() == 0

    def test_transfer_records_one_row_and_credits_destination(
        self, db_session, staff_a, branch_a, branch_a2, product_a, stock_in
    ):
        """A transfer is a single source-side movement naming the destination branch."""
        stock_in(staff_a, product_a, 10)

        result = _move(staff_a, product_a, "TRANSFER", 4, to_branch_id=branch_a2.id)

        assert result.ok, result.message
        transfers = db_session.query(StockMovement).filter_by(type="TRANSFER").all()
        assert len(transfers) == 1
        assert transfers[0].branch_id == branch_a.id
        assert transfers[0].to_branch_id == branch_a2.id
        assert stock_service.get_quantity_on_hand(staff_a.org_id, branch_a.id, product_a.id) == Decimal("6")
        assert stock_service.get_quantity_on_hand(staff_a.org_id, branch_a2.id, product_a.id) == Decimal("4")

    def test_transfer_to_same_branch_rejected(self, db_session, staff_a, branch_a, product_a, stock_in):
        stock_in(staff_a, product_a, 10)
        result = _move(staff_a, product_a, "TRANSFER", 1, to_branch_id=branch_a.id)

        assert result.error_kind == "ValidationError"

    def test_transfer_to_foreign_branch_not_found(self, db_session, staff_a, branch_b, product_a, stock_in):
        stock_in(staff_a, product_a, 10)
        result = _move(staff_a, product_a, "TRANSFER", 1, to_branch_id=branch_b.id)

        assert result.error_kind == "NotFound"
        assert stock_service.get_quantity_on_hand(staff_a.org_id, staff_a.branch_id, product_a.id) == Decimal("10")

    def test_foreign_product_not_found(self, db_session, staff_a, product_b):
        result = _move(staff_a, product_b, "IN", 1)

        assert result.error_kind == "NotFound"

    @pytest.mark.parametrize("quantity", [0, -1, "abc", None])
    def test_non_positive_or_invalid_quantity_rejected(self, db_session, staff_a, product_a, quantity):
        result = _move(staff_a, product_a, "IN", quantity)

        assert result.error_kind == "ValidationError"

    def test_unknown_type_rejected(self, db_session, staff_a, product_a):
        with pytest.raises(ValidationError):
            stock_service.apply_movement(
                org_id=staff_a.org_id,
                branch_id=staff_a.branch_id,
                product_id=product_a.id,
                movement_type="ADJUST",
                quantity=1,
            )

    def test_service_rejects_branch_of_other_org(self, db_session, staff_a, branch_b, product_a):
        with pytest.raises(NotFoundError):
            stock_service.apply_movement(
                org_id=staff_a.org_id,
                branch_id=branch_b.id,
                product_id=product_a.id,
                movement_type="IN",
                quantity=1,
            )
        db_session.rollback()


class TestMovementAudit:
    def test_each_manual_movement_writes_one_audit_row(
        self, db_session, staff_a, branch_a, branch_a2, product_a
    ):
        assert _move(staff_a, product_a, "IN", 5, reference="GRN-7").ok
        assert _move(staff_a, product_a, "OUT", 1).ok
        assert _move(staff_a, product_a, "TRANSFER", 2, to_branch_id=branch_a2.id).ok

        rows = (
            db_session.query(AuditLog)
            .filter_by(entity="STOCK_MOVEMENT")
            .order_by(AuditLog.id.asc())
            .all()
        )
        assert [row.action for row in rows] == ["POST", "POST", "POST"]
        assert [row.details["type"] for row in rows] == ["IN", "OUT", "TRANSFER"]
        assert rows[0].details["quantity"] == "5.000"
        assert rows[0].details["reference"] == "GRN-7"
        assert rows[0].details["sku"] == product_a.sku
        assert rows[0].user_id == staff_a.user_id
        assert rows[2].details["to_branch_id"] == branch_a2.id
        movement_ids = [m.id for m in db_session.query(StockMovement).order_by(StockMovement.id.asc())]
        assert [row.entity_id for row in rows] == movement_ids

    def test_failed_movement_leaves_no_audit_row(self, db_session, staff_a, product_a):
        assert _move(staff_a, product_a, "IN", 1).ok

        assert _move(staff_a, product_a, "OUT", 2).error_kind == "InsufficientStock"

        assert db_session.query(AuditLog).filter_by(entity="STOCK_MOVEMENT").count() == 1


class TestReconciliation:
    def test_levels_match_ledger_after_mixed_movements(
        self, db_session, staff_a, branch_a, branch_a2, product_a, product_a2, stock_in
    ):
        stock_in(staff_a, product_a, 10)
        stock_in(staff_a, product_a2, "2.5")
        assert _move(staff_a, product_a, "OUT", 3).ok
        assert _move(staff_a, product_a, "TRANSFER", 2, to_branch_id=branch_a2.id).ok
        assert _move(staff_a, product_a, "OUT", 1, branch_id=branch_a2.id).ok

        assert stock_service.reconcile_stock(staff_a.org_id) == []
        assert stock_service.ledger_quantity(staff_a.org_id, branch_a.id, product_a.id) == Decimal("5.000")
        assert stock_service.ledger_quantity(staff_a.org_id, branch_a2.id, product_a.id) == Decimal("1.000")

    def test_detects_drift(self, db_session, staff_a, branch_a, product_a, stock_in):
        stock_in(staff_a, product_a, 10)
        level = stock_service.get_stock_level(staff_a.org_id, branch_a.id, product_a.id)
        level.quantity = Decimal("9")
        db_session.commit()

        discrepancies = stock_service.reconcile_stock(staff_a.org_id)

        assert len(discrepancies) == 1
        assert discrepancies[0]["level"] == "9.000"
        assert discrepancies[0]["ledger"] == "10.000"

    def test_filters_by_branch_and_product(self, db_session, staff_a, branch_a, branch_a2, product_a, product_a2, stock_in):
        stock_in(staff_a, product_a, 4)
        stock_in(staff_a, product_a2, 6)
        for level in db_session.query(StockLevel).filter_by(org_id=staff_a.org_id).all():
            level.quantity = Decimal("1")
        db_session.commit()

        assert len(stock_service.reconcile_stock(staff_a.org_id)) == 2
        only_a = stock_service.reconcile_stock(staff_a.org_id, product_id=product_a.id)
        assert [d["product_id"] for d in only_a] == [product_a.id]
        assert stock_service.reconcile_stock(staff_a.org_id, branch_id=branch_a2.id) == []


class TestReadModels:
    def test_stock_summary_flags_low_stock(self, db_session, staff_a, product_a, product_a2, stock_in):
        stock_in(staff_a, product_a, 5)  # threshold 5 -> low
        stock_in(staff_a, product_a2, 20)  # threshold 0 -> fine

        result = workflow_service.get_stock_summary(staff_a)

        assert result.ok
        by_sku = {row["sku"]: row for row in result.data}
        assert by_sku["WID-1"]["low_stock"] is True
        assert by_sku["GAD-1"]["low_stock"] is False

    def test_movement_list_is_newest_first(self, db_session, staff_a, product_a, stock_in):
        stock_in(staff_a, product_a, 1)
        stock_in(staff_a, product_a, 2)

        result = workflow_service.list_stock_movements(staff_a)

        assert [row["quantity"] for row in result.data] == ["2.000", "1.000"]

    def test_viewer_can_read_but_not_move(self, db_session, viewer_a, staff_a, product_a, stock_in):
        stock_in(staff_a, product_a, 1)

        assert workflow_service.get_stock_summary(viewer_a).ok
        assert _move(viewer_a, product_a, "IN", 1).error_kind == "Forbidden"
