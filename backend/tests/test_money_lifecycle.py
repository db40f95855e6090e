# Overview: Pytest coverage for decimal money helpers and the document state machines.

from decimal import Decimal
from types import SimpleNamespace

import pytest

from backoffice.errors import InvalidStateError, ValidationError
from backoffice.money import line_total, money_str, quantity_str, round_money, to_money, to_quantity
from backoffice.services.lifecycle_service import (
    STATE_MACHINES,
    apply_transition,
    can_transition,
    initial_state,
    status_rank,
    target_status,
)


class TestMoney:
    @pytest.mark.parametrize("raw,expected", [
        ("0.005", Decimal("0.01")),
        ("2.345", Decimal("2.35")),
        ("-2.345", Decimal("-2.35")),
        (10, Decimal("10.00")),
    ])
    def test_round_half_up(self, raw, expected):
        assert round_money(Decimal(str(raw))) == expected

    def test_float_input_does_not_leak_binary_error(self):
        assert to_money(0.1) + to_money(0.2) == Decimal("0.30")

    @pytest.mark.parametrize("raw", [None, True, "abc", "NaN", "Infinity", ""])
    def test_non_numbers_rejected(self, raw):
        with pytest.raises(ValidationError) as exc:
            to_money(raw, field="price")
        assert "price" in exc.value.details

    def test_negative_money_rejected(self):
        with pytest.raises(ValidationError):
            to_money("-0.01")

    def test_zero_only_when_allowed(self):
        assert to_money(0) == Decimal("0.00")
        with pytest.raises(ValidationError):
            to_money(0, allow_zero=False)

    def test_quantity_must_be_positive(self):
        assert to_quantity("1.2345") == Decimal("1.235")
        with pytest.raises(ValidationError):
            to_quantity("0.0001")

    def test_line_total_and_strings(self):
        assert line_total(Decimal("12"), Decimal("130000")) == Decimal("1560000.00")
        assert money_str(Decimal("77700")) == "77700.00"
        assert quantity_str(Decimal("12")) == "12.000"
        assert money_str(None) is None


class TestStateMachines:
    @pytest.mark.parametrize("kind", sorted(STATE_MACHINES))
    def test_transitions_only_move_forward(self, kind):
        for action, (allowed_from, to_status) in STATE_MACHINES[kind]["transitions"].items():
            for from_status in allowed_from:
                assert status_rank(kind, to_status) > status_rank(kind, from_status), (kind, action)

    @pytest.mark.parametrize("kind", sorted(STATE_MACHINES))
    def test_terminal_states_have_no_exit(self, kind):
        machine = STATE_MACHINES[kind]
        sources = {s for allowed_from, _ in machine["transitions"].values() for s in allowed_from}
        terminal = set(machine["states"]) - sources
        for action in machine["transitions"]:
            for state in terminal:
                assert not can_transition(kind, action, state)

    def test_apply_transition_reports_from_and_to(self):
        doc = SimpleNamespace(status="DRAFT")

        assert apply_transition("INVOICE", doc, "ISSUE") == ("DRAFT", "ISSUED")
        assert doc.status == "ISSUED"

    def test_illegal_transition_leaves_status(self):
        doc = SimpleNamespace(status="DRAFT")

        with pytest.raises(InvalidStateError) as exc:
            apply_transition("INVOICE", doc, "MARK_PAID")
        assert doc.status == "DRAFT"
        assert exc.value.details == {"status": "DRAFT", "expected": ["ISSUED"]}

    def test_initial_states(self):
        assert initial_state("PURCHASE_REQUEST") == "DRAFT"
        assert initial_state("EXPENSE", "APPROVED") == "APPROVED"
        with pytest.raises(ValueError):
            initial_state("EXPENSE", "PAID")

    def test_unknown_kind_or_action(self):
        with pytest.raises(ValueError):
            target_status("TIMESHEET", "SUBMIT")
        with pytest.raises(ValueError):
            target_status("INVOICE", "VOID")
