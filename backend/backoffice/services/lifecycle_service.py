# Overview: Declarative state machines for every workflow document kind.

"""
Document Lifecycle Service

================================================================================
PURPOSE: One table of legal transitions per document kind, enforced in one place
================================================================================

STATE MACHINES:
    PURCHASE_REQUEST: DRAFT -> SUBMITTED -> APPROVED | REJECTED; APPROVED -> CONVERTED
    PURCHASE_ORDER:   ISSUED -> RECEIVED
    INVOICE:          DRAFT -> ISSUED -> PAID
    EXPENSE:          SUBMITTED -> APPROVED | REJECTED; APPROVED -> PAID
                      (created directly APPROVED for senior roles)
    JOURNAL_ENTRY:    UNPOSTED -> POSTED
    APPROVAL:         PENDING -> APPROVED | REJECTED

RULES (NON-NEGOTIABLE):
1. Every status change goes through apply_transition().
2. Transitions only move forward (no state is ever revisited).
3. Callers lock the document row first, so the guard is checked against
   the current committed status.
================================================================================
"""

from __future__ import annotations

from ..errors import InvalidStateError

KIND_PURCHASE_REQUEST = "PURCHASE_REQUEST"
KIND_PURCHASE_ORDER = "PURCHASE_ORDER"
KIND_INVOICE = "INVOICE"
KIND_EXPENSE = "EXPENSE"
KIND_JOURNAL_ENTRY = "JOURNAL_ENTRY"
KIND_APPROVAL = "APPROVAL"

# kind -> {
#   "states": ordered states (position = forward rank),
#   "initial": states a new document may start in,
#   "transitions": action -> (allowed from-states, to-state),
# }
STATE_MACHINES = {
    KIND_PURCHASE_REQUEST: {
        "states": ("DRAFT", "SUBMITTED", "APPROVED", "REJECTED", "CONVERTED"),
        "initial": ("DRAFT",),
        "transitions": {
            "SUBMIT": (("DRAFT",), "SUBMITTED"),
            "APPROVE": (("SUBMITTED",), "APPROVED"),
            "REJECT": (("SUBMITTED",), "REJECTED"),
            "CONVERT": (("APPROVED",), "CONVERTED"),
        },
    },
    KIND_PURCHASE_ORDER: {
        "states": ("ISSUED", "RECEIVED"),
        "initial": ("ISSUED",),
        "transitions": {
            "RECEIVE": (("ISSUED",), "RECEIVED"),
        },
    },
    KIND_INVOICE: {
        "states": ("DRAFT", "ISSUED", "PAID"),
        "initial": ("DRAFT",),
        "transitions": {
            "ISSUE": (("DRAFT",), "ISSUED"),
            "MARK_PAID": (("ISSUED",), "PAID"),
        },
    },
    KIND_EXPENSE: {
        "states": ("SUBMITTED", "APPROVED", "REJECTED", "PAID"),
        "initial": ("SUBMITTED", "APPROVED"),
        "transitions": {
            "APPROVE": (("SUBMITTED",), "APPROVED"),
            "REJECT": (("SUBMITTED",), "REJECTED"),
            "MARK_PAID": (("APPROVED",), "PAID"),
        },
    },
    KIND_JOURNAL_ENTRY: {
        "states": ("UNPOSTED", "POSTED"),
        "initial": ("UNPOSTED",),
        "transitions": {
            "POST": (("UNPOSTED",), "POSTED"),
        },
    },
    KIND_APPROVAL: {
        "states": ("PENDING", "APPROVED", "REJECTED"),
        "initial": ("PENDING",),
        "transitions": {
            "APPROVE": (("PENDING",), "APPROVED"),
            "REJECT": (("PENDING",), "REJECTED"),
        },
    },
}

_LABELS = {
    KIND_PURCHASE_REQUEST: "purchase request",
    KIND_PURCHASE_ORDER: "purchase order",
    KIND_INVOICE: "invoice",
    KIND_EXPENSE: "expense",
    KIND_JOURNAL_ENTRY: "journal entry",
    KIND_APPROVAL: "approval",
}


def _machine(kind: str) -> dict:
    try:
        return STATE_MACHINES[kind]
    except KeyError:
        raise ValueError(f"Unknown document kind: {kind}") from None


def _rule(kind: str, action: str):
    try:
        return _machine(kind)["transitions"][action]
    except KeyError:
        raise ValueError(f"Unknown action {action} for {kind}") from None


def initial_state(kind: str, state: str | None = None) -> str:
    allowed = _machine(kind)["initial"]
    if state is None:
        return allowed[0]
    if state not in allowed:
        raise ValueError(f"{state} is not an initial state for {kind}")
    return state


def can_transition(kind: str, action: str, from_status: str) -> bool:
    allowed_from, _ = _rule(kind, action)
    return from_status in allowed_from


def target_status(kind: str, action: str) -> str:
    return _rule(kind, action)[1]


def apply_transition(kind: str, document, action: str) -> tuple[str, str]:
    """
    Move ``document.status`` along ``action`` or raise InvalidStateError.

    Returns (from_status, to_status) for the caller's audit record.
    """
    allowed_from, to_status = _rule(kind, action)
    from_status = document.status
    if from_status not in allowed_from:
        expected = " or ".join(allowed_from)
        raise InvalidStateError(
            f"Cannot {action.lower().replace('_', ' ')} {_LABELS[kind]} in {from_status} status "
            f"(must be {expected})",
            details={"status": from_status, "expected": list(allowed_from)},
        )
    document.status = to_status
    return from_status, to_status


def status_rank(kind: str, status: str) -> int:
    """Position of ``status`` in the kind's forward ordering."""
    return _machine(kind)["states"].index(status)
