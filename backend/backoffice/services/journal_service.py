# Overview: Manual journal entries: balanced on creation, posted exactly once.

"""
Journal Entry Service

INVARIANTS:
- At least two lines.
- Each line is debit-only or credit-only (exactly one side > 0).
- Total debit equals total credit within BALANCE_TOLERANCE.
- UNPOSTED -> POSTED is one-way; posted_at/posted_by are set only at posting.

Posting re-validates the stored lines: an entry that somehow became
unbalanced cannot reach the ledger.
"""

from __future__ import annotations

from decimal import Decimal

from ..errors import UnbalancedError, ValidationError
from ..extensions import db
from ..models import JournalEntry, JournalLine
from ..money import BALANCE_TOLERANCE, ZERO, money_str, round_money, to_decimal, to_money
from ..time_utils import parse_iso_date, utcnow
from . import audit_service
from .document_service import PREFIX_JOURNAL_ENTRY, allocate_doc_number
from .lifecycle_service import KIND_JOURNAL_ENTRY, apply_transition, initial_state
from .tenant_service import get_scoped

ENTITY_JOURNAL_ENTRY = "JOURNAL_ENTRY"

JOURNAL_STATUS_UNPOSTED = "UNPOSTED"
JOURNAL_STATUS_POSTED = "POSTED"

MIN_LINES = 2


def _is_exclusive(debit: Decimal, credit: Decimal) -> bool:
    return (debit > ZERO and credit == ZERO) or (credit > ZERO and debit == ZERO)


def check_balance(lines) -> tuple[Decimal, Decimal]:
    """
    Validate (debit, credit) pairs and return the totals.

    Raises UnbalancedError when there are too few lines, a line is not
    one-sided, or the totals differ by more than the tolerance.
    """
    pairs = [(line.debit or ZERO, line.credit or ZERO) for line in lines]
    if len(pairs) < MIN_LINES:
        raise UnbalancedError(
            f"A journal entry needs at least {MIN_LINES} lines",
            details={"lines": len(pairs)},
        )
    for index, (debit, credit) in enumerate(pairs):
        if not _is_exclusive(debit, credit):
            raise UnbalancedError(
                "Each line must be either a debit or a credit",
                details={"line": index},
            )

    total_debit = sum((d for d, _ in pairs), ZERO)
    total_credit = sum((c for _, c in pairs), ZERO)
    if abs(total_debit - total_credit) > BALANCE_TOLERANCE:
        raise UnbalancedError(
            "Debit and credit totals do not balance",
            details={"debit": money_str(total_debit), "credit": money_str(total_credit)},
        )
    return total_debit, total_credit


def _line_amount(value, field: str) -> Decimal:
    """Journal amounts are stored in cents; finer input is refused rather than rounded."""
    amount = to_decimal(value, field=field)
    if amount != round_money(amount):
        raise ValidationError(f"{field} must have at most 2 decimal places", details={field: "max 2 decimal places"})
    return to_money(amount, field=field)


def _build_lines(lines) -> list[JournalLine]:
    if not isinstance(lines, (list, tuple)):
        raise ValidationError("lines must be a list", details={"lines": "must be a list"})

    built = []
    for index, raw in enumerate(lines):
        if not isinstance(raw, dict):
            raise ValidationError("Invalid line", details={f"lines[{index}]": "must be an object"})
        account_name = (raw.get("account_name") or "").strip()
        if not account_name:
            raise ValidationError(
                "account_name is required",
                details={f"lines[{index}].account_name": "required"},
            )
        built.append(JournalLine(
            account_name=account_name,
            debit=_line_amount(raw.get("debit", 0), f"lines[{index}].debit"),
            credit=_line_amount(raw.get("credit", 0), f"lines[{index}].credit"),
            note=raw.get("note"),
        ))
    return built


def create_journal_entry(ctx, *, description, date, lines) -> JournalEntry:
    description = (description or "").strip()
    if not description:
        raise ValidationError("description is required", details={"description": "required"})
    try:
        entry_date = parse_iso_date(date)
    except ValueError:
        entry_date = None
    if entry_date is None:
        raise ValidationError("date must be an ISO date", details={"date": "invalid date"})

    built = _build_lines(lines)
    total_debit, _ = check_balance(built)

    entry = JournalEntry(
        org_id=ctx.org_id,
        branch_id=ctx.branch_id,
        entry_number=allocate_doc_number(JournalEntry, org_id=ctx.org_id, prefix=PREFIX_JOURNAL_ENTRY),
        date=entry_date,
        description=description,
        status=initial_state(KIND_JOURNAL_ENTRY),
        created_by_user_id=ctx.user_id,
    )
    entry.lines = built
    db.session.add(entry)
    db.session.flush()

    audit_service.record_for(
        ctx,
        audit_service.ACTION_CREATE,
        ENTITY_JOURNAL_ENTRY,
        entry.id,
        details={"entry_number": entry.entry_number, "total": total_debit},
    )
    return entry


def post_journal_entry(ctx, entry_id: int) -> JournalEntry:
    """
    UNPOSTED -> POSTED.

    Raises:
        InvalidStateError: already posted
        UnbalancedError: stored lines fail the balance rules
    """
    entry = get_scoped(JournalEntry, entry_id, ctx.org_id, label="Journal entry", lock=True)
    from_status, to_status = apply_transition(KIND_JOURNAL_ENTRY, entry, "POST")
    total_debit, _ = check_balance(entry.lines)

    entry.posted_at = utcnow()
    entry.posted_by_user_id = ctx.user_id

    audit_service.record_for(
        ctx,
        audit_service.ACTION_POST,
        ENTITY_JOURNAL_ENTRY,
        entry.id,
        branch_id=entry.branch_id,
        details={"entry_number": entry.entry_number, "from": from_status, "to": to_status, "total": total_debit},
    )
    return entry


def list_journal_entries(org_id: int) -> list[JournalEntry]:
    return (
        db.session.query(JournalEntry)
        .filter_by(org_id=org_id)
        .order_by(JournalEntry.date.desc(), JournalEntry.id.desc())
        .all()
    )
