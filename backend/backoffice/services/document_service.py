# Overview: Human-readable document numbers (PR-2025-0001 style) per organization.

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from ..extensions import db
from ..time_utils import utcnow

# Document kind -> number prefix
PREFIX_PURCHASE_REQUEST = "PR"
PREFIX_PURCHASE_ORDER = "PO"
PREFIX_INVOICE = "INV"
PREFIX_JOURNAL_ENTRY = "JR"


class DocumentNumberError(ValueError):
    """Raised for malformed numbering input (programming error, not user input)."""
    pass


def next_doc_number(prefix: str, count: int, as_of: Optional[date | datetime] = None) -> str:
    """
    Format the next number for a document kind.

    count is how many documents of this kind the organization already has;
    the year comes from ``as_of`` (default: now, UTC).

        next_doc_number("PR", 0, date(2025, 3, 1)) -> "PR-2025-0001"

    The sequence is padded to 4 digits and simply grows past 9999.
    """
    if not prefix:
        raise DocumentNumberError("prefix is required")
    if count is None or count < 0:
        raise DocumentNumberError("count must be a non-negative integer")
    year = (as_of or utcnow()).year
    return f"{prefix}-{year}-{count + 1:04d}"


def count_documents(model, org_id: int) -> int:
    return db.session.query(model).filter_by(org_id=org_id).count()


def allocate_doc_number(model, *, org_id: int, prefix: str, as_of=None) -> str:
    """
    Allocate the next number for ``model`` inside the caller's transaction.

    Two concurrent allocations can read the same count. The (org_id, number)
    unique constraint then rejects the loser's insert with IntegrityError and
    run_in_transaction re-runs its unit of work against the new count, so
    committed numbers are always unique.
    """
    return next_doc_number(prefix, count_documents(model, org_id), as_of)
