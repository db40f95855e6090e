from __future__ import annotations

from ..extensions import db
from backoffice.money import money_str
from backoffice.time_utils import to_iso_date, to_utc_z


class Expense(db.Model):
    """
    Operating expense.

    LIFECYCLE: created APPROVED (senior roles) or SUBMITTED (queued for
    approval); SUBMITTED -> APPROVED | REJECTED; APPROVED -> PAID.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        db.Index("ix_expenses_org_status", "org_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)

    vendor = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(80), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    date = db.Column(db.Date, nullable=False)
    note = db.Column(db.String(500), nullable=True)
    attachment = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="SUBMITTED")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Expense id={self.id} amount={self.amount} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "branch_id": self.branch_id,
            "vendor": self.vendor,
            "category": self.category,
            "amount": money_str(self.amount),
            "date": to_iso_date(self.date),
            "note": self.note,
            "attachment": self.attachment,
            "status": self.status,
            "created_by_user_id": self.created_by_user_id,
            "approved_by_user_id": self.approved_by_user_id,
            "paid_at": to_utc_z(self.paid_at),
            "created_at": to_utc_z(self.created_at),
        }


class JournalEntry(db.Model):
    """
    Manual general-ledger entry.

    LIFECYCLE: UNPOSTED -> POSTED, one way. posted_at/posted_by are set
    exactly once, at posting.
    """
    __tablename__ = "journal_entries"
    __table_args__ = (
        db.UniqueConstraint("org_id", "entry_number", name="uq_journal_entries_org_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)

    entry_number = db.Column(db.String(32), nullable=False)
    date = db.Column(db.Date, nullable=False)
    description = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="UNPOSTED")

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    posted_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    posted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    lines = db.relationship(
        "JournalLine",
        backref="entry",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="JournalLine.id",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<JournalEntry id={self.id} number={self.entry_number} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "branch_id": self.branch_id,
            "entry_number": self.entry_number,
            "date": to_iso_date(self.date),
            "description": self.description,
            "status": self.status,
            "created_by_user_id": self.created_by_user_id,
            "posted_by_user_id": self.posted_by_user_id,
            "posted_at": to_utc_z(self.posted_at),
            "created_at": to_utc_z(self.created_at),
            "lines": [line.to_dict() for line in self.lines],
        }


class JournalLine(db.Model):
    __tablename__ = "journal_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    entry_id = db.Column(db.Integer, db.ForeignKey("journal_entries.id"), nullable=False, index=True)
    account_name = db.Column(db.String(120), nullable=False)
    debit = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    credit = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    note = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_name": self.account_name,
            "debit": money_str(self.debit),
            "credit": money_str(self.credit),
            "note": self.note,
        }
