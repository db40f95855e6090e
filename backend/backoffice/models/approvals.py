from __future__ import annotations

from ..extensions import db
from backoffice.time_utils import to_utc_z


class Approval(db.Model):
    """
    A decision request attached to one document (PURCHASE_REQUEST or EXPENSE).

    INVARIANT: created PENDING and resolved at most once to APPROVED or
    REJECTED. version_id makes a second concurrent decision fail on flush
    instead of silently overwriting the first.
    """
    __tablename__ = "approvals"
    __table_args__ = (
        db.Index("ix_approvals_org_status", "org_id", "status"),
        db.Index("ix_approvals_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=True)

    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    purchase_request_id = db.Column(db.Integer, db.ForeignKey("purchase_requests.id"), nullable=True)
    expense_id = db.Column(db.Integer, db.ForeignKey("expenses.id"), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="PENDING")
    note = db.Column(db.String(500), nullable=True)

    requested_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approver_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    requested_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    acted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Approval id={self.id} {self.entity_type}:{self.entity_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "branch_id": self.branch_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "status": self.status,
            "note": self.note,
            "requested_by_user_id": self.requested_by_user_id,
            "approver_user_id": self.approver_user_id,
            "requested_at": to_utc_z(self.requested_at),
            "acted_at": to_utc_z(self.acted_at),
        }
