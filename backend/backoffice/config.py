# backend/backoffice/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/backoffice.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///backoffice.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Lowest role allowed to decide approvals (SUPER_ADMIN > ORG_ADMIN > MANAGER > STAFF > VIEWER)
    APPROVAL_MIN_ROLE = os.environ.get("APPROVAL_MIN_ROLE", "MANAGER")
    # Expenses created at or above this role skip the approval queue
    EXPENSE_AUTO_APPROVE_MIN_ROLE = os.environ.get("EXPENSE_AUTO_APPROVE_MIN_ROLE", "MANAGER")

    DEFAULT_TAX_PERCENT = os.environ.get("DEFAULT_TAX_PERCENT", "11")

    # Unit-of-work retry policy for lock/version/unique conflicts
    UNIT_OF_WORK_ATTEMPTS = _env_int("UNIT_OF_WORK_ATTEMPTS", 3)
    UNIT_OF_WORK_BACKOFF = _env_float("UNIT_OF_WORK_BACKOFF", 0.05)

    AUDIT_LOG_DEFAULT_LIMIT = _env_int("AUDIT_LOG_DEFAULT_LIMIT", 50)
