# Overview: Back-office users: password hashing, provisioning, and actor resolution.

"""
User Service

Authentication proper (login, sessions, SSO) happens in front of this
service. What lives here is what the workflow needs: provisioning users with
an org, branch and role, and resolving an authenticated user id to an
active user row.

- Passwords hashed with bcrypt (cost factor 12)
"""

from __future__ import annotations

import re

import bcrypt

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Organization, User
from ..permissions.roles import parse_role
from .tenant_service import require_branch_in_org

BCRYPT_ROUNDS = 12


def validate_password_strength(password: str) -> None:
    """
    Minimum 8 characters with upper case, lower case and a digit.

    Raises ValidationError if requirements are not met.
    """
    if not password or len(password) < 8:
        raise ValidationError("Password must be at least 8 characters long", details={"password": "too short"})
    if not re.search(r"[A-Z]", password) or not re.search(r"[a-z]", password):
        raise ValidationError(
            "Password must mix upper and lower case letters",
            details={"password": "needs upper and lower case"},
        )
    if not re.search(r"\d", password):
        raise ValidationError("Password must contain at least one digit", details={"password": "needs a digit"})


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    validate_password_strength(password)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")



def create_user(*, org_id: int, name: str, email: str, role, password: str | None = None,
                branch_id: int | None = None, rounds: int = BCRYPT_ROUNDS) -> User:
    """Provision a user (caller commits)."""
    if db.session.get(Organization, org_id) is None:
        raise NotFoundError("Organization not found")
    if branch_id is not None:
        require_branch_in_org(branch_id, org_id)

    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValidationError("A valid email is required", details={"email": "invalid"})
    if db.session.query(User.id).filter_by(org_id=org_id, email=email).first():
        raise ConflictError(f"User {email} already exists")

    try:
        role = parse_role(role)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"role": "unknown role"})

    user = User(
        org_id=org_id,
        branch_id=branch_id,
        name=name,
        email=email,
        role=role.value,
        password_hash=hash_password(password, rounds=rounds) if password else None,
        is_active=True,
    )
    db.session.add(user)
    db.session.flush()
    return user


def get_active_user(user_id) -> User | None:
    """Active user whose organization is also active, else None."""
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return None
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    org = db.session.get(Organization, user.org_id)
    if org is None or not org.is_active:
        return None
    return user
