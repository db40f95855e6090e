# Overview: Role hierarchy used for every authorization decision.

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ORG_ADMIN = "ORG_ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    VIEWER = "VIEWER"


# Higher number = more authority
ROLE_HIERARCHY = {
    Role.SUPER_ADMIN: 5,
    Role.ORG_ADMIN: 4,
    Role.MANAGER: 3,
    Role.STAFF: 2,
    Role.VIEWER: 1,
}


def parse_role(value) -> Role:
    """Accept a Role or its string name (case-insensitive)."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"Unknown role: {value!r}") from None


def has_minimum_role(role, minimum) -> bool:
    return ROLE_HIERARCHY[parse_role(role)] >= ROLE_HIERARCHY[parse_role(minimum)]
