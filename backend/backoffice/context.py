# Overview: Authenticated actor context passed into every workflow command.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ValidationError
from .permissions.roles import Role, parse_role


@dataclass(frozen=True)
class ActorContext:
    """
    Who is acting, and inside which tenant.

    MULTI-TENANT: org_id is the tenant boundary; every lookup a command makes
    is filtered by it. branch_id is the actor's home branch and may be None
    for org-level users.
    """
    org_id: int
    user_id: int
    role: Role
    branch_id: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", parse_role(self.role))

    def require_branch(self) -> int:
        if self.branch_id is None:
            raise ValidationError(
                "Actor is not assigned to a branch",
                details={"branch_id": "actor has no branch"},
            )
        return self.branch_id

    @classmethod
    def for_user(cls, user) -> "ActorContext":
        return cls(org_id=user.org_id, user_id=user.id, role=user.role, branch_id=user.branch_id)
