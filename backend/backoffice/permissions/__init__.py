# Overview: Permission system package.
# Re-exports the role hierarchy and action catalogue.

from .categories import PermissionCategory
from .roles import Role, ROLE_HIERARCHY, has_minimum_role, parse_role
from .definitions import (
    PERMISSION_DEFINITIONS,
    INVENTORY_PERMISSIONS,
    PROCUREMENT_PERMISSIONS,
    APPROVAL_PERMISSIONS,
    SALES_PERMISSIONS,
    FINANCE_PERMISSIONS,
    HR_PERMISSIONS,
    PROJECT_PERMISSIONS,
    ORGANIZATION_PERMISSIONS,
    AUDIT_PERMISSIONS,
    REPORTING_PERMISSIONS,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    get_minimum_role,
    validate_permission_code,
    is_allowed,
)

__all__ = [
    "PermissionCategory",
    "Role",
    "ROLE_HIERARCHY",
    "has_minimum_role",
    "parse_role",
    "PERMISSION_DEFINITIONS",
    "INVENTORY_PERMISSIONS",
    "PROCUREMENT_PERMISSIONS",
    "APPROVAL_PERMISSIONS",
    "SALES_PERMISSIONS",
    "FINANCE_PERMISSIONS",
    "HR_PERMISSIONS",
    "PROJECT_PERMISSIONS",
    "ORGANIZATION_PERMISSIONS",
    "AUDIT_PERMISSIONS",
    "REPORTING_PERMISSIONS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "get_minimum_role",
    "validate_permission_code",
    "is_allowed",
]
