# Overview: Utility functions for action lookups and role checks.

from .definitions import PERMISSION_DEFINITIONS
from .roles import has_minimum_role, parse_role


def get_all_permission_codes():
    """Get list of all action codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code):
    """Get full definition for an action code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
                "minimum_role": perm[4],
            }
    return None


def validate_permission_code(code):
    return code in get_all_permission_codes()


def get_minimum_role(code, overrides=None):
    """
    Minimum role for an action.

    ``overrides`` maps action code -> role name and wins over the catalogue
    (used for configurable thresholds such as DECIDE_APPROVAL).
    """
    if overrides and code in overrides:
        return parse_role(overrides[code])
    definition = get_permission_definition(code)
    if definition is None:
        raise KeyError(f"Unknown action: {code}")
    return definition["minimum_role"]


def is_allowed(role, code, overrides=None) -> bool:
    """Deny by default: unknown actions are never allowed."""
    if not validate_permission_code(code):
        return False
    return has_minimum_role(role, get_minimum_role(code, overrides))
