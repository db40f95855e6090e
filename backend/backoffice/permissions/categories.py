# Overview: Permission category constants for grouping related actions.


class PermissionCategory:
    """Action categories for organization and UI display."""
    INVENTORY = "INVENTORY"
    PROCUREMENT = "PROCUREMENT"
    APPROVALS = "APPROVALS"
    SALES = "SALES"
    FINANCE = "FINANCE"
    HR = "HR"
    PROJECTS = "PROJECTS"
    ORGANIZATION = "ORGANIZATION"
    AUDIT = "AUDIT"
    REPORTING = "REPORTING"
