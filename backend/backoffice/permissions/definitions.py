# Overview: All workflow actions organized by category.
# Each action is defined as: (code, name, description, category, minimum role)

from .categories import PermissionCategory
from .roles import Role


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View stock levels, low-stock flags and movement history",
        PermissionCategory.INVENTORY,
        Role.VIEWER,
    ),
    (
        "RECORD_STOCK_MOVEMENT",
        "Record Stock Movement",
        "Record IN, OUT and TRANSFER movements against a branch",
        PermissionCategory.INVENTORY,
        Role.STAFF,
    ),
    (
        "MANAGE_PRODUCTS",
        "Manage Products",
        "Create products and change their cost, price and low-stock threshold",
        PermissionCategory.INVENTORY,
        Role.MANAGER,
    ),
]


# -- PROCUREMENT --

PROCUREMENT_PERMISSIONS = [
    (
        "VIEW_PROCUREMENT",
        "View Procurement",
        "View purchase requests and purchase orders",
        PermissionCategory.PROCUREMENT,
        Role.VIEWER,
    ),
    (
        "CREATE_PURCHASE_REQUEST",
        "Create Purchase Request",
        "Draft purchase requests and edit their lines while in DRAFT",
        PermissionCategory.PROCUREMENT,
        Role.STAFF,
    ),
    (
        "SUBMIT_PURCHASE_REQUEST",
        "Submit Purchase Request",
        "Submit a draft purchase request for approval",
        PermissionCategory.PROCUREMENT,
        Role.STAFF,
    ),
    (
        "CREATE_PURCHASE_ORDER",
        "Create Purchase Order",
        "Convert an approved purchase request into a purchase order",
        PermissionCategory.PROCUREMENT,
        Role.STAFF,
    ),
    (
        "RECEIVE_PURCHASE_ORDER",
        "Receive Purchase Order",
        "Receive an issued purchase order into stock",
        PermissionCategory.PROCUREMENT,
        Role.STAFF,
    ),
    (
        "MANAGE_SUPPLIERS",
        "Manage Suppliers",
        "Create suppliers",
        PermissionCategory.PROCUREMENT,
        Role.STAFF,
    ),
]


# -- APPROVALS --

APPROVAL_PERMISSIONS = [
    (
        "VIEW_APPROVALS",
        "View Approvals",
        "View the pending approval queue",
        PermissionCategory.APPROVALS,
        Role.VIEWER,
    ),
    (
        "DECIDE_APPROVAL",
        "Decide Approval",
        "Approve or reject pending approvals (threshold is configurable)",
        PermissionCategory.APPROVALS,
        Role.MANAGER,
    ),
]


# -- SALES --

SALES_PERMISSIONS = [
    (
        "VIEW_SALES",
        "View Sales",
        "View invoices, payments and customers",
        PermissionCategory.SALES,
        Role.VIEWER,
    ),
    (
        "CREATE_INVOICE",
        "Create Invoice",
        "Create draft invoices",
        PermissionCategory.SALES,
        Role.STAFF,
    ),
    (
        "ISSUE_INVOICE",
        "Issue Invoice",
        "Issue a draft invoice and deduct its stock",
        PermissionCategory.SALES,
        Role.STAFF,
    ),
    (
        "RECORD_PAYMENT",
        "Record Payment",
        "Record a payment against an issued invoice",
        PermissionCategory.SALES,
        Role.STAFF,
    ),
    (
        "MANAGE_CUSTOMERS",
        "Manage Customers",
        "Create customers",
        PermissionCategory.SALES,
        Role.STAFF,
    ),
]


# -- FINANCE --

FINANCE_PERMISSIONS = [
    (
        "VIEW_FINANCE",
        "View Finance",
        "View expenses and journal entries",
        PermissionCategory.FINANCE,
        Role.VIEWER,
    ),
    (
        "CREATE_EXPENSE",
        "Create Expense",
        "Record an expense (auto-approved for senior roles)",
        PermissionCategory.FINANCE,
        Role.STAFF,
    ),
    (
        "MARK_EXPENSE_PAID",
        "Mark Expense Paid",
        "Mark an approved expense as paid",
        PermissionCategory.FINANCE,
        Role.MANAGER,
    ),
    (
        "CREATE_JOURNAL_ENTRY",
        "Create Journal Entry",
        "Create balanced unposted journal entries",
        PermissionCategory.FINANCE,
        Role.MANAGER,
    ),
    (
        "POST_JOURNAL_ENTRY",
        "Post Journal Entry",
        "Post a balanced journal entry (one-way)",
        PermissionCategory.FINANCE,
        Role.MANAGER,
    ),
]


# -- HR --

HR_PERMISSIONS = [
    (
        "VIEW_HR",
        "View HR",
        "View employees and attendance",
        PermissionCategory.HR,
        Role.VIEWER,
    ),
    (
        "MANAGE_EMPLOYEES",
        "Manage Employees",
        "Create employees",
        PermissionCategory.HR,
        Role.MANAGER,
    ),
    (
        "RECORD_ATTENDANCE",
        "Record Attendance",
        "Record or correct daily attendance",
        PermissionCategory.HR,
        Role.MANAGER,
    ),
]


# -- PROJECTS --

PROJECT_PERMISSIONS = [
    (
        "VIEW_PROJECTS",
        "View Projects",
        "View projects and their task boards",
        PermissionCategory.PROJECTS,
        Role.VIEWER,
    ),
    (
        "MANAGE_PROJECTS",
        "Manage Projects",
        "Create projects",
        PermissionCategory.PROJECTS,
        Role.STAFF,
    ),
    (
        "MANAGE_TASKS",
        "Manage Tasks",
        "Create, move and delete project tasks",
        PermissionCategory.PROJECTS,
        Role.STAFF,
    ),
]


# -- ORGANIZATION --

ORGANIZATION_PERMISSIONS = [
    (
        "MANAGE_BRANCHES",
        "Manage Branches",
        "Create branches within the organization",
        PermissionCategory.ORGANIZATION,
        Role.ORG_ADMIN,
    ),
]


# -- AUDIT --

AUDIT_PERMISSIONS = [
    (
        "VIEW_AUDIT_LOG",
        "View Audit Log",
        "Read the organization's audit trail",
        PermissionCategory.AUDIT,
        Role.ORG_ADMIN,
    ),
]


# -- REPORTING --

REPORTING_PERMISSIONS = [
    (
        "VIEW_OVERVIEW",
        "View Overview",
        "View the KPI dashboard (revenue, expenses, receivables, stock alerts)",
        PermissionCategory.REPORTING,
        Role.VIEWER,
    ),
    (
        "SEARCH",
        "Search",
        "Search customers, invoices, products and suppliers",
        PermissionCategory.REPORTING,
        Role.VIEWER,
    ),
]


PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + PROCUREMENT_PERMISSIONS
    + APPROVAL_PERMISSIONS
    + SALES_PERMISSIONS
    + FINANCE_PERMISSIONS
    + HR_PERMISSIONS
    + PROJECT_PERMISSIONS
    + ORGANIZATION_PERMISSIONS
    + AUDIT_PERMISSIONS
    + REPORTING_PERMISSIONS
)
