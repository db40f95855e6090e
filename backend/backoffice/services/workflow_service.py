# Overview: Workflow orchestrator: authorizes, runs, commits and reports every use case.

"""
Workflow Orchestrator

Every state-changing use case follows the same path:

    authorize (role vs. action catalogue)
      -> run the domain service inside run_in_transaction()
           (row locks, guard checks, writes, audit rows; one commit)
      -> CommandResult (ok + data, or a typed error kind)

WHY one entry point: the HTTP layer, the CLI and the tests all get the same
atomicity and the same error vocabulary. A failure at any step rolls back
everything the command wrote, audit rows included.

LOGGING: info on commit, warning on an expected business failure,
exception (with traceback) on anything unexpected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from flask import current_app

from ..errors import ForbiddenError, WorkflowError
from ..extensions import db
from ..models import Invoice
from ..permissions import is_allowed
from ..validation import as_payload, optional_id, parse_id
from . import (
    approval_service,
    audit_service,
    catalog_service,
    expense_service,
    hr_service,
    invoice_service,
    journal_service,
    procurement_service,
    project_service,
    reporting_service,
    stock_service,
)
from .concurrency import run_in_transaction
from .tenant_service import get_scoped

UNEXPECTED_KIND = "Unexpected"


@dataclass
class CommandResult:
    ok: bool
    data: Any = None
    error_kind: Optional[str] = None
    message: Optional[str] = None
    details: dict = field(default_factory=dict)
    status_code: int = 200

    @classmethod
    def success(cls, data, status_code: int = 200) -> "CommandResult":
        return cls(ok=True, data=data, status_code=status_code)

    @classmethod
    def failure(cls, error: WorkflowError) -> "CommandResult":
        return cls(
            ok=False,
            error_kind=error.kind,
            message=error.message,
            details=error.details,
            status_code=error.status_code,
        )

    def to_dict(self) -> dict:
        if self.ok:
            return {"ok": True, "data": self.data}
        return {
            "ok": False,
            "error_kind": self.error_kind,
            "message": self.message,
            "details": self.details,
        }


def _permission_overrides() -> dict:
    return {"DECIDE_APPROVAL": current_app.config.get("APPROVAL_MIN_ROLE", "MANAGER")}


def _authorize(ctx, action: str) -> None:
    if not is_allowed(ctx.role, action, _permission_overrides()):
        raise ForbiddenError(
            "You do not have permission to perform this action",
            details={"action": action},
        )


def _unexpected(command: str, ctx) -> CommandResult:
    current_app.logger.exception("%s failed unexpectedly (org=%s user=%s)", command, ctx.org_id, ctx.user_id)
    db.session.rollback()
    return CommandResult(ok=False, error_kind=UNEXPECTED_KIND, message="Unexpected error", status_code=500)


def execute(command: str, ctx, action: str, op: Callable[[], Any], *, status_code: int = 200) -> CommandResult:
    """
    Run ``op`` as one authorized, atomic, retried unit of work.

    ``op`` must return JSON-ready data; it is called inside the transaction
    (possibly more than once when a concurrency conflict forces a retry).
    """
    config = current_app.config
    try:
        _authorize(ctx, action)
        data = run_in_transaction(
            op,
            attempts=config.get("UNIT_OF_WORK_ATTEMPTS", 3),
            backoff_base=config.get("UNIT_OF_WORK_BACKOFF", 0.05),
        )
    except WorkflowError as exc:
        current_app.logger.warning(
            "%s rejected (org=%s user=%s): %s: %s", command, ctx.org_id, ctx.user_id, exc.kind, exc.message
        )
        return CommandResult.failure(exc)
    except Exception:
        return _unexpected(command, ctx)

    current_app.logger.info("%s committed (org=%s user=%s)", command, ctx.org_id, ctx.user_id)
    return CommandResult.success(data, status_code)


def query(name: str, ctx, action: str, op: Callable[[], Any]) -> CommandResult:
    """Authorized read; never commits."""
    try:
        _authorize(ctx, action)
        return CommandResult.success(op())
    except WorkflowError as exc:
        current_app.logger.warning("%s rejected (org=%s user=%s): %s", name, ctx.org_id, ctx.user_id, exc.kind)
        return CommandResult.failure(exc)
    except Exception:
        return _unexpected(name, ctx)


# -- Procurement --

def create_purchase_request(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return procurement_service.create_purchase_request(
            ctx,
            items=data.get("items"),
            supplier_id=optional_id(data, "supplier_id"),
            note=data.get("note"),
        ).to_dict()
    return execute("CreatePurchaseRequest", ctx, "CREATE_PURCHASE_REQUEST", _op, status_code=201)


def update_purchase_request(ctx, pr_id, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return procurement_service.update_purchase_request(
            ctx,
            parse_id(pr_id, "purchase_request_id"),
            items=data.get("items"),
            supplier_id=optional_id(data, "supplier_id"),
            note=data.get("note"),
        ).to_dict()
    return execute("UpdatePurchaseRequest", ctx, "CREATE_PURCHASE_REQUEST", _op)


def submit_purchase_request(ctx, pr_id) -> CommandResult:
    def _op():
        return procurement_service.submit_purchase_request(ctx, parse_id(pr_id, "purchase_request_id")).to_dict()
    return execute("SubmitPurchaseRequest", ctx, "SUBMIT_PURCHASE_REQUEST", _op)


def create_purchase_order(ctx, pr_id, payload=None) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return procurement_service.create_purchase_order(
            ctx, parse_id(pr_id, "purchase_request_id"), note=data.get("note"),
        ).to_dict()
    return execute("CreatePurchaseOrder", ctx, "CREATE_PURCHASE_ORDER", _op, status_code=201)


def receive_purchase_order(ctx, po_id) -> CommandResult:
    def _op():
        return procurement_service.receive_purchase_order(ctx, parse_id(po_id, "purchase_order_id")).to_dict()
    return execute("ReceivePurchaseOrder", ctx, "RECEIVE_PURCHASE_ORDER", _op)


def list_purchase_requests(ctx, status=None) -> CommandResult:
    return query(
        "ListPurchaseRequests", ctx, "VIEW_PROCUREMENT",
        lambda: [pr.to_dict() for pr in procurement_service.list_purchase_requests(ctx.org_id, status=status)],
    )


def list_purchase_orders(ctx, status=None) -> CommandResult:
    return query(
        "ListPurchaseOrders", ctx, "VIEW_PROCUREMENT",
        lambda: [po.to_dict() for po in procurement_service.list_purchase_orders(ctx.org_id, status=status)],
    )


# -- Approvals --

def decide_approval(ctx, approval_id, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return approval_service.decide(
            ctx, parse_id(approval_id, "approval_id"), data.get("decision"), note=data.get("note"),
        ).to_dict()
    return execute("DecideApproval", ctx, "DECIDE_APPROVAL", _op)


def list_pending_approvals(ctx, entity_type=None) -> CommandResult:
    return query(
        "ListPendingApprovals", ctx, "VIEW_APPROVALS",
        lambda: [a.to_dict() for a in approval_service.list_pending(ctx.org_id, entity_type=entity_type)],
    )


# -- Sales --

def create_invoice(ctx, payload) -> CommandResult:
    default_tax = current_app.config.get("DEFAULT_TAX_PERCENT", invoice_service.DEFAULT_TAX_PERCENT)

    def _op():
        data = as_payload(payload)
        invoice = invoice_service.create_invoice(
            ctx,
            customer_id=parse_id(data.get("customer_id"), "customer_id"),
            items=data.get("items"),
            tax_percent=data.get("tax_percent"),
            due_date=data.get("due_date"),
            notes=data.get("notes"),
            default_tax_percent=default_tax,
        )
        return invoice_service.invoice_summary(invoice)
    return execute("CreateInvoice", ctx, "CREATE_INVOICE", _op, status_code=201)


def issue_invoice(ctx, invoice_id) -> CommandResult:
    def _op():
        invoice = invoice_service.issue_invoice(ctx, parse_id(invoice_id, "invoice_id"))
        return invoice_service.invoice_summary(invoice)
    return execute("IssueInvoice", ctx, "ISSUE_INVOICE", _op)


def record_payment(ctx, invoice_id, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        payment = invoice_service.record_payment(
            ctx,
            invoice_id=parse_id(invoice_id, "invoice_id"),
            amount=data.get("amount"),
            method=data.get("method"),
            reference=data.get("reference"),
        )
        return {"payment": payment.to_dict(), "invoice": invoice_service.invoice_summary(payment.invoice)}
    return execute("RecordPayment", ctx, "RECORD_PAYMENT", _op, status_code=201)


def get_invoice(ctx, invoice_id) -> CommandResult:
    return query(
        "GetInvoice", ctx, "VIEW_SALES",
        lambda: invoice_service.invoice_summary(
            get_scoped(Invoice, parse_id(invoice_id, "invoice_id"), ctx.org_id, label="Invoice")
        ),
    )


def list_invoices(ctx, status=None) -> CommandResult:
    return query(
        "ListInvoices", ctx, "VIEW_SALES",
        lambda: [inv.to_dict() for inv in invoice_service.list_invoices(ctx.org_id, status=status)],
    )


def list_payments(ctx) -> CommandResult:
    return query("ListPayments", ctx, "VIEW_SALES", lambda: invoice_service.list_payments(ctx.org_id))


def list_customers(ctx, q=None) -> CommandResult:
    return query(
        "ListCustomers", ctx, "VIEW_SALES",
        lambda: [c.to_dict() for c in catalog_service.list_customers(ctx.org_id, q=q)],
    )


# -- Finance --

def create_expense(ctx, payload) -> CommandResult:
    auto_role = current_app.config.get("EXPENSE_AUTO_APPROVE_MIN_ROLE", "MANAGER")

    def _op():
        data = as_payload(payload)
        return expense_service.create_expense(
            ctx,
            vendor=data.get("vendor"),
            category=data.get("category"),
            amount=data.get("amount"),
            date=data.get("date"),
            note=data.get("note"),
            attachment=data.get("attachment"),
            auto_approve_min_role=auto_role,
        ).to_dict()
    return execute("CreateExpense", ctx, "CREATE_EXPENSE", _op, status_code=201)


def mark_expense_paid(ctx, expense_id) -> CommandResult:
    def _op():
        return expense_service.mark_expense_paid(ctx, parse_id(expense_id, "expense_id")).to_dict()
    return execute("MarkExpensePaid", ctx, "MARK_EXPENSE_PAID", _op)


def list_expenses(ctx, status=None) -> CommandResult:
    return query(
        "ListExpenses", ctx, "VIEW_FINANCE",
        lambda: [e.to_dict() for e in expense_service.list_expenses(ctx.org_id, status=status)],
    )


def create_journal_entry(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return journal_service.create_journal_entry(
            ctx,
            description=data.get("description"),
            date=data.get("date"),
            lines=data.get("lines") or [],
        ).to_dict()
    return execute("CreateJournalEntry", ctx, "CREATE_JOURNAL_ENTRY", _op, status_code=201)


def post_journal_entry(ctx, entry_id) -> CommandResult:
    def _op():
        return journal_service.post_journal_entry(ctx, parse_id(entry_id, "journal_entry_id")).to_dict()
    return execute("PostJournalEntry", ctx, "POST_JOURNAL_ENTRY", _op)


def list_journal_entries(ctx) -> CommandResult:
    return query(
        "ListJournalEntries", ctx, "VIEW_FINANCE",
        lambda: [e.to_dict() for e in journal_service.list_journal_entries(ctx.org_id)],
    )


# -- Inventory & master data --

def record_stock_movement(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        branch_id = optional_id(data, "branch_id") or ctx.require_branch()
        return stock_service.record_movement(
            ctx,
            branch_id=branch_id,
            product_id=parse_id(data.get("product_id"), "product_id"),
            movement_type=str(data.get("type") or "").upper(),
            quantity=data.get("quantity"),
            to_branch_id=optional_id(data, "to_branch_id"),
            reference=data.get("reference"),
            note=data.get("note"),
        ).to_dict()
    return execute("RecordStockMovement", ctx, "RECORD_STOCK_MOVEMENT", _op, status_code=201)


def list_stock_movements(ctx, branch_id=None, product_id=None) -> CommandResult:
    return query(
        "ListStockMovements", ctx, "VIEW_INVENTORY",
        lambda: [
            m.to_dict()
            for m in stock_service.list_movements(
                ctx.org_id,
                branch_id=parse_id(branch_id, "branch_id", required=False),
                product_id=parse_id(product_id, "product_id", required=False),
            )
        ],
    )


def get_stock_summary(ctx, branch_id=None) -> CommandResult:
    return query(
        "StockSummary", ctx, "VIEW_INVENTORY",
        lambda: stock_service.stock_summary(ctx.org_id, branch_id=parse_id(branch_id, "branch_id", required=False)),
    )


def create_branch(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return catalog_service.create_branch(
            ctx, name=data.get("name"), code=data.get("code"), address=data.get("address"),
        ).to_dict()
    return execute("CreateBranch", ctx, "MANAGE_BRANCHES", _op, status_code=201)


def create_product(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return catalog_service.create_product(
            ctx,
            sku=data.get("sku"),
            name=data.get("name"),
            unit=data.get("unit") or "pcs",
            cost=data.get("cost", 0),
            price=data.get("price", 0),
            low_stock_threshold=data.get("low_stock_threshold", 0),
        ).to_dict()
    return execute("CreateProduct", ctx, "MANAGE_PRODUCTS", _op, status_code=201)


def update_product_pricing(ctx, product_id, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return catalog_service.update_product_pricing(
            ctx,
            parse_id(product_id, "product_id"),
            cost=data.get("cost"),
            price=data.get("price"),
            low_stock_threshold=data.get("low_stock_threshold"),
        ).to_dict()
    return execute("UpdateProductPricing", ctx, "MANAGE_PRODUCTS", _op)


def list_products(ctx) -> CommandResult:
    return query(
        "ListProducts", ctx, "VIEW_INVENTORY",
        lambda: [p.to_dict() for p in catalog_service.list_products(ctx.org_id)],
    )


def create_supplier(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return catalog_service.create_supplier(
            ctx, name=data.get("name"), email=data.get("email"),
            phone=data.get("phone"), address=data.get("address"),
        ).to_dict()
    return execute("CreateSupplier", ctx, "MANAGE_SUPPLIERS", _op, status_code=201)


def list_suppliers(ctx) -> CommandResult:
    return query(
        "ListSuppliers", ctx, "VIEW_PROCUREMENT",
        lambda: [s.to_dict() for s in catalog_service.list_suppliers(ctx.org_id)],
    )


def create_customer(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return catalog_service.create_customer(
            ctx, name=data.get("name"), email=data.get("email"),
            phone=data.get("phone"), address=data.get("address"),
        ).to_dict()
    return execute("CreateCustomer", ctx, "MANAGE_CUSTOMERS", _op, status_code=201)


# -- HR --

def create_employee(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return hr_service.create_employee(
            ctx,
            employee_code=data.get("employee_code"),
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            position=data.get("position"),
            base_salary=data.get("base_salary", 0),
            branch_id=optional_id(data, "branch_id"),
        ).to_dict()
    return execute("CreateEmployee", ctx, "MANAGE_EMPLOYEES", _op, status_code=201)


def record_attendance(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return hr_service.record_attendance(
            ctx,
            employee_id=parse_id(data.get("employee_id"), "employee_id"),
            date=data.get("date"),
            status=data.get("status"),
            hours=data.get("hours", 0),
            note=data.get("note"),
        ).to_dict()
    return execute("RecordAttendance", ctx, "RECORD_ATTENDANCE", _op)


def list_employees(ctx) -> CommandResult:
    return query(
        "ListEmployees", ctx, "VIEW_HR",
        lambda: [e.to_dict() for e in hr_service.list_employees(ctx.org_id)],
    )


def list_attendance(ctx, date=None) -> CommandResult:
    return query("ListAttendance", ctx, "VIEW_HR", lambda: hr_service.list_attendance(ctx.org_id, date=date))


# -- Projects --

def create_project(ctx, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return project_service.create_project(
            ctx,
            code=data.get("code"),
            name=data.get("name"),
            client=data.get("client"),
            budget=data.get("budget", 0),
            status=data.get("status"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
        ).to_dict()
    return execute("CreateProject", ctx, "MANAGE_PROJECTS", _op, status_code=201)


def create_task(ctx, project_id, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return project_service.create_task(
            ctx,
            project_id=parse_id(project_id, "project_id"),
            title=data.get("title"),
            description=data.get("description"),
            status=data.get("status"),
            assignee_id=optional_id(data, "assignee_id"),
            due_date=data.get("due_date"),
        ).to_dict()
    return execute("CreateTask", ctx, "MANAGE_TASKS", _op, status_code=201)


def move_task(ctx, task_id, payload) -> CommandResult:
    def _op():
        data = as_payload(payload)
        return project_service.move_task(ctx, parse_id(task_id, "task_id"), status=data.get("status")).to_dict()
    return execute("MoveTask", ctx, "MANAGE_TASKS", _op)


def delete_task(ctx, task_id) -> CommandResult:
    def _op():
        return project_service.delete_task(ctx, parse_id(task_id, "task_id"))
    return execute("DeleteTask", ctx, "MANAGE_TASKS", _op)


def list_projects(ctx) -> CommandResult:
    return query(
        "ListProjects", ctx, "VIEW_PROJECTS",
        lambda: [p.to_dict() for p in project_service.list_projects(ctx.org_id)],
    )


def list_tasks(ctx, project_id) -> CommandResult:
    return query(
        "ListTasks", ctx, "VIEW_PROJECTS",
        lambda: [t.to_dict() for t in project_service.list_tasks(ctx.org_id, parse_id(project_id, "project_id"))],
    )


# -- Audit --

def list_audit_logs(ctx, limit=None, entity=None) -> CommandResult:
    default_limit = current_app.config.get("AUDIT_LOG_DEFAULT_LIMIT", 50)
    return query(
        "ListAuditLogs", ctx, "VIEW_AUDIT_LOG",
        lambda: [
            entry.to_dict()
            for entry in audit_service.list_audit_logs(
                ctx.org_id, limit=limit, default_limit=default_limit, entity=entity,
            )
        ],
    )


def list_branches(ctx) -> CommandResult:
    return query(
        "ListBranches", ctx, "VIEW_INVENTORY",
        lambda: [b.to_dict() for b in catalog_service.list_branches(ctx.org_id)],
    )


# -- Reporting --

def get_overview(ctx, range_key=None) -> CommandResult:
    return query("Overview", ctx, "VIEW_OVERVIEW", lambda: reporting_service.overview(ctx.org_id, range_key=range_key))


def search(ctx, q=None) -> CommandResult:
    return query("Search", ctx, "SEARCH", lambda: reporting_service.search(ctx.org_id, q))
