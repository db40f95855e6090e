from .tenancy import Organization, Branch
from .auth import User
from .inventory import Product, StockLevel, StockMovement
from .procurement import Supplier, PurchaseRequest, PurchaseRequestItem, PurchaseOrder, PurchaseOrderItem
from .approvals import Approval
from .sales import Customer, Invoice, InvoiceItem, Payment
from .finance import Expense, JournalEntry, JournalLine
from .hr import Employee, Attendance
from .projects import Project, Task
from .audit import AuditLog

__all__ = [
    'Organization', 'Branch',
    'User',
    'Product', 'StockLevel', 'StockMovement',
    'Supplier', 'PurchaseRequest', 'PurchaseRequestItem', 'PurchaseOrder', 'PurchaseOrderItem',
    'Approval',
    'Customer', 'Invoice', 'InvoiceItem', 'Payment',
    'Expense', 'JournalEntry', 'JournalLine',
    'Employee', 'Attendance',
    'Project', 'Task',
    'AuditLog',
]
