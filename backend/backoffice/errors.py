# Overview: Typed workflow failures shared by services, the orchestrator and routes.

from __future__ import annotations


class WorkflowError(Exception):
    """
    Base class for every expected business failure.

    Each subclass carries a stable ``kind`` (surfaced to API callers) and the
    HTTP status a route should answer with. ``details`` holds structured,
    non-sensitive context such as field errors or available quantities.
    """

    kind = "Unexpected"
    status_code = 500

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(WorkflowError):
    """Entity missing, or owned by another organization."""
    kind = "NotFound"
    status_code = 404


class ForbiddenError(WorkflowError):
    kind = "Forbidden"
    status_code = 403


class InvalidStateError(WorkflowError):
    """Lifecycle guard failed: the document is not in the required status."""
    kind = "InvalidState"
    status_code = 400


class InvoiceNotIssuedError(InvalidStateError):
    kind = "InvoiceNotIssued"


class InsufficientStockError(WorkflowError):
    kind = "InsufficientStock"
    status_code = 400


class UnbalancedError(WorkflowError):
    kind = "Unbalanced"
    status_code = 400


class ValidationError(WorkflowError):
    """400-level input problem; ``details`` maps field name to message."""
    kind = "ValidationError"
    status_code = 422


class ConflictError(WorkflowError):
    """Duplicate or concurrently-modified resource."""
    kind = "Conflict"
    status_code = 409


class AlreadyDecidedError(ConflictError):
    kind = "AlreadyDecided"
