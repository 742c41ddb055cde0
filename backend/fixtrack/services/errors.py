# Overview: Typed ledger errors shared by services, routes and the CLI.

from __future__ import annotations


class LedgerError(Exception):
    """
    Base class for every error a ledger operation reports to its caller.

    ``details`` carries structured context (ids, offending values) that the
    HTTP layer returns verbatim alongside the message.
    """
    code = "ledger_error"
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class ValidationError(LedgerError):
    """Malformed input: bad amount, quantity, enum value or missing field."""
    code = "validation_error"
    http_status = 400


class NotFoundError(LedgerError):
    """Referenced document, item, party, catalog item or session does not exist."""
    code = "not_found"
    http_status = 404


class ConstraintError(LedgerError):
    """Store constraint rejected the write (duplicate number or identifier)."""
    code = "constraint_violation"
    http_status = 409


class LifecycleError(LedgerError):
    """Requested status transition is not allowed from the current state."""
    code = "lifecycle_error"
    http_status = 409


class StoreError(LedgerError):
    """Store I/O failed after retries; the operation left no effect."""
    code = "store_error"
    http_status = 503
