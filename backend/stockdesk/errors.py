# Overview: Application error taxonomy shared by services, routes and the CLI.

"""
Business errors are "operational": they carry a stable code, an HTTP status
and a message that is safe to return to the client verbatim.

TransactionFailedError is the only non-operational error. It wraps storage
failures (connectivity, lock timeouts, conflicts after retries) and the
client only ever sees a generic message for it; the full detail goes to
the server log at the transaction boundary.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors the API knows how to report."""

    status_code = 500
    code = "INTERNAL_ERROR"
    is_operational = True

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        if not self.is_operational:
            return {"error": "Internal server error", "code": self.code}
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    """400-level input problem (malformed id, non-positive quantity, ...)."""

    status_code = 400
    code = "INVALID_INPUT"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class InvalidStateError(AppError):
    """Entity exists but is in a state that forbids the operation."""

    status_code = 409
    code = "INVALID_STATE"


class InsufficientStockError(AppError):
    status_code = 400
    code = "INSUFFICIENT_STOCK"


class ConflictError(AppError):
    """409-level business rule conflict (e.g., duplicate SKU)."""

    status_code = 409
    code = "CONFLICT"


class TransactionFailedError(AppError):
    status_code = 500
    code = "TRANSACTION_FAILED"
    is_operational = False
