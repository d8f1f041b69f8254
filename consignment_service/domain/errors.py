"""Domain errors raised by the consignment allocator and settlement.

Each error carries the HTTP status the API layer answers with, so the
FastAPI app needs a single exception handler for the base class.
"""

from __future__ import annotations


class ConsignmentError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRangeError(ConsignmentError):
    status_code = 400


class RangeConflictError(ConsignmentError):
    status_code = 409

    def __init__(self, message: str, conflicting_owner: str | None = None):
        super().__init__(message)
        self.conflicting_owner = conflicting_owner


class EntityNotFoundError(ConsignmentError):
    status_code = 404


class AssignmentNotFoundError(ConsignmentError):
    status_code = 404


class NoAvailableNumbersError(ConsignmentError):
    status_code = 409


class OutOfRangeError(ConsignmentError):
    status_code = 400


class DuplicateUsageError(ConsignmentError):
    status_code = 409


class InvoiceExistsError(ConsignmentError):
    status_code = 409


class NothingToInvoiceError(ConsignmentError):
    status_code = 400


class ConcurrentInvoiceError(ConsignmentError):
    status_code = 409


class InvoiceNotFoundError(ConsignmentError):
    status_code = 404
