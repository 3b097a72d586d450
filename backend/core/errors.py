"""
Service-layer error variants.

Every failure a service can report to its caller is one of the classes below,
tagged with an ``ErrorCode``. Callers match on the class (or on ``code``),
never on the message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    PROPERTY_NOT_FOUND = "PROPERTY_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    BOOKING_CONFLICT = "BOOKING_CONFLICT"
    PAYMENT_EXISTS = "PAYMENT_EXISTS"
    INVALID_STATE = "INVALID_STATE"
    PAYEE_NOT_CONFIGURED = "PAYEE_NOT_CONFIGURED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ServiceError(Exception):
    status_code = 400
    default_code = ErrorCode.VALIDATION_ERROR
    default_message = "Request could not be processed."

    def __init__(self, code: ErrorCode | None = None, message: str | None = None):
        self.code = code or self.default_code
        self.message = message or self.default_message
        super().__init__(f"{self.code.value}: {self.message}")


class ValidationFailed(ServiceError):
    status_code = 400
    default_code = ErrorCode.VALIDATION_ERROR
    default_message = "Invalid input."


class NotFoundError(ServiceError):
    status_code = 404
    default_code = ErrorCode.NOT_FOUND
    default_message = "Not found."


class PermissionDeniedError(ServiceError):
    status_code = 403
    default_code = ErrorCode.FORBIDDEN
    default_message = "You do not have access to this resource."


class ConflictError(ServiceError):
    status_code = 409
    default_code = ErrorCode.BOOKING_CONFLICT
    default_message = "Request conflicts with existing data."


class StateError(ServiceError):
    status_code = 409
    default_code = ErrorCode.INVALID_STATE
    default_message = "Operation is not allowed in the current state."


class InternalError(ServiceError):
    status_code = 500
    default_code = ErrorCode.INTERNAL_ERROR
    default_message = "Something went wrong. Please retry."


class ImmutableRecordError(Exception):
    """Raised when code tries to modify or delete a write-once record."""
