"""
Custom exceptions for the person store domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, driver, etc.).
"""

from typing import Any, Optional


class PersonStoreException(Exception):
    """Base exception for all person store errors."""

    retryable = False

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(PersonStoreException):
    """Raised when a record or query violates a schema constraint."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(
            message=message,
            details={"field": field, "value": str(value), "reason": reason},
        )


class InvalidIdException(PersonStoreException):
    """Raised when a person identifier is malformed."""

    def __init__(self, identifier: Any):
        super().__init__(
            message=f"Invalid person id: {identifier!r}",
            details={"identifier": str(identifier)},
        )


class StoreException(PersonStoreException):
    """Raised when the document store fails to complete an operation."""

    retryable = True

    def __init__(
        self, operation: str, reason: Optional[str] = None, **details: Any
    ):
        message = f"Store {operation} failed"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message,
            details={"operation": operation, "reason": reason, **details},
        )


class StoreConnectionException(StoreException):
    """Raised when a connection to the document store cannot be established."""

    def __init__(self, uri: str, reason: Optional[str] = None):
        super().__init__("connect", reason, uri=uri)


class QueryAlreadyExecutedException(PersonStoreException):
    """Raised when a finalized query is modified or executed again."""

    def __init__(self):
        super().__init__(
            message="Query has already been executed; build a new query instead"
        )
