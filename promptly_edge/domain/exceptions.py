"""Domain exceptions for the Promptly edge API.

Only datastore faults on read paths propagate as exceptions; logical
not-found and invalid-input outcomes are returned as typed values (see
promptly_edge.domain.outcomes). The HTTP layer raises the remaining
subclasses when mapping those outcomes to responses.
"""

from typing import Any


class PromptlyException(Exception):
    """Base exception for all Promptly edge errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return JSON body for the error response."""
        body: dict[str, Any] = {"error": self.message, "code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


class DatastoreError(PromptlyException):
    """Raised when the relational store fails on a read path.

    Distinct from not-found so that an outage is never treated (or cached)
    as a missing entity.
    """

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            "Datastore unavailable",
            "DATASTORE_ERROR",
            {"operation": operation, "reason": reason},
        )


class AuthenticationException(PromptlyException):
    """Raised when the API key is missing, unknown, disabled or expired."""

    def __init__(self, message: str, error_code: str = "UNAUTHORIZED") -> None:
        super().__init__(message, error_code)


class AuthorizationException(PromptlyException):
    """Raised when the API key lacks the required permission."""

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message, "FORBIDDEN")


class ResourceNotFoundException(PromptlyException):
    """Raised when a prompt or version is not visible to the caller."""

    def __init__(self, message: str, error_code: str = "NOT_FOUND") -> None:
        super().__init__(message, error_code)


class ValidationException(PromptlyException):
    """Raised when request input is malformed."""

    def __init__(self, message: str, error_code: str = "BAD_REQUEST") -> None:
        super().__init__(message, error_code)


class RateLimitExceededException(PromptlyException):
    """Raised when the organization has used its monthly quota."""

    def __init__(self, limit: int, reset_epoch: int) -> None:
        super().__init__(
            "Monthly API usage limit exceeded",
            "RATE_LIMITED",
            {"limit": limit, "reset": reset_epoch},
        )
        self.limit = limit
        self.reset_epoch = reset_epoch
