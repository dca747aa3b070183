"""
Error taxonomy for the Financial History Chronicle service.

Every failure this service raises on purpose is a subclass of
`FinHistoryError`. Each class carries:
- code: machine-readable error code rendered in the error envelope
- status_code: HTTP status the API boundary maps it to
- message: human-readable explanation
- details: optional structured context

The API layer renders these as::

    {"error": {"code": "...", "message": "...", "details": {...}}}

Anything that is not a `FinHistoryError` is treated as an internal error
at the boundary (logged, surfaced as INTERNAL_ERROR / 500).
"""

from typing import Any

SERVICE_UNAVAILABLE_MESSAGE = "Database is unavailable. Configure DATABASE_URL or run demo mode."
DATABASE_NOT_CONFIGURED_MESSAGE = "DATABASE_URL is not set"


class FinHistoryError(Exception):
    """Base exception for all service errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Error envelope body."""
        return {"code": self.code, "message": self.message, "details": self.details}


class RequestValidationFailed(FinHistoryError):
    """Malformed or out-of-range input. Never retried, never triggers fallback."""

    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "invalid request"


class UnauthorizedError(FinHistoryError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(FinHistoryError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(FinHistoryError):
    """No matching record (or the record exists but is not published)."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class ConflictError(FinHistoryError):
    """A uniqueness constraint was violated (slug, URL, sequence number)."""

    code = "CONFLICT"
    status_code = 409
    default_message = "Conflict"


class ServiceUnavailableError(FinHistoryError):
    """The live store is unconfigured or unreachable during a write."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    default_message = SERVICE_UNAVAILABLE_MESSAGE

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ServiceUnavailableError":
        """Wrap a classified store failure, keeping its text for diagnostics."""
        return cls(details={"original_message": str(exc) or type(exc).__name__})


class DatabaseNotConfiguredError(ServiceUnavailableError):
    """Raised when the live store is needed but DATABASE_URL is absent."""

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(
            message or DATABASE_NOT_CONFIGURED_MESSAGE,
            details or {"original_message": DATABASE_NOT_CONFIGURED_MESSAGE},
        )


class SeedDataError(FinHistoryError):
    """
    The seed file is missing or malformed.

    This is a configuration defect, not a transient condition, so it is
    deliberately NOT recognised by the availability classifier.
    """

    code = "SEED_DATA_ERROR"
    status_code = 500
    default_message = "Seed data could not be loaded"
