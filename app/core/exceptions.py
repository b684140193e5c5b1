"""Typed failures raised by services and rendered by the API layer.

Every error carries the HTTP status and machine-readable ``code`` it maps
to, so handlers in ``app/main.py`` never need to inspect the message.
"""

from typing import Any, Optional


class DomainError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "code": self.code}


class ValidationError(DomainError):
    status_code = 400
    code = "VALIDATION_ERROR"


class ConflictError(ValidationError):
    """Uniqueness violations (email, username, duplicate library entries)."""

    code = "CONFLICT"


class DeviceRequiredError(DomainError):
    status_code = 400
    code = "DEVICE_ID_REQUIRED"

    def __init__(self, message: str = "Device ID is required for anonymous users"):
        super().__init__(message)


class AuthenticationError(DomainError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"


class NotFoundError(DomainError):
    """Resource missing *or* not owned by the caller; the two are indistinguishable."""

    status_code = 404
    code = "NOT_FOUND"


class QuotaExceededError(DomainError):
    status_code = 403
    code = "BOOK_LIMIT_REACHED"

    def __init__(self, limit: int, used: int):
        super().__init__("Book limit reached. Create an account to add more books.")
        self.limit = limit
        self.used = used

    def payload(self) -> dict[str, Any]:
        body = super().payload()
        body.update(
            limit=self.limit,
            used=self.used,
            remaining=max(0, self.limit - self.used),
            requiresAccount=True,
        )
        return body
