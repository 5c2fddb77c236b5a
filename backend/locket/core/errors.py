from __future__ import annotations

from typing import ClassVar


class LocketError(RuntimeError):
    """Base class for errors surfaced to API callers.

    Each subclass carries a stable ``code`` and the HTTP status it maps to, so
    routers and the exception handler never inspect message text.
    """

    status_code: ClassVar[int] = 500
    default_code: ClassVar[str] = "INTERNAL_ERROR"
    default_message: ClassVar[str] = "Internal server error"
    retryable: ClassVar[bool] = False

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)


class AuthRequired(LocketError):
    """No valid credential was presented."""

    status_code = 401
    default_code = "AUTH_REQUIRED"
    default_message = "Authentication required"


class AccessDenied(LocketError):
    """Valid credential, but the caller is not a member of the locket."""

    status_code = 403
    default_code = "ACCESS_DENIED"
    default_message = "Access denied to this locket"


class InviteInvalid(LocketError):
    """Invite code is unknown, expired, revoked or used up."""

    status_code = 404
    default_code = "INVITE_INVALID"
    default_message = "Locket not found or invalid invite code"


class AlreadyMember(LocketError):
    """The caller already belongs to the locket the invite points at."""

    status_code = 409
    default_code = "ALREADY_MEMBER"
    default_message = "You are already a member of this locket"


class ValidationError(LocketError):
    """Malformed or missing request input."""

    status_code = 400
    default_code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class InfrastructureError(LocketError):
    """Store or upstream provider unavailable or timed out; safe to retry."""

    status_code = 503
    default_code = "INFRASTRUCTURE_ERROR"
    default_message = "Service temporarily unavailable"
    retryable = True

    def __init__(
        self,
        operation: str,
        message: str | None = None,
        code: str | None = None,
        locket_id: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.operation = operation
        self.locket_id = locket_id
