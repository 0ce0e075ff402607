from __future__ import annotations

from typing import Any


class FamilySharingError(Exception):
    """Base error for the family sharing API; carries the HTTP status it maps to."""

    status_code = 500
    default_code = "FAMILY_SHARING_ERROR"

    def __init__(self, message: str, error_code: str | None = None, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.context = context or {}


class ValidationError(FamilySharingError):
    """Missing or malformed request field."""

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, context={"field": field} if field else None)
        self.field = field


class AuthenticationError(FamilySharingError):
    """Session credential rejected. The message is the same whatever the cause."""

    status_code = 401
    default_code = "AUTHENTICATION_FAILED"

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class AuthorizationError(FamilySharingError):
    status_code = 403
    default_code = "FORBIDDEN"


ForbiddenError = AuthorizationError


class NotFoundError(FamilySharingError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(FamilySharingError):
    status_code = 400
    default_code = "CONFLICT"


class SelfInviteError(ConflictError):
    default_code = "SELF_INVITE"

    def __init__(self, message: str = "You cannot invite yourself"):
        super().__init__(message)


class AlreadyMemberError(ConflictError):
    default_code = "ALREADY_MEMBER"

    def __init__(self, message: str = "This person is already a family member"):
        super().__init__(message)


class InvalidStateError(FamilySharingError):
    """Invitation is no longer pending (accepted, revoked or expired)."""

    status_code = 400
    default_code = "INVALID_STATE"

    def __init__(self, message: str = "This invitation has already been used or revoked", status: str | None = None):
        super().__init__(message, context={"status": status} if status else None)


class ExpiredError(FamilySharingError):
    status_code = 400
    default_code = "INVITATION_EXPIRED"

    def __init__(self, message: str = "This invitation has expired"):
        super().__init__(message)


class UpstreamError(FamilySharingError):
    """Data store, identity provider or mail channel unreachable or failing."""

    status_code = 500
    default_code = "UPSTREAM_ERROR"
