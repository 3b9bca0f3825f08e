"""Error taxonomy for the auth flows. Routes translate these into HTTP responses."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.schemas.auth import PendingVerification


class AuthError(Exception):
    """Base class for auth outcomes that are not success."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(AuthError):
    """Account or role-update target does not exist."""


class ConflictError(AuthError):
    """A uniqueness invariant (local email, provider id) would be violated."""


class InvalidCredentialsError(AuthError):
    """Password or one-time code did not match."""


class UnauthenticatedError(AuthError):
    """Bearer token missing, malformed, expired, or its subject is gone."""


class ForbiddenError(AuthError):
    """Role does not permit the attempted surface or operation."""


class InvalidInputError(AuthError):
    """Malformed role, code, or request shape."""


class UpstreamFailureError(AuthError):
    """OAuth provider exchange or email delivery failed."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class UnverifiedError(AuthError):
    """Local account has not completed email verification; no token is issued."""

    def __init__(self, message: str, pending: PendingVerification) -> None:
        self.pending = pending
        super().__init__(message)
