"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AccountOut,
    LoginRequest,
    MessageResponse,
    PendingVerification,
    PendingVerificationResponse,
    RegisterRequest,
    ResendVerificationRequest,
    RoleUpdateRequest,
    TokenClaims,
    TokenResponse,
    VerifyEmailRequest,
)
from app.schemas.health import HealthResponse
from app.schemas.oauth import OAuthProfile

__all__ = [
    "AccountOut",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "OAuthProfile",
    "PendingVerification",
    "PendingVerificationResponse",
    "RegisterRequest",
    "ResendVerificationRequest",
    "RoleUpdateRequest",
    "TokenClaims",
    "TokenResponse",
    "VerifyEmailRequest",
]
