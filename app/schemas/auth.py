"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.account import is_valid_email, normalize_email


def _validate_email(value: str) -> str:
    """Lowercase and check the address shape."""
    normalized = normalize_email(value)
    if not normalized:
        raise ValueError("email must be non-empty")
    if not is_valid_email(normalized):
        raise ValueError("Please add a valid email")
    return normalized


class RegisterRequest(BaseModel):
    """Email/password registration."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: str = Field(..., max_length=320, description="Email address (lowercased)")
    password: str = Field(..., min_length=8, max_length=128, description="Password")

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _validate_email(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must be non-empty")
        return v.strip()


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., max_length=320, description="Email address")
    password: str = Field(..., min_length=1, max_length=128, description="Password")

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _validate_email(v)


class VerifyEmailRequest(BaseModel):
    """Email plus the numeric code that was mailed to it."""

    email: str = Field(..., max_length=320)
    otp: str = Field(..., min_length=4, max_length=10, pattern=r"^\d+$", description="One-time code")

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _validate_email(v)


class ResendVerificationRequest(BaseModel):
    email: str = Field(..., max_length=320)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return _validate_email(v)


class RoleUpdateRequest(BaseModel):
    """New role for an account; checked against the closed set by the service."""

    role: str = Field(..., description="'user' or 'admin'")


class AccountOut(BaseModel):
    """Account as returned to clients. Credential fields are never included."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    method: str
    name: str
    email: str
    avatar_url: str
    role: str
    is_email_verified: bool
    created_at: datetime
    updated_at: datetime


class PendingVerification(BaseModel):
    """Outcome of register/resend (and unverified login): a code was sent, no token yet."""

    requires_verification: bool = True
    email: str
    otp: str | None = Field(
        default=None,
        description="Plaintext code; only populated when APP_ENV=dev",
    )


class PendingVerificationResponse(BaseModel):
    message: str
    data: PendingVerification


class TokenResponse(BaseModel):
    """JWT access token returned after successful login or verification."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    redirect_url: str = Field(..., description="Dashboard path for the account's role")
    account: AccountOut


class TokenClaims(BaseModel):
    """Decoded session token payload."""

    sub: str
    email: str = ""
    role: str
    exp: datetime
    iat: datetime | None = None


class MessageResponse(BaseModel):
    message: str
