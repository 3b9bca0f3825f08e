"""ORM model for the unified account (local password, Google, or Facebook)."""

import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import validates

from app.core.security import BCRYPT_ROUNDS, hash_password
from app.models.base import Base

AuthMethod = Literal["local", "google", "facebook"]
Role = Literal["user", "admin"]

AUTH_METHODS: frozenset[str] = frozenset({"local", "google", "facebook"})
PROVIDERS: frozenset[str] = frozenset({"google", "facebook"})
ROLES: frozenset[str] = frozenset({"user", "admin"})

# Every repetition starts with a separator, so matching stays linear on hostile input.
EMAIL_PATTERN = re.compile(r"^\w+(?:[.-]\w+)*@\w+(?:[.-]\w+)*\.\w{2,3}$")


def normalize_email(value: str | None) -> str:
    """Lowercase and strip; empty stays empty."""
    return (value or "").strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


@dataclass(frozen=True)
class LocalCredential:
    """Credential of a password account."""

    password_hash: str


@dataclass(frozen=True)
class ProviderLink:
    """Credential of a federated account: the provider's subject id and the email it reported."""

    provider: str
    provider_id: str
    provider_email: str


Credential = LocalCredential | ProviderLink

_ONE_CREDENTIAL = (
    "(method = 'local' AND password_hash IS NOT NULL"
    " AND google_id IS NULL AND facebook_id IS NULL)"
    " OR (method = 'google' AND google_id IS NOT NULL"
    " AND password_hash IS NULL AND facebook_id IS NULL)"
    " OR (method = 'facebook' AND facebook_id IS NOT NULL"
    " AND password_hash IS NULL AND google_id IS NULL)"
)


def _new_id() -> str:
    return uuid.uuid4().hex


class Account(Base):
    """
    Single identity record regardless of how the user signs in.

    method selects which credential columns are meaningful; exactly one set is populated
    (see `credential`). Build new rows with `new_local` or `new_federated`.
    role: 'admin' or 'user'
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(_ONE_CREDENTIAL, name="ck_accounts_one_credential"),
        CheckConstraint("role IN ('user', 'admin')", name="ck_accounts_role"),
    )

    id = Column(String(32), primary_key=True, default=_new_id)
    method = Column(String(16), nullable=False)
    name = Column(String(255), nullable=False, default="")
    email = Column(String(320), nullable=False, default="", index=True)
    avatar_url = Column(String(2048), nullable=False, default="")
    role = Column(String(32), nullable=False, default="user")

    # local
    local_email = Column(String(320), nullable=True, unique=True)
    password_hash = Column(String(255), nullable=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    otp_hash = Column(String(255), nullable=True)
    otp_expires_at = Column(DateTime(timezone=True), nullable=True)

    # google
    google_id = Column(String(255), nullable=True, unique=True)
    google_email = Column(String(320), nullable=True)

    # facebook
    facebook_id = Column(String(255), nullable=True, unique=True)
    facebook_email = Column(String(320), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    @validates("email", "local_email", "google_email", "facebook_email")
    def _normalize_email(self, key: str, value: str | None) -> str | None:
        if value is None and key != "email":
            return None
        normalized = normalize_email(value)
        if normalized and not is_valid_email(normalized):
            raise ValueError(f"{key} is not a valid email address")
        return normalized

    @validates("role")
    def _validate_role(self, key: str, value: str) -> str:
        if value not in ROLES:
            raise ValueError(f"role must be one of {sorted(ROLES)}, got {value!r}")
        return value

    @classmethod
    def new_local(
        cls,
        name: str,
        email: str,
        password: str,
        role: Role = "user",
        rounds: int = BCRYPT_ROUNDS,
    ) -> "Account":
        """Build an unverified password account. The password is hashed here, never stored plain."""
        normalized = normalize_email(email)
        return cls(
            id=_new_id(),
            method="local",
            name=name,
            email=normalized,
            local_email=normalized,
            avatar_url="",
            role=role,
            password_hash=hash_password(password, rounds=rounds),
            is_email_verified=False,
        )

    @classmethod
    def new_federated(
        cls,
        provider: str,
        provider_id: str,
        email: str,
        name: str,
        avatar_url: str = "",
    ) -> "Account":
        """Build an account linked to an OAuth provider; the provider vouches for the email."""
        if provider not in PROVIDERS:
            raise ValueError(f"provider must be one of {sorted(PROVIDERS)}, got {provider!r}")
        account = cls(
            id=_new_id(),
            method=provider,
            name=name or "",
            email=email,
            avatar_url=avatar_url or "",
            role="user",
            is_email_verified=True,
        )
        if provider == "google":
            account.google_id = provider_id
            account.google_email = email
        else:
            account.facebook_id = provider_id
            account.facebook_email = email
        return account

    @property
    def credential(self) -> Credential:
        """The one credential this account carries, as selected by method."""
        if self.method == "local":
            return LocalCredential(password_hash=self.password_hash)
        if self.method == "google":
            return ProviderLink("google", self.google_id, self.google_email or "")
        if self.method == "facebook":
            return ProviderLink("facebook", self.facebook_id, self.facebook_email or "")
        raise ValueError(f"Unknown auth method {self.method!r}")

    @property
    def can_receive_token(self) -> bool:
        return self.method != "local" or bool(self.is_email_verified)

    @property
    def redirect_path(self) -> str:
        return "/admin/dashboard" if self.role == "admin" else "/dashboard"
