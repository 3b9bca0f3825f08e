"""Shared builders for tests: settings, in-memory database, fixed clock, fake collaborators."""

from datetime import UTC, datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.clock import FixedClock
from app.core.config import Settings
from app.models import Base
from app.schemas.oauth import OAuthProfile
from app.services.errors import UpstreamFailureError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def make_settings(**overrides: object) -> Settings:
    """Settings for tests: SQLite, 4 bcrypt rounds, fixed secret, no .env file."""
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "test-secret-not-for-production",
        "JWT_EXPIRE_MINUTES": 60,
        "BCRYPT_ROUNDS": 4,
        "OTP_LENGTH": 6,
        "OTP_TTL_MINUTES": 10,
        "CLIENT_URL": "http://client.test",
        "PUBLIC_BASE_URL": "http://api.test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database with the accounts table; one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_session() -> Session:
    return make_session_factory()()


def make_clock() -> FixedClock:
    return FixedClock(NOW)


class RecordingEmailSender:
    """EmailSender that remembers what it was asked to send and can be told to fail."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.sent: list[tuple[str, str]] = []

    def send(self, to_address: str, otp_code: str) -> bool:
        self.sent.append((to_address, otp_code))
        return self.succeed

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


class FakeOAuthProvider:
    """OAuthProvider stand-in: returns a canned profile for any code, or fails."""

    def __init__(self, name: str, profile: OAuthProfile | None = None, fail: bool = False) -> None:
        self.name = name
        self.profile = profile
        self.fail = fail
        self.redirect_uris: list[str] = []

    @property
    def is_configured(self) -> bool:
        return True

    def authorization_url(self, redirect_uri: str) -> str:
        return f"https://{self.name}.example/authorize?redirect_uri={redirect_uri}"

    async def exchange(self, code: str, redirect_uri: str) -> OAuthProfile:
        self.redirect_uris.append(redirect_uri)
        if self.fail or self.profile is None:
            raise UpstreamFailureError(f"{self.name} exchange failed")
        return self.profile


def google_profile(provider_id: str = "g-123", email: str = "Ann@Example.com") -> OAuthProfile:
    return OAuthProfile(
        id=provider_id,
        emails=[email] if email else [],
        display_name="Ann Example",
        photos=["https://img.example/ann.png"],
    )
