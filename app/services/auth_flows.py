"""
Top-level auth flows: register, login, verify email, resend code, OAuth callback, role update.

Each flow either returns its success value or raises exactly one AuthError subclass.
Storage goes through AccountRepository; tokens only come from TokenIssuer and only for
accounts that may receive one (federated, or local and verified).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from app.core.security import hash_password, verify_password
from app.models.account import PROVIDERS, ROLES, Account
from app.repositories.accounts import AccountRepository
from app.schemas.auth import PendingVerification
from app.schemas.oauth import OAuthProfile
from app.services.email import EmailSender, redact_email
from app.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    UnverifiedError,
    UpstreamFailureError,
)
from app.services.identity import IdentityResolver
from app.services.otp import OtpChallengeManager
from app.services.tokens import TokenIssuer

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


@lru_cache(maxsize=None)
def _decoy_password_hash(rounds: int) -> str:
    """Compared against on a login miss so a miss costs one bcrypt check like a wrong password."""
    return hash_password("decoy-password-never-assigned", rounds=rounds)


@dataclass(frozen=True)
class SessionResult:
    """A signed token plus the dashboard the client should land on."""

    token: str
    redirect_url: str
    account: Account


class AuthService:
    def __init__(
        self,
        repository: AccountRepository,
        otp: OtpChallengeManager,
        tokens: TokenIssuer,
        email_sender: EmailSender,
        settings: Settings,
    ) -> None:
        self.repository = repository
        self.otp = otp
        self.tokens = tokens
        self.email_sender = email_sender
        self.identity = IdentityResolver(repository)
        self.expose_otp = settings.APP_ENV == "dev"
        self.bcrypt_rounds = settings.BCRYPT_ROUNDS
        self.admin_promotion_enabled = settings.OAUTH_ADMIN_PROMOTION_ENABLED

    def _session(self, account: Account) -> SessionResult:
        if not account.can_receive_token:
            raise UnverifiedError(
                "Please verify your email first",
                PendingVerification(email=account.email),
            )
        return SessionResult(
            token=self.tokens.issue(account),
            redirect_url=account.redirect_path,
            account=account,
        )

    def _pending(self, account: Account, code: str) -> PendingVerification:
        return PendingVerification(email=account.email, otp=code if self.expose_otp else None)

    def _issue_and_deliver(self, account: Account) -> str:
        """New code on the account, persisted, then mailed. Delivery failure does not undo the write."""
        code = self.otp.issue(account)
        self.repository.save(account)
        if not self.email_sender.send(account.email, code):
            logger.error(
                "Verification code delivery failed",
                extra={"account_id": account.id, "to": redact_email(account.email)},
            )
            raise UpstreamFailureError("Error sending verification email")
        return code

    def register(self, name: str, email: str, password: str, admin_intent: bool = False) -> PendingVerification:
        """Create an unverified local account and mail it a code. Never returns a token."""
        if self.repository.find_by_email(email) is not None:
            raise ConflictError("User already exists")
        try:
            account = Account.new_local(
                name=name,
                email=email,
                password=password,
                role="admin" if admin_intent else "user",
                rounds=self.bcrypt_rounds,
            )
        except ValueError as e:
            raise InvalidInputError(str(e)) from e
        account = self.repository.create(account)
        logger.info(
            "Local account registered",
            extra={"account_id": account.id, "role": account.role},
        )
        code = self._issue_and_deliver(account)
        return self._pending(account, code)

    def resend_verification(self, email: str) -> PendingVerification:
        account = self.repository.find_by_email(email)
        if account is None:
            raise NotFoundError("User not found")
        if account.method != "local":
            raise InvalidInputError("Account does not use email/password sign-in")
        if account.is_email_verified:
            raise InvalidInputError("Email is already verified")
        code = self._issue_and_deliver(account)
        return self._pending(account, code)

    def login(self, email: str, password: str, admin_intent: bool = False) -> SessionResult:
        account = self.repository.find_by_email(email)
        if account is None or account.method != "local":
            verify_password(password, _decoy_password_hash(self.bcrypt_rounds))
            raise InvalidCredentialsError(INVALID_CREDENTIALS)
        if not self._password_matches(account, password):
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        if admin_intent and account.role != "admin":
            raise ForbiddenError("Not authorized for admin access")
        if not admin_intent and account.role == "admin":
            raise ForbiddenError("Please use admin login")

        if not account.is_email_verified:
            code = self._issue_and_deliver(account)
            raise UnverifiedError("Please verify your email first", self._pending(account, code))

        logger.info("Local login succeeded", extra={"account_id": account.id, "role": account.role})
        return self._session(account)

    def _password_matches(self, account: Account, password: str) -> bool:
        return verify_password(password, account.credential.password_hash)

    def verify_email(self, email: str, otp: str) -> SessionResult:
        account = self.repository.find_by_email(email)
        if account is None:
            raise NotFoundError("User not found")
        if not self.otp.verify(account, otp):
            raise InvalidCredentialsError("Invalid or expired OTP")
        account.is_email_verified = True
        self.otp.clear(account)
        self.repository.save(account)
        logger.info("Email verified", extra={"account_id": account.id})
        return self._session(account)

    def oauth_callback(self, provider: str, profile: OAuthProfile, admin_intent: bool = False) -> SessionResult:
        """
        Resolve the provider identity and sign it in. Federated accounts skip OTP.

        An admin-flagged callback promotes the account to admin, including an existing
        user account; OAUTH_ADMIN_PROMOTION_ENABLED=false refuses that instead.
        """
        if provider not in PROVIDERS:
            raise InvalidInputError(f"Unknown provider {provider!r}")
        account = self.identity.resolve(provider, profile)
        if admin_intent and account.role != "admin":
            if not self.admin_promotion_enabled:
                raise ForbiddenError("Not authorized for admin access")
            previous = account.role
            account.role = "admin"
            account = self.repository.save(account)
            logger.warning(
                "Account promoted to admin via admin sign-in route",
                extra={"account_id": account.id, "provider": provider, "previous_role": previous},
            )
        return self._session(account)

    def update_role(self, target_id: str, role: str) -> Account:
        """Set an account's role. Callers must have passed the admin gate."""
        if role not in ROLES:
            raise InvalidInputError("Please provide a valid role (user or admin)")
        account = self.repository.find_by_id(target_id)
        if account is None:
            raise NotFoundError(f"No user found with id {target_id}")
        if account.role != role:
            account.role = role
            account = self.repository.save(account)
            logger.info("Role updated", extra={"account_id": account.id, "role": role})
        return account
