"""One-time email verification codes: generate, store hashed on the account, check."""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

from app.core.clock import Clock, SystemClock, as_utc
from app.core.security import hash_password, verify_password

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models.account import Account

logger = logging.getLogger(__name__)


class OtpChallengeManager:
    """
    Holds at most one outstanding code per account.

    issue() overwrites any previous challenge; verify() fails closed and never mutates
    the account, so a wrong guess does not consume the code. Callers persist the account
    after issue() and clear(). The plaintext code is returned, never stored or logged.
    """

    def __init__(self, settings: Settings, clock: Clock | None = None) -> None:
        self._length = settings.OTP_LENGTH
        self._ttl = timedelta(minutes=settings.OTP_TTL_MINUTES)
        self._rounds = settings.BCRYPT_ROUNDS
        self._clock = clock or SystemClock()

    def generate_code(self) -> str:
        return "".join(str(secrets.randbelow(10)) for _ in range(self._length))

    def issue(self, account: Account) -> str:
        code = self.generate_code()
        account.otp_hash = hash_password(code, rounds=self._rounds)
        account.otp_expires_at = self._clock.now() + self._ttl
        logger.info(
            "Verification code issued",
            extra={"account_id": account.id, "expires_at": account.otp_expires_at.isoformat()},
        )
        return code

    def verify(self, account: Account, code: str) -> bool:
        if not account.otp_hash or account.otp_expires_at is None:
            return False
        if self._clock.now() > as_utc(account.otp_expires_at):
            return False
        if not code or len(code) != self._length or not code.isdigit():
            return False
        return verify_password(code, account.otp_hash)

    def clear(self, account: Account) -> None:
        account.otp_hash = None
        account.otp_expires_at = None
