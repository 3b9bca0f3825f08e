"""Session token issuing and verification (stateless JWT bearer tokens)."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

import jwt
from pydantic import ValidationError

from app.core.clock import Clock, SystemClock, as_utc
from app.schemas.auth import TokenClaims
from app.services.errors import UnauthenticatedError

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models.account import Account


class TokenIssuer:
    """
    Mints and checks HS256 (by default) JWTs carrying sub, email, role, iat and exp.

    Key, algorithm and lifetime are read once from the settings passed in; expiry is
    judged against the injected clock rather than PyJWT's wall clock.
    """

    def __init__(self, settings: Settings, clock: Clock | None = None) -> None:
        self._secret = settings.JWT_SECRET.get_secret_value()
        self._algorithm = settings.JWT_ALGORITHM
        self._lifetime = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
        self._clock = clock or SystemClock()

    def issue(self, account: Account) -> str:
        now = self._clock.now()
        payload: dict[str, Any] = {
            "sub": str(account.id),
            "email": account.email or "",
            "role": account.role,
            "iat": now,
            "exp": now + self._lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> TokenClaims:
        """Return the claims of a valid, unexpired token. Raises UnauthenticatedError otherwise."""
        if not token:
            raise UnauthenticatedError("Not authenticated")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.PyJWTError as e:
            raise UnauthenticatedError("Invalid or expired token") from e
        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError as e:
            raise UnauthenticatedError("Invalid token payload") from e
        if self._clock.now() >= as_utc(claims.exp):
            raise UnauthenticatedError("Invalid or expired token")
        return claims
