"""OAuth 2.0 authorization-code adapters for Google and Facebook."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from app.schemas.oauth import OAuthProfile
from app.services.errors import UpstreamFailureError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

FACEBOOK_GRAPH_VERSION = "v19.0"
FACEBOOK_AUTHORIZE_URL = f"https://www.facebook.com/{FACEBOOK_GRAPH_VERSION}/dialog/oauth"
FACEBOOK_TOKEN_URL = f"https://graph.facebook.com/{FACEBOOK_GRAPH_VERSION}/oauth/access_token"
FACEBOOK_ME_URL = f"https://graph.facebook.com/{FACEBOOK_GRAPH_VERSION}/me"


class OAuthProviderError(UpstreamFailureError):
    """Raised when consent was denied, the code exchange failed, or the profile is unusable."""

    def __init__(self, provider: str, message: str, cause: Exception | None = None) -> None:
        self.provider = provider
        super().__init__(message, cause=cause)


class OAuthProviderNotConfiguredError(OAuthProviderError):
    """Raised when a provider's client id or secret is missing."""


class OAuthProvider:
    """
    One configured provider. Subclasses fill in endpoints and profile mapping.

    authorization_url() starts the flow; exchange() trades the callback code for a
    profile. Every outbound call is bounded by OAUTH_REQUEST_TIMEOUT_SEC.
    """

    name: str = ""
    authorize_url: str = ""
    token_url: str = ""
    scopes: tuple[str, ...] = ()
    scope_separator: str = " "

    def __init__(self, client_id: str | None, client_secret: str | None, timeout: float) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise OAuthProviderNotConfiguredError(
                self.name, f"{self.name.capitalize()} sign-in is not configured."
            )

    def authorization_url(self, redirect_uri: str) -> str:
        self._require_configured()
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": self.scope_separator.join(self.scopes),
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange(self, code: str, redirect_uri: str) -> OAuthProfile:
        """Trade an authorization code for the user's profile. Raises OAuthProviderError."""
        self._require_configured()
        if not code:
            raise OAuthProviderError(self.name, "Authorization code missing from callback.")
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                access_token = await self._fetch_access_token(client, code, redirect_uri)
                raw = await self._fetch_profile(client, access_token)
        except httpx.TimeoutException as e:
            self._log_failure(start, "timeout")
            raise OAuthProviderError(self.name, f"{self.name} request timed out.", cause=e) from e
        except httpx.HTTPError as e:
            self._log_failure(start, "transport")
            raise OAuthProviderError(self.name, f"{self.name} is unreachable.", cause=e) from e

        try:
            profile = OAuthProfile.model_validate(self._map_profile(raw))
        except ValidationError as e:
            self._log_failure(start, "profile")
            raise OAuthProviderError(self.name, f"{self.name} returned an unusable profile.", cause=e) from e

        logger.info(
            "OAuth code exchange completed",
            extra={"provider": self.name, "latency_seconds": time.perf_counter() - start},
        )
        return profile

    def _log_failure(self, start: float, reason: str) -> None:
        logger.warning(
            "OAuth code exchange failed",
            extra={
                "provider": self.name,
                "latency_seconds": time.perf_counter() - start,
                "reason": reason,
            },
        )

    def _check(self, resp: httpx.Response, step: str) -> dict[str, Any]:
        if resp.status_code != 200:
            logger.warning(
                "OAuth provider returned an error",
                extra={"provider": self.name, "step": step, "status_code": resp.status_code},
            )
            raise OAuthProviderError(self.name, f"{self.name} {step} returned status {resp.status_code}.")
        try:
            body = resp.json()
        except ValueError as e:
            raise OAuthProviderError(self.name, f"{self.name} {step} response is not JSON.", cause=e) from e
        if not isinstance(body, dict):
            raise OAuthProviderError(self.name, f"{self.name} {step} response is not a JSON object.")
        return body

    async def _fetch_access_token(self, client: httpx.AsyncClient, code: str, redirect_uri: str) -> str:
        raise NotImplementedError

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> dict[str, Any]:
        raise NotImplementedError

    def _map_profile(self, raw: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError


class GoogleOAuthProvider(OAuthProvider):
    name = "google"
    authorize_url = GOOGLE_AUTHORIZE_URL
    token_url = GOOGLE_TOKEN_URL
    scopes = ("openid", "profile", "email")

    async def _fetch_access_token(self, client: httpx.AsyncClient, code: str, redirect_uri: str) -> str:
        resp = await client.post(
            self.token_url,
            data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        token = self._check(resp, "token exchange").get("access_token")
        if not token:
            raise OAuthProviderError(self.name, "google token response missing access_token.")
        return token

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> dict[str, Any]:
        resp = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return self._check(resp, "userinfo")

    def _map_profile(self, raw: dict[str, Any]) -> dict[str, Any]:
        email = raw.get("email")
        # Unverified Google addresses are not treated as proof of the channel.
        emails = [email] if email and raw.get("email_verified", True) else []
        picture = raw.get("picture")
        return {
            "id": raw.get("sub"),
            "emails": emails,
            "display_name": raw.get("name") or "",
            "photos": [picture] if picture else [],
        }


class FacebookOAuthProvider(OAuthProvider):
    name = "facebook"
    authorize_url = FACEBOOK_AUTHORIZE_URL
    token_url = FACEBOOK_TOKEN_URL
    scopes = ("email", "public_profile")
    scope_separator = ","

    async def _fetch_access_token(self, client: httpx.AsyncClient, code: str, redirect_uri: str) -> str:
        resp = await client.get(
            self.token_url,
            params={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": redirect_uri,
            },
        )
        token = self._check(resp, "token exchange").get("access_token")
        if not token:
            raise OAuthProviderError(self.name, "facebook token response missing access_token.")
        return token

    async def _fetch_profile(self, client: httpx.AsyncClient, access_token: str) -> dict[str, Any]:
        resp = await client.get(
            FACEBOOK_ME_URL,
            params={"fields": "id,name,email,picture", "access_token": access_token},
        )
        return self._check(resp, "profile")

    def _map_profile(self, raw: dict[str, Any]) -> dict[str, Any]:
        email = raw.get("email")
        picture = ((raw.get("picture") or {}).get("data") or {}).get("url")
        return {
            "id": raw.get("id"),
            "emails": [email] if email else [],
            "display_name": raw.get("name") or "",
            "photos": [picture] if picture else [],
        }


def build_providers(settings: Settings) -> dict[str, OAuthProvider]:
    """Instantiate both providers from settings, keyed by method name."""
    google_secret = settings.GOOGLE_CLIENT_SECRET.get_secret_value() if settings.GOOGLE_CLIENT_SECRET else None
    facebook_secret = settings.FACEBOOK_APP_SECRET.get_secret_value() if settings.FACEBOOK_APP_SECRET else None
    return {
        "google": GoogleOAuthProvider(
            settings.GOOGLE_CLIENT_ID, google_secret, settings.OAUTH_REQUEST_TIMEOUT_SEC
        ),
        "facebook": FacebookOAuthProvider(
            settings.FACEBOOK_APP_ID, facebook_secret, settings.OAUTH_REQUEST_TIMEOUT_SEC
        ),
    }
