"""Auth routes (register, login, verify, OAuth, role update) and auth dependencies (get_current_account, require_admin)."""

import logging
from typing import Annotated, Literal
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.clock import Clock, SystemClock
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.models.account import Account
from app.repositories.accounts import AccountRepository
from app.schemas.auth import (
    AccountOut,
    LoginRequest,
    MessageResponse,
    PendingVerificationResponse,
    RegisterRequest,
    ResendVerificationRequest,
    RoleUpdateRequest,
    TokenResponse,
    VerifyEmailRequest,
)
from app.services.auth_flows import AuthService, SessionResult
from app.services.authorization import AuthorizationGate
from app.services.email import EmailSender, SmtpEmailSender
from app.services.errors import (
    AuthError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    UnauthenticatedError,
    UnverifiedError,
    UpstreamFailureError,
)
from app.services.oauth import OAuthProvider, build_providers
from app.services.otp import OtpChallengeManager
from app.services.tokens import TokenIssuer

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)

Provider = Literal["google", "facebook"]

_STATUS_BY_ERROR: dict[type[AuthError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    UnauthenticatedError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    InvalidInputError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UpstreamFailureError: status.HTTP_502_BAD_GATEWAY,
    UnverifiedError: status.HTTP_403_FORBIDDEN,
}


def http_error(e: AuthError) -> HTTPException:
    """Translate a service error into the HTTP response for it."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type in type(e).__mro__:
        if error_type in _STATUS_BY_ERROR:
            status_code = _STATUS_BY_ERROR[error_type]
            break
    if isinstance(e, UnverifiedError):
        return HTTPException(
            status_code=status_code,
            detail={"message": e.message, "data": e.pending.model_dump()},
        )
    if isinstance(e, UnauthenticatedError):
        return HTTPException(
            status_code=status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return HTTPException(status_code=status_code, detail=e.message)


def get_clock() -> Clock:
    return SystemClock()


def get_email_sender(settings: Annotated[Settings, Depends(get_settings)]) -> EmailSender:
    return SmtpEmailSender(settings)


def get_oauth_providers(
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, OAuthProvider]:
    return build_providers(settings)


def get_token_issuer(
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> TokenIssuer:
    return TokenIssuer(settings, clock)


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
    email_sender: Annotated[EmailSender, Depends(get_email_sender)],
) -> AuthService:
    return AuthService(
        repository=AccountRepository(db),
        otp=OtpChallengeManager(settings, clock),
        tokens=tokens,
        email_sender=email_sender,
        settings=settings,
    )


def get_gate(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AuthorizationGate:
    return AuthorizationGate(AccountRepository(db), tokens)


def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    gate: Annotated[AuthorizationGate, Depends(get_gate)],
) -> Account:
    """Dependency: require valid Bearer JWT and return the current account. Raises 401 if missing or invalid."""
    token = credentials.credentials if credentials is not None else None
    try:
        return gate.authenticate(token)
    except UnauthenticatedError as e:
        raise http_error(e) from e


def require_admin(
    current_account: Annotated[Account, Depends(get_current_account)],
    gate: Annotated[AuthorizationGate, Depends(get_gate)],
) -> Account:
    """Dependency: require authenticated account with role 'admin'. Raises 403 for non-admin."""
    try:
        return gate.authorize(current_account, "admin")
    except ForbiddenError as e:
        raise http_error(e) from e


def _token_response(result: SessionResult) -> TokenResponse:
    return TokenResponse(
        access_token=result.token,
        token_type="bearer",
        redirect_url=result.redirect_url,
        account=AccountOut.model_validate(result.account),
    )


def _register(body: RegisterRequest, service: AuthService, admin_intent: bool) -> PendingVerificationResponse:
    try:
        pending = service.register(body.name, body.email, body.password, admin_intent=admin_intent)
    except AuthError as e:
        raise http_error(e) from e
    who = "Admin" if admin_intent else "User"
    return PendingVerificationResponse(
        message=f"{who} registered. Please check your email for verification code.",
        data=pending,
    )


def _login(body: LoginRequest, service: AuthService, admin_intent: bool) -> TokenResponse:
    try:
        result = service.login(body.email, body.password, admin_intent=admin_intent)
    except AuthError as e:
        raise http_error(e) from e
    return _token_response(result)


@router.post("/register", response_model=PendingVerificationResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> PendingVerificationResponse:
    """Register with email and password. A verification code is emailed; no token until it is confirmed."""
    return _register(body, service, admin_intent=False)


@router.post("/admin/register", response_model=PendingVerificationResponse, status_code=status.HTTP_201_CREATED)
def register_admin(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> PendingVerificationResponse:
    return _register(body, service, admin_intent=True)


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    return _login(body, service, admin_intent=False)


@router.post("/admin/login", response_model=TokenResponse)
def login_admin(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    return _login(body, service, admin_intent=True)


@router.post("/verify-email", response_model=TokenResponse)
def verify_email(
    body: VerifyEmailRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """Confirm the emailed code; on success the account is verified and a token is returned."""
    try:
        result = service.verify_email(body.email, body.otp)
    except AuthError as e:
        raise http_error(e) from e
    return _token_response(result)


@router.post("/resend-verification", response_model=PendingVerificationResponse)
def resend_verification(
    body: ResendVerificationRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> PendingVerificationResponse:
    try:
        pending = service.resend_verification(body.email)
    except AuthError as e:
        raise http_error(e) from e
    return PendingVerificationResponse(message="Verification email sent successfully", data=pending)


@router.get("/user", response_model=AccountOut)
def get_current_user(
    current_account: Annotated[Account, Depends(get_current_account)],
) -> AccountOut:
    """Return the signed-in account without credential fields."""
    return AccountOut.model_validate(current_account)


@router.put("/role/{account_id}", response_model=AccountOut)
def update_role(
    account_id: str,
    body: RoleUpdateRequest,
    _admin: Annotated[Account, Depends(require_admin)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AccountOut:
    """Change an account's role (admin only)."""
    try:
        account = service.update_role(account_id, body.role)
    except AuthError as e:
        raise http_error(e) from e
    return AccountOut.model_validate(account)


@router.post("/logout", response_model=MessageResponse)
def logout(
    _current: Annotated[Account, Depends(get_current_account)],
) -> MessageResponse:
    """Acknowledge logout. Tokens are stateless; the client discards its copy."""
    return MessageResponse(message="Successfully logged out")


def _callback_uri(settings: Settings, provider: str, admin_intent: bool) -> str:
    prefix = "/admin" if admin_intent else ""
    return f"{settings.PUBLIC_BASE_URL}{settings.API_V1_PREFIX}/auth{prefix}/{provider}/callback"


def _failure_redirect(settings: Settings, reason: str) -> RedirectResponse:
    return RedirectResponse(f"{settings.CLIENT_URL}/auth/failure?{urlencode({'reason': reason})}")


def _start_oauth(
    provider: str,
    admin_intent: bool,
    providers: dict[str, OAuthProvider],
    settings: Settings,
) -> RedirectResponse:
    try:
        url = providers[provider].authorization_url(_callback_uri(settings, provider, admin_intent))
    except UpstreamFailureError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message) from e
    return RedirectResponse(url)


async def _finish_oauth(
    provider: str,
    admin_intent: bool,
    code: str | None,
    error: str | None,
    providers: dict[str, OAuthProvider],
    service: AuthService,
    settings: Settings,
) -> RedirectResponse:
    if error or not code:
        logger.info(
            "OAuth callback without authorization code",
            extra={"provider": provider, "reason": (error or "missing_code")[:100]},
        )
        return _failure_redirect(settings, "denied")
    try:
        profile = await providers[provider].exchange(code, _callback_uri(settings, provider, admin_intent))
        result = service.oauth_callback(provider, profile, admin_intent=admin_intent)
    except UpstreamFailureError:
        return _failure_redirect(settings, "provider")
    except ForbiddenError:
        return _failure_redirect(settings, "forbidden")
    except AuthError as e:
        logger.warning(
            "OAuth sign-in rejected",
            extra={"provider": provider, "reason": e.message[:200]},
        )
        return _failure_redirect(settings, "rejected")
    query = urlencode({"token": result.token})
    return RedirectResponse(f"{settings.CLIENT_URL}{result.redirect_url}?{query}")


@router.get("/{provider}")
def start_oauth(
    provider: Provider,
    providers: Annotated[dict[str, OAuthProvider], Depends(get_oauth_providers)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RedirectResponse:
    """Redirect to the provider's consent screen."""
    return _start_oauth(provider, False, providers, settings)


@router.get("/admin/{provider}")
def start_admin_oauth(
    provider: Provider,
    providers: Annotated[dict[str, OAuthProvider], Depends(get_oauth_providers)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RedirectResponse:
    return _start_oauth(provider, True, providers, settings)


@router.get("/{provider}/callback")
async def oauth_callback(
    provider: Provider,
    providers: Annotated[dict[str, OAuthProvider], Depends(get_oauth_providers)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    code: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """Provider redirect target: exchange the code, sign in, and redirect to the client with ?token=."""
    return await _finish_oauth(provider, False, code, error, providers, service, settings)


@router.get("/admin/{provider}/callback")
async def admin_oauth_callback(
    provider: Provider,
    providers: Annotated[dict[str, OAuthProvider], Depends(get_oauth_providers)],
    service: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_settings)],
    code: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """Admin-flagged callback: the signed-in account is promoted to admin."""
    return await _finish_oauth(provider, True, code, error, providers, service, settings)
