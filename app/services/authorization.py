"""Bearer-token authentication and role checks in front of protected operations."""

from app.models.account import Account
from app.repositories.accounts import AccountRepository
from app.services.errors import ForbiddenError, UnauthenticatedError
from app.services.tokens import TokenIssuer


class AuthorizationGate:
    """authenticate() then authorize(); the account is re-read so role changes apply on the next request."""

    def __init__(self, repository: AccountRepository, tokens: TokenIssuer) -> None:
        self.repository = repository
        self.tokens = tokens

    def authenticate(self, token: str | None) -> Account:
        if not token:
            raise UnauthenticatedError("Not authenticated")
        claims = self.tokens.decode(token)
        account = self.repository.find_by_id(claims.sub)
        if account is None:
            raise UnauthenticatedError("User not found")
        return account

    def authorize(self, account: Account, required_role: str) -> Account:
        if account.role != required_role:
            raise ForbiddenError(f"{required_role.capitalize()} access required")
        return account
