"""Find-or-create the account behind a successful OAuth provider callback."""

import logging

from app.models.account import Account, normalize_email
from app.repositories.accounts import AccountRepository
from app.schemas.oauth import OAuthProfile
from app.services.errors import ConflictError, InvalidInputError

logger = logging.getLogger(__name__)


def _first_or_empty(values: list[str]) -> str:
    for value in values:
        if value and value.strip():
            return value.strip()
    return ""


class IdentityResolver:
    """Sole creation path for federated accounts. Existing accounts are returned as stored."""

    def __init__(self, repository: AccountRepository) -> None:
        self.repository = repository

    def resolve(self, provider: str, profile: OAuthProfile) -> Account:
        existing = self.repository.find_by_provider(provider, profile.id)
        if existing is not None:
            return existing

        try:
            account = Account.new_federated(
                provider=provider,
                provider_id=profile.id,
                email=normalize_email(_first_or_empty(profile.emails)),
                name=profile.display_name,
                avatar_url=_first_or_empty(profile.photos),
            )
        except ValueError as e:
            raise InvalidInputError(f"Provider profile rejected: {e}") from e

        try:
            created = self.repository.create(account)
        except ConflictError:
            # Another callback for the same provider id won the insert.
            winner = self.repository.find_by_provider(provider, profile.id)
            if winner is None:
                raise
            return winner

        logger.info(
            "Federated account created",
            extra={"account_id": created.id, "provider": provider},
        )
        return created
