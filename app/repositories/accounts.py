"""Account storage: the only module that queries or writes the accounts table."""

import logging
from datetime import UTC, datetime

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.account import PROVIDERS, Account, normalize_email
from app.services.errors import ConflictError

logger = logging.getLogger(__name__)


class AccountRepository:
    """Keyed lookups and single-row writes for Account. Commits on every write."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id(self, account_id: str) -> Account | None:
        if not account_id:
            return None
        return self.session.query(Account).filter(Account.id == account_id).first()

    def find_by_email(self, email: str) -> Account | None:
        """
        Case-insensitive lookup. Several federated accounts may report the same address;
        a local account wins over them, then the oldest.
        """
        normalized = normalize_email(email)
        if not normalized:
            return None
        return (
            self.session.query(Account)
            .filter(func.lower(Account.email) == normalized)
            .order_by(case((Account.method == "local", 0), else_=1), Account.created_at)
            .first()
        )

    def find_by_provider(self, provider: str, provider_id: str) -> Account | None:
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown provider {provider!r}")
        if not provider_id:
            return None
        column = Account.google_id if provider == "google" else Account.facebook_id
        return self.session.query(Account).filter(column == provider_id).first()

    def create(self, account: Account) -> Account:
        """Insert a new account. Raises ConflictError if a unique column is already taken."""
        now = datetime.now(UTC)
        account.created_at = now
        account.updated_at = now
        self.session.add(account)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.info(
                "Account create rejected by uniqueness constraint",
                extra={"method": account.method},
            )
            raise ConflictError("An account with these credentials already exists.") from e
        self.session.refresh(account)
        return account

    def save(self, account: Account) -> Account:
        """Persist changes made to a loaded account."""
        account.updated_at = datetime.now(UTC)
        self.session.add(account)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError("Account update violates a uniqueness constraint.") from e
        self.session.refresh(account)
        return account
