"""SQLAlchemy ORM models."""

from app.models.account import Account, LocalCredential, ProviderLink
from app.models.base import Base

__all__ = ["Account", "Base", "LocalCredential", "ProviderLink"]
