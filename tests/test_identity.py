"""Tests for app.services.identity: find-or-create for OAuth callbacks, including the insert race."""

import unittest
from unittest.mock import MagicMock

from app.models.account import Account
from app.repositories.accounts import AccountRepository
from app.schemas.oauth import OAuthProfile
from app.services.errors import ConflictError, InvalidInputError
from app.services.identity import IdentityResolver
from tests.support import google_profile, make_session


class TestResolveWithDatabase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session()
        self.repo = AccountRepository(self.session)
        self.resolver = IdentityResolver(self.repo)

    def tearDown(self) -> None:
        self.session.close()

    def test_unknown_provider_id_creates_account(self) -> None:
        account = self.resolver.resolve("google", google_profile())
        self.assertEqual(account.method, "google")
        self.assertEqual(account.google_id, "g-123")
        self.assertEqual(account.email, "ann@example.com")
        self.assertEqual(account.google_email, "ann@example.com")
        self.assertEqual(account.name, "Ann Example")
        self.assertEqual(account.avatar_url, "https://img.example/ann.png")
        self.assertEqual(account.role, "user")
        self.assertIsNone(account.password_hash)
        self.assertIsNone(account.otp_hash)

    def test_second_callback_resolves_to_first_account(self) -> None:
        first = self.resolver.resolve("google", google_profile())
        second = self.resolver.resolve("google", google_profile())
        self.assertEqual(first.id, second.id)
        self.assertEqual(self.session.query(Account).count(), 1)

    def test_profile_drift_is_not_synced(self) -> None:
        first = self.resolver.resolve("google", google_profile())
        renamed = OAuthProfile(id="g-123", emails=["new@example.com"], display_name="Renamed")
        second = self.resolver.resolve("google", renamed)
        self.assertEqual(second.id, first.id)
        self.assertEqual(second.name, "Ann Example")
        self.assertEqual(second.email, "ann@example.com")

    def test_missing_email_and_photo_become_empty(self) -> None:
        profile = OAuthProfile(id="f-9", emails=[], display_name="No Mail", photos=[])
        account = self.resolver.resolve("facebook", profile)
        self.assertEqual(account.email, "")
        self.assertEqual(account.avatar_url, "")

    def test_same_id_on_other_provider_is_another_account(self) -> None:
        google = self.resolver.resolve("google", google_profile(provider_id="shared"))
        facebook = self.resolver.resolve("facebook", google_profile(provider_id="shared"))
        self.assertNotEqual(google.id, facebook.id)

    def test_malformed_provider_email_rejected(self) -> None:
        profile = OAuthProfile(id="g-bad", emails=["not an email"], display_name="X")
        with self.assertRaises(InvalidInputError):
            self.resolver.resolve("google", profile)


class TestResolveRace(unittest.TestCase):
    """A concurrent callback inserted the same provider id first: return its account."""

    def test_conflict_rereads_winner(self) -> None:
        winner = Account.new_federated("google", "g-123", "ann@example.com", "Ann")
        repo = MagicMock()
        repo.find_by_provider.side_effect = [None, winner]
        repo.create.side_effect = ConflictError("taken")
        account = IdentityResolver(repo).resolve("google", google_profile())
        self.assertIs(account, winner)
        self.assertEqual(repo.find_by_provider.call_count, 2)

    def test_conflict_without_winner_propagates(self) -> None:
        repo = MagicMock()
        repo.find_by_provider.return_value = None
        repo.create.side_effect = ConflictError("taken")
        with self.assertRaises(ConflictError):
            IdentityResolver(repo).resolve("google", google_profile())


if __name__ == "__main__":
    unittest.main()
