"""Tests for app.repositories.accounts against an in-memory SQLite database."""

import unittest

from app.models.account import Account
from app.repositories.accounts import AccountRepository
from app.services.errors import ConflictError
from tests.support import make_session


def _local(email: str = "a@x.com") -> Account:
    return Account.new_local("A", email, "p1-password", rounds=4)


class RepositoryTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session()
        self.repo = AccountRepository(self.session)

    def tearDown(self) -> None:
        self.session.close()


class TestCreateAndFind(RepositoryTestCase):
    def test_create_assigns_timestamps(self) -> None:
        account = self.repo.create(_local())
        self.assertIsNotNone(account.created_at)
        self.assertIsNotNone(account.updated_at)

    def test_find_by_id(self) -> None:
        account = self.repo.create(_local())
        self.assertEqual(self.repo.find_by_id(account.id).id, account.id)
        self.assertIsNone(self.repo.find_by_id("missing"))
        self.assertIsNone(self.repo.find_by_id(""))

    def test_find_by_email_is_case_insensitive(self) -> None:
        account = self.repo.create(_local("a@x.com"))
        self.assertEqual(self.repo.find_by_email("A@X.COM").id, account.id)
        self.assertEqual(self.repo.find_by_email("  a@x.com ").id, account.id)
        self.assertIsNone(self.repo.find_by_email("b@x.com"))
        self.assertIsNone(self.repo.find_by_email(""))

    def test_find_by_email_prefers_local_account(self) -> None:
        self.repo.create(Account.new_federated("google", "g-1", "a@x.com", "G"))
        local = self.repo.create(_local("a@x.com"))
        self.assertEqual(self.repo.find_by_email("a@x.com").id, local.id)

    def test_find_by_provider(self) -> None:
        google = self.repo.create(Account.new_federated("google", "same-id", "g@x.com", "G"))
        facebook = self.repo.create(Account.new_federated("facebook", "same-id", "f@x.com", "F"))
        self.assertEqual(self.repo.find_by_provider("google", "same-id").id, google.id)
        self.assertEqual(self.repo.find_by_provider("facebook", "same-id").id, facebook.id)
        self.assertIsNone(self.repo.find_by_provider("google", "other"))

    def test_find_by_provider_rejects_unknown_provider(self) -> None:
        with self.assertRaises(ValueError):
            self.repo.find_by_provider("github", "x")


class TestUniqueness(RepositoryTestCase):
    def test_duplicate_local_email_conflicts(self) -> None:
        self.repo.create(_local("a@x.com"))
        with self.assertRaises(ConflictError):
            self.repo.create(_local("A@x.com"))
        # Session is usable after the rollback.
        self.assertIsNotNone(self.repo.find_by_email("a@x.com"))

    def test_duplicate_provider_id_conflicts(self) -> None:
        self.repo.create(Account.new_federated("google", "g-1", "a@x.com", "A"))
        with self.assertRaises(ConflictError):
            self.repo.create(Account.new_federated("google", "g-1", "b@x.com", "B"))

    def test_federated_accounts_may_share_an_email(self) -> None:
        self.repo.create(Account.new_federated("google", "g-1", "a@x.com", "A"))
        self.repo.create(Account.new_federated("facebook", "f-1", "a@x.com", "A"))


class TestSave(RepositoryTestCase):
    def test_save_persists_mutation_and_bumps_updated_at(self) -> None:
        account = self.repo.create(_local())
        before = account.updated_at
        account.role = "admin"
        self.repo.save(account)
        self.session.expire_all()
        reloaded = self.repo.find_by_id(account.id)
        self.assertEqual(reloaded.role, "admin")
        self.assertGreaterEqual(reloaded.updated_at, before)


if __name__ == "__main__":
    unittest.main()
