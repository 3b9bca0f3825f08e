"""Unit tests for app.models.account: credential variant, email rules, token eligibility."""

import time
import unittest

from pydantic import ValidationError

from app.core.security import verify_password
from app.models.account import Account, LocalCredential, ProviderLink, is_valid_email
from app.schemas.auth import LoginRequest


class TestNewLocal(unittest.TestCase):
    def test_password_is_hashed_and_email_lowercased(self) -> None:
        account = Account.new_local("A", "A@X.com", "p1-password", rounds=4)
        self.assertEqual(account.method, "local")
        self.assertEqual(account.email, "a@x.com")
        self.assertEqual(account.local_email, "a@x.com")
        self.assertNotEqual(account.password_hash, "p1-password")
        self.assertTrue(verify_password("p1-password", account.password_hash))
        self.assertFalse(account.is_email_verified)
        self.assertEqual(account.role, "user")

    def test_credential_is_local_only(self) -> None:
        account = Account.new_local("A", "a@x.com", "p1-password", rounds=4)
        self.assertIsInstance(account.credential, LocalCredential)
        self.assertIsNone(account.google_id)
        self.assertIsNone(account.facebook_id)

    def test_invalid_email_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Account.new_local("A", "not-an-email", "p1-password", rounds=4)

    def test_unverified_local_cannot_receive_token(self) -> None:
        account = Account.new_local("A", "a@x.com", "p1-password", rounds=4)
        self.assertFalse(account.can_receive_token)
        account.is_email_verified = True
        self.assertTrue(account.can_receive_token)


class TestEmailShape(unittest.TestCase):
    def test_accepted_shapes(self) -> None:
        for email in ("a@x.com", "first.last@mail.example.com", "a-b_c@x-y.co.uk", "a1@x.io"):
            self.assertTrue(is_valid_email(email), email)

    def test_rejected_shapes(self) -> None:
        for email in ("a@x", "a..b@x.com", "a@x.comm", ".a@x.com", "a@@x.com", "a b@x.com", "a@x.c"):
            self.assertFalse(is_valid_email(email), email)

    def test_long_non_matching_address_returns_quickly(self) -> None:
        for email in ("a" * 300 + "!", "a" * 150 + "@" + "b" * 150 + "!", "a." * 150 + "!"):
            start = time.perf_counter()
            self.assertFalse(is_valid_email(email))
            self.assertLess(time.perf_counter() - start, 0.5)

    def test_long_non_matching_login_email_returns_quickly(self) -> None:
        start = time.perf_counter()
        with self.assertRaises(ValidationError):
            LoginRequest(email="a" * 300 + "!", password="x")
        self.assertLess(time.perf_counter() - start, 0.5)


class TestNewFederated(unittest.TestCase):
    def test_google_link(self) -> None:
        account = Account.new_federated("google", "g-1", "b@y.com", "B", "https://img/b.png")
        self.assertEqual(account.method, "google")
        self.assertEqual(account.credential, ProviderLink("google", "g-1", "b@y.com"))
        self.assertIsNone(account.password_hash)
        self.assertIsNone(account.local_email)
        self.assertTrue(account.can_receive_token)

    def test_facebook_link(self) -> None:
        account = Account.new_federated("facebook", "f-1", "", "C")
        self.assertEqual(account.credential, ProviderLink("facebook", "f-1", ""))
        self.assertEqual(account.email, "")
        self.assertEqual(account.avatar_url, "")

    def test_unknown_provider_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Account.new_federated("github", "x", "", "D")


class TestRole(unittest.TestCase):
    def test_role_outside_closed_set_rejected(self) -> None:
        account = Account.new_local("A", "a@x.com", "p1-password", rounds=4)
        with self.assertRaises(ValueError):
            account.role = "owner"

    def test_redirect_path_by_role(self) -> None:
        account = Account.new_local("A", "a@x.com", "p1-password", rounds=4)
        self.assertEqual(account.redirect_path, "/dashboard")
        account.role = "admin"
        self.assertEqual(account.redirect_path, "/admin/dashboard")


if __name__ == "__main__":
    unittest.main()
