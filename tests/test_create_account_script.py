"""Unit tests for the create_account script."""

import unittest
from unittest.mock import patch

from app.core.security import verify_password
from app.models.account import Account
from app.scripts import create_account
from tests.support import make_session_factory


class TestCreateAccountScript(unittest.TestCase):
    def setUp(self) -> None:
        self.SessionLocal = make_session_factory()
        patcher = patch.object(create_account, "SessionLocal", self.SessionLocal)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_creates_verified_admin(self) -> None:
        code = create_account.main(["Boss@X.com", "secure-pass", "Site Admin", "admin"])
        self.assertEqual(code, 0)
        with self.SessionLocal() as db:
            account = db.query(Account).one()
        self.assertEqual(account.email, "boss@x.com")
        self.assertEqual(account.role, "admin")
        self.assertTrue(account.is_email_verified)
        self.assertTrue(verify_password("secure-pass", account.password_hash))

    def test_default_role_is_user(self) -> None:
        self.assertEqual(create_account.main(["a@x.com", "secure-pass", "A"]), 0)
        with self.SessionLocal() as db:
            self.assertEqual(db.query(Account).one().role, "user")

    def test_existing_email_rejected(self) -> None:
        create_account.main(["a@x.com", "secure-pass", "A"])
        self.assertEqual(create_account.main(["A@x.com", "other-pass", "B"]), 1)
        with self.SessionLocal() as db:
            self.assertEqual(db.query(Account).count(), 1)

    def test_bad_input_rejected(self) -> None:
        self.assertEqual(create_account.main(["not-an-email", "secure-pass", "A"]), 1)
        self.assertEqual(create_account.main(["a@x.com", "short", "A"]), 1)
        self.assertEqual(create_account.main(["a@x.com", "secure-pass", "   "]), 1)
        with self.SessionLocal() as db:
            self.assertEqual(db.query(Account).count(), 0)


if __name__ == "__main__":
    unittest.main()
