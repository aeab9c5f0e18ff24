"""Tests for the create_user script."""

import unittest
from contextlib import contextmanager
from unittest.mock import patch

from app.core.security import verify_password
from app.models.user import ROLE_ADMIN
from app.scripts import create_user
from app.services.accounts import SqlAccountStore
from tests.fakes import sqlite_session_factory


class TestCreateUser(unittest.TestCase):
    def setUp(self) -> None:
        self.factory = sqlite_session_factory()

        @contextmanager
        def scope():
            session = self.factory()
            try:
                yield session
            finally:
                session.close()

        patcher = patch.object(create_user, "session_scope", scope)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_creates_admin(self) -> None:
        code = create_user.main(["Admin@Example.com", "S3cure!pass", "Fleet Admin", "admin"])
        self.assertEqual(code, 0)
        with self.factory() as session:
            user = SqlAccountStore(session).find_by_email("admin@example.com")
            self.assertEqual(user.role, ROLE_ADMIN)
            self.assertTrue(verify_password("S3cure!pass", user.password_hash))

    def test_rejects_emails_the_login_endpoint_rejects(self) -> None:
        for email in ("admin@localhost", "no-at-sign", "two@@example.com"):
            with self.subTest(email=email):
                self.assertEqual(create_user.main([email, "S3cure!pass", "Admin", "admin"]), 1)
        with self.factory() as session:
            self.assertEqual(SqlAccountStore(session).list_accounts(), [])

    def test_weak_password(self) -> None:
        self.assertEqual(create_user.main(["a@example.com", "weak", "A"]), 1)

    def test_existing_account(self) -> None:
        self.assertEqual(create_user.main(["b@example.com", "S3cure!pass", "B"]), 0)
        self.assertEqual(create_user.main(["B@example.com", "S3cure!pass", "B"]), 1)

    def test_unknown_role_is_rejected_by_argparse(self) -> None:
        with self.assertRaises(SystemExit):
            create_user.main(["c@example.com", "S3cure!pass", "C", "superuser"])
