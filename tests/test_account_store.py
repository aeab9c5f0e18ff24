"""Integration tests for SqlAccountStore on an in-memory SQLite database."""

import unittest

from app.core.exceptions import Conflict, NotFound
from app.models.user import ROLE_DRIVER, ROLE_USER
from app.services.accounts import SqlAccountStore
from tests.fakes import sqlite_session_factory


class SqlAccountStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.factory = sqlite_session_factory()
        self.session = self.factory()
        self.store = SqlAccountStore(self.session)
        self.user = self.store.create(
            email=" Dana@Example.com",
            password_hash="hash",
            name=" Dana ",
        )

    def tearDown(self) -> None:
        self.session.close()


class TestCreateAndFind(SqlAccountStoreTestCase):
    def test_normalizes_email_and_name(self) -> None:
        self.assertEqual(self.user.email, "dana@example.com")
        self.assertEqual(self.user.name, "Dana")
        self.assertEqual(self.user.role, ROLE_USER)
        self.assertIsNone(self.user.refresh_token_hash)

    def test_find_by_email_is_case_insensitive(self) -> None:
        found = self.store.find_by_email("DANA@example.COM")
        self.assertIsNotNone(found)
        self.assertEqual(found.id, self.user.id)

    def test_duplicate_email(self) -> None:
        with self.assertRaises(Conflict):
            self.store.create(email="dana@example.com", password_hash="h", name="Other")
        # Session is usable after the rollback.
        self.assertEqual(len(self.store.list_accounts()), 1)

    def test_update_role_unknown_account(self) -> None:
        with self.assertRaises(NotFound):
            self.store.update_role(999, ROLE_DRIVER)

    def test_update_profile_email_collision(self) -> None:
        other = self.store.create(email="erin@example.com", password_hash="h", name="Erin")
        with self.assertRaises(Conflict):
            self.store.update_profile(other.id, email="dana@example.com")


class TestUpdateFingerprint(SqlAccountStoreTestCase):
    def test_unconditional_write(self) -> None:
        self.assertTrue(self.store.update_fingerprint(self.user.id, "a" * 64))
        self.assertEqual(self.store.find_by_id(self.user.id).refresh_token_hash, "a" * 64)

    def test_unknown_account(self) -> None:
        self.assertFalse(self.store.update_fingerprint(999, "a" * 64))

    def test_compare_and_swap(self) -> None:
        self.store.update_fingerprint(self.user.id, "a" * 64)
        self.assertFalse(self.store.update_fingerprint(self.user.id, None, expected="b" * 64))
        self.assertEqual(self.store.find_by_id(self.user.id).refresh_token_hash, "a" * 64)
        self.assertTrue(self.store.update_fingerprint(self.user.id, None, expected="a" * 64))
        self.assertIsNone(self.store.find_by_id(self.user.id).refresh_token_hash)

    def test_expected_none(self) -> None:
        self.assertTrue(self.store.update_fingerprint(self.user.id, "c" * 64, expected=None))
        self.assertFalse(self.store.update_fingerprint(self.user.id, "d" * 64, expected=None))

    def test_second_session_loses_the_swap(self) -> None:
        self.store.update_fingerprint(self.user.id, "a" * 64)
        other_session = self.factory()
        try:
            other = SqlAccountStore(other_session)
            # Both sessions saw the same fingerprint; only the first swap lands.
            self.assertEqual(other.find_by_id(self.user.id).refresh_token_hash, "a" * 64)
            self.assertTrue(self.store.update_fingerprint(self.user.id, None, expected="a" * 64))
            self.assertFalse(other.update_fingerprint(self.user.id, None, expected="a" * 64))
        finally:
            other_session.close()
