"""Tests for admin account creation and overview stats."""

from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from clubportal.admin.services import AdminService
from clubportal.errors import (
    DuplicateResourceError,
    StoreError,
    TransitionIncompleteError,
    ValidationError,
)
from clubportal.profiles.services import ProfileService
from clubportal.roles.models import Role
from clubportal.roles.services import RoleService
from tests.helpers import TEST_PASSWORD, FirestoreTestCase, role_rows
from tests.mock_utils import FakeAuthDirectory, FakeIdentityProvider


class TestCreateAccount(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.directory = FakeAuthDirectory()
        self.identity = FakeIdentityProvider(self.directory, {})

    def test_creates_accepted_member(self) -> None:
        uid = AdminService.create_account(
            self.db, self.identity, " Grace ", "grace@example.com", TEST_PASSWORD
        )
        profile = ProfileService.get_profile(self.db, uid)
        self.assertEqual(profile.name, "Grace")
        self.assertEqual(profile.application_status.value, "accepted")
        self.assertEqual(role_rows(self.db, uid), ["member"])

    def test_creates_admin(self) -> None:
        uid = AdminService.create_account(
            self.db,
            self.identity,
            "Root",
            "root@example.com",
            TEST_PASSWORD,
            role=Role.ADMIN,
        )
        self.assertEqual(role_rows(self.db, uid), ["admin"])

    def test_invalid_input_creates_nothing(self) -> None:
        bad = [
            ("", "a@example.com", TEST_PASSWORD),
            ("Ada", "not-an-email", TEST_PASSWORD),
            ("Ada", "a@example.com", "12345"),
        ]
        for name, email, password in bad:
            with self.assertRaises(ValidationError):
                AdminService.create_account(self.db, self.identity, name, email, password)
        self.assertEqual(self.directory.accounts, {})

    def test_duplicate_email(self) -> None:
        self.directory.add("grace@example.com", TEST_PASSWORD)
        with self.assertRaises(DuplicateResourceError):
            AdminService.create_account(
                self.db, self.identity, "Grace", "grace@example.com", TEST_PASSWORD
            )

    def test_role_failure_reports_completed_steps(self) -> None:
        with patch.object(
            RoleService, "assign_role", side_effect=StoreError("assign role")
        ):
            with self.assertRaises(TransitionIncompleteError) as cm:
                AdminService.create_account(
                    self.db, self.identity, "Grace", "grace@example.com", TEST_PASSWORD
                )
        error = cm.exception
        self.assertEqual(error.completed_steps, ["account created", "profile created"])
        self.assertEqual(error.failed_step, "grant member role")


class TestOverviewStats(unittest.TestCase):
    def test_counts(self) -> None:
        db = MagicMock()
        collection = db.collection.return_value
        collection.count.return_value.get.return_value = [[SimpleNamespace(value=7)]]
        collection.where.return_value.count.return_value.get.return_value = [
            [SimpleNamespace(value=2)]
        ]
        stats = AdminService.get_overview_stats(db)
        self.assertEqual(
            stats,
            {
                "total_profiles": 7,
                "pending_applications": 2,
                "total_groups": 7,
                "total_events": 7,
                "published_news": 2,
            },
        )
