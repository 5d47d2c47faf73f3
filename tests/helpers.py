"""Shared fixtures for service and route tests."""

from __future__ import annotations

import unittest
from typing import Iterable
from unittest.mock import patch

from mockfirestore import MockFirestore

from clubportal import create_app
from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.roles.models import Role, RoleAssignment
from tests.conftest import patch_mockfirestore
from tests.mock_utils import FakeAuthDirectory

TEST_PASSWORD = "Password123!"  # nosec


def add_profile(db, user_id, name, email=None, status="accepted", **fields):
    """Store a profile document."""
    now = utcnow()
    db.collection(constants.PROFILES).document(user_id).set(
        {
            "name": name,
            "email": email or f"{user_id}@example.com",
            "application_status": status,
            "created_at": now,
            **fields,
        }
    )


def add_roles(db, user_id, roles: Iterable[Role]):
    """Store role assignments for a user."""
    for role in roles:
        db.collection(constants.USER_ROLES).document(
            RoleAssignment.doc_id(user_id, role)
        ).set({"user_id": user_id, "role": role.value, "created_at": utcnow()})


def role_rows(db, user_id):
    """The stored role names of a user."""
    return sorted(
        doc.to_dict()["role"]
        for doc in db.collection(constants.USER_ROLES).stream()
        if doc.exists and doc.to_dict().get("user_id") == user_id
    )


def membership_rows(db, user_id):
    return [
        doc.id
        for doc in db.collection(constants.MEMBER_GROUPS).stream()
        if doc.exists and doc.to_dict().get("user_id") == user_id
    ]


class FirestoreTestCase(unittest.TestCase):
    """A test case with a patched in-memory Firestore."""

    def setUp(self) -> None:
        patch_mockfirestore()
        self.db = MockFirestore()


class AppTestCase(FirestoreTestCase):
    """A test case with an app wired to mockfirestore and a fake identity provider."""

    def setUp(self) -> None:
        super().setUp()
        self.directory = FakeAuthDirectory()

        patcher = patch("firebase_admin.firestore.client", return_value=self.db)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.app = create_app(
            {
                "TESTING": True,
                "WTF_CSRF_ENABLED": False,
                "SERVER_NAME": "localhost",
                "IDENTITY_PROVIDER_FACTORY": self.directory.provider,
            }
        )
        self.client = self.app.test_client()

    def create_user(
        self,
        email,
        name="Test User",
        roles=(Role.MEMBER,),
        status="accepted",
        password=TEST_PASSWORD,
    ):
        """Create an account, its profile and its roles. Returns the uid."""
        uid = self.directory.add(email, password, {"name": name})
        add_profile(self.db, uid, name, email=email, status=status)
        add_roles(self.db, uid, roles)
        return uid

    def create_admin(self, email="admin@example.com", name="Admin User"):
        return self.create_user(email, name=name, roles=(Role.ADMIN,))

    def login(self, email, password=TEST_PASSWORD, follow_redirects=False):
        return self.client.post(
            "/auth/login",
            data={"email": email, "password": password},
            follow_redirects=follow_redirects,
        )

    def sign_in_as(self, uid):
        """Put a session for ``uid`` in the cookie without going through login."""
        with self.client.session_transaction() as sess:
            sess[constants.SESSION_USER_ID] = uid
            sess[constants.SESSION_ID_TOKEN] = f"token-{uid}"

    def flashed(self):
        """Messages flashed so far and not yet rendered."""
        with self.client.session_transaction() as sess:
            return [message for _, message in sess.get("_flashes", [])]
