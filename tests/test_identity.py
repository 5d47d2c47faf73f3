"""Tests for the Firebase identity provider adapter."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

import requests
from firebase_admin import auth, exceptions

from clubportal.auth.identity import (
    REFRESH_URL,
    SIGN_IN_URL,
    AuthEvent,
    FirebaseIdentityProvider,
)
from clubportal.core import constants
from clubportal.errors import (
    AccessDenied,
    AppError,
    DuplicateResourceError,
    InvalidCredentialsError,
)


def _response(payload, ok=True):
    response = MagicMock()
    response.ok = ok
    response.status_code = 200 if ok else 400
    response.json.return_value = payload
    return response


SIGN_IN_PAYLOAD = {
    "localId": "uid1",
    "email": "ada@example.com",
    "idToken": "id-1",
    "refreshToken": "refresh-1",
}


class TestFirebaseIdentityProvider(unittest.TestCase):
    def setUp(self) -> None:
        self.storage: dict = {}
        self.provider = FirebaseIdentityProvider("api-key", self.storage, timeout=5)
        self.events: list = []
        self.provider.on_auth_state_change(lambda e, s: self.events.append((e, s)))

        patchers = {
            "post": patch("requests.post"),
            "verify": patch.object(auth, "verify_id_token"),
            "create_user": patch.object(auth, "create_user"),
            "claims": patch.object(auth, "set_custom_user_claims"),
            "revoke": patch.object(auth, "revoke_refresh_tokens"),
            "verify_link": patch.object(auth, "generate_email_verification_link"),
            "reset_link": patch.object(auth, "generate_password_reset_link"),
            "update_user": patch.object(auth, "update_user"),
            "delete_user": patch.object(auth, "delete_user"),
            "send_email": patch("clubportal.auth.identity.send_email"),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

    def _sign_in(self):
        self.mocks["post"].return_value = _response(SIGN_IN_PAYLOAD)
        return self.provider.sign_in("ada@example.com", "secret1")

    def test_sign_in_stores_session_and_emits(self) -> None:
        session = self._sign_in()
        self.assertEqual(session.user.uid, "uid1")
        self.assertEqual(self.storage[constants.SESSION_ID_TOKEN], "id-1")
        self.assertEqual(self.storage[constants.SESSION_REFRESH_TOKEN], "refresh-1")
        self.assertEqual(self.events, [(AuthEvent.SIGNED_IN, session)])
        args, kwargs = self.mocks["post"].call_args
        self.assertEqual(args[0], SIGN_IN_URL)
        self.assertEqual(kwargs["params"], {"key": "api-key"})
        self.assertEqual(kwargs["timeout"], 5)

    def test_sign_in_bad_credentials(self) -> None:
        self.mocks["post"].return_value = _response(
            {"error": {"message": "INVALID_LOGIN_CREDENTIALS"}}, ok=False
        )
        with self.assertRaises(InvalidCredentialsError):
            self.provider.sign_in("ada@example.com", "wrong")
        self.assertEqual(self.storage, {})
        self.assertEqual(self.events, [])

    def test_sign_in_network_failure(self) -> None:
        self.mocks["post"].side_effect = requests.ConnectionError("offline")
        with self.assertRaises(AppError) as cm:
            self.provider.sign_in("ada@example.com", "secret1")
        self.assertEqual(cm.exception.status_code, 503)

    def test_get_session_without_token(self) -> None:
        self.assertIsNone(self.provider.get_session())
        self.mocks["verify"].assert_not_called()

    def test_get_session_verifies_token(self) -> None:
        self._sign_in()
        self.mocks["verify"].return_value = {
            "uid": "uid1",
            "email": "ada@example.com",
            "profile": {"name": "Ada"},
        }
        session = self.provider.get_session()
        self.assertEqual(session.user.metadata, {"name": "Ada"})
        self.mocks["verify"].assert_called_with("id-1", check_revoked=True)

    def test_expired_token_is_refreshed_once(self) -> None:
        self._sign_in()
        self.mocks["verify"].side_effect = [
            auth.ExpiredIdTokenError("expired", None),
            {"uid": "uid1", "email": "ada@example.com"},
        ]
        self.mocks["post"].return_value = _response(
            {"id_token": "id-2", "refresh_token": "refresh-2"}
        )
        session = self.provider.get_session()
        self.assertEqual(session.id_token, "id-2")
        self.assertEqual(self.storage[constants.SESSION_ID_TOKEN], "id-2")
        self.assertEqual(self.mocks["post"].call_args[0][0], REFRESH_URL)
        self.assertEqual(self.events[-1][0], AuthEvent.TOKEN_REFRESHED)

    def test_revoked_token_clears_session(self) -> None:
        self._sign_in()
        self.mocks["verify"].side_effect = auth.RevokedIdTokenError("revoked")
        self.assertIsNone(self.provider.get_session())
        self.assertNotIn(constants.SESSION_ID_TOKEN, self.storage)

    def test_sign_out_revokes_and_clears(self) -> None:
        self._sign_in()
        self.provider.sign_out()
        self.mocks["revoke"].assert_called_once_with("uid1")
        self.assertEqual(self.storage, {})
        self.assertEqual(self.events[-1], (AuthEvent.SIGNED_OUT, None))

    def test_sign_up_keeps_metadata_as_claims(self) -> None:
        self.mocks["create_user"].return_value = MagicMock(uid="new")
        self.mocks["verify_link"].return_value = "https://verify"
        user = self.provider.sign_up(
            "grace@example.com", "secret1", {"name": "Grace", "major": None}
        )
        self.assertEqual(user.uid, "new")
        self.mocks["claims"].assert_called_once_with("new", {"profile": {"name": "Grace"}})
        self.mocks["send_email"].assert_called_once()
        self.assertEqual(self.storage, {})

    def test_sign_up_duplicate_email(self) -> None:
        self.mocks["create_user"].side_effect = auth.EmailAlreadyExistsError(
            "taken", None, None
        )
        with self.assertRaises(DuplicateResourceError):
            self.provider.sign_up("grace@example.com", "secret1", {"name": "Grace"})

    def test_reset_password_for_unknown_email_is_silent(self) -> None:
        self.mocks["reset_link"].side_effect = auth.UserNotFoundError("nobody")
        self.provider.reset_password_for_email("nobody@example.com", None)
        self.mocks["send_email"].assert_not_called()

    def test_reset_password_sends_link(self) -> None:
        self.mocks["reset_link"].return_value = "https://reset"
        self.provider.reset_password_for_email("ada@example.com", "https://club/login")
        kwargs = self.mocks["send_email"].call_args.kwargs
        self.assertEqual(kwargs["to"], "ada@example.com")
        self.assertEqual(kwargs["reset_link"], "https://reset")

    def test_update_user_requires_session(self) -> None:
        with self.assertRaises(AccessDenied):
            self.provider.update_user("newpass1")

    def test_update_user(self) -> None:
        self._sign_in()
        self.mocks["verify"].return_value = {"uid": "uid1"}
        self.provider.update_user("newpass1")
        self.mocks["update_user"].assert_called_once_with("uid1", password="newpass1")
        self.assertEqual(self.events[-1][0], AuthEvent.USER_UPDATED)

    def test_create_account_is_verified(self) -> None:
        self.mocks["create_user"].return_value = MagicMock(uid="made")
        uid = self.provider.create_account("m@example.com", "secret1", "Made")
        self.assertEqual(uid, "made")
        self.assertTrue(self.mocks["create_user"].call_args.kwargs["email_verified"])

    def test_delete_account(self) -> None:
        self.provider.delete_account("uid1")
        self.mocks["delete_user"].assert_called_once_with("uid1")

    def test_delete_missing_account_is_ignored(self) -> None:
        self.mocks["delete_user"].side_effect = auth.UserNotFoundError("gone")
        self.provider.delete_account("uid1")

    def test_delete_account_failure(self) -> None:
        self.mocks["delete_user"].side_effect = exceptions.UnavailableError("down")
        with self.assertRaises(AppError):
            self.provider.delete_account("uid1")

    def test_unsubscribe(self) -> None:
        provider = FirebaseIdentityProvider("k", {})
        seen = []
        subscription = provider.on_auth_state_change(lambda e, s: seen.append(e))
        subscription.unsubscribe()
        subscription.unsubscribe()
        provider.sign_out()
        self.assertEqual(seen, [])
