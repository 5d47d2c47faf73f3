"""Identity provider adapter backed by Firebase Authentication.

The Admin SDK handles account management and token verification. Password
sign-in and token refresh go through the Identity Toolkit REST API, which is
what the Firebase client SDKs call under the hood.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests
from firebase_admin import auth
from firebase_admin.exceptions import FirebaseError

from clubportal.core import constants
from clubportal.errors import (
    AccessDenied,
    AppError,
    DuplicateResourceError,
    InvalidCredentialsError,
)
from clubportal.utils import EmailError, send_email

logger = logging.getLogger(__name__)

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
REFRESH_URL = "https://securetoken.googleapis.com/v1/token"  # nosec B105

_CREDENTIAL_ERRORS = frozenset(
    {
        "EMAIL_NOT_FOUND",
        "INVALID_PASSWORD",
        "INVALID_LOGIN_CREDENTIALS",
        "INVALID_EMAIL",
        "MISSING_PASSWORD",
    }
)


class AuthEvent(enum.Enum):
    """Auth state transitions announced to subscribers."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


@dataclass(frozen=True)
class AuthUser:
    """An authenticated identity."""

    uid: str
    email: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AuthSession:
    """A signed-in session and its bearer tokens."""

    user: AuthUser
    id_token: str
    refresh_token: Optional[str] = None


AuthCallback = Callable[[AuthEvent, Optional[AuthSession]], None]


class Subscription:
    """Handle returned by :meth:`IdentityProvider.on_auth_state_change`."""

    def __init__(self, listeners: list[AuthCallback], callback: AuthCallback) -> None:
        self._listeners = listeners
        self._callback = callback

    def unsubscribe(self) -> None:
        """Stop receiving auth events. Safe to call twice."""
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)


class IdentityProvider:
    """Operations the application needs from an identity provider."""

    def __init__(self) -> None:
        self._listeners: list[AuthCallback] = []

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        """Register ``callback`` for auth events."""
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        for callback in list(self._listeners):
            callback(event, session)

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> AuthUser:
        raise NotImplementedError

    def sign_in(self, email: str, password: str) -> AuthSession:
        raise NotImplementedError

    def sign_out(self) -> None:
        raise NotImplementedError

    def get_session(self) -> Optional[AuthSession]:
        raise NotImplementedError

    def reset_password_for_email(self, email: str, redirect_url: Optional[str]) -> None:
        raise NotImplementedError

    def update_user(self, password: str) -> None:
        raise NotImplementedError

    def create_account(self, email: str, password: str, display_name: str) -> str:
        raise NotImplementedError

    def delete_account(self, uid: str) -> None:
        raise NotImplementedError


class FirebaseIdentityProvider(IdentityProvider):
    """Identity provider using Firebase Authentication.

    ``storage`` holds the session tokens between requests; in the web app it
    is the Flask session.
    """

    def __init__(
        self,
        api_key: Optional[str],
        storage: MutableMapping[str, Any],
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__()
        self.api_key = api_key
        self.storage = storage
        self.timeout = timeout

    @classmethod
    def from_app(cls, app: Any, storage: MutableMapping[str, Any]) -> FirebaseIdentityProvider:
        """Build a provider from the application config."""
        if not app.config.get("FIREBASE_API_KEY"):
            logger.warning("FIREBASE_API_KEY is not set; password sign-in will fail.")
        return cls(
            app.config.get("FIREBASE_API_KEY"),
            storage,
            timeout=app.config.get("IDENTITY_REQUEST_TIMEOUT"),
        )

    # -- session storage ---------------------------------------------------

    def _store(self, session: AuthSession) -> None:
        self.storage[constants.SESSION_ID_TOKEN] = session.id_token
        self.storage[constants.SESSION_USER_ID] = session.user.uid
        if session.refresh_token:
            self.storage[constants.SESSION_REFRESH_TOKEN] = session.refresh_token

    def _clear(self) -> None:
        for key in (
            constants.SESSION_ID_TOKEN,
            constants.SESSION_REFRESH_TOKEN,
            constants.SESSION_USER_ID,
        ):
            self.storage.pop(key, None)

    @staticmethod
    def _user_from_claims(claims: dict[str, Any]) -> AuthUser:
        return AuthUser(
            uid=claims["uid"],
            email=claims.get("email"),
            metadata=dict(claims.get("profile") or {}),
        )

    def _post(self, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = requests.post(
                url, params={"key": self.api_key}, timeout=self.timeout, **kwargs
            )
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Identity provider unreachable: {e}")
            raise AppError("Could not reach the identity provider.", 503) from e
        except ValueError as e:
            raise AppError("Identity provider sent an invalid response.", 502) from e
        if not response.ok:
            code = str(payload.get("error", {}).get("message", "")).split(" ")[0]
            if code in _CREDENTIAL_ERRORS:
                raise InvalidCredentialsError()
            if code == "USER_DISABLED":
                raise InvalidCredentialsError("This account has been disabled.")
            logger.error(f"Identity provider error: {code or response.status_code}")
            raise AppError("Sign-in failed. Please try again later.", 502)
        return payload

    # -- operations --------------------------------------------------------

    def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> AuthUser:
        """Create an account; ``metadata`` is kept as custom claims."""
        profile = {k: v for k, v in metadata.items() if v}
        try:
            record = auth.create_user(
                email=email,
                password=password,
                display_name=profile.get("name"),
                email_verified=False,
            )
        except auth.EmailAlreadyExistsError as e:
            raise DuplicateResourceError("Email address is already registered.") from e
        if profile:
            auth.set_custom_user_claims(record.uid, {"profile": profile})

        try:
            verification_link = auth.generate_email_verification_link(email)
            send_email(
                to=email,
                subject="Verify Your Email",
                template="email/verify_email.html",
                name=profile.get("name", ""),
                verification_link=verification_link,
            )
        except (EmailError, FirebaseError) as e:
            logger.warning(f"Could not send verification email to {email}: {e}")
        return AuthUser(uid=record.uid, email=email, metadata=profile)

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Check credentials and start a session."""
        payload = self._post(
            SIGN_IN_URL,
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        session = AuthSession(
            user=AuthUser(uid=payload["localId"], email=payload.get("email", email)),
            id_token=payload["idToken"],
            refresh_token=payload.get("refreshToken"),
        )
        self._store(session)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def sign_out(self) -> None:
        """End the session and revoke its refresh tokens."""
        uid = self.storage.get(constants.SESSION_USER_ID)
        if uid:
            try:
                auth.revoke_refresh_tokens(uid)
            except FirebaseError as e:
                logger.warning(f"Could not revoke tokens for {uid}: {e}")
        self._clear()
        self._emit(AuthEvent.SIGNED_OUT, None)

    def get_session(self) -> Optional[AuthSession]:
        """Return the current session, refreshing an expired token once."""
        token = self.storage.get(constants.SESSION_ID_TOKEN)
        if not token:
            return None
        try:
            claims = auth.verify_id_token(token, check_revoked=True)
        except auth.ExpiredIdTokenError:
            return self._refresh()
        except (auth.InvalidIdTokenError, auth.UserDisabledError) as e:
            logger.info(f"Dropping invalid session: {e}")
            self._clear()
            return None
        except auth.CertificateFetchError as e:
            logger.error(f"Could not verify session token: {e}")
            return None
        return AuthSession(
            user=self._user_from_claims(claims),
            id_token=token,
            refresh_token=self.storage.get(constants.SESSION_REFRESH_TOKEN),
        )

    def _refresh(self) -> Optional[AuthSession]:
        refresh_token = self.storage.get(constants.SESSION_REFRESH_TOKEN)
        if not refresh_token:
            self._clear()
            return None
        try:
            payload = self._post(
                REFRESH_URL,
                data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            )
            claims = auth.verify_id_token(payload["id_token"], check_revoked=True)
        except (AppError, auth.InvalidIdTokenError, auth.UserDisabledError) as e:
            logger.info(f"Session refresh failed: {e}")
            self._clear()
            return None
        session = AuthSession(
            user=self._user_from_claims(claims),
            id_token=payload["id_token"],
            refresh_token=payload.get("refresh_token", refresh_token),
        )
        self._store(session)
        self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    def reset_password_for_email(self, email: str, redirect_url: Optional[str]) -> None:
        """Email a password reset link. Unknown addresses are ignored."""
        settings = auth.ActionCodeSettings(url=redirect_url) if redirect_url else None
        try:
            link = auth.generate_password_reset_link(email, settings)
        except auth.UserNotFoundError:
            logger.info("Password reset requested for an unknown address")
            return
        send_email(
            to=email,
            subject="Reset Your Password",
            template="email/reset_password.html",
            reset_link=link,
        )

    def update_user(self, password: str) -> None:
        """Change the signed-in user's password."""
        session = self.get_session()
        if session is None:
            raise AccessDenied("You need to be signed in.")
        auth.update_user(session.user.uid, password=password)
        self._emit(AuthEvent.USER_UPDATED, session)

    def create_account(self, email: str, password: str, display_name: str) -> str:
        """Create a verified account on behalf of an admin. Returns the uid."""
        try:
            record = auth.create_user(
                email=email,
                password=password,
                display_name=display_name,
                email_verified=True,
            )
        except auth.EmailAlreadyExistsError as e:
            raise DuplicateResourceError("Email address is already registered.") from e
        return record.uid

    def delete_account(self, uid: str) -> None:
        """Remove an account, e.g. one whose application could not be saved."""
        try:
            auth.delete_user(uid)
        except auth.UserNotFoundError:
            logger.info(f"Account {uid} was already gone")
        except FirebaseError as e:
            logger.error(f"Could not delete account {uid}: {e}")
            raise AppError("Could not remove the account.", 502) from e
        logger.info(f"Deleted account {uid}")
