"""Per-request view of who is signed in and what they may do."""

from __future__ import annotations

import logging
from typing import Any, Optional

from clubportal.core import constants
from clubportal.errors import PendingApprovalError, SchemaError, StoreError
from clubportal.profiles.models import Profile
from clubportal.profiles.services import ProfileService
from clubportal.roles.models import Role
from clubportal.roles.resolver import capabilities, primary_role
from clubportal.roles.services import RoleService

from .identity import (
    AuthEvent,
    AuthSession,
    AuthUser,
    IdentityProvider,
    Subscription,
)

logger = logging.getLogger(__name__)


class SessionContext:
    """Holds the signed-in user, their profile and capability flags.

    Only the context's own operations write its state. Call :meth:`init`
    before reading it and :meth:`teardown` when done.
    """

    def __init__(self, identity: IdentityProvider, db: Any) -> None:
        self.identity = identity
        self.db = db
        self.user: Optional[AuthUser] = None
        self.profile: Optional[Profile] = None
        self.roles: list[Role] = []
        self.is_admin = False
        self.is_approved = False
        self.loading = True
        self._subscription: Optional[Subscription] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def primary_role(self) -> Role:
        return primary_role(self.roles)

    def init(self) -> None:
        """Subscribe to auth changes, then load any existing session."""
        self._subscription = self.identity.on_auth_state_change(self._on_auth_change)
        self._apply_session(self.identity.get_session())

    def teardown(self) -> None:
        """Stop listening for auth changes."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_auth_change(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        logger.debug(f"Auth state changed: {event.value}")
        if event is AuthEvent.SIGNED_OUT:
            self._clear()
            self.loading = False
            return
        self._apply_session(session)

    def _apply_session(self, session: Optional[AuthSession]) -> None:
        if session is None:
            self._clear()
            self.loading = False
            return
        self.user = session.user
        self.fetch_user_data(session.user.uid)

    def _clear(self) -> None:
        self.user = None
        self.profile = None
        self.roles = []
        self.is_admin = False
        self.is_approved = False

    def fetch_user_data(self, user_id: str) -> None:
        """Load profile and roles; on failure the previous state is kept."""
        try:
            profile = ProfileService.get_profile(self.db, user_id)
            roles = RoleService.get_roles(self.db, user_id)
        except (StoreError, SchemaError) as e:
            logger.error(f"Could not load user data for {user_id}: {e.message}")
        else:
            flags = capabilities(roles)
            self.profile = profile
            self.roles = roles
            self.is_approved = flags.is_approved
            self.is_admin = flags.is_admin
        finally:
            self.loading = False

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in, refusing accounts that hold no role yet."""
        session = self.identity.sign_in(email, password)
        try:
            roles = RoleService.get_roles(self.db, session.user.uid)
        except (StoreError, SchemaError):
            self.sign_out()
            raise
        if not roles:
            logger.warning(f"Sign-in refused for {session.user.uid}: no roles")
            self.sign_out()
            raise PendingApprovalError(constants.PENDING_APPROVAL_MESSAGE)
        return session

    def sign_up(
        self, email: str, password: str, name: str, major: Optional[str] = None
    ) -> AuthUser:
        """Create an identity; profile and roles come from the apply flow."""
        return self.identity.sign_up(email, password, {"name": name, "major": major})

    def cancel_sign_up(self, user_id: str) -> None:
        """Remove an account created by :meth:`sign_up` that was never used."""
        logger.warning(f"Removing account {user_id} after a failed application")
        self.identity.delete_account(user_id)

    def sign_out(self) -> None:
        """Sign out and clear local state immediately."""
        self.identity.sign_out()
        self._clear()
        self.loading = False
