"""Membership application lifecycle: submit, accept, reject, remove.

Each transition is a sequence of discrete writes. When a later write fails
after an earlier one succeeded, ``TransitionIncompleteError`` reports which
steps landed; nothing is retried automatically.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import StoreError, TransitionIncompleteError, ValidationError
from clubportal.groups.services import GroupService
from clubportal.profiles.models import ApplicationStatus, Profile
from clubportal.profiles.services import ProfileService
from clubportal.roles.models import Role
from clubportal.roles.services import RoleService
from clubportal.store import store_errors

from .models import ApplicationSubmission, ApplicationUpdate, ApplicationView

logger = logging.getLogger(__name__)


class ApplicationService:
    """Service class for the application state machine."""

    @staticmethod
    def submit_application(
        db: Any,
        user_id: str,
        submission: ApplicationSubmission,
        grant_member_role: bool = False,
    ) -> None:
        """Create or refresh a user's profile as a pending application.

        With ``grant_member_role`` the ``member`` role is also upserted right
        away; a failure there is logged and does not fail the submission.
        """
        try:
            submission.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        now = utcnow()
        data = {
            "name": submission.name.strip(),
            "email": submission.email.strip(),
            "major": submission.major or None,
            "application_status": ApplicationStatus.PENDING.value,
            "application_reason": submission.reason.strip(),
            "application_submitted_at": now,
            "updated_at": now,
        }
        ref = db.collection(constants.PROFILES).document(user_id)
        with store_errors("submit application"):
            if ref.get().exists:
                ref.update(data)
            else:
                ref.set({**data, "created_at": now})
        logger.info(f"Application submitted by {user_id}")

        if grant_member_role:
            try:
                RoleService.assign_role(db, user_id, Role.MEMBER)
            except StoreError as e:
                logger.warning(f"Could not grant member role to {user_id}: {e.message}")

    @staticmethod
    def _set_status(db: Any, user_id: str, status: ApplicationStatus) -> None:
        with store_errors(f"mark application {status.value}"):
            db.collection(constants.PROFILES).document(user_id).update(
                {"application_status": status.value, "updated_at": utcnow()}
            )

    @staticmethod
    def accept(db: Any, user_id: str) -> bool:
        """Accept an application. Returns True if a member role was granted.

        A user who already holds any role keeps exactly those roles.
        """
        ProfileService.require_profile(db, user_id)
        ApplicationService._set_status(db, user_id, ApplicationStatus.ACCEPTED)
        try:
            if RoleService.get_roles(db, user_id):
                granted = False
            else:
                granted = RoleService.assign_role(db, user_id, Role.MEMBER)
        except StoreError as e:
            logger.error(f"Accept of {user_id} left without a role: {e.message}")
            raise TransitionIncompleteError(
                "Accept application", ["status set to accepted"], "grant member role"
            ) from e
        logger.info(f"Application of {user_id} accepted")
        return granted

    @staticmethod
    def reject(db: Any, user_id: str) -> None:
        """Reject an application and revoke every role and group membership.

        The profile itself is kept.
        """
        ProfileService.require_profile(db, user_id)
        RoleService.ensure_admin_survives(db, RoleService.get_assignments(db, user_id))
        ApplicationService._set_status(db, user_id, ApplicationStatus.REJECTED)

        completed = ["status set to rejected"]
        step = "revoke roles"
        try:
            RoleService.revoke_all_roles(db, user_id)
            completed.append("roles revoked")
            step = "remove group memberships"
            GroupService.remove_member_from_all(db, user_id)
        except StoreError as e:
            logger.error(f"Reject of {user_id} stopped at {step}: {e.message}")
            raise TransitionIncompleteError("Reject application", completed, step) from e
        logger.info(f"Application of {user_id} rejected")

    @staticmethod
    def remove_member(db: Any, user_id: str) -> None:
        """Delete a member's roles, group memberships and profile.

        The identity provider account is left in place.
        """
        ProfileService.require_profile(db, user_id)
        RoleService.revoke_all_roles(db, user_id)

        completed = ["roles revoked"]
        step = "remove group memberships"
        try:
            GroupService.remove_member_from_all(db, user_id)
            completed.append("group memberships removed")
            step = "delete profile"
            with store_errors("delete profile"):
                db.collection(constants.PROFILES).document(user_id).delete()
        except StoreError as e:
            logger.error(f"Removal of {user_id} stopped at {step}: {e.message}")
            raise TransitionIncompleteError("Remove member", completed, step) from e
        logger.info(f"Member {user_id} removed")

    @staticmethod
    def update_application(db: Any, user_id: str, update: ApplicationUpdate) -> None:
        """Apply an admin's edit; a status change runs the matching transition."""
        try:
            update.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        profile = ProfileService.require_profile(db, user_id)
        changes = {
            "application_interview_date": update.interview_date or None,
            "application_interview_location": update.interview_location or None,
            "application_notes": update.notes or None,
            "updated_at": utcnow(),
        }
        with store_errors("update application"):
            db.collection(constants.PROFILES).document(user_id).update(changes)

        if update.status is None or update.status is profile.application_status:
            return
        if update.status is ApplicationStatus.ACCEPTED:
            ApplicationService.accept(db, user_id)
        elif update.status is ApplicationStatus.REJECTED:
            ApplicationService.reject(db, user_id)
        else:
            ApplicationService._set_status(db, user_id, ApplicationStatus.PENDING)

    @staticmethod
    def list_applications(
        db: Any, status: Optional[ApplicationStatus] = None
    ) -> list[Profile]:
        """Fetch applications, newest submission first."""
        profiles = ProfileService.list_profiles(db)
        if status is not None:
            profiles = [p for p in profiles if p.application_status is status]
        return sorted(
            profiles,
            key=lambda p: (
                p.application_submitted_at is not None,
                p.application_submitted_at,
            ),
            reverse=True,
        )

    @staticmethod
    def get_application(db: Any, user_id: str) -> Optional[ApplicationView]:
        """Return what the applicant may see of their application."""
        profile = ProfileService.get_profile(db, user_id)
        if profile is None:
            return None
        return ApplicationView.from_profile(profile)
