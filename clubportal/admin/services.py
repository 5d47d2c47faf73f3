"""Service layer for admin-related operations."""

from __future__ import annotations

import logging
from typing import Any

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import StoreError, TransitionIncompleteError, ValidationError
from clubportal.profiles.models import ApplicationStatus
from clubportal.roles.models import Role
from clubportal.roles.services import RoleService
from clubportal.store import store_errors, where

from .models import AccountSubmission

logger = logging.getLogger(__name__)


def _count(query: Any) -> int:
    return query.count().get()[0][0].value


class AdminService:
    """Service class for admin-related operations."""

    @staticmethod
    def get_overview_stats(db: Any) -> dict[str, int]:
        """Fetch dashboard counts using count aggregations."""
        with store_errors("load overview"):
            return {
                "total_profiles": _count(db.collection(constants.PROFILES)),
                "pending_applications": _count(
                    db.collection(constants.PROFILES).where(
                        filter=where(
                            "application_status", "==", ApplicationStatus.PENDING.value
                        )
                    )
                ),
                "total_groups": _count(db.collection(constants.GROUPS)),
                "total_events": _count(db.collection(constants.EVENTS)),
                "published_news": _count(
                    db.collection(constants.NEWS).where(
                        filter=where("published", "==", True)
                    )
                ),
            }

    @staticmethod
    def create_account(
        db: Any,
        identity: Any,
        name: str,
        email: str,
        password: str,
        role: Role = Role.MEMBER,
    ) -> str:
        """Create an identity, an accepted profile and one role. Returns the uid."""
        submission = AccountSubmission(name=name, email=email, password=password)
        try:
            submission.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e

        uid = identity.create_account(email, password, name.strip())
        completed = ["account created"]
        step = "create profile"
        now = utcnow()
        try:
            with store_errors("create profile"):
                db.collection(constants.PROFILES).document(uid).set(
                    {
                        "name": name.strip(),
                        "email": email,
                        "application_status": ApplicationStatus.ACCEPTED.value,
                        "created_at": now,
                        "updated_at": now,
                    }
                )
            completed.append("profile created")
            step = f"grant {role.value} role"
            RoleService.assign_role(db, uid, role)
        except StoreError as e:
            logger.error(f"Creating {email} stopped at {step}: {e.message}")
            raise TransitionIncompleteError("Create account", completed, step) from e
        logger.info(f"Created {role.value} account {uid}")
        return uid
