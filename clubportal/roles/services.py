"""Service layer for role assignments.

All writes to ``user_roles`` go through :class:`RoleService` so the
last-admin rule is checked in one place.
"""

from __future__ import annotations

import logging
from typing import Any

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import LastAdminError, NotFoundError
from clubportal.store import decode_all, store_errors, where

from .models import Role, RoleAssignment

logger = logging.getLogger(__name__)


class RoleService:
    """Service class for role-related operations."""

    @staticmethod
    def get_assignments(db: Any, user_id: str) -> list[RoleAssignment]:
        """Fetch every role assignment held by a user."""
        with store_errors("load roles"):
            docs = (
                db.collection(constants.USER_ROLES)
                .where(filter=where("user_id", "==", user_id))
                .stream()
            )
            return decode_all(RoleAssignment, docs)

    @staticmethod
    def get_roles(db: Any, user_id: str) -> list[Role]:
        """Fetch the roles held by a user."""
        return [a.role for a in RoleService.get_assignments(db, user_id)]

    @staticmethod
    def list_assignments(db: Any) -> list[RoleAssignment]:
        """Fetch every role assignment, newest first."""
        with store_errors("load roles"):
            assignments = decode_all(
                RoleAssignment, db.collection(constants.USER_ROLES).stream()
            )
        return sorted(
            assignments,
            key=lambda a: (a.created_at is not None, a.created_at),
            reverse=True,
        )

    @staticmethod
    def list_admin_ids(db: Any) -> list[str]:
        """Return the user ids holding the admin role."""
        with store_errors("load admins"):
            docs = (
                db.collection(constants.USER_ROLES)
                .where(filter=where("role", "==", Role.ADMIN.value))
                .stream()
            )
            return [a.user_id for a in decode_all(RoleAssignment, docs)]

    @staticmethod
    def count_admins(db: Any) -> int:
        """Count admin role assignments system-wide."""
        return len(RoleService.list_admin_ids(db))

    @staticmethod
    def assign_role(db: Any, user_id: str, role: Role) -> bool:
        """Grant ``role`` to a user. Returns False if it was already held."""
        ref = db.collection(constants.USER_ROLES).document(
            RoleAssignment.doc_id(user_id, role)
        )
        with store_errors("assign role"):
            if ref.get().exists:
                return False
            ref.set(
                {"user_id": user_id, "role": role.value, "created_at": utcnow()}
            )
        logger.info(f"Granted role {role.value} to {user_id}")
        return True

    @staticmethod
    def ensure_admin_survives(db: Any, removing: list[RoleAssignment]) -> None:
        """Raise LastAdminError if removing these rows leaves no admin."""
        admins_removed = {a.user_id for a in removing if a.role is Role.ADMIN}
        if not admins_removed:
            return
        remaining = set(RoleService.list_admin_ids(db)) - admins_removed
        if not remaining:
            logger.warning(f"Refused to remove the last admin ({admins_removed})")
            raise LastAdminError()

    @staticmethod
    def remove_role(db: Any, user_id: str, role: Role) -> None:
        """Revoke a single role from a user."""
        ref = db.collection(constants.USER_ROLES).document(
            RoleAssignment.doc_id(user_id, role)
        )
        with store_errors("remove role"):
            if not ref.get().exists:
                raise NotFoundError("Role assignment not found.")
        RoleService.ensure_admin_survives(
            db, [RoleAssignment(id=ref.id, user_id=user_id, role=role)]
        )
        with store_errors("remove role"):
            ref.delete()
        logger.info(f"Revoked role {role.value} from {user_id}")

    @staticmethod
    def change_role(db: Any, user_id: str, old_role: Role, new_role: Role) -> None:
        """Replace one role of a user with another."""
        if old_role is new_role:
            return
        if old_role not in RoleService.get_roles(db, user_id):
            raise NotFoundError("Role assignment not found.")
        RoleService.ensure_admin_survives(
            db,
            [
                RoleAssignment(
                    id=RoleAssignment.doc_id(user_id, old_role),
                    user_id=user_id,
                    role=old_role,
                )
            ],
        )
        RoleService.assign_role(db, user_id, new_role)
        with store_errors("change role"):
            db.collection(constants.USER_ROLES).document(
                RoleAssignment.doc_id(user_id, old_role)
            ).delete()
        logger.info(f"Changed role of {user_id} from {old_role.value} to {new_role.value}")

    @staticmethod
    def revoke_all_roles(db: Any, user_id: str) -> int:
        """Delete every role assignment of a user. Returns how many went."""
        assignments = RoleService.get_assignments(db, user_id)
        RoleService.ensure_admin_survives(db, assignments)
        with store_errors("revoke roles"):
            for assignment in assignments:
                db.collection(constants.USER_ROLES).document(assignment.id).delete()
        if assignments:
            logger.info(f"Revoked {len(assignments)} role(s) from {user_id}")
        return len(assignments)
