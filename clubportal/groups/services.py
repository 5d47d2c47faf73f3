"""Service layer for groups and group memberships."""

from __future__ import annotations

import logging
import random
from typing import Any, Optional

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import NotFoundError, ValidationError
from clubportal.profiles.services import ProfileService
from clubportal.store import decode, decode_all, store_errors, where

from .models import Group, GroupMembership

logger = logging.getLogger(__name__)


class GroupService:
    """Service class for group-related operations."""

    @staticmethod
    def list_groups(db: Any) -> list[Group]:
        """Fetch every group sorted by name."""
        with store_errors("load groups"):
            groups = decode_all(Group, db.collection(constants.GROUPS).stream())
        return sorted(groups, key=lambda g: g.name.lower())

    @staticmethod
    def get_group(db: Any, group_id: str) -> Group:
        """Fetch a single group."""
        with store_errors("load group"):
            doc = db.collection(constants.GROUPS).document(group_id).get()
        if not doc.exists:
            raise NotFoundError("Group not found.")
        return decode(Group, doc)

    @staticmethod
    def list_groups_with_members(db: Any) -> list[Group]:
        """Fetch every group with its members' profiles attached."""
        groups = GroupService.list_groups(db)
        for group in groups:
            member_ids = [m.user_id for m in GroupService.memberships_of_group(db, group.id)]
            group.members = ProfileService.get_profiles(db, member_ids)
        return groups

    @staticmethod
    def create_group(db: Any, name: str, description: Optional[str] = None) -> str:
        """Create a group and return its id."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required.")
        with store_errors("create group"):
            _, ref = db.collection(constants.GROUPS).add(
                {"name": name, "description": description or None, "created_at": utcnow()}
            )
        return ref.id

    @staticmethod
    def delete_group(db: Any, group_id: str) -> None:
        """Delete a group after removing its memberships."""
        GroupService.get_group(db, group_id)
        with store_errors("delete group"):
            for membership in GroupService.memberships_of_group(db, group_id):
                db.collection(constants.MEMBER_GROUPS).document(membership.id).delete()
            db.collection(constants.GROUPS).document(group_id).delete()

    @staticmethod
    def memberships_of_group(db: Any, group_id: str) -> list[GroupMembership]:
        """Fetch the membership rows of a group."""
        with store_errors("load group members"):
            docs = (
                db.collection(constants.MEMBER_GROUPS)
                .where(filter=where("group_id", "==", group_id))
                .stream()
            )
            return decode_all(GroupMembership, docs)

    @staticmethod
    def memberships_of_user(db: Any, user_id: str) -> list[GroupMembership]:
        """Fetch the membership rows of a user."""
        with store_errors("load groups"):
            docs = (
                db.collection(constants.MEMBER_GROUPS)
                .where(filter=where("user_id", "==", user_id))
                .stream()
            )
            return decode_all(GroupMembership, docs)

    @staticmethod
    def groups_of_user(db: Any, user_id: str) -> list[Group]:
        """Fetch the groups a user belongs to."""
        groups = []
        for membership in GroupService.memberships_of_user(db, user_id):
            try:
                groups.append(GroupService.get_group(db, membership.group_id))
            except NotFoundError:
                logger.warning(f"Membership {membership.id} points at a missing group")
        return sorted(groups, key=lambda g: g.name.lower())

    @staticmethod
    def add_member(db: Any, group_id: str, user_id: str) -> None:
        """Add a user to a group. Adding twice is a no-op."""
        GroupService.get_group(db, group_id)
        with store_errors("add member to group"):
            db.collection(constants.MEMBER_GROUPS).document(
                GroupMembership.doc_id(group_id, user_id)
            ).set({"group_id": group_id, "user_id": user_id, "joined_at": utcnow()})

    @staticmethod
    def remove_member_from_all(db: Any, user_id: str) -> int:
        """Remove a user from every group. Returns how many rows went."""
        memberships = GroupService.memberships_of_user(db, user_id)
        with store_errors("remove member from groups"):
            for membership in memberships:
                db.collection(constants.MEMBER_GROUPS).document(membership.id).delete()
        return len(memberships)

    @staticmethod
    def shuffle_members(
        db: Any, member_ids: list[str], group_count: Optional[int] = None
    ) -> dict[str, list[str]]:
        """Clear all memberships and deal members evenly across groups.

        Only the first ``group_count`` groups (by name) receive members.
        """
        groups = GroupService.list_groups(db)
        if group_count is not None:
            groups = groups[: max(group_count, 0)]
        if (
            len(groups) < constants.MIN_GROUPS_TO_SHUFFLE
            or len(member_ids) < constants.MIN_MEMBERS_TO_SHUFFLE
        ):
            raise ValidationError(
                "Need at least 2 groups and 2 members to shuffle."
            )

        with store_errors("clear group assignments"):
            for doc in db.collection(constants.MEMBER_GROUPS).stream():
                if doc.exists:
                    db.collection(constants.MEMBER_GROUPS).document(doc.id).delete()

        shuffled = list(member_ids)
        random.shuffle(shuffled)  # nosec B311
        assignment: dict[str, list[str]] = {g.id: [] for g in groups}
        for index, user_id in enumerate(shuffled):
            group = groups[index % len(groups)]
            GroupService.add_member(db, group.id, user_id)
            assignment[group.id].append(user_id)
        return assignment
