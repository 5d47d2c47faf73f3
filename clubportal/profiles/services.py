"""Service layer for profile reads and edits."""

from __future__ import annotations

from typing import Any, Optional

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import NotFoundError, ValidationError
from clubportal.store import decode, decode_all, store_errors

from .models import DISPLAY_FIELDS, SELF_EDITABLE_FIELDS, Profile


class ProfileService:
    """Service class for profile-related operations."""

    @staticmethod
    def get_profile(db: Any, user_id: str) -> Optional[Profile]:
        """Fetch a user's profile, or None if there is none."""
        with store_errors("load profile"):
            doc = db.collection(constants.PROFILES).document(user_id).get()
        if not doc.exists:
            return None
        return decode(Profile, doc)

    @staticmethod
    def require_profile(db: Any, user_id: str) -> Profile:
        """Fetch a user's profile or raise NotFoundError."""
        profile = ProfileService.get_profile(db, user_id)
        if profile is None:
            raise NotFoundError("Profile not found.")
        return profile

    @staticmethod
    def list_profiles(db: Any) -> list[Profile]:
        """Fetch every profile sorted by name."""
        with store_errors("load profiles"):
            profiles = decode_all(Profile, db.collection(constants.PROFILES).stream())
        return sorted(profiles, key=lambda p: p.name.lower())

    @staticmethod
    def get_profiles(db: Any, user_ids: list[str]) -> list[Profile]:
        """Fetch the profiles of ``user_ids`` that exist, sorted by name."""
        if not user_ids:
            return []
        with store_errors("load profiles"):
            refs = [db.collection(constants.PROFILES).document(u) for u in user_ids]
            snapshots = [ref.get() for ref in refs]
        return sorted(decode_all(Profile, snapshots), key=lambda p: p.name.lower())

    @staticmethod
    def _update(db: Any, user_id: str, allowed: tuple[str, ...], changes: dict[str, Any]):
        unknown = set(changes) - set(allowed)
        if unknown:
            raise ValidationError(f"Cannot edit: {', '.join(sorted(unknown))}.")
        ProfileService.require_profile(db, user_id)
        update = {k: (v or None) for k, v in changes.items()}
        if "name" in update and not update["name"]:
            raise ValidationError("Name is required.")
        update["updated_at"] = utcnow()
        with store_errors("update profile"):
            db.collection(constants.PROFILES).document(user_id).update(update)

    @staticmethod
    def update_own_profile(db: Any, user_id: str, changes: dict[str, Any]) -> None:
        """Apply a member's edits to their own profile."""
        ProfileService._update(db, user_id, SELF_EDITABLE_FIELDS, changes)

    @staticmethod
    def update_display_fields(db: Any, user_id: str, changes: dict[str, Any]) -> None:
        """Apply an admin's edits to a member's public display fields."""
        ProfileService._update(db, user_id, DISPLAY_FIELDS, changes)
