"""Data models for groups."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional

from clubportal.core.types import read_field, read_timestamp
from clubportal.profiles.models import Profile


@dataclass
class Group:
    """A named collection of approved members."""

    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    members: list[Profile] = field(default_factory=list)

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Group:
        """Build a group from a stored document."""
        return cls(
            id=doc_id,
            name=read_field(data, "name", str),
            description=read_field(data, "description", str, default=None),
            created_at=read_timestamp(data, "created_at"),
        )


@dataclass(frozen=True)
class GroupMembership:
    """A (group, user) join row."""

    id: str
    group_id: str
    user_id: str
    joined_at: Optional[datetime.datetime] = None

    @staticmethod
    def doc_id(group_id: str, user_id: str) -> str:
        """Return the document id for a (group, user) pair."""
        return f"{group_id}_{user_id}"

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> GroupMembership:
        """Build a membership from a stored document."""
        return cls(
            id=doc_id,
            group_id=read_field(data, "group_id", str),
            user_id=read_field(data, "user_id", str),
            joined_at=read_timestamp(data, "joined_at"),
        )
