"""Data models for role assignments."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass
from typing import Any, Optional

from clubportal.core.types import read_field, read_timestamp
from clubportal.errors import SchemaError


class Role(str, enum.Enum):
    """A role a user can hold in the club."""

    ADMIN = "admin"
    MEMBER = "member"
    FOUNDER = "founder"
    EXECUTIVE = "executive"

    @classmethod
    def parse(cls, value: str) -> Role:
        """Return the role named ``value``."""
        try:
            return cls(value)
        except ValueError:
            raise SchemaError(f"Unknown role '{value}'.") from None


@dataclass(frozen=True)
class RoleAssignment:
    """A (user, role) row in the ``user_roles`` collection."""

    id: str
    user_id: str
    role: Role
    created_at: Optional[datetime.datetime] = None

    @staticmethod
    def doc_id(user_id: str, role: Role) -> str:
        """Return the document id for a (user, role) pair."""
        return f"{user_id}_{role.value}"

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> RoleAssignment:
        """Build a role assignment from a stored document."""
        return cls(
            id=doc_id,
            user_id=read_field(data, "user_id", str),
            role=Role.parse(read_field(data, "role", str)),
            created_at=read_timestamp(data, "created_at"),
        )
