"""Data models for competition robots and signups."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Optional

from clubportal.core.types import read_field, read_timestamp
from clubportal.errors import SchemaError


@dataclass
class Robot:
    """A competition robot with a fixed number of team slots."""

    id: str
    name: str
    slots: int
    description: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    signup_count: int = 0

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Robot:
        slots = read_field(data, "slots", int)
        if slots < 0:
            raise SchemaError("Field 'slots' is negative.")
        return cls(
            id=doc_id,
            name=read_field(data, "name", str),
            slots=slots,
            description=read_field(data, "description", str, default=None),
            image=read_field(data, "image", str, default=None),
            created_at=read_timestamp(data, "created_at"),
        )

    @property
    def is_full(self) -> bool:
        return self.signup_count >= self.slots

    @property
    def free_slots(self) -> int:
        return max(self.slots - self.signup_count, 0)


@dataclass(frozen=True)
class Signup:
    """A (robot, user) signup row."""

    id: str
    robot_id: str
    user_id: str
    created_at: Optional[datetime.datetime] = None

    @staticmethod
    def doc_id(robot_id: str, user_id: str) -> str:
        """Return the document id for a (robot, user) pair."""
        return f"{robot_id}_{user_id}"

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Signup:
        return cls(
            id=doc_id,
            robot_id=read_field(data, "robot_id", str),
            user_id=read_field(data, "user_id", str),
            created_at=read_timestamp(data, "created_at"),
        )
