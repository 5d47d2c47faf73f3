"""Data models for the member workspace."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Optional

from clubportal.core.types import read_field, read_timestamp


@dataclass
class Task:
    """A checklist item assigned to one member."""

    id: str
    user_id: str
    text: str
    completed: bool = False
    created_at: Optional[datetime.datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Task:
        return cls(
            id=doc_id,
            user_id=read_field(data, "user_id", str),
            text=read_field(data, "text", str),
            completed=read_field(data, "completed", bool, default=False),
            created_at=read_timestamp(data, "created_at"),
        )


@dataclass
class Certificate:
    """A named award issued to a member."""

    id: str
    user_id: str
    name: str
    issued_at: Optional[datetime.datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Certificate:
        return cls(
            id=doc_id,
            user_id=read_field(data, "user_id", str),
            name=read_field(data, "name", str),
            issued_at=read_timestamp(data, "issued_at"),
        )


@dataclass
class Presence:
    """A weekly attendance record."""

    id: str
    user_id: str
    week_date: str
    present: bool = False

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Presence:
        return cls(
            id=doc_id,
            user_id=read_field(data, "user_id", str),
            week_date=read_field(data, "week_date", str),
            present=read_field(data, "present", bool, default=False),
        )
