"""Data models for public content and site settings."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass
from typing import Any, Optional

from clubportal.core.types import read_field, read_timestamp
from clubportal.errors import SchemaError


class ProjectStatus(str, enum.Enum):
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, value: str) -> ProjectStatus:
        try:
            return cls(value)
        except ValueError:
            raise SchemaError(f"Unknown project status '{value}'.") from None


@dataclass
class NewsItem:
    id: str
    title: str
    content: str
    published: bool = False
    image_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime.datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> NewsItem:
        return cls(
            id=doc_id,
            title=read_field(data, "title", str),
            content=read_field(data, "content", str),
            published=read_field(data, "published", bool, default=False),
            image_url=read_field(data, "image_url", str, default=None),
            created_by=read_field(data, "created_by", str, default=None),
            created_at=read_timestamp(data, "created_at"),
        )


@dataclass
class Event:
    id: str
    title: str
    event_date: str
    description: Optional[str] = None
    location: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime.datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Event:
        return cls(
            id=doc_id,
            title=read_field(data, "title", str),
            event_date=read_field(data, "event_date", str),
            description=read_field(data, "description", str, default=None),
            location=read_field(data, "location", str, default=None),
            created_by=read_field(data, "created_by", str, default=None),
            created_at=read_timestamp(data, "created_at"),
        )


@dataclass
class Project:
    id: str
    title: str
    description: str
    status: ProjectStatus = ProjectStatus.IN_PROGRESS
    image: Optional[str] = None
    created_at: Optional[datetime.datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Project:
        status = read_field(data, "status", str, default=ProjectStatus.IN_PROGRESS.value)
        return cls(
            id=doc_id,
            title=read_field(data, "title", str),
            description=read_field(data, "description", str, default=""),
            status=ProjectStatus.parse(status),
            image=read_field(data, "image", str, default=None),
            created_at=read_timestamp(data, "created_at"),
        )


@dataclass
class Announcement:
    id: str
    content: str
    created_at: Optional[datetime.datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Announcement:
        return cls(
            id=doc_id,
            content=read_field(data, "content", str),
            created_at=read_timestamp(data, "created_at"),
        )
