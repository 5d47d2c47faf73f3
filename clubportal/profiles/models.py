"""Data models for member profiles."""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass
from typing import Any, Optional

from clubportal.core.types import read_field, read_timestamp
from clubportal.errors import SchemaError


class ApplicationStatus(str, enum.Enum):
    """Lifecycle state of a membership application."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: str) -> ApplicationStatus:
        """Return the status named ``value``."""
        try:
            return cls(value)
        except ValueError:
            raise SchemaError(f"Unknown application status '{value}'.") from None


# Fields a member may edit on their own profile.
SELF_EDITABLE_FIELDS = ("name", "major", "bio")
# Public display fields maintained by admins.
DISPLAY_FIELDS = ("image", "description", "linkedin_url", "instagram_url")


@dataclass
class Profile:
    """One profile per user identity, with the embedded application."""

    id: str
    name: str
    email: str
    major: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    linkedin_url: Optional[str] = None
    instagram_url: Optional[str] = None
    application_status: ApplicationStatus = ApplicationStatus.PENDING
    application_interview_date: Optional[str] = None
    application_interview_location: Optional[str] = None
    application_notes: Optional[str] = None
    application_reason: Optional[str] = None
    application_submitted_at: Optional[datetime.datetime] = None
    created_at: Optional[datetime.datetime] = None

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> Profile:
        """Build a profile from a stored document."""
        status = read_field(
            data, "application_status", str, default=ApplicationStatus.PENDING.value
        )
        return cls(
            id=doc_id,
            name=read_field(data, "name", str),
            email=read_field(data, "email", str),
            major=read_field(data, "major", str, default=None),
            bio=read_field(data, "bio", str, default=None),
            image=read_field(data, "image", str, default=None),
            description=read_field(data, "description", str, default=None),
            linkedin_url=read_field(data, "linkedin_url", str, default=None),
            instagram_url=read_field(data, "instagram_url", str, default=None),
            application_status=ApplicationStatus.parse(status),
            application_interview_date=read_field(
                data, "application_interview_date", str, default=None
            ),
            application_interview_location=read_field(
                data, "application_interview_location", str, default=None
            ),
            application_notes=read_field(data, "application_notes", str, default=None),
            application_reason=read_field(
                data, "application_reason", str, default=None
            ),
            application_submitted_at=read_timestamp(data, "application_submitted_at"),
            created_at=read_timestamp(data, "created_at"),
        )

    @property
    def first_name(self) -> str:
        """Return the first word of the name."""
        parts = self.name.split()
        return parts[0] if parts else ""
