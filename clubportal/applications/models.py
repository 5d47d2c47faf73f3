"""Data models for membership applications."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from clubportal.core import constants
from clubportal.profiles.models import ApplicationStatus, Profile


@dataclass
class ApplicationSubmission:
    """What an applicant sends from the apply form."""

    name: str
    email: str
    reason: str
    major: Optional[str] = None

    def validate(self) -> None:
        """Validate the submission for obvious errors."""
        if not self.name.strip():
            raise ValueError("Name is required.")
        if len(self.name) > constants.NAME_MAX_LENGTH:
            raise ValueError("Name must be less than 100 characters.")
        if len(self.email) > constants.EMAIL_MAX_LENGTH:
            raise ValueError("Invalid email address.")
        try:
            validate_email(self.email, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError("Invalid email address.") from e
        if not self.reason.strip():
            raise ValueError("Please tell us why you want to join.")


@dataclass
class ApplicationUpdate:
    """An admin's edit of an application."""

    status: Optional[ApplicationStatus] = None
    interview_date: Optional[str] = None
    interview_location: Optional[str] = None
    notes: Optional[str] = None

    def validate(self) -> None:
        """Validate the update for obvious errors."""
        if self.interview_date:
            try:
                datetime.datetime.fromisoformat(self.interview_date)
            except ValueError:
                raise ValueError("Interview date must be an ISO date.") from None
        if (
            self.interview_location
            and len(self.interview_location) > constants.INTERVIEW_LOCATION_MAX_LENGTH
        ):
            raise ValueError("Interview location must be at most 500 characters.")
        if self.notes and len(self.notes) > constants.NOTES_MAX_LENGTH:
            raise ValueError("Notes must be at most 2000 characters.")


@dataclass(frozen=True)
class ApplicationView:
    """The applicant-facing view of an application; internal notes excluded."""

    status: ApplicationStatus
    interview_date: Optional[str]
    interview_location: Optional[str]
    submitted_at: Optional[datetime.datetime]

    @classmethod
    def from_profile(cls, profile: Profile) -> ApplicationView:
        """Project a profile onto the applicant-facing view."""
        return cls(
            status=profile.application_status,
            interview_date=profile.application_interview_date,
            interview_location=profile.application_interview_location,
            submitted_at=profile.application_submitted_at,
        )
