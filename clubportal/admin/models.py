"""Data models for admin-only operations."""

from __future__ import annotations

from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from clubportal.core import constants


@dataclass
class AccountSubmission:
    """An admin's request to create a member or admin account."""

    name: str
    email: str
    password: str

    def validate(self) -> None:
        """Validate the submission before anything is sent out."""
        name = (self.name or "").strip()
        if not name or len(name) > constants.NAME_MAX_LENGTH:
            raise ValueError("Name must be between 1 and 100 characters.")
        if not self.email or len(self.email) > constants.EMAIL_MAX_LENGTH:
            raise ValueError("Email must be at most 255 characters.")
        try:
            validate_email(self.email, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError("Invalid email address.") from e
        if not (
            constants.PASSWORD_MIN_LENGTH
            <= len(self.password or "")
            <= constants.PASSWORD_MAX_LENGTH
        ):
            raise ValueError("Password must be between 6 and 100 characters.")
