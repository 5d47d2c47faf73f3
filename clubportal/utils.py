"""Utility functions for the application."""

import smtplib

from flask import current_app, flash, render_template
from flask_mail import Message

from .errors import StoreError
from .extensions import mail


class EmailError(Exception):
    """Raised when an outgoing email cannot be delivered."""


def send_email(to, subject, template, **kwargs):
    """Render ``template`` and mail it to ``to``.

    Raises:
        EmailError: If sending the email fails.
    """
    msg = Message(
        subject,
        recipients=[to],
        html=render_template(template, **kwargs),
        sender=current_app.config["MAIL_DEFAULT_SENDER"],
    )
    try:
        mail.send(msg)
    except smtplib.SMTPAuthenticationError as e:
        raise EmailError(
            "SMTP authentication failed. Check MAIL_USERNAME and MAIL_PASSWORD."
        ) from e
    except (smtplib.SMTPException, OSError) as e:
        raise EmailError(f"Failed to send email: {e}") from e
    current_app.logger.info(f"Sent '{subject}' email to {to}")


def parse_bool(value, default=False):
    """Read a boolean from an environment-style string."""
    if value is None:
        return default
    return str(value).strip().lower() in ("true", "1", "t", "yes", "on")


def load_or_flash(action, loader, default):
    """Run a page read; on a data store failure flash and fall back to ``default``."""
    try:
        return loader()
    except StoreError as e:
        current_app.logger.error(f"Failed to {action}: {e.detail}")
        flash(e.message, "danger")
        return default
