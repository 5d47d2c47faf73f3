"""Context processors for the Flask application."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Any

from flask import current_app, g

from .content.services import DEFAULT_SETTINGS, SettingsService
from .errors import StoreError
from .store import get_db

VERSION_THRESHOLD = 10
VERSION_SHORT_LENGTH = 7


def _detect_version() -> str:
    # Explicit APP_VERSION first, then CI/host build ids, then a VERSION file.
    version = (
        os.environ.get("APP_VERSION")
        or os.environ.get("GITHUB_SHA")
        or os.environ.get("RENDER_GIT_COMMIT")
    )
    if not version:
        version_file = Path(current_app.root_path).parent / "VERSION"
        if version_file.is_file():
            version = version_file.read_text().strip()
    if not version:
        return "dev"
    if len(version) > VERSION_THRESHOLD:
        version = version[:VERSION_SHORT_LENGTH]
    return version


def inject_global_context() -> dict[str, Any]:
    """Injects version and site settings into templates."""
    site_settings = dict(DEFAULT_SETTINGS)
    try:
        site_settings = SettingsService.get_settings(get_db())
    except StoreError as e:
        current_app.logger.error(f"Error fetching site settings: {e.detail}")

    return {
        "current_year": datetime.now().year,
        "app_version": _detect_version(),
        "site_settings": site_settings,
        "is_testing": current_app.config.get("TESTING", False),
    }


def inject_session_context() -> dict[str, Any]:
    """Expose the session context to templates."""
    ctx = getattr(g, "session_ctx", None)
    if ctx is None:
        return {"session_ctx": None, "current_user": None, "current_profile": None}
    return {
        "session_ctx": ctx,
        "current_user": ctx.user,
        "current_profile": ctx.profile,
    }
