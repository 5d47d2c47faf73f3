"""Public content and site settings."""

from .models import Announcement, Event, NewsItem, Project, ProjectStatus
from .services import (
    DEFAULT_SETTINGS,
    AnnouncementService,
    EventService,
    NewsService,
    ProjectService,
    SettingsService,
)

__all__ = [
    "DEFAULT_SETTINGS",
    "Announcement",
    "AnnouncementService",
    "Event",
    "EventService",
    "NewsItem",
    "NewsService",
    "Project",
    "ProjectService",
    "ProjectStatus",
    "SettingsService",
]
