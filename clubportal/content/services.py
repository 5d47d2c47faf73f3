"""Service layer for news, events, projects, announcements and settings."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Optional

from clubportal.core import constants
from clubportal.core.types import read_field, utcnow
from clubportal.errors import NotFoundError, SchemaError, ValidationError
from clubportal.store import decode_all, store_errors, where

from .models import Announcement, Event, NewsItem, Project, ProjectStatus

logger = logging.getLogger(__name__)

VIDEO_BACKGROUND_TYPES = ("local", "youtube", "none")

DEFAULT_SETTINGS: dict[str, Any] = {
    "show_apply_btn": True,
    "show_interview_btn": False,
    "show_result_btn": False,
    "welcome_popup_text": "",
    "video_background_url": "hero-video.mp4",
    "video_background_type": "local",
}


def _newest_first(items: list[Any]) -> list[Any]:
    return sorted(
        items, key=lambda i: (i.created_at is not None, i.created_at), reverse=True
    )


def _require_text(value: Optional[str], label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required.")
    return value


def _delete(db: Any, collection: str, doc_id: str, label: str) -> None:
    ref = db.collection(collection).document(doc_id)
    with store_errors(f"delete {label}"):
        if not ref.get().exists:
            raise NotFoundError(f"{label.capitalize()} not found.")
        ref.delete()


class NewsService:
    """Service class for news posts."""

    @staticmethod
    def list_news(db: Any, published_only: bool = True) -> list[NewsItem]:
        """Fetch news, newest first."""
        with store_errors("load news"):
            query = db.collection(constants.NEWS)
            if published_only:
                query = query.where(filter=where("published", "==", True))
            return _newest_first(decode_all(NewsItem, query.stream()))

    @staticmethod
    def create_news(
        db: Any,
        title: str,
        content: str,
        published: bool = False,
        image_url: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> str:
        data = {
            "title": _require_text(title, "Title"),
            "content": _require_text(content, "Content"),
            "published": bool(published),
            "image_url": image_url or None,
            "created_by": created_by,
            "created_at": utcnow(),
        }
        with store_errors("create news"):
            _, ref = db.collection(constants.NEWS).add(data)
        return ref.id

    @staticmethod
    def set_published(db: Any, news_id: str, published: bool) -> None:
        ref = db.collection(constants.NEWS).document(news_id)
        with store_errors("update news"):
            if not ref.get().exists:
                raise NotFoundError("News post not found.")
            ref.update({"published": published, "updated_at": utcnow()})

    @staticmethod
    def delete_news(db: Any, news_id: str) -> None:
        _delete(db, constants.NEWS, news_id, "news post")


class EventService:
    """Service class for club events."""

    @staticmethod
    def list_events(db: Any, upcoming_only: bool = False) -> list[Event]:
        """Fetch events ordered by date; with ``upcoming_only`` past ones are skipped."""
        with store_errors("load events"):
            events = decode_all(Event, db.collection(constants.EVENTS).stream())
        if upcoming_only:
            today = utcnow().date().isoformat()
            events = [e for e in events if e.event_date[:10] >= today]
        return sorted(events, key=lambda e: e.event_date)

    @staticmethod
    def create_event(
        db: Any,
        title: str,
        event_date: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> str:
        try:
            datetime.datetime.fromisoformat(event_date)
        except (TypeError, ValueError):
            raise ValidationError("Event date must be an ISO date.") from None
        data = {
            "title": _require_text(title, "Title"),
            "event_date": event_date,
            "description": description or None,
            "location": location or None,
            "created_by": created_by,
            "created_at": utcnow(),
        }
        with store_errors("create event"):
            _, ref = db.collection(constants.EVENTS).add(data)
        return ref.id

    @staticmethod
    def delete_event(db: Any, event_id: str) -> None:
        _delete(db, constants.EVENTS, event_id, "event")


class ProjectService:
    """Service class for showcased projects."""

    @staticmethod
    def list_projects(db: Any, status: Optional[ProjectStatus] = None) -> list[Project]:
        with store_errors("load projects"):
            projects = decode_all(Project, db.collection(constants.PROJECTS).stream())
        if status is not None:
            projects = [p for p in projects if p.status is status]
        return _newest_first(projects)

    @staticmethod
    def create_project(
        db: Any,
        title: str,
        description: str,
        status: ProjectStatus = ProjectStatus.IN_PROGRESS,
        image: Optional[str] = None,
    ) -> str:
        data = {
            "title": _require_text(title, "Title"),
            "description": _require_text(description, "Description"),
            "status": ProjectStatus(status).value,
            "image": image or None,
            "created_at": utcnow(),
        }
        with store_errors("create project"):
            _, ref = db.collection(constants.PROJECTS).add(data)
        return ref.id

    @staticmethod
    def set_status(db: Any, project_id: str, status: ProjectStatus) -> None:
        ref = db.collection(constants.PROJECTS).document(project_id)
        with store_errors("update project"):
            if not ref.get().exists:
                raise NotFoundError("Project not found.")
            ref.update({"status": status.value})

    @staticmethod
    def delete_project(db: Any, project_id: str) -> None:
        _delete(db, constants.PROJECTS, project_id, "project")


class AnnouncementService:
    """Service class for announcements shown on the member overview."""

    @staticmethod
    def list_announcements(db: Any) -> list[Announcement]:
        with store_errors("load announcements"):
            return _newest_first(
                decode_all(Announcement, db.collection(constants.ANNOUNCEMENTS).stream())
            )

    @staticmethod
    def create_announcement(db: Any, content: str) -> str:
        data = {"content": _require_text(content, "Announcement"), "created_at": utcnow()}
        with store_errors("create announcement"):
            _, ref = db.collection(constants.ANNOUNCEMENTS).add(data)
        return ref.id

    @staticmethod
    def delete_announcement(db: Any, announcement_id: str) -> None:
        _delete(db, constants.ANNOUNCEMENTS, announcement_id, "announcement")


class SettingsService:
    """Key/value site settings; the key is the document id."""

    @staticmethod
    def get_settings(db: Any) -> dict[str, Any]:
        """Return every known setting, defaults filled in for missing keys."""
        settings = dict(DEFAULT_SETTINGS)
        with store_errors("load settings"):
            docs = list(db.collection(constants.SITE_SETTINGS).stream())
        for doc in docs:
            if not doc.exists or doc.id not in DEFAULT_SETTINGS:
                continue
            kind = type(DEFAULT_SETTINGS[doc.id])
            try:
                settings[doc.id] = read_field(
                    doc.to_dict() or {}, "value", kind, default=DEFAULT_SETTINGS[doc.id]
                )
            except SchemaError as e:
                logger.error(f"Ignoring bad setting '{doc.id}': {e.message}")
        return settings

    @staticmethod
    def update_setting(db: Any, key: str, value: Any) -> None:
        """Upsert one setting."""
        if key not in DEFAULT_SETTINGS:
            raise ValidationError(f"Unknown setting '{key}'.")
        if not isinstance(value, type(DEFAULT_SETTINGS[key])):
            raise ValidationError(f"Setting '{key}' has the wrong type.")
        if key == "video_background_type" and value not in VIDEO_BACKGROUND_TYPES:
            raise ValidationError("Video background must be local, youtube or none.")
        with store_errors("save settings"):
            db.collection(constants.SITE_SETTINGS).document(key).set(
                {"key": key, "value": value, "updated_at": utcnow()}
            )
