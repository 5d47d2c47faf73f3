"""Service layer for tasks, certificates and presences."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Optional

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import AccessDenied, NotFoundError, ValidationError
from clubportal.store import decode, decode_all, store_errors, where

from .models import Certificate, Presence, Task

logger = logging.getLogger(__name__)


def _for_user(db: Any, collection: str, user_id: str, action: str) -> Any:
    with store_errors(action):
        return list(
            db.collection(collection)
            .where(filter=where("user_id", "==", user_id))
            .stream()
        )


def _require(
    db: Any, collection: str, record_type: Any, doc_id: str, label: str
) -> Any:
    with store_errors(f"load {label}"):
        doc = db.collection(collection).document(doc_id).get()
    if not doc.exists:
        raise NotFoundError(f"{label.capitalize()} not found.")
    return decode(record_type, doc)


class TaskService:
    """Service class for member tasks."""

    @staticmethod
    def list_tasks(db: Any, user_id: str) -> list[Task]:
        """Fetch a member's tasks, oldest first."""
        tasks = decode_all(Task, _for_user(db, constants.TASKS, user_id, "load tasks"))
        return sorted(tasks, key=lambda t: (t.created_at is None, t.created_at))

    @staticmethod
    def create_task(db: Any, user_id: str, text: str) -> str:
        """Assign a new task to a member."""
        text = (text or "").strip()
        if not text:
            raise ValidationError("Task text is required.")
        with store_errors("create task"):
            _, ref = db.collection(constants.TASKS).add(
                {
                    "user_id": user_id,
                    "text": text,
                    "completed": False,
                    "created_at": utcnow(),
                }
            )
        return ref.id

    @staticmethod
    def toggle_task(db: Any, task_id: str, acting_user_id: str) -> bool:
        """Flip a task's completion flag. Returns the new value.

        Members may only toggle their own tasks.
        """
        task = _require(db, constants.TASKS, Task, task_id, "task")
        if task.user_id != acting_user_id:
            raise AccessDenied("You can only update your own tasks.")
        completed = not task.completed
        with store_errors("update task"):
            db.collection(constants.TASKS).document(task_id).update(
                {"completed": completed}
            )
        return completed

    @staticmethod
    def delete_task(db: Any, task_id: str) -> None:
        """Delete a task."""
        _require(db, constants.TASKS, Task, task_id, "task")
        with store_errors("delete task"):
            db.collection(constants.TASKS).document(task_id).delete()


class CertificateService:
    """Service class for certificates."""

    @staticmethod
    def list_certificates(db: Any, user_id: str) -> list[Certificate]:
        """Fetch a member's certificates, newest first."""
        certificates = decode_all(
            Certificate,
            _for_user(db, constants.CERTIFICATES, user_id, "load certificates"),
        )
        return sorted(
            certificates,
            key=lambda c: (c.issued_at is not None, c.issued_at),
            reverse=True,
        )

    @staticmethod
    def issue_certificate(
        db: Any, user_id: str, name: str, issued_at: Optional[datetime.datetime] = None
    ) -> str:
        """Issue a certificate to a member."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Certificate name is required.")
        with store_errors("create certificate"):
            _, ref = db.collection(constants.CERTIFICATES).add(
                {"user_id": user_id, "name": name, "issued_at": issued_at or utcnow()}
            )
        logger.info(f"Issued certificate '{name}' to {user_id}")
        return ref.id

    @staticmethod
    def delete_certificate(db: Any, certificate_id: str) -> None:
        _require(db, constants.CERTIFICATES, Certificate, certificate_id, "certificate")
        with store_errors("delete certificate"):
            db.collection(constants.CERTIFICATES).document(certificate_id).delete()


class PresenceService:
    """Service class for weekly presence records."""

    @staticmethod
    def list_presences(db: Any, user_id: str) -> list[Presence]:
        """Fetch a member's presence records, latest week first."""
        presences = decode_all(
            Presence, _for_user(db, constants.PRESENCES, user_id, "load presences")
        )
        return sorted(presences, key=lambda p: p.week_date, reverse=True)

    @staticmethod
    def add_presence(
        db: Any, user_id: str, week_date: str, present: bool = True
    ) -> str:
        """Record attendance for a week (ISO date)."""
        try:
            datetime.date.fromisoformat(week_date)
        except (TypeError, ValueError):
            raise ValidationError("Week date must be an ISO date.") from None
        with store_errors("record presence"):
            _, ref = db.collection(constants.PRESENCES).add(
                {"user_id": user_id, "week_date": week_date, "present": present}
            )
        return ref.id

    @staticmethod
    def toggle_presence(db: Any, presence_id: str) -> bool:
        """Flip a presence record. Returns the new value."""
        presence = _require(db, constants.PRESENCES, Presence, presence_id, "presence")
        present = not presence.present
        with store_errors("update presence"):
            db.collection(constants.PRESENCES).document(presence_id).update(
                {"present": present}
            )
        return present

    @staticmethod
    def delete_presence(db: Any, presence_id: str) -> None:
        _require(db, constants.PRESENCES, Presence, presence_id, "presence")
        with store_errors("delete presence"):
            db.collection(constants.PRESENCES).document(presence_id).delete()
