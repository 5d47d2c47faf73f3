"""Service layer for competition robots and team signups.

Capacity is checked before each signup write. Two members racing for the
last slot can both get in; there is no transaction around the check.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import NotFoundError, TeamFullError, ValidationError
from clubportal.store import decode, decode_all, store_errors, where

from .models import Robot, Signup

logger = logging.getLogger(__name__)


def _validate_robot(name: str, slots: Any) -> tuple[str, int]:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Robot name is required.")
    if isinstance(slots, bool) or not isinstance(slots, int) or slots < 1:
        raise ValidationError("Slots must be a positive whole number.")
    return name, slots


class CompetitionService:
    """Service class for competition-related operations."""

    @staticmethod
    def list_signups(db: Any, robot_id: str) -> list[Signup]:
        """Fetch the signups of a robot."""
        with store_errors("load signups"):
            docs = (
                db.collection(constants.COMPETITION_SIGNUPS)
                .where(filter=where("robot_id", "==", robot_id))
                .stream()
            )
            return decode_all(Signup, docs)

    @staticmethod
    def get_robot(db: Any, robot_id: str) -> Robot:
        """Fetch a robot with its current signup count."""
        with store_errors("load robot"):
            doc = db.collection(constants.COMPETITION_ROBOTS).document(robot_id).get()
        if not doc.exists:
            raise NotFoundError("Robot not found.")
        robot = decode(Robot, doc)
        robot.signup_count = len(CompetitionService.list_signups(db, robot_id))
        return robot

    @staticmethod
    def list_robots(db: Any) -> list[Robot]:
        """Fetch every robot with its signup count, sorted by name."""
        with store_errors("load robots"):
            robots = decode_all(
                Robot, db.collection(constants.COMPETITION_ROBOTS).stream()
            )
        for robot in robots:
            robot.signup_count = len(CompetitionService.list_signups(db, robot.id))
        return sorted(robots, key=lambda r: r.name.lower())

    @staticmethod
    def signed_up_robot_ids(db: Any, user_id: str) -> set[str]:
        """Return the ids of robots a user has joined."""
        with store_errors("load signups"):
            docs = (
                db.collection(constants.COMPETITION_SIGNUPS)
                .where(filter=where("user_id", "==", user_id))
                .stream()
            )
            return {s.robot_id for s in decode_all(Signup, docs)}

    @staticmethod
    def create_robot(
        db: Any,
        name: str,
        slots: int,
        description: Optional[str] = None,
        image: Optional[str] = None,
    ) -> str:
        """Create a robot and return its id."""
        name, slots = _validate_robot(name, slots)
        with store_errors("create robot"):
            _, ref = db.collection(constants.COMPETITION_ROBOTS).add(
                {
                    "name": name,
                    "slots": slots,
                    "description": description or None,
                    "image": image or None,
                    "created_at": utcnow(),
                }
            )
        return ref.id

    @staticmethod
    def update_robot(
        db: Any,
        robot_id: str,
        name: str,
        slots: int,
        description: Optional[str] = None,
        image: Optional[str] = None,
    ) -> None:
        """Edit a robot. Slots may not drop below the current signups."""
        name, slots = _validate_robot(name, slots)
        robot = CompetitionService.get_robot(db, robot_id)
        if slots < robot.signup_count:
            raise ValidationError(
                f"{robot.signup_count} members already signed up for {robot.name}."
            )
        with store_errors("update robot"):
            db.collection(constants.COMPETITION_ROBOTS).document(robot_id).update(
                {
                    "name": name,
                    "slots": slots,
                    "description": description or None,
                    "image": image or None,
                }
            )

    @staticmethod
    def delete_robot(db: Any, robot_id: str) -> None:
        """Delete a robot and its signups."""
        CompetitionService.get_robot(db, robot_id)
        signups = CompetitionService.list_signups(db, robot_id)
        with store_errors("delete robot"):
            for signup in signups:
                db.collection(constants.COMPETITION_SIGNUPS).document(signup.id).delete()
            db.collection(constants.COMPETITION_ROBOTS).document(robot_id).delete()

    @staticmethod
    def toggle_signup(db: Any, robot_id: str, user_id: str) -> bool:
        """Join a robot's team, or leave it if already joined.

        Returns True when the user is now signed up.
        """
        robot = CompetitionService.get_robot(db, robot_id)
        ref = db.collection(constants.COMPETITION_SIGNUPS).document(
            Signup.doc_id(robot_id, user_id)
        )
        with store_errors("update signup"):
            if ref.get().exists:
                ref.delete()
                logger.info(f"{user_id} left robot {robot_id}")
                return False
        if robot.is_full:
            raise TeamFullError(f"{robot.name} is full.")
        with store_errors("sign up"):
            ref.set({"robot_id": robot_id, "user_id": user_id, "created_at": utcnow()})
        logger.info(f"{user_id} joined robot {robot_id}")
        return True
