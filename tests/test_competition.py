"""Tests for competition robots and signups."""

from __future__ import annotations

from clubportal.competition import CompetitionService
from clubportal.core import constants
from clubportal.errors import NotFoundError, TeamFullError, ValidationError
from tests.helpers import FirestoreTestCase


class TestCompetitionService(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.robot_id = CompetitionService.create_robot(
            self.db, "AlphaBot", 3, description="Line follower"
        )

    def _signup_count(self) -> int:
        return len(CompetitionService.list_signups(self.db, self.robot_id))

    def test_fourth_signup_refused_when_three_slots_taken(self) -> None:
        for uid in ("u1", "u2", "u3"):
            self.assertTrue(CompetitionService.toggle_signup(self.db, self.robot_id, uid))
        robot = CompetitionService.get_robot(self.db, self.robot_id)
        self.assertTrue(robot.is_full)
        self.assertEqual(robot.free_slots, 0)

        with self.assertRaises(TeamFullError):
            CompetitionService.toggle_signup(self.db, self.robot_id, "u4")
        self.assertEqual(self._signup_count(), 3)
        self.assertNotIn(
            self.robot_id, CompetitionService.signed_up_robot_ids(self.db, "u4")
        )

    def test_toggle_twice_leaves(self) -> None:
        self.assertTrue(CompetitionService.toggle_signup(self.db, self.robot_id, "u1"))
        self.assertFalse(CompetitionService.toggle_signup(self.db, self.robot_id, "u1"))
        self.assertEqual(self._signup_count(), 0)

    def test_member_can_leave_a_full_team(self) -> None:
        for uid in ("u1", "u2", "u3"):
            CompetitionService.toggle_signup(self.db, self.robot_id, uid)
        self.assertFalse(CompetitionService.toggle_signup(self.db, self.robot_id, "u2"))
        self.assertEqual(self._signup_count(), 2)

    def test_signup_for_unknown_robot(self) -> None:
        with self.assertRaises(NotFoundError):
            CompetitionService.toggle_signup(self.db, "nope", "u1")

    def test_list_robots_with_counts(self) -> None:
        CompetitionService.create_robot(self.db, "BetaDrone", 2)
        CompetitionService.toggle_signup(self.db, self.robot_id, "u1")
        robots = CompetitionService.list_robots(self.db)
        self.assertEqual([r.name for r in robots], ["AlphaBot", "BetaDrone"])
        self.assertEqual([r.signup_count for r in robots], [1, 0])

    def test_create_robot_validates(self) -> None:
        with self.assertRaises(ValidationError):
            CompetitionService.create_robot(self.db, "", 3)
        with self.assertRaises(ValidationError):
            CompetitionService.create_robot(self.db, "Zero", 0)

    def test_slots_cannot_drop_below_signups(self) -> None:
        CompetitionService.toggle_signup(self.db, self.robot_id, "u1")
        CompetitionService.toggle_signup(self.db, self.robot_id, "u2")
        with self.assertRaises(ValidationError):
            CompetitionService.update_robot(self.db, self.robot_id, "AlphaBot", 1)
        CompetitionService.update_robot(self.db, self.robot_id, "AlphaBot II", 2)
        robot = CompetitionService.get_robot(self.db, self.robot_id)
        self.assertEqual((robot.name, robot.slots), ("AlphaBot II", 2))

    def test_delete_robot_removes_signups(self) -> None:
        CompetitionService.toggle_signup(self.db, self.robot_id, "u1")
        CompetitionService.delete_robot(self.db, self.robot_id)
        with self.assertRaises(NotFoundError):
            CompetitionService.get_robot(self.db, self.robot_id)
        remaining = [
            d for d in self.db.collection(constants.COMPETITION_SIGNUPS).stream() if d.exists
        ]
        self.assertEqual(remaining, [])
