"""Tests for the public team page sections."""

from __future__ import annotations

from clubportal.main.services import TeamService
from clubportal.roles.models import Role
from tests.helpers import FirestoreTestCase, add_profile, add_roles


class TestTeamService(FirestoreTestCase):
    def test_sections(self) -> None:
        people = [
            ("f2", "Zed", [Role.FOUNDER]),
            ("f1", "Alan", [Role.FOUNDER, Role.ADMIN]),
            ("e1", "Edsger", [Role.EXECUTIVE, Role.MEMBER]),
            ("a1", "Barbara", [Role.ADMIN]),
            ("m1", "Margaret", [Role.MEMBER]),
            ("p1", "Pending", []),
        ]
        for uid, name, roles in people:
            add_profile(self.db, uid, name)
            add_roles(self.db, uid, roles)

        sections = TeamService.team_sections(self.db)
        self.assertEqual(sections["founder"].id, "f1")
        self.assertEqual([p.id for p in sections["executives"]], ["e1"])
        self.assertEqual([p.id for p in sections["members"]], ["a1", "m1", "f2"])

    def test_empty_club(self) -> None:
        self.assertEqual(
            TeamService.team_sections(self.db),
            {"founder": None, "executives": [], "members": []},
        )
