"""Tests for groups and memberships."""

from __future__ import annotations

from clubportal.errors import NotFoundError, ValidationError
from clubportal.groups import GroupService
from tests.helpers import FirestoreTestCase, add_profile, membership_rows


class TestGroupService(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        for uid, name in (("u1", "Ada"), ("u2", "Grace"), ("u3", "Linus"), ("u4", "Ken")):
            add_profile(self.db, uid, name)
        self.alpha = GroupService.create_group(self.db, "Alpha", "Mechanics")
        self.beta = GroupService.create_group(self.db, "Beta")

    def test_create_group_requires_name(self) -> None:
        with self.assertRaises(ValidationError):
            GroupService.create_group(self.db, "  ")

    def test_add_member_twice_keeps_one_row(self) -> None:
        GroupService.add_member(self.db, self.alpha, "u1")
        GroupService.add_member(self.db, self.alpha, "u1")
        self.assertEqual(len(membership_rows(self.db, "u1")), 1)

    def test_add_member_to_unknown_group(self) -> None:
        with self.assertRaises(NotFoundError):
            GroupService.add_member(self.db, "nope", "u1")

    def test_groups_with_member_names(self) -> None:
        GroupService.add_member(self.db, self.alpha, "u2")
        GroupService.add_member(self.db, self.alpha, "u1")
        groups = GroupService.list_groups_with_members(self.db)
        self.assertEqual([g.name for g in groups], ["Alpha", "Beta"])
        self.assertEqual([m.name for m in groups[0].members], ["Ada", "Grace"])
        self.assertEqual(groups[1].members, [])

    def test_groups_of_user(self) -> None:
        GroupService.add_member(self.db, self.beta, "u1")
        GroupService.add_member(self.db, self.alpha, "u1")
        self.assertEqual(
            [g.name for g in GroupService.groups_of_user(self.db, "u1")],
            ["Alpha", "Beta"],
        )

    def test_delete_group_removes_memberships(self) -> None:
        GroupService.add_member(self.db, self.alpha, "u1")
        GroupService.delete_group(self.db, self.alpha)
        self.assertEqual(membership_rows(self.db, "u1"), [])
        self.assertEqual([g.name for g in GroupService.list_groups(self.db)], ["Beta"])

    def test_remove_member_from_all(self) -> None:
        GroupService.add_member(self.db, self.alpha, "u1")
        GroupService.add_member(self.db, self.beta, "u1")
        self.assertEqual(GroupService.remove_member_from_all(self.db, "u1"), 2)
        self.assertEqual(membership_rows(self.db, "u1"), [])

    def test_shuffle_deals_evenly(self) -> None:
        GroupService.add_member(self.db, self.alpha, "u1")
        result = GroupService.shuffle_members(self.db, ["u1", "u2", "u3", "u4"])
        self.assertEqual(sorted(len(v) for v in result.values()), [2, 2])
        for uid in ("u1", "u2", "u3", "u4"):
            self.assertEqual(len(membership_rows(self.db, uid)), 1)

    def test_shuffle_only_uses_first_n_groups(self) -> None:
        gamma = GroupService.create_group(self.db, "Gamma")
        result = GroupService.shuffle_members(self.db, ["u1", "u2", "u3"], 2)
        self.assertNotIn(gamma, result)
        self.assertEqual(sum(len(v) for v in result.values()), 3)

    def test_shuffle_needs_two_groups_and_two_members(self) -> None:
        with self.assertRaises(ValidationError):
            GroupService.shuffle_members(self.db, ["u1"])
        with self.assertRaises(ValidationError):
            GroupService.shuffle_members(self.db, ["u1", "u2"], 1)
