"""Tests for the public site."""

from __future__ import annotations

from unittest.mock import patch

from clubportal.content import EventService, NewsService, SettingsService
from clubportal.errors import ErrorKind, StoreError
from clubportal.groups import GroupService
from clubportal.profiles import ProfileService
from clubportal.roles.models import Role
from tests.helpers import TEST_PASSWORD, AppTestCase, role_rows


class TestPublicPages(AppTestCase):
    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.get_json(), {"status": "ok"})

    def test_unknown_page(self) -> None:
        self.assertEqual(self.client.get("/no-such-page").status_code, 404)

    def test_welcome_popup_shows_once(self) -> None:
        SettingsService.update_setting(self.db, "welcome_popup_text", "Hello makers")
        self.assertIn(b"Hello makers", self.client.get("/").data)
        self.assertNotIn(b"Hello makers", self.client.get("/").data)

    def test_apply_button_follows_setting(self) -> None:
        self.assertIn(b"Apply Now", self.client.get("/").data)
        SettingsService.update_setting(self.db, "show_apply_btn", False)
        self.assertNotIn(b"Apply Now", self.client.get("/").data)

    def test_content_pages(self) -> None:
        NewsService.create_news(self.db, "Regionals recap", "We placed 2nd", published=True)
        EventService.create_event(self.db, "Build night", "2026-11-20", location="Lab 1")
        self.assertIn(b"Regionals recap", self.client.get("/news").data)
        self.assertIn(b"Build night", self.client.get("/events").data)
        for path in ("/about", "/projects", "/competition"):
            self.assertEqual(self.client.get(path).status_code, 200, path)


class TestMembersOnlySections(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.create_admin(name="Ada Admin")
        self.member_id = self.create_user("member@example.com", name="Morgan Reed")
        self.create_user(
            "founder@example.com", name="Fiona Founder", roles=(Role.FOUNDER,)
        )
        group_id = GroupService.create_group(self.db, "Drivetrain")
        GroupService.add_member(self.db, group_id, self.member_id)

    def test_team_needs_login(self) -> None:
        response = self.client.get("/team")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"to see the team", response.data)
        self.assertNotIn(b"Fiona Founder", response.data)

    def test_team_for_signed_in_visitor(self) -> None:
        self.login("member@example.com")
        response = self.client.get("/team")
        self.assertIn(b"Fiona Founder", response.data)
        self.assertIn(b"Morgan Reed", response.data)

    def test_groups_need_login(self) -> None:
        self.assertIn(b"to see the groups", self.client.get("/groups").data)

    def test_groups_for_signed_in_visitor(self) -> None:
        self.login("member@example.com")
        response = self.client.get("/groups")
        self.assertIn(b"Drivetrain", response.data)
        self.assertIn(b"Morgan Reed", response.data)


class TestApply(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.create_admin()

    def _apply(self, **overrides):
        data = {
            "name": "Grace Hopper",
            "email": "grace@example.com",
            "major": "Computer Science",
            "reason": "Love robots",
            "password": TEST_PASSWORD,
            "confirm_password": TEST_PASSWORD,
        }
        data.update(overrides)
        return self.client.post("/apply", data=data)

    def test_apply_creates_account_and_pending_application(self) -> None:
        response = self._apply()
        self.assertTrue(response.location.endswith("/"))
        uid = self.directory.accounts["grace@example.com"].uid
        profile = ProfileService.get_profile(self.db, uid)
        self.assertEqual(profile.application_status.value, "pending")
        self.assertEqual(profile.application_reason, "Love robots")
        self.assertEqual(profile.major, "Computer Science")
        self.assertEqual(role_rows(self.db, uid), [])

    def test_apply_with_role_granted_on_submission(self) -> None:
        self.app.config["GRANT_ROLE_ON_SUBMISSION"] = True
        self._apply()
        uid = self.directory.accounts["grace@example.com"].uid
        self.assertEqual(role_rows(self.db, uid), ["member"])

    def test_apply_needs_a_password_when_signed_out(self) -> None:
        self._apply(password="", confirm_password="")
        self.assertNotIn("grace@example.com", self.directory.accounts)

    def test_passwords_must_match(self) -> None:
        self._apply(confirm_password="Different1!")
        self.assertNotIn("grace@example.com", self.directory.accounts)

    def test_reason_is_required(self) -> None:
        self._apply(reason="")
        self.assertNotIn("grace@example.com", self.directory.accounts)

    def test_duplicate_email(self) -> None:
        self._apply()
        self._apply(name="Someone Else")
        self.assertIn("Email address is already registered.", self.flashed())

    def test_failed_submission_removes_new_account(self) -> None:
        with patch(
            "clubportal.main.routes.ApplicationService.submit_application",
            side_effect=StoreError("submit application", ErrorKind.UNAVAILABLE),
        ):
            response = self._apply()
        self.assertTrue(response.location.endswith("/apply"))
        self.assertNotIn("grace@example.com", self.directory.accounts)

        # Trying again goes through.
        self._apply()
        uid = self.directory.accounts["grace@example.com"].uid
        profile = ProfileService.get_profile(self.db, uid)
        self.assertEqual(profile.application_status.value, "pending")

    def test_signed_in_member_can_reapply(self) -> None:
        uid = self.create_user("member@example.com", name="Morgan Reed")
        self.login("member@example.com")
        self.client.post(
            "/apply",
            data={
                "name": "Morgan Reed",
                "email": "member@example.com",
                "reason": "Want to lead the drivetrain group",
            },
        )
        profile = ProfileService.get_profile(self.db, uid)
        self.assertEqual(profile.application_reason, "Want to lead the drivetrain group")
        self.assertEqual(profile.application_status.value, "pending")
        self.assertEqual(role_rows(self.db, uid), ["member"])
