"""Tests for the member blueprint."""

from __future__ import annotations

from unittest.mock import patch

from clubportal.chat import ChatService
from clubportal.competition import CompetitionService
from clubportal.core import constants
from clubportal.errors import ErrorKind, StoreError
from clubportal.member.services import TaskService
from clubportal.profiles import ProfileService
from tests.helpers import AppTestCase


class MemberRouteTestCase(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.admin_id = self.create_admin()
        self.member_id = self.create_user("member@example.com", name="Member One")
        self.other_id = self.create_user("other@example.com", name="Member Two")


class TestDashboard(MemberRouteTestCase):
    def test_anonymous_is_sent_to_login(self) -> None:
        response = self.client.get("/member/")
        self.assertEqual(response.status_code, 302)
        self.assertIn("/auth/login?next=", response.location)

    def test_user_without_roles_sees_pending_screen(self) -> None:
        uid = self.create_user("new@example.com", roles=(), status="pending")
        self.sign_in_as(uid)
        response = self.client.get("/member/")
        self.assertEqual(response.status_code, 403)
        self.assertIn(b"Pending Approval", response.data)

    def test_member_dashboard(self) -> None:
        TaskService.create_task(self.db, self.member_id, "Solder the motor board")
        self.login("member@example.com")
        response = self.client.get("/member/")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Solder the motor board", response.data)

    def test_admin_can_open_member_dashboard(self) -> None:
        self.login("admin@example.com")
        self.assertEqual(self.client.get("/member/").status_code, 200)


class TestTasksAndProfile(MemberRouteTestCase):
    def test_toggle_own_task(self) -> None:
        task_id = TaskService.create_task(self.db, self.member_id, "Wire sensors")
        self.login("member@example.com")
        self.client.post(f"/member/tasks/{task_id}/toggle")
        self.assertTrue(TaskService.list_tasks(self.db, self.member_id)[0].completed)

    def test_cannot_toggle_someone_elses_task(self) -> None:
        task_id = TaskService.create_task(self.db, self.other_id, "Not yours")
        self.login("member@example.com")
        self.client.post(f"/member/tasks/{task_id}/toggle")
        self.assertIn("You can only update your own tasks.", self.flashed())
        self.assertFalse(TaskService.list_tasks(self.db, self.other_id)[0].completed)

    def test_edit_profile(self) -> None:
        self.login("member@example.com")
        response = self.client.post(
            "/member/profile",
            data={"name": "Member Uno", "major": "Mechatronics", "bio": ""},
        )
        self.assertTrue(response.location.endswith("/member/"))
        profile = ProfileService.get_profile(self.db, self.member_id)
        self.assertEqual(profile.name, "Member Uno")
        self.assertEqual(profile.major, "Mechatronics")
        self.assertIsNone(profile.bio)


class TestCompetitionRoutes(MemberRouteTestCase):
    def test_join_then_leave(self) -> None:
        robot_id = CompetitionService.create_robot(self.db, "Sumo", 2)
        self.login("member@example.com")
        self.client.post(f"/member/competition/{robot_id}/toggle")
        self.assertIn("You joined the team!", self.flashed())
        self.assertEqual(
            CompetitionService.signed_up_robot_ids(self.db, self.member_id), {robot_id}
        )
        self.client.post(f"/member/competition/{robot_id}/toggle")
        self.assertEqual(
            CompetitionService.signed_up_robot_ids(self.db, self.member_id), set()
        )

    def test_full_team_is_refused(self) -> None:
        robot_id = CompetitionService.create_robot(self.db, "Sumo", 1)
        CompetitionService.toggle_signup(self.db, robot_id, self.other_id)
        self.login("member@example.com")
        self.client.post(f"/member/competition/{robot_id}/toggle")
        self.assertIn("Sumo is full.", self.flashed())

    def test_competition_page(self) -> None:
        CompetitionService.create_robot(self.db, "Line follower", 3)
        self.login("member@example.com")
        response = self.client.get("/member/competition")
        self.assertIn(b"Line follower", response.data)


class TestChatRoutes(MemberRouteTestCase):
    def test_member_can_message_an_admin(self) -> None:
        self.login("member@example.com")
        response = self.client.post(
            "/member/chat/send",
            data={"recipient": self.admin_id, "content": "Hi there"},
        )
        self.assertIn(f"with={self.admin_id}", response.location)
        messages = ChatService.conversation(self.db, self.member_id, self.admin_id)
        self.assertEqual([m.content for m in messages], ["Hi there"])

    def test_member_can_message_the_admin_channel(self) -> None:
        self.login("member@example.com")
        self.client.post(
            "/member/chat/send",
            data={"recipient": constants.ADMIN_CHANNEL, "content": "Anyone?"},
        )
        self.assertEqual(ChatService.unread_count(self.db, constants.ADMIN_CHANNEL), 1)

    def test_member_cannot_message_another_member(self) -> None:
        self.login("member@example.com")
        self.client.post(
            "/member/chat/send",
            data={"recipient": self.other_id, "content": "psst"},
        )
        self.assertIn("Members can only message admins.", self.flashed())
        self.assertEqual(ChatService.unread_count(self.db, self.other_id), 0)

    def test_empty_message(self) -> None:
        self.login("member@example.com")
        self.client.post(
            "/member/chat/send", data={"recipient": self.admin_id, "content": ""}
        )
        self.assertIn("Message cannot be empty.", self.flashed())

    def test_chat_page_marks_conversation_read(self) -> None:
        ChatService.send_message(
            self.db, self.admin_id, self.member_id, "Meeting moved to Lab 2"
        )
        self.login("member@example.com")
        response = self.client.get(f"/member/chat?with={self.admin_id}")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Meeting moved to Lab 2", response.data)
        self.assertEqual(ChatService.unread_count(self.db, self.member_id), 0)

    def test_admin_chat_redirects_to_shared_page(self) -> None:
        self.login("admin@example.com")
        response = self.client.get(f"/admin/chat?with={self.member_id}")
        self.assertIn("/member/chat", response.location)

    def test_poll(self) -> None:
        ChatService.send_message(self.db, self.admin_id, self.member_id, "ping")
        self.login("member@example.com")
        response = self.client.get("/member/chat/poll")
        self.assertEqual(response.status_code, 200)
        payload = response.get_json()
        self.assertEqual(payload["status"], "success")
        self.assertEqual([m["content"] for m in payload["messages"]], ["ping"])
        self.assertEqual(payload["poll_interval_ms"], constants.CHAT_POLL_INTERVAL_MS)

        since = payload["messages"][0]["timestamp"]
        response = self.client.get("/member/chat/poll", query_string={"since": since})
        self.assertEqual(response.get_json()["messages"], [])

    def test_poll_rejects_bad_since(self) -> None:
        self.login("member@example.com")
        response = self.client.get("/member/chat/poll?since=yesterday")
        self.assertEqual(response.status_code, 400)

    def test_poll_store_failure_returns_json(self) -> None:
        self.login("member@example.com")
        with patch(
            "clubportal.member.routes.ChatService.messages_since",
            side_effect=StoreError("load messages", ErrorKind.UNAVAILABLE),
        ):
            response = self.client.get("/member/chat/poll")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(
            response.get_json(),
            {"status": "error", "message": "Failed to load messages."},
        )

    def test_stream(self) -> None:
        self.app.config["CHAT_POLL_INTERVAL_MS"] = 5000
        self.login("member@example.com")
        with patch("clubportal.member.routes.ChatFeed") as feed_cls:
            feed = feed_cls.return_value.open.return_value
            feed.events.return_value = iter(["retry: 5000\n\n", ": heartbeat\n\n"])
            response = self.client.get("/member/chat/stream")
            body = response.get_data(as_text=True)
            response.close()
        self.assertEqual(response.mimetype, "text/event-stream")
        self.assertIn("retry: 5000", body)
        feed_cls.assert_called_once_with(
            self.db, self.member_id, include_admin_channel=False
        )
        feed.events.assert_called_once_with(retry_ms=5000)
        feed.close.assert_called()

    def test_stream_open_failure(self) -> None:
        self.login("member@example.com")
        with patch(
            "clubportal.member.routes.ChatFeed.open",
            side_effect=StoreError("open chat stream", ErrorKind.UNAVAILABLE),
        ):
            response = self.client.get("/member/chat/stream")
        self.assertEqual(response.status_code, 503)
