"""Service layer for member/admin chat."""

from __future__ import annotations

import datetime
import logging
from typing import Any, Iterable, Optional

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import ValidationError
from clubportal.profiles.models import Profile
from clubportal.profiles.services import ProfileService
from clubportal.roles.services import RoleService
from clubportal.store import decode_all, store_errors, where

from .models import ChatMessage, ChatThread

logger = logging.getLogger(__name__)

MESSAGE_MAX_LENGTH = 2000


def _by_time(messages: Iterable[ChatMessage]) -> list[ChatMessage]:
    epoch = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)
    return sorted(messages, key=lambda m: m.timestamp or epoch)


class ChatService:
    """Service class for chat messages."""

    @staticmethod
    def _query(db: Any, field: str, value: str) -> list[ChatMessage]:
        with store_errors("load messages"):
            docs = (
                db.collection(constants.MESSAGES)
                .where(filter=where(field, "==", value))
                .stream()
            )
            return decode_all(ChatMessage, docs)

    @staticmethod
    def send_message(db: Any, sender: str, recipient: str, content: str) -> ChatMessage:
        """Store a new unread message."""
        content = (content or "").strip()
        if not content:
            raise ValidationError("Message cannot be empty.")
        if len(content) > MESSAGE_MAX_LENGTH:
            raise ValidationError("Message must be at most 2000 characters.")
        if not recipient or recipient == sender:
            raise ValidationError("Pick someone to message.")
        data = {
            "from": sender,
            "to": recipient,
            "content": content,
            "timestamp": utcnow(),
            "read": False,
        }
        with store_errors("send message"):
            _, ref = db.collection(constants.MESSAGES).add(data)
        return ChatMessage.from_dict(ref.id, data)

    @staticmethod
    def list_messages(
        db: Any, user_id: str, include_admin_channel: bool = False
    ) -> list[ChatMessage]:
        """Fetch every message sent or received by a user, oldest first.

        Admins also see what was sent to the shared admin channel.
        """
        found: dict[str, ChatMessage] = {}
        for field in ("from", "to"):
            for message in ChatService._query(db, field, user_id):
                found[message.id] = message
        if include_admin_channel:
            for message in ChatService._query(db, "to", constants.ADMIN_CHANNEL):
                found[message.id] = message
        return _by_time(found.values())

    @staticmethod
    def conversation(db: Any, user_id: str, other_id: str) -> list[ChatMessage]:
        """Fetch the messages exchanged between two parties, oldest first."""
        sent = [
            m
            for m in ChatService._query(db, "from", user_id)
            if m.recipient == other_id
        ]
        received = [
            m
            for m in ChatService._query(db, "from", other_id)
            if m.recipient == user_id
        ]
        return _by_time(sent + received)

    @staticmethod
    def admin_conversation(
        db: Any, admin_id: str, member_id: str
    ) -> list[ChatMessage]:
        """An admin's view of a member thread, admin channel included."""
        return _by_time(
            ChatService.conversation(db, admin_id, member_id)
            + ChatService.conversation(db, member_id, constants.ADMIN_CHANNEL)
        )

    @staticmethod
    def messages_since(
        db: Any,
        user_id: str,
        since: Optional[datetime.datetime],
        include_admin_channel: bool = False,
    ) -> list[ChatMessage]:
        """Fetch a user's messages newer than ``since`` (polling fallback)."""
        messages = ChatService.list_messages(db, user_id, include_admin_channel)
        if since is None:
            return messages
        return [m for m in messages if m.timestamp and m.timestamp > since]

    @staticmethod
    def mark_read(db: Any, recipient: str, sender: str) -> int:
        """Mark messages from ``sender`` to ``recipient`` read. Returns how many."""
        unread = [
            m
            for m in ChatService._query(db, "from", sender)
            if m.recipient == recipient and not m.read
        ]
        with store_errors("mark messages read"):
            for message in unread:
                db.collection(constants.MESSAGES).document(message.id).update(
                    {"read": True}
                )
        return len(unread)

    @staticmethod
    def unread_count(db: Any, recipient: str) -> int:
        """Count unread messages addressed to ``recipient``."""
        return sum(1 for m in ChatService._query(db, "to", recipient) if not m.read)

    @staticmethod
    def list_admins(db: Any) -> list[Profile]:
        """Profiles of everyone a member can message."""
        return ProfileService.get_profiles(db, RoleService.list_admin_ids(db))

    @staticmethod
    def threads(
        db: Any, user_id: str, include_admin_channel: bool = False
    ) -> list[ChatThread]:
        """Summarise a user's conversations, most recent first."""
        threads: dict[str, ChatThread] = {}
        for message in ChatService.list_messages(db, user_id, include_admin_channel):
            if message.recipient == constants.ADMIN_CHANNEL:
                other = message.sender
            else:
                other = message.counterpart(user_id)
            thread = threads.get(other)
            if thread is None:
                thread = ChatThread(other_id=other, last_message=message)
                threads[other] = thread
            thread.last_message = message
            if not message.read and message.sender == other:
                thread.unread += 1

        names = {p.id: p.name for p in ProfileService.get_profiles(db, list(threads))}
        for thread in threads.values():
            thread.other_name = names.get(thread.other_id)
        epoch = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)
        return sorted(
            threads.values(),
            key=lambda t: t.last_message.timestamp or epoch,
            reverse=True,
        )
