"""Data models for chat messages."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any, Optional

from clubportal.core.types import read_field, read_timestamp


@dataclass
class ChatMessage:
    """A message between a member and an admin (or the admin channel).

    Stored with ``from``/``to`` keys; only ``read`` changes after creation.
    """

    id: str
    sender: str
    recipient: str
    content: str
    timestamp: Optional[datetime.datetime] = None
    read: bool = False

    @classmethod
    def from_dict(cls, doc_id: str, data: dict[str, Any]) -> ChatMessage:
        return cls(
            id=doc_id,
            sender=read_field(data, "from", str),
            recipient=read_field(data, "to", str),
            content=read_field(data, "content", str),
            timestamp=read_timestamp(data, "timestamp"),
            read=read_field(data, "read", bool, default=False),
        )

    def to_json(self) -> dict[str, Any]:
        """Serialise for the polling and push endpoints."""
        return {
            "id": self.id,
            "from": self.sender,
            "to": self.recipient,
            "content": self.content,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "read": self.read,
        }

    def involves(self, user_id: str) -> bool:
        return user_id in (self.sender, self.recipient)

    def counterpart(self, user_id: str) -> str:
        """Return the other party of the message as seen by ``user_id``."""
        return self.recipient if self.sender == user_id else self.sender


@dataclass
class ChatThread:
    """Summary of one conversation for a thread list."""

    other_id: str
    last_message: ChatMessage
    unread: int = 0
    other_name: Optional[str] = None
