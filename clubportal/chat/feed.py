"""Push delivery of new chat messages over server-sent events.

A :class:`ChatFeed` listens to Firestore ``on_snapshot`` for messages
addressed to one user and hands them to a streaming response. Clients that
cannot keep the stream open poll ``/member/chat/poll`` instead.
"""

from __future__ import annotations

import json
import logging
import queue
from typing import Any, Iterator, Optional

from clubportal.core import constants
from clubportal.core.types import utcnow
from clubportal.errors import SchemaError, StoreError
from clubportal.store import store_errors, where

from .models import ChatMessage

logger = logging.getLogger(__name__)


class ChatFeed:
    """Queue of messages delivered to ``user_id`` after the feed opened."""

    def __init__(
        self, db: Any, user_id: str, include_admin_channel: bool = False
    ) -> None:
        self.db = db
        self.user_id = user_id
        self.recipients = [user_id]
        if include_admin_channel:
            self.recipients.append(constants.ADMIN_CHANNEL)
        self.opened_at = utcnow()
        self._queue: queue.Queue[ChatMessage] = queue.Queue()
        self._watches: list[Any] = []

    def open(self) -> ChatFeed:
        """Start listening. Watches opened so far are closed on failure."""
        try:
            with store_errors("open chat stream"):
                for recipient in self.recipients:
                    query = self.db.collection(constants.MESSAGES).where(
                        filter=where("to", "==", recipient)
                    )
                    self._watches.append(query.on_snapshot(self._on_snapshot))
        except StoreError:
            self.close()
            raise
        return self

    def close(self) -> None:
        """Stop listening. Safe to call twice."""
        watches, self._watches = self._watches, []
        for watch in watches:
            watch.unsubscribe()

    def _on_snapshot(self, snapshots: Any, changes: Any, read_time: Any) -> None:
        for change in changes:
            if change.type.name != "ADDED":
                continue
            try:
                message = ChatMessage.from_dict(
                    change.document.id, change.document.to_dict()
                )
            except SchemaError as e:
                logger.error(
                    f"Skipping malformed message {change.document.id}: {e.message}"
                )
                continue
            # The first snapshot replays history.
            if message.timestamp and message.timestamp <= self.opened_at:
                continue
            self._queue.put(message)

    def get(self, timeout: float) -> Optional[ChatMessage]:
        """Wait up to ``timeout`` seconds for the next message."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def events(
        self,
        retry_ms: int = constants.CHAT_POLL_INTERVAL_MS,
        heartbeat: float = constants.CHAT_STREAM_HEARTBEAT_SECONDS,
    ) -> Iterator[str]:
        """Yield SSE frames, with a comment line whenever the feed is idle.

        ``retry_ms`` tells the browser how long to wait before reconnecting.
        """
        try:
            yield "retry: %d\n\n" % retry_ms
            while True:
                message = self.get(heartbeat)
                if message is None:
                    yield ": heartbeat\n\n"
                    continue
                yield f"event: message\ndata: {json.dumps(message.to_json())}\n\n"
        finally:
            self.close()
