"""Member/admin chat."""

from .feed import ChatFeed
from .models import ChatMessage, ChatThread
from .services import ChatService

__all__ = ["ChatFeed", "ChatMessage", "ChatService", "ChatThread"]
