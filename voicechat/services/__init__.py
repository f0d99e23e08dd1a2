"""Services layer for voicechat application logic."""

from .conversation_service import ConversationService
from .session_store import SessionStore

__all__ = [
    "ConversationService",
    "SessionStore",
]
