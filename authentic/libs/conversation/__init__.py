"""Entry-bound and journal-wide chat conversations."""

from .manager import ChatState, ConversationManager
from .messages import CHAT_CONVERSATIONS_TABLE, conversation_from_row, decode_messages

__all__ = [
    "CHAT_CONVERSATIONS_TABLE",
    "ChatState",
    "ConversationManager",
    "conversation_from_row",
    "decode_messages",
]
