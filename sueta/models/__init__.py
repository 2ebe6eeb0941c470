from sueta.models.chat import Chat, ChatKind
from sueta.models.message import NO_UPDATE_ID, Message

__all__ = [
    "Chat",
    "ChatKind",
    "Message",
    "NO_UPDATE_ID",
]
