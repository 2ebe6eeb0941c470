from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Column, Integer, Text

from sueta.database import Base, UTCDateTime


class ChatKind(str, Enum):
    PRIVATE = "private"
    GROUP = "group"
    OTHER = "other"

    @classmethod
    def from_telegram(cls, chat_type: Optional[str]) -> "ChatKind":
        """Map a Telegram chat type (private, group, supergroup, channel) to a kind."""
        if chat_type == "private":
            return cls.PRIVATE
        if chat_type in ("group", "supergroup"):
            return cls.GROUP
        return cls.OTHER


class Chat(Base):
    __tablename__ = "chats"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    chat_id = Column(BigInteger, nullable=False, unique=True)
    kind = Column(Text, nullable=False)  # private, group, other
    title = Column(Text)
    # Counterpart profile, private chats only
    username = Column(Text)
    first_name = Column(Text)
    last_name = Column(Text)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)
