from sqlalchemy import BigInteger, Boolean, Column, Index, Integer, Text, UniqueConstraint
from sqlalchemy import text as sql_text

from sueta.database import Base, UTCDateTime

# update_id of bot replies and imported history
NO_UPDATE_ID = 0


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("chat_id", "message_id", name="uq_messages_chat_message"),
        Index("ix_messages_chat_occurred", "chat_id", "occurred_at"),
        Index(
            "uq_messages_update_id",
            "update_id",
            unique=True,
            postgresql_where=sql_text("update_id <> 0"),
            sqlite_where=sql_text("update_id <> 0"),
        ),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    chat_id = Column(BigInteger, nullable=False)
    message_id = Column(BigInteger, nullable=False)
    update_id = Column(BigInteger, nullable=False, default=NO_UPDATE_ID)
    user_id = Column(BigInteger)
    username = Column(Text)
    first_name = Column(Text)
    last_name = Column(Text)
    text = Column(Text, nullable=False, default="")
    search_text = Column(Text, nullable=False, default="")  # lower-cased text for lexical search
    occurred_at = Column(UTCDateTime, nullable=False)
    is_from_bot = Column(Boolean, nullable=False, default=False)
    is_addressed_to_bot = Column(Boolean, nullable=False, default=False)
    inserted_at = Column(UTCDateTime, nullable=False)

    @property
    def author_name(self) -> str:
        parts = [part for part in (self.first_name, self.last_name) if part]
        if parts:
            return " ".join(parts)
        return self.username or ""
