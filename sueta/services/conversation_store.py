"""Durable storage for chats and messages.

The store owns every uniqueness guarantee of the conversation history:

* one ``chats`` row per ``chat_id`` (first writer wins on ``kind``/``title``);
* one ``messages`` row per (``chat_id``, ``message_id``);
* one ``messages`` row per non-zero ``update_id`` (bot replies and imported history use 0).

These are enforced by the database (unique constraint, partial unique index and
``INSERT ... ON CONFLICT DO NOTHING``), so they hold when several workers receive the
same delivery at once. Every read is ordered by ``occurred_at``; insertion order is
never exposed.
"""

import operator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from functools import reduce
from typing import Callable, Iterator, List, Optional, Protocol

from sqlalchemy import case, func, or_, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sueta.logging_config import get_logger
from sueta.models import NO_UPDATE_ID, Chat, ChatKind, Message
from sueta.services.errors import DuplicateMessage, StorageError

logger = get_logger("conversation_store")

Clock = Callable[[], datetime]

PROFILE_FIELDS = ("username", "first_name", "last_name")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_search_text(text: Optional[str]) -> str:
    return (text or "").lower()


class ConversationStore(Protocol):
    """Capabilities the pipeline needs from a conversation store."""

    def upsert_chat(self, chat: Chat) -> None: ...

    def chat_exists(self, chat_id: int) -> bool: ...

    def insert_message(self, message: Message) -> None: ...

    def update_id_exists(self, update_id: int) -> bool: ...

    def recent_messages(self, chat_id: int, since: timedelta) -> List[Message]: ...

    def last_messages(self, chat_id: int, limit: int) -> List[Message]: ...

    def search_relevant_messages(
        self, chat_id: int, query: str, limit: int, exclude_recent: timedelta
    ) -> List[Message]: ...

    def close(self) -> None: ...


def _dialect_insert(db: Session):
    """``INSERT`` construct that supports ``ON CONFLICT`` for the bound dialect."""
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


class SQLConversationStore:
    """SQLAlchemy implementation of :class:`ConversationStore` (PostgreSQL or SQLite)."""

    def __init__(self, engine: Engine, clock: Clock = utcnow):
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        self._clock = clock

    @contextmanager
    def _session(self, operation: str, commit: bool = True, **identity) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            if commit:
                db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageError(f"{operation} failed: {exc}", operation=operation, **identity) from exc
        finally:
            db.close()

    def upsert_chat(self, chat: Chat) -> None:
        now = self._clock()
        kind = ChatKind.from_telegram(chat.kind).value
        profile = {field: getattr(chat, field) or None for field in PROFILE_FIELDS}

        with self._session("upsert_chat", chat_id=chat.chat_id) as db:
            stmt = (
                _dialect_insert(db)(Chat)
                .values(
                    chat_id=chat.chat_id,
                    kind=kind,
                    title=chat.title or None,
                    created_at=now,
                    updated_at=now,
                    **profile,
                )
                .on_conflict_do_nothing(index_elements=["chat_id"])
            )
            if db.execute(stmt).rowcount > 0:
                logger.info(
                    "Chat created",
                    extra={"context": {"chat_id": chat.chat_id, "kind": kind}},
                )
                return

            values = {"updated_at": now}
            for field, value in profile.items():
                if value:
                    column = getattr(Chat, field)
                    values[field] = func.coalesce(func.nullif(column, ""), value)
            db.execute(update(Chat).where(Chat.chat_id == chat.chat_id).values(**values))

    def chat_exists(self, chat_id: int) -> bool:
        with self._session("chat_exists", commit=False, chat_id=chat_id) as db:
            return db.query(Chat.id).filter(Chat.chat_id == chat_id).first() is not None

    def insert_message(self, message: Message) -> None:
        """Insert a message or raise :class:`DuplicateMessage` if it is already stored."""
        now = self._clock()
        update_id = message.update_id or NO_UPDATE_ID

        with self._session(
            "insert_message",
            chat_id=message.chat_id,
            message_id=message.message_id,
            update_id=update_id,
        ) as db:
            stmt = (
                _dialect_insert(db)(Message)
                .values(
                    chat_id=message.chat_id,
                    message_id=message.message_id,
                    update_id=update_id,
                    user_id=message.user_id,
                    username=message.username or None,
                    first_name=message.first_name or None,
                    last_name=message.last_name or None,
                    text=message.text or "",
                    search_text=normalize_search_text(message.text),
                    occurred_at=message.occurred_at,
                    is_from_bot=bool(message.is_from_bot),
                    is_addressed_to_bot=bool(message.is_addressed_to_bot),
                    inserted_at=now,
                )
                .on_conflict_do_nothing()
            )
            if db.execute(stmt).rowcount == 0:
                raise DuplicateMessage(message.chat_id, message.message_id, update_id)

        message.inserted_at = now

    def update_id_exists(self, update_id: int) -> bool:
        if not update_id:
            return False
        with self._session("update_id_exists", commit=False, update_id=update_id) as db:
            return db.query(Message.id).filter(Message.update_id == update_id).first() is not None

    def recent_messages(self, chat_id: int, since: timedelta) -> List[Message]:
        threshold = self._clock() - since
        with self._session("recent_messages", commit=False, chat_id=chat_id) as db:
            return (
                db.query(Message)
                .filter(Message.chat_id == chat_id, Message.occurred_at >= threshold)
                .order_by(Message.occurred_at.asc(), Message.id.asc())
                .all()
            )

    def last_messages(self, chat_id: int, limit: int) -> List[Message]:
        if limit <= 0:
            return []
        with self._session("last_messages", commit=False, chat_id=chat_id) as db:
            rows = (
                db.query(Message)
                .filter(Message.chat_id == chat_id)
                .order_by(Message.occurred_at.desc(), Message.id.desc())
                .limit(limit)
                .all()
            )
        rows.reverse()
        return rows

    def search_relevant_messages(
        self, chat_id: int, query: str, limit: int, exclude_recent: timedelta
    ) -> List[Message]:
        """Messages older than ``now - exclude_recent`` ranked by matched query terms.

        The score is the number of distinct terms found in the message text; newer
        messages win ties.
        """
        terms = list(dict.fromkeys(normalize_search_text(query).split()))
        if not terms or limit <= 0:
            return []

        threshold = self._clock() - exclude_recent
        matches = [Message.search_text.contains(term, autoescape=True) for term in terms]
        score = reduce(operator.add, [case((match, 1), else_=0) for match in matches]).label("score")

        with self._session("search_relevant_messages", commit=False, chat_id=chat_id) as db:
            rows = (
                db.query(Message, score)
                .filter(
                    Message.chat_id == chat_id,
                    Message.occurred_at < threshold,
                    or_(*matches),
                )
                .order_by(score.desc(), Message.occurred_at.desc(), Message.id.desc())
                .limit(limit)
                .all()
            )
        return [message for message, _ in rows]

    def close(self) -> None:
        self._engine.dispose()
