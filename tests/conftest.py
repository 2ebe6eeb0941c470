from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from sueta.database import Base
from sueta.models import ChatKind, Message
from sueta.schemas.inbound import DispatchReceipt, InboundMessage
from sueta.services.context_service import ContextAssembler
from sueta.services.conversation_store import SQLConversationStore
from sueta.services.keyword_service import KeywordExtractor

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
BOT_USER_ID = 777000


def make_message(chat_id=100, message_id=1, text="", age=timedelta(0), **fields) -> Message:
    """Message that occurred ``age`` before NOW."""
    fields.setdefault("update_id", 0)
    return Message(chat_id=chat_id, message_id=message_id, text=text, occurred_at=NOW - age, **fields)


def make_inbound(**fields) -> InboundMessage:
    data = {
        "update_id": 1,
        "message_id": 10,
        "chat_id": 100,
        "chat_kind": ChatKind.GROUP,
        "chat_title": "Суета",
        "user_id": 42,
        "username": "vasya",
        "first_name": "Вася",
        "text": "Привет всем",
        "occurred_at": NOW,
    }
    data.update(fields)
    return InboundMessage(**data)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    """Store backed by in-memory SQLite whose clock is frozen at NOW."""
    return SQLConversationStore(engine, clock=lambda: NOW)


@pytest.fixture
def assembler(store):
    return ContextAssembler(store, KeywordExtractor())


@pytest.fixture
def generator():
    generator = Mock()
    generator.generate.return_value = "Погода отличная, как и я"
    return generator


@pytest.fixture
def dispatcher():
    dispatcher = Mock()
    dispatcher.send_message.return_value = DispatchReceipt(
        message_id=11,
        occurred_at=NOW + timedelta(seconds=2),
        user_id=BOT_USER_ID,
        username="zhorik_bot",
        first_name="Жорик",
    )
    return dispatcher


@pytest.fixture(autouse=True)
def no_alerts(monkeypatch):
    """Alerts never leave the test process."""
    monkeypatch.setattr("sueta.services.ingestion_service.alert_error", Mock(return_value=False))
    monkeypatch.setattr("sueta.services.ingestion_service.alert_warning", Mock(return_value=False))
