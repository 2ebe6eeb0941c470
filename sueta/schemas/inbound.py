from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from sueta.models import ChatKind


class InboundMessage(BaseModel):
    """One parsed, authenticated message handed over by the transport layer."""

    update_id: int
    message_id: int
    chat_id: int
    chat_kind: ChatKind
    chat_title: Optional[str] = None
    user_id: Optional[int] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    text: str = ""
    occurred_at: datetime
    reply_to_author_is_bot: bool = False


class DispatchReceipt(BaseModel):
    """Confirmation of a delivered bot message."""

    message_id: int
    occurred_at: datetime
    user_id: Optional[int] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
