from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    id: int
    is_bot: bool = False
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None


class TelegramChat(BaseModel):
    id: int
    type: str  # private, group, supergroup, channel
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TelegramMessage(BaseModel):
    message_id: int
    date: int
    chat: TelegramChat
    from_user: Optional[TelegramUser] = Field(default=None, alias="from")  # "from" is reserved in Python
    text: Optional[str] = None
    caption: Optional[str] = None
    reply_to_message: Optional["TelegramMessage"] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def occurred_at(self) -> datetime:
        return datetime.fromtimestamp(self.date, tz=timezone.utc)

    @property
    def content(self) -> str:
        """Message text, or the caption of a media message."""
        return self.text or self.caption or ""


TelegramMessage.model_rebuild()


class TelegramUpdate(BaseModel):
    update_id: int
    message: Optional[TelegramMessage] = None


class TelegramWebhookResponse(BaseModel):
    success: bool
    outcome: Optional[str] = None
    message: Optional[str] = None
