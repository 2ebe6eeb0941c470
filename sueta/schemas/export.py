"""Telegram Desktop chat export (``result.json``)."""

from datetime import datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

EXPORT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class TelegramExportMessage(BaseModel):
    id: int
    type: str = "message"
    date: str = ""
    date_unixtime: Optional[str] = None
    # from/from_id may be null for deleted accounts
    from_name: Optional[str] = Field(default=None, alias="from")
    from_id: Optional[str] = None
    actor: Optional[str] = None
    actor_id: Optional[str] = None
    action: Optional[str] = None
    text: Union[str, List[Any]] = ""
    reply_to_message_id: Optional[int] = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @property
    def is_service(self) -> bool:
        return self.type == "service"

    def extract_text(self) -> str:
        """Plain text from a string or a list of strings and ``{"type", "text"}`` entities."""
        if isinstance(self.text, str):
            return self.text
        parts = []
        for item in self.text:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and isinstance(item.get("text"), str):
                parts.append(item["text"])
        return "".join(parts)

    def extract_user_id(self) -> int:
        """Numeric id from ``actor_id``/``from_id`` such as ``user262343524``; 0 if unknown."""
        raw = self.actor_id or self.from_id or ""
        for prefix in ("user", "channel", "chat"):
            if raw.startswith(prefix):
                raw = raw[len(prefix):]
                break
        try:
            return int(raw)
        except ValueError:
            return 0

    def occurred_at(self) -> datetime:
        """Raises ValueError when neither date field can be parsed."""
        if self.date_unixtime:
            return datetime.fromtimestamp(int(self.date_unixtime), tz=timezone.utc)
        return datetime.strptime(self.date, EXPORT_DATE_FORMAT).replace(tzinfo=timezone.utc)


class TelegramExport(BaseModel):
    name: Optional[str] = None
    type: str = ""
    id: int
    messages: List[TelegramExportMessage] = []

    model_config = ConfigDict(extra="ignore")
