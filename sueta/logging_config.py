"""JSON logging for Sueta.

Every record is a single JSON line. The identity of a conversation turn (``chat_id``,
``message_id``, ``update_id``, ``stage``) is lifted to top-level keys so one turn can be
followed across the webhook, the coordinator and the store; any other ``context`` stays
nested.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

TURN_KEYS = ("chat_id", "message_id", "update_id", "stage")
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = dict(getattr(record, "context", None) or {})
        for key in TURN_KEYS:
            if key in context:
                entry[key] = context.pop(key)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """Route every logger through one JSON handler on stdout (or ``stream``)."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [handler]

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"sueta.{name}")


class TurnLogger(logging.LoggerAdapter):
    """Stamps the bound turn identity on every record.

    Per-call fields go in ``context=``; they extend the bound identity and win on clashes.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = {**self.extra, **(kwargs.pop("context", None) or {})}
        if context:
            kwargs["extra"] = {**kwargs.get("extra", {}), "context": context}
        return msg, kwargs

    def bind(self, **identity: Any) -> "TurnLogger":
        return turn_logger(self.logger, **{**self.extra, **identity})


def turn_logger(logger: logging.Logger, **identity: Any) -> TurnLogger:
    """Adapter for one turn. Identity fields that are None are left out."""
    return TurnLogger(logger, {key: value for key, value in identity.items() if value is not None})
