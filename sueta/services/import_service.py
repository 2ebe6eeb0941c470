"""Bulk import of Telegram Desktop chat exports into the conversation store."""

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from sueta.config import DEFAULT_BOT_NAME_VARIANTS
from sueta.logging_config import get_logger
from sueta.models import NO_UPDATE_ID, Chat, ChatKind, Message
from sueta.schemas.export import TelegramExport, TelegramExportMessage
from sueta.services.addressing import contains_bot_name
from sueta.services.conversation_store import ConversationStore
from sueta.services.errors import DuplicateMessage, SuetaError

logger = get_logger("import_service")

PROGRESS_EVERY = 1000


@dataclass
class ImportStats:
    total: int = 0
    user_messages: int = 0
    service_messages: int = 0
    skipped: int = 0
    duplicates: int = 0
    errors: int = 0


def chat_kind_from_export(export_type: str) -> ChatKind:
    """Export types: personal_chat, bot_chat, private_group, public_supergroup, ..."""
    export_type = (export_type or "").lower()
    if export_type in ("personal_chat", "bot_chat"):
        return ChatKind.PRIVATE
    if "group" in export_type:
        return ChatKind.GROUP
    return ChatKind.OTHER


class TelegramExportImporter:
    def __init__(
        self,
        store: Optional[ConversationStore],
        name_variants: Iterable[str] = DEFAULT_BOT_NAME_VARIANTS,
        dry_run: bool = False,
        verbose: bool = False,
        bot_user_id: Optional[int] = None,
    ):
        if store is None and not dry_run:
            raise ValueError("A store is required unless dry_run is set")
        self.store = store
        self.name_variants = tuple(name_variants)
        self.dry_run = dry_run
        self.verbose = verbose
        self.bot_user_id = bot_user_id

    def parse_message(self, raw: TelegramExportMessage, chat_id: int) -> Optional[Message]:
        """Message row for an export entry, or None when it carries nothing to store.

        Raises ValueError for an unparseable date.
        """
        occurred_at = raw.occurred_at()
        text = raw.extract_text()
        if not text and not raw.is_service:
            return None

        user_id = raw.extract_user_id()
        is_from_bot = bool(self.bot_user_id) and user_id == self.bot_user_id
        return Message(
            chat_id=chat_id,
            message_id=raw.id,
            update_id=NO_UPDATE_ID,
            user_id=user_id or None,
            first_name=raw.from_name or raw.actor or None,
            text=text,
            occurred_at=occurred_at,
            is_from_bot=is_from_bot,
            is_addressed_to_bot=not is_from_bot and contains_bot_name(text, self.name_variants),
        )

    def import_export(self, export: TelegramExport, chat_id: Optional[int] = None) -> ImportStats:
        chat_id = chat_id or export.id
        kind = chat_kind_from_export(export.type)
        logger.info(
            "Importing Telegram export",
            extra={
                "context": {
                    "chat_id": chat_id,
                    "title": export.name,
                    "type": export.type,
                    "messages": len(export.messages),
                    "dry_run": self.dry_run,
                }
            },
        )

        if not self.dry_run:
            try:
                self.store.upsert_chat(Chat(chat_id=chat_id, kind=kind.value, title=export.name))
            except SuetaError as e:
                logger.warning(
                    "Chat profile not saved, importing messages anyway", extra={"context": e.context()}
                )

        stats = ImportStats()
        for index, raw in enumerate(export.messages):
            if self.verbose and index % PROGRESS_EVERY == 0:
                logger.info(f"Processed {index}/{len(export.messages)} messages")

            try:
                message = self.parse_message(raw, chat_id)
            except (TypeError, ValueError) as e:
                stats.errors += 1
                if self.verbose:
                    logger.warning(f"Cannot parse message {raw.id}: {e}")
                continue

            if message is None:
                stats.skipped += 1
                continue

            if not self.dry_run:
                try:
                    self.store.insert_message(message)
                except DuplicateMessage:
                    stats.duplicates += 1
                    continue
                except SuetaError as e:
                    stats.errors += 1
                    if self.verbose:
                        logger.warning(f"Cannot store message {raw.id}: {e}")
                    continue

            if raw.is_service:
                stats.service_messages += 1
            else:
                stats.user_messages += 1
            stats.total += 1

        logger.info("Import finished", extra={"context": {"chat_id": chat_id, **asdict(stats)}})
        return stats

    def import_file(self, path, chat_id: Optional[int] = None) -> ImportStats:
        """Raises ValueError when the file is not a Telegram export."""
        raw = Path(path).read_text(encoding="utf-8")
        try:
            export = TelegramExport.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise ValueError(f"Not a Telegram export: {path}: {e}") from e
        return self.import_export(export, chat_id=chat_id)
