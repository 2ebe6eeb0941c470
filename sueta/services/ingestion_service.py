"""Per-message ingestion pipeline.

Every inbound message walks the same stages::

    RECEIVED -> DEDUPE_CHECK -> (DUPLICATE | CHAT_UPSERTED) -> MESSAGE_PERSISTED
      -> CLASSIFIED -> (NOT_ADDRESSED
                        | ADDRESSED -> CONTEXT_ASSEMBLED -> GENERATED
                                    -> DISPATCHED -> REPLY_PERSISTED)

Stage failures are captured as ``Result`` values, logged with the turn identity and
turned into a ``TurnOutcome``; the coordinator never raises for pipeline errors.
"""

from datetime import timedelta
from enum import Enum
from typing import Iterable, Optional, Protocol

from sueta.config import DEFAULT_BOT_NAME_VARIANTS
from sueta.logging_config import TurnLogger, get_logger, turn_logger
from sueta.models import NO_UPDATE_ID, Chat, ChatKind, Message
from sueta.schemas.inbound import DispatchReceipt, InboundMessage
from sueta.services.addressing import is_addressed_to_bot
from sueta.services.alert_service import alert_error, alert_warning
from sueta.services.context_service import AssembledContext, ContextAssembler
from sueta.services.conversation_store import ConversationStore
from sueta.services.errors import DuplicateMessage, SuetaError
from sueta.services.generation_service import (
    MAX_HISTORY_MESSAGES,
    ReplyGenerator,
    build_turns,
    format_turn_content,
)
from sueta.services.result import Result

logger = get_logger("ingestion_service")


class TurnOutcome(str, Enum):
    DUPLICATE = "duplicate"
    STORED_NOT_ADDRESSED = "stored_not_addressed"
    STORED_AND_REPLIED = "stored_and_replied"
    STORED_REPLY_FAILED = "stored_reply_failed"


class TurnStage(str, Enum):
    RECEIVED = "received"
    DEDUPE_CHECK = "dedupe_check"
    DUPLICATE = "duplicate"
    CHAT_UPSERTED = "chat_upserted"
    MESSAGE_PERSISTED = "message_persisted"
    CLASSIFIED = "classified"
    NOT_ADDRESSED = "not_addressed"
    ADDRESSED = "addressed"
    CONTEXT_ASSEMBLED = "context_assembled"
    GENERATED = "generated"
    DISPATCHED = "dispatched"
    REPLY_PERSISTED = "reply_persisted"


class ReplyDispatcher(Protocol):
    def send_message(
        self, chat_id: int, text: str, reply_to_message_id: Optional[int] = None
    ) -> DispatchReceipt: ...


def chat_from_inbound(msg: InboundMessage) -> Chat:
    """Chat row for an inbound message. Profile fields only describe private chats."""
    chat = Chat(chat_id=msg.chat_id, kind=msg.chat_kind.value, title=msg.chat_title)
    if msg.chat_kind == ChatKind.PRIVATE:
        chat.username = msg.username
        chat.first_name = msg.first_name
        chat.last_name = msg.last_name
    return chat


def message_from_inbound(msg: InboundMessage, addressed: bool) -> Message:
    return Message(
        chat_id=msg.chat_id,
        message_id=msg.message_id,
        update_id=msg.update_id or NO_UPDATE_ID,
        user_id=msg.user_id,
        username=msg.username,
        first_name=msg.first_name,
        last_name=msg.last_name,
        text=msg.text or "",
        occurred_at=msg.occurred_at,
        is_from_bot=False,
        is_addressed_to_bot=addressed,
    )


def message_from_receipt(chat_id: int, text: str, receipt: DispatchReceipt) -> Message:
    return Message(
        chat_id=chat_id,
        message_id=receipt.message_id,
        update_id=NO_UPDATE_ID,
        user_id=receipt.user_id,
        username=receipt.username,
        first_name=receipt.first_name,
        last_name=receipt.last_name,
        text=text,
        occurred_at=receipt.occurred_at,
        is_from_bot=True,
        is_addressed_to_bot=False,
    )


class IngestionCoordinator:
    """Stores every inbound message and answers the ones addressed to the bot."""

    def __init__(
        self,
        store: ConversationStore,
        assembler: ContextAssembler,
        generator: ReplyGenerator,
        dispatcher: ReplyDispatcher,
        persona: str,
        name_variants: Iterable[str] = DEFAULT_BOT_NAME_VARIANTS,
        recent_window: timedelta = timedelta(days=3),
        exclude_window: Optional[timedelta] = None,
        max_relevant: int = 5,
        max_history: int = MAX_HISTORY_MESSAGES,
    ):
        self.store = store
        self.assembler = assembler
        self.generator = generator
        self.dispatcher = dispatcher
        self.persona = persona
        self.name_variants = tuple(name_variants)
        self.recent_window = recent_window
        self.exclude_window = exclude_window if exclude_window is not None else recent_window
        self.max_relevant = max_relevant
        self.max_history = max_history

    def handle_inbound_message(self, msg: InboundMessage) -> TurnOutcome:
        log = turn_logger(logger, chat_id=msg.chat_id, message_id=msg.message_id, update_id=msg.update_id)
        log.debug("Inbound message received", context={"stage": TurnStage.RECEIVED.value})

        seen = self._check_update_seen(msg, log)
        if seen.unwrap_or(False):
            log.info("Update already processed", context={"stage": TurnStage.DUPLICATE.value})
            return TurnOutcome.DUPLICATE

        self._upsert_chat(msg, log)

        addressed = is_addressed_to_bot(msg, self.name_variants)
        stored = self._persist_inbound(msg, addressed, log)
        if stored.is_duplicate:
            log.info("Message already stored", context={"stage": TurnStage.DUPLICATE.value})
            return TurnOutcome.DUPLICATE
        if not stored.ok:
            alert_warning(
                f"Inbound message not stored: {stored.error}",
                {"chat_id": msg.chat_id, "message_id": msg.message_id, "error_code": stored.error_code},
            )

        log.debug(
            "Message classified",
            context={"stage": TurnStage.CLASSIFIED.value, "addressed": addressed},
        )
        if not addressed:
            return TurnOutcome.STORED_NOT_ADDRESSED

        log = log.bind(stage=TurnStage.ADDRESSED.value)
        reply = self._produce_reply(msg, log)
        if not reply.ok:
            log.error(
                "Reply not produced",
                context={"error": reply.error, "error_code": reply.error_code},
            )
            alert_error(
                f"Reply not produced: {reply.error}",
                {"chat_id": msg.chat_id, "message_id": msg.message_id, "error_code": reply.error_code},
            )
            return TurnOutcome.STORED_REPLY_FAILED

        text, receipt = reply.value
        self._persist_reply(msg.chat_id, text, receipt, log)
        return TurnOutcome.STORED_AND_REPLIED

    def _check_update_seen(self, msg: InboundMessage, log: TurnLogger) -> Result[bool]:
        try:
            return Result.success(self.store.update_id_exists(msg.update_id))
        except SuetaError as exc:
            log.warning(
                "Dedupe check failed, relying on unique index",
                context={"stage": TurnStage.DEDUPE_CHECK.value, **exc.context()},
            )
            return Result.from_error(exc)

    def _upsert_chat(self, msg: InboundMessage, log: TurnLogger) -> Result[None]:
        try:
            self.store.upsert_chat(chat_from_inbound(msg))
        except SuetaError as exc:
            log.error("Chat upsert failed", context={"stage": TurnStage.CHAT_UPSERTED.value, **exc.context()})
            return Result.from_error(exc)
        log.debug("Chat upserted", context={"stage": TurnStage.CHAT_UPSERTED.value})
        return Result.success()

    def _persist_inbound(self, msg: InboundMessage, addressed: bool, log: TurnLogger) -> Result[None]:
        try:
            self.store.insert_message(message_from_inbound(msg, addressed))
        except DuplicateMessage as exc:
            return Result.from_error(exc)
        except SuetaError as exc:
            log.error(
                "Message insert failed",
                context={"stage": TurnStage.MESSAGE_PERSISTED.value, **exc.context()},
            )
            return Result.from_error(exc)
        log.debug("Message stored", context={"stage": TurnStage.MESSAGE_PERSISTED.value})
        return Result.success()

    def _produce_reply(self, msg: InboundMessage, log: TurnLogger) -> Result[tuple]:
        """Assemble context, generate and dispatch. Any pipeline error ends the branch."""
        try:
            context = self._assemble(msg)
            log.debug(
                "Context assembled",
                context={
                    "stage": TurnStage.CONTEXT_ASSEMBLED.value,
                    "recent": len(context.recent),
                    "relevant": len(context.relevant),
                },
            )

            turns = build_turns(context, exclude_message_id=msg.message_id, max_history=self.max_history)
            current_turn = format_turn_content(message_from_inbound(msg, addressed=True))
            text = self.generator.generate(self.persona, turns, current_turn)
            log.debug("Reply generated", context={"stage": TurnStage.GENERATED.value, "length": len(text)})

            receipt = self.dispatcher.send_message(msg.chat_id, text, reply_to_message_id=msg.message_id)
            log.info(
                "Reply dispatched",
                context={"stage": TurnStage.DISPATCHED.value, "reply_message_id": receipt.message_id},
            )
        except SuetaError as exc:
            return Result.from_error(exc)
        return Result.success((text, receipt))

    def _assemble(self, msg: InboundMessage) -> AssembledContext:
        return self.assembler.assemble_context(
            msg.chat_id,
            msg.text,
            recent_window=self.recent_window,
            max_relevant=self.max_relevant,
            exclude_window=self.exclude_window,
        )

    def _persist_reply(self, chat_id: int, text: str, receipt: DispatchReceipt, log: TurnLogger) -> Result[None]:
        try:
            self.store.insert_message(message_from_receipt(chat_id, text, receipt))
        except SuetaError as exc:
            log.error(
                "Dispatched reply not stored",
                context={"stage": TurnStage.REPLY_PERSISTED.value, **exc.context()},
            )
            alert_warning(
                f"Dispatched reply not stored: {exc}",
                {"chat_id": chat_id, "reply_message_id": receipt.message_id},
            )
            return Result.from_error(exc)
        log.debug("Reply stored", context={"stage": TurnStage.REPLY_PERSISTED.value})
        return Result.success()
