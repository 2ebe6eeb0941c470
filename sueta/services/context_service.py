from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

from sueta.logging_config import get_logger
from sueta.models import Message
from sueta.services.conversation_store import ConversationStore
from sueta.services.errors import RetrievalError
from sueta.services.keyword_service import KeywordExtractor

logger = get_logger("context_service")


@dataclass
class AssembledContext:
    recent: List[Message] = field(default_factory=list)
    relevant: List[Message] = field(default_factory=list)
    query: str = ""


class ContextAssembler:
    """Builds generation context: the recent window plus lexically relevant older messages.

    The recent window is required; relevance search is best-effort and degrades to an
    empty list on any failure.
    """

    def __init__(self, store: ConversationStore, extractor: KeywordExtractor):
        self.store = store
        self.extractor = extractor

    def assemble_context(
        self,
        chat_id: int,
        user_message: str,
        recent_window: timedelta,
        max_relevant: int,
        exclude_window: timedelta,
    ) -> AssembledContext:
        try:
            recent = self.store.recent_messages(chat_id, recent_window)
        except Exception as exc:
            raise RetrievalError(f"Recent messages unavailable: {exc}", chat_id=chat_id) from exc

        query = self.extractor.extract_keywords(user_message)
        if not query:
            logger.debug("No keywords extracted", extra={"context": {"chat_id": chat_id}})
            return AssembledContext(recent=recent)

        try:
            relevant = self.store.search_relevant_messages(chat_id, query, max_relevant, exclude_window)
        except Exception as exc:
            logger.warning(
                "Relevant message search failed, using recent window only",
                extra={"context": {"chat_id": chat_id, "query": query, "error": str(exc)}},
            )
            return AssembledContext(recent=recent, query=query)

        recent_ids = {message.id for message in recent}
        relevant = [message for message in relevant if message.id not in recent_ids]

        logger.info(
            "Context assembled",
            extra={
                "context": {
                    "chat_id": chat_id,
                    "query": query,
                    "recent": len(recent),
                    "relevant": len(relevant),
                }
            },
        )
        return AssembledContext(recent=recent, relevant=relevant, query=query)
