"""Process-wide collaborators, built lazily from settings and injected with ``Depends``."""

from datetime import timedelta
from functools import lru_cache

from sueta.config import settings
from sueta.database import engine
from sueta.services.context_service import ContextAssembler
from sueta.services.conversation_store import SQLConversationStore
from sueta.services.generation_service import ReplyGenerator, load_persona
from sueta.services.ingestion_service import IngestionCoordinator
from sueta.services.keyword_service import KeywordConfig, KeywordExtractor
from sueta.services.llm import OpenRouterProvider
from sueta.services.telegram_service import TelegramService


@lru_cache
def get_store() -> SQLConversationStore:
    return SQLConversationStore(engine)


@lru_cache
def get_assembler() -> ContextAssembler:
    extractor = KeywordExtractor(KeywordConfig.from_variants(settings.bot_name_variants))
    return ContextAssembler(get_store(), extractor)


@lru_cache
def get_telegram_service() -> TelegramService:
    return TelegramService(settings.telegram_token, timeout_seconds=settings.telegram_timeout_seconds)


@lru_cache
def get_coordinator() -> IngestionCoordinator:
    provider = OpenRouterProvider(
        api_key=settings.openrouter_api_key,
        default_model=settings.llm_model,
        base_url=settings.openrouter_base_url,
        default_timeout_seconds=settings.llm_timeout_seconds,
    )
    generator = ReplyGenerator(
        provider,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout_seconds=settings.llm_timeout_seconds,
    )
    window = timedelta(days=settings.rag_recent_days)
    return IngestionCoordinator(
        store=get_store(),
        assembler=get_assembler(),
        generator=generator,
        dispatcher=get_telegram_service(),
        persona=load_persona(settings.persona_text, settings.persona_path),
        name_variants=settings.bot_name_variants,
        recent_window=window,
        exclude_window=window,
        max_relevant=settings.rag_max_relevant_messages,
        max_history=settings.llm_max_history_messages,
    )
