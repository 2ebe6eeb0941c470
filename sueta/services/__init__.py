from sueta.services.addressing import is_addressed_to_bot
from sueta.services.context_service import AssembledContext, ContextAssembler
from sueta.services.conversation_store import ConversationStore, SQLConversationStore
from sueta.services.errors import (
    DispatchError,
    DuplicateMessage,
    GenerationError,
    RetrievalError,
    StorageError,
    SuetaError,
)
from sueta.services.ingestion_service import IngestionCoordinator, TurnOutcome, TurnStage
from sueta.services.keyword_service import KeywordConfig, KeywordExtractor
