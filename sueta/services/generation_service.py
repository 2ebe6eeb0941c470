from pathlib import Path
from typing import Iterable, List, Optional

from sueta.logging_config import get_logger
from sueta.models import Message
from sueta.services.context_service import AssembledContext
from sueta.services.errors import GenerationError
from sueta.services.llm import LLMProvider

logger = get_logger("generation_service")

MAX_HISTORY_MESSAGES = 100

DEFAULT_PERSONA = (
    "Ты Жорик, участник чата. Отвечай по-русски, коротко и живо, "
    "в своём характере, и никогда не выходи из роли."
)
RELEVANT_CONTEXT_HEADER = "Что обсуждали в этом чате раньше:"


def load_persona(persona_text: Optional[str] = None, persona_path: Optional[str] = None) -> str:
    """Persona from inline text, then from a file, then the built-in default."""
    if persona_text and persona_text.strip():
        return persona_text.strip()
    if persona_path:
        path = Path(persona_path)
        text = path.read_text(encoding="utf-8").strip()
        if text:
            return text
        logger.warning(f"Persona file is empty: {path}")
    return DEFAULT_PERSONA


def format_turn_content(message: Message) -> str:
    """User turns are prefixed with the author so group chats stay readable."""
    if message.is_from_bot or not message.text:
        return message.text or ""
    author = message.author_name
    return f"{author}: {message.text}" if author else message.text


def format_relevant_context(messages: Iterable[Message]) -> str:
    lines = []
    for message in sorted(messages, key=lambda m: m.occurred_at):
        if not message.text:
            continue
        author = "ты" if message.is_from_bot else (message.author_name or "кто-то")
        lines.append(f"[{message.occurred_at:%Y-%m-%d}] {author}: {message.text}")
    if not lines:
        return ""
    return "\n".join([RELEVANT_CONTEXT_HEADER, *lines])


def get_conversation_history(
    messages: Iterable[Message],
    exclude_message_id: Optional[int] = None,
    limit: int = MAX_HISTORY_MESSAGES,
) -> List[dict]:
    """Chronological chat turns; the message being answered is passed separately."""
    history = []
    for msg in messages:
        if not msg.text or msg.message_id == exclude_message_id:
            continue
        role = "assistant" if msg.is_from_bot else "user"
        history.append({"role": role, "content": format_turn_content(msg)})
    return history[-limit:] if limit > 0 else []


def build_turns(
    context: AssembledContext,
    exclude_message_id: Optional[int] = None,
    max_history: int = MAX_HISTORY_MESSAGES,
) -> List[dict]:
    turns = []
    relevant = format_relevant_context(context.relevant)
    if relevant:
        turns.append({"role": "system", "content": relevant})
    turns.extend(get_conversation_history(context.recent, exclude_message_id, max_history))
    return turns


class ReplyGenerator:
    """Produces the bot's reply text from persona, ordered turns and the current user turn."""

    def __init__(
        self,
        provider: LLMProvider,
        model: Optional[str] = None,
        temperature: float = 0.9,
        max_tokens: int = 1000,
        timeout_seconds: Optional[float] = None,
    ):
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds

    def generate(self, persona: str, turns: List[dict], current_turn: str) -> str:
        messages = [{"role": "system", "content": persona}, *turns]
        if current_turn:
            messages.append({"role": "user", "content": current_turn})

        try:
            response = self.provider.generate(
                messages,
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout_seconds=self.timeout_seconds,
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"LLM provider failed: {e}") from e

        text = (response.content or "").strip()
        if not text:
            raise GenerationError("LLM returned an empty reply")
        return text
