from sueta.services.llm.base import LLMProvider, LLMResponse
from sueta.services.llm.openrouter_provider import OpenRouterProvider

__all__ = ["LLMProvider", "LLMResponse", "OpenRouterProvider"]
