from typing import List, Optional

import httpx

from sueta.logging_config import get_logger
from sueta.services.errors import GenerationError
from sueta.services.llm.base import LLMProvider, LLMResponse

logger = get_logger("llm.openrouter")


class OpenRouterProvider(LLMProvider):
    """OpenRouter (OpenAI-compatible chat completions) provider."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "anthropic/claude-3.5-sonnet",
        base_url: str = "https://openrouter.ai/api/v1",
        default_timeout_seconds: float = 60.0,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.base_url = f"{base_url.rstrip('/')}/chat/completions"
        self.default_timeout_seconds = default_timeout_seconds

    def generate(
        self,
        messages: List[dict],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout_seconds: Optional[float] = None,
    ) -> LLMResponse:
        """Generate response from OpenRouter."""

        model = model or self.default_model
        timeout = timeout_seconds if timeout_seconds is not None else self.default_timeout_seconds
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        logger.debug(f"OpenRouter request: model={model}, messages_count={len(messages)}")

        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(
                    self.base_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                        "X-Title": "Sueta Telegram Bot",
                    },
                    json=payload,
                )
        except httpx.TimeoutException as e:
            raise GenerationError(f"OpenRouter timeout after {timeout}s") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"OpenRouter request failed: {e}") from e

        logger.debug(f"OpenRouter response status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"OpenRouter error: {response.text}")
            raise GenerationError(f"OpenRouter API error: {response.status_code} - {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError("OpenRouter returned invalid JSON") from e

        content = ""
        if data.get("choices"):
            message = data["choices"][0].get("message") or {}
            content = (message.get("content") or "").strip()
        if not content:
            raise GenerationError("OpenRouter returned an empty completion")

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage=data.get("usage"),
        )
