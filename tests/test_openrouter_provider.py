from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest

from sueta.services.errors import GenerationError
from sueta.services.llm import OpenRouterProvider

MESSAGES = [{"role": "user", "content": "Привет"}]


def _response(status_code=200, payload=None):
    response = Mock()
    response.status_code = status_code
    response.text = "error body"
    response.json.return_value = payload
    return response


class TestOpenRouterProvider:
    @patch("sueta.services.llm.openrouter_provider.httpx.Client")
    def test_returns_first_choice(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = _response(
            payload={"model": "anthropic/claude-3.5-sonnet", "choices": [{"message": {"content": "Здорово!"}}]}
        )

        provider = OpenRouterProvider(api_key="key")
        result = provider.generate(MESSAGES, temperature=0.9, max_tokens=100)

        assert result.content == "Здорово!"
        url = mock_client.post.call_args[0][0]
        assert url == "https://openrouter.ai/api/v1/chat/completions"
        headers = mock_client.post.call_args[1]["headers"]
        assert headers["Authorization"] == "Bearer key"
        payload = mock_client.post.call_args[1]["json"]
        assert payload["model"] == "anthropic/claude-3.5-sonnet"
        assert payload["messages"] == MESSAGES
        mock_client_class.assert_called_once_with(timeout=60.0)

    @patch("sueta.services.llm.openrouter_provider.httpx.Client")
    def test_timeout_override(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = _response(payload={"choices": [{"message": {"content": "ok"}}]})

        OpenRouterProvider(api_key="key").generate(MESSAGES, timeout_seconds=5)

        mock_client_class.assert_called_once_with(timeout=5)

    @patch("sueta.services.llm.openrouter_provider.httpx.Client")
    def test_empty_choices_is_error(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = _response(payload={"choices": []})

        with pytest.raises(GenerationError):
            OpenRouterProvider(api_key="key").generate(MESSAGES)

    @patch("sueta.services.llm.openrouter_provider.httpx.Client")
    def test_http_error_status(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = _response(status_code=429)

        with pytest.raises(GenerationError) as exc_info:
            OpenRouterProvider(api_key="key").generate(MESSAGES)
        assert "429" in str(exc_info.value)

    @patch("sueta.services.llm.openrouter_provider.httpx.Client")
    def test_timeout_is_generation_error(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(GenerationError) as exc_info:
            OpenRouterProvider(api_key="key").generate(MESSAGES)
        assert exc_info.value.code == "generation_error"
