from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

import httpx
import pytest

from sueta.services.errors import DispatchError
from sueta.services.telegram_service import TelegramService

SENT = {
    "ok": True,
    "result": {
        "message_id": 11,
        "date": 1717243200,
        "chat": {"id": -100500, "type": "supergroup", "title": "Суета"},
        "from": {"id": 777000, "is_bot": True, "first_name": "Жорик", "username": "zhorik_bot"},
        "text": "Я тут",
    },
}


def _client(mock_client_class, payload):
    mock_client = MagicMock()
    mock_client_class.return_value.__enter__.return_value = mock_client
    response = Mock()
    response.json.return_value = payload
    mock_client.post.return_value = response
    return mock_client


class TestSendMessage:
    @patch("sueta.services.telegram_service.httpx.Client")
    def test_returns_receipt(self, mock_client_class):
        mock_client = _client(mock_client_class, SENT)

        receipt = TelegramService("token").send_message(-100500, "Я тут", reply_to_message_id=10)

        assert receipt.message_id == 11
        assert receipt.user_id == 777000
        assert receipt.username == "zhorik_bot"
        assert receipt.first_name == "Жорик"
        assert receipt.occurred_at == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

        url = mock_client.post.call_args[0][0]
        assert url == "https://api.telegram.org/bottoken/sendMessage"
        data = mock_client.post.call_args[1]["json"]
        assert data["chat_id"] == -100500
        assert data["reply_to_message_id"] == 10

    @patch("sueta.services.telegram_service.httpx.Client")
    def test_uses_configured_timeout(self, mock_client_class):
        _client(mock_client_class, SENT)
        TelegramService("token", timeout_seconds=7).send_message(1, "x")
        mock_client_class.assert_called_once_with(timeout=7)

    @patch("sueta.services.telegram_service.httpx.Client")
    def test_not_ok_is_dispatch_error(self, mock_client_class):
        _client(mock_client_class, {"ok": False, "error_code": 403, "description": "bot was kicked"})
        with pytest.raises(DispatchError) as exc_info:
            TelegramService("token").send_message(1, "x")
        assert "bot was kicked" in str(exc_info.value)

    @patch("sueta.services.telegram_service.httpx.Client")
    def test_network_error_is_dispatch_error(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(DispatchError):
            TelegramService("token").send_message(1, "x")

    @patch("sueta.services.telegram_service.httpx.Client")
    def test_timeout_is_dispatch_error(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.side_effect = httpx.ReadTimeout("timed out")
        with pytest.raises(DispatchError) as exc_info:
            TelegramService("token").send_message(1, "x")
        assert exc_info.value.code == "dispatch_error"


class TestSetWebhook:
    @patch("sueta.services.telegram_service.httpx.Client")
    def test_sends_url_and_secret(self, mock_client_class):
        mock_client = _client(mock_client_class, {"ok": True, "result": True})

        TelegramService("token").set_webhook("https://bot.example/telegram-webhook/token", secret_token="s3cret")

        assert mock_client.post.call_args[0][0].endswith("/setWebhook")
        data = mock_client.post.call_args[1]["json"]
        assert data["url"] == "https://bot.example/telegram-webhook/token"
        assert data["secret_token"] == "s3cret"
