from typing import Optional

import httpx

from sueta.logging_config import get_logger
from sueta.schemas.inbound import DispatchReceipt
from sueta.schemas.telegram import TelegramMessage
from sueta.services.errors import DispatchError

logger = get_logger("telegram_service")


class TelegramService:
    """Service for sending messages to Telegram."""

    BASE_URL = "https://api.telegram.org/bot{token}"

    def __init__(self, bot_token: str, timeout_seconds: float = 30.0):
        self.bot_token = bot_token
        self.base_url = self.BASE_URL.format(token=bot_token)
        self.timeout_seconds = timeout_seconds

    def _make_request(self, method: str, data: Optional[dict] = None) -> dict:
        """Make request to Telegram API. Raises DispatchError unless Telegram answers ok."""
        url = f"{self.base_url}/{method}"
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                response = client.post(url, json=data or {})
                payload = response.json()
        except httpx.TimeoutException as e:
            raise DispatchError(f"Telegram {method} timed out after {self.timeout_seconds}s") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Telegram API error: {e}")
            raise DispatchError(f"Telegram {method} failed: {e}") from e

        if not payload.get("ok"):
            raise DispatchError(
                f"Telegram {method} returned error {payload.get('error_code')}: {payload.get('description')}"
            )
        return payload

    def send_message(
        self,
        chat_id: int,
        text: str,
        reply_to_message_id: Optional[int] = None,
    ) -> DispatchReceipt:
        """Send message to Telegram chat and return what Telegram recorded."""
        data = {
            "chat_id": chat_id,
            "text": text,
        }
        if reply_to_message_id:
            data["reply_to_message_id"] = reply_to_message_id
            data["allow_sending_without_reply"] = True

        payload = self._make_request("sendMessage", data)
        try:
            sent = TelegramMessage.model_validate(payload["result"])
        except (KeyError, ValueError) as e:
            raise DispatchError(f"Unexpected sendMessage result: {payload}", chat_id=chat_id) from e

        author = sent.from_user
        return DispatchReceipt(
            message_id=sent.message_id,
            occurred_at=sent.occurred_at,
            user_id=author.id if author else None,
            username=author.username if author else None,
            first_name=author.first_name if author else None,
            last_name=author.last_name if author else None,
        )

    def set_webhook(self, url: str, secret_token: Optional[str] = None) -> None:
        """Register the webhook URL with Telegram."""
        data = {"url": url, "allowed_updates": ["message"]}
        if secret_token:
            data["secret_token"] = secret_token
        self._make_request("setWebhook", data)
        logger.info("Telegram webhook registered", extra={"context": {"url": url}})
