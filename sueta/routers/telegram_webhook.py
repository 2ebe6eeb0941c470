import json
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from sueta.config import settings
from sueta.dependencies import get_coordinator
from sueta.logging_config import get_logger
from sueta.models import ChatKind
from sueta.schemas.inbound import InboundMessage
from sueta.schemas.telegram import TelegramUpdate, TelegramWebhookResponse
from sueta.services.ingestion_service import IngestionCoordinator

logger = get_logger("telegram_webhook")

router = APIRouter()


async def parse_telegram_update(request: Request) -> Optional[dict]:
    """
    Parse Telegram update with tolerant decoding to avoid utf-8 crashes.
    Returns dict or None.
    """
    try:
        return await request.json()
    except Exception as e:
        logger.warning(f"Standard request.json() failed: {e}, fallback decoding")

    raw = await request.body()
    for enc in ("utf-8", "latin-1"):
        try:
            decoded = raw.decode(enc, errors="replace")
            return json.loads(decoded)
        except ValueError:
            continue

    logger.error("Failed to decode Telegram webhook payload after fallbacks")
    return None


def inbound_from_update(update: TelegramUpdate) -> InboundMessage:
    """Transport-neutral view of a Telegram message update."""
    message = update.message
    author = message.from_user
    reply_to = message.reply_to_message
    return InboundMessage(
        update_id=update.update_id,
        message_id=message.message_id,
        chat_id=message.chat.id,
        chat_kind=ChatKind.from_telegram(message.chat.type),
        chat_title=message.chat.title,
        user_id=author.id if author else None,
        username=author.username if author else None,
        first_name=author.first_name if author else None,
        last_name=author.last_name if author else None,
        text=message.content,
        occurred_at=message.occurred_at,
        reply_to_author_is_bot=bool(reply_to and reply_to.from_user and reply_to.from_user.is_bot),
    )


def _check_token(token: str, secret_header: Optional[str]) -> None:
    if not settings.telegram_token or not secrets.compare_digest(token.encode(), settings.telegram_token.encode()):
        raise HTTPException(status_code=403, detail="Invalid token")
    secret = (secret_header or "").encode()
    if settings.webhook_secret and not secrets.compare_digest(secret, settings.webhook_secret.encode()):
        raise HTTPException(status_code=403, detail="Invalid secret token")


@router.post("/telegram-webhook/{token}", response_model=TelegramWebhookResponse)
async def handle_telegram_webhook(
    token: str,
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
    coordinator: IngestionCoordinator = Depends(get_coordinator),
):
    """Receive a Telegram update, store it and reply when the bot is addressed."""
    _check_token(token, x_telegram_bot_api_secret_token)

    body = await parse_telegram_update(request)
    if body is None:
        raise HTTPException(status_code=400, detail="Invalid telegram payload")

    try:
        update = TelegramUpdate.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Unexpected Telegram update shape: {e}")
        raise HTTPException(status_code=400, detail="Invalid telegram update") from e

    if update.message is None:
        return TelegramWebhookResponse(success=True, message="No message")

    inbound = inbound_from_update(update)
    outcome = await run_in_threadpool(coordinator.handle_inbound_message, inbound)
    return TelegramWebhookResponse(success=True, outcome=outcome.value)
