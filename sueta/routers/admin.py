"""Admin API endpoints for inspecting stored history and retrieval."""

from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict

from sueta.config import settings
from sueta.dependencies import get_assembler, get_store
from sueta.services.alert_service import send_alert
from sueta.services.context_service import ContextAssembler
from sueta.services.conversation_store import ConversationStore
from sueta.services.errors import SuetaError

router = APIRouter(prefix="/admin", tags=["admin"])


# === SCHEMAS ===


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    message_id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    text: str
    occurred_at: datetime
    is_from_bot: bool
    is_addressed_to_bot: bool


class ContextResponse(BaseModel):
    chat_id: int
    query: str
    recent: List[MessageOut]
    relevant: List[MessageOut]


class AlertTestResponse(BaseModel):
    success: bool
    message: str


def _require_admin_token(provided: Optional[str]) -> None:
    expected = settings.admin_token
    if not expected:
        raise HTTPException(status_code=500, detail="ADMIN_TOKEN not configured")
    if not provided or provided != expected:
        raise HTTPException(status_code=401, detail="Invalid admin token")


# === HISTORY ===


@router.get("/chats/{chat_id}/messages", response_model=List[MessageOut])
async def get_chat_messages(
    chat_id: int,
    limit: int = Query(default=50, ge=1, le=1000),
    store: ConversationStore = Depends(get_store),
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
):
    _require_admin_token(x_admin_token)
    try:
        messages = await run_in_threadpool(store.last_messages, chat_id, limit)
    except SuetaError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return [MessageOut.model_validate(m) for m in messages]


@router.get("/chats/{chat_id}/context", response_model=ContextResponse)
async def get_chat_context(
    chat_id: int,
    text: str = Query(..., min_length=1),
    assembler: ContextAssembler = Depends(get_assembler),
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
):
    """Context the bot would use to answer ``text`` in this chat right now."""
    _require_admin_token(x_admin_token)
    window = timedelta(days=settings.rag_recent_days)
    try:
        context = await run_in_threadpool(
            assembler.assemble_context,
            chat_id,
            text,
            window,
            settings.rag_max_relevant_messages,
            window,
        )
    except SuetaError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return ContextResponse(
        chat_id=chat_id,
        query=context.query,
        recent=[MessageOut.model_validate(m) for m in context.recent],
        relevant=[MessageOut.model_validate(m) for m in context.relevant],
    )


# === ALERTS ===


@router.post("/alerts/test", response_model=AlertTestResponse)
def alerts_test(x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token")):
    _require_admin_token(x_admin_token)
    sent = send_alert("INFO", "Alerts test", {"source": "admin.alerts_test"})
    if sent:
        return AlertTestResponse(success=True, message="Alert sent")
    return AlertTestResponse(success=False, message="Alert not sent (check ALERT_BOT_TOKEN/ALERT_CHAT_ID)")
