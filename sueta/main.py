import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from sueta.config import settings
from sueta.database import get_db, init_db
from sueta.dependencies import get_store, get_telegram_service
from sueta.logging_config import get_logger, setup_logging
from sueta.models import Chat, Message
from sueta.routers import admin, telegram_webhook
from sueta.services.alert_service import alert_critical
from sueta.services.errors import DispatchError

setup_logging(settings.log_level)

logger = get_logger("main")

app = FastAPI(
    title="Sueta",
    description="Telegram chat companion bot with conversation memory",
    version="0.1.0",
)

cors_env = os.environ.get("CORS_ALLOW_ORIGINS", "*")
cors_origins = [origin.strip() for origin in cors_env.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(telegram_webhook.router)
app.include_router(admin.router)


def _is_webhook_registration_enabled() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return bool(settings.webhook_url and settings.telegram_token)


@app.on_event("startup")
async def startup() -> None:
    init_db()
    if not _is_webhook_registration_enabled():
        return
    url = f"{settings.webhook_url.rstrip('/')}/telegram-webhook/{settings.telegram_token}"
    try:
        get_telegram_service().set_webhook(url, secret_token=settings.webhook_secret)
    except DispatchError as exc:
        logger.error("Webhook registration failed", extra={"context": exc.context()})
        alert_critical(f"Webhook registration failed: {exc}", {"webhook_url": settings.webhook_url})


@app.on_event("shutdown")
async def shutdown() -> None:
    get_store().close()


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/db-check")
def db_check(db: Session = Depends(get_db)):
    return {
        "status": "ok",
        "chats": db.query(Chat).count(),
        "messages": db.query(Message).count(),
    }
