from typing import List, Optional

from pydantic_settings import BaseSettings

DEFAULT_BOT_NAME_VARIANTS = [
    "жорик",
    "жорика",
    "жорику",
    "жориком",
    "жорике",
    "жора",
    "жорж",
]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./sueta.db"
    db_statement_timeout_ms: int = 10000
    log_level: str = "INFO"

    telegram_token: str = ""
    webhook_url: Optional[str] = None
    webhook_secret: Optional[str] = None
    telegram_timeout_seconds: float = 30.0

    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "anthropic/claude-3.5-sonnet"
    llm_timeout_seconds: float = 60.0
    llm_temperature: float = 0.9
    llm_max_tokens: int = 1000
    llm_max_history_messages: int = 100

    persona_text: Optional[str] = None
    persona_path: Optional[str] = None
    bot_name_variants: List[str] = DEFAULT_BOT_NAME_VARIANTS

    rag_max_relevant_messages: int = 5
    rag_recent_days: int = 3

    admin_token: Optional[str] = None
    alert_bot_token: Optional[str] = None
    alert_chat_id: Optional[str] = None

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
