from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Completion backend (LocalAI or OpenAI)
    open_ai_url: str
    open_ai_model: str
    open_ai_api_key: Optional[str] = None  # LocalAI usually runs without a key
    open_ai_api_style: Literal["chat", "completion"] = "chat"

    # Sampling parameters, omitted from the request body when unset
    open_ai_temperature: Optional[float] = None
    open_ai_top_p: Optional[float] = None
    open_ai_top_k: Optional[int] = None
    open_ai_max_context: Optional[int] = None

    # Telegram
    telegram_bot_token: str
    telegram_api_base_url: str = "https://api.telegram.org"
    telegram_webhook_url: str = ""  # Optional: public base URL for setWebhook
    telegram_webhook_secret: str = ""  # Optional: for webhook verification

    # Bearer secret for /chat callers
    api_token: str

    # Server
    server_host_name: str = "127.0.0.1"
    server_host_port: int = 80
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        frozen = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
