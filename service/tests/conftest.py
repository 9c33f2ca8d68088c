from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from tg_companion.config import Settings, get_settings
from tg_companion.dependencies import get_backend, get_telegram_client
from tg_companion.main import app
from tg_companion.services.completion import BackendError, CompletionBackend
from tg_companion.telegram_bot.telegram_api import TelegramError

API_TOKEN = "test-api-token"


class FakeBackend(CompletionBackend):
    """Records prompts; returns a fixed reply or raises the given error."""

    style = "fake"

    def __init__(self, reply: str = "Hi back!", error: Optional[BackendError] = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeTelegram:
    """Records sendMessage calls instead of hitting Telegram."""

    def __init__(self, error: Optional[TelegramError] = None):
        self.error = error
        self.sent: List[Tuple[int, str]] = []

    async def send_message(self, chat_id: int, text: str) -> None:
        self.sent.append((chat_id, text))
        if self.error is not None:
            raise self.error

    async def close(self) -> None:
        return None


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        open_ai_url="http://localai.test",
        open_ai_model="mistral",
        telegram_bot_token="123:TEST_TOKEN",
        api_token=API_TOKEN,
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def telegram() -> FakeTelegram:
    return FakeTelegram()


@pytest.fixture
def client(settings, backend, telegram):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_telegram_client] = lambda: telegram
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_TOKEN}"}
