"""
Telegram Bot API client for sending messages.

Simple wrapper for sending completions back to Telegram.
"""

import httpx
from typing import List, Optional

from tg_companion.config import Settings
from tg_companion.schemas import SendMessageRequest
from tg_companion.logging_config import get_logger

logger = get_logger("telegram")

# Telegram rejects sendMessage texts longer than this
MAX_MESSAGE_LENGTH = 4096


class TelegramError(Exception):
    """sendMessage call failed."""


class TelegramUpstreamError(TelegramError):
    """Telegram answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Telegram API error {status_code}: {body}")


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Split text into chunks Telegram accepts.

    Cuts on the last newline inside the limit when there is one,
    otherwise hard-cuts at the limit.
    """
    chunks = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text or not chunks:
        chunks.append(text)
    return chunks


class TelegramClient:
    """
    Client for the Telegram Bot API sendMessage endpoint.

    Args:
        token: Bot token
        base_url: Bot API base (real API or a mock server)
        http_client: Shared httpx client; one is created when omitted
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.telegram.org",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not token.strip():
            raise ValueError("Telegram bot token cannot be empty")
        self.token = token
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "TelegramClient":
        return cls(
            settings.telegram_bot_token,
            base_url=settings.telegram_api_base_url,
            http_client=http_client,
        )

    @property
    def send_message_url(self) -> str:
        return f"{self.base_url}/bot{self.token}/sendMessage"

    async def send_message(self, chat_id: int, text: str) -> None:
        """
        Send message to Telegram chat.

        Args:
            chat_id: Telegram chat ID
            text: Message text, split when over MAX_MESSAGE_LENGTH

        Raises:
            TelegramUpstreamError: Telegram answered non-2xx
            TelegramError: request could not be sent
        """
        for chunk in split_message(text):
            await self._post_message(SendMessageRequest(chat_id=chat_id, text=chunk))

    async def _post_message(self, message: SendMessageRequest) -> None:
        try:
            response = await self.client.post(
                self.send_message_url,
                json=message.model_dump(),
            )
        except httpx.HTTPError as e:
            logger.error(f"HTTP error sending Telegram message: {e}")
            raise TelegramError(f"HTTP error: {e}") from e

        if not response.is_success:
            raise TelegramUpstreamError(response.status_code, response.text)

    async def close(self) -> None:
        """Close HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()
