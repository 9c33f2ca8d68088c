"""
Telegram side of the companion service.

- Sends completions back with sendMessage (httpx)
- Registers the webhook on startup (python-telegram-bot)

Incoming updates are handled by the /telegram/webhook route in api/telegram.py.
"""

from .telegram_api import (
    TelegramClient,
    TelegramError,
    TelegramUpstreamError,
    split_message,
)
from .webhook import register_webhook

__all__ = [
    "TelegramClient",
    "TelegramError",
    "TelegramUpstreamError",
    "split_message",
    "register_webhook",
]
