"""
Shared clients for route handlers.

Clients are created once on startup (see main.py) and kept on app.state;
handlers receive them through Depends so tests can swap them out.
"""

from fastapi import Request

from tg_companion.services.completion import CompletionBackend
from tg_companion.telegram_bot.telegram_api import TelegramClient


def get_backend(request: Request) -> CompletionBackend:
    return request.app.state.backend


def get_telegram_client(request: Request) -> TelegramClient:
    return request.app.state.telegram
