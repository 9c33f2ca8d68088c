from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException

from tg_companion.config import Settings, get_settings
from tg_companion.dependencies import get_backend, get_telegram_client
from tg_companion.logging_config import get_logger
from tg_companion.schemas import TelegramUpdate
from tg_companion.services.completion import BackendError, CompletionBackend
from tg_companion.telegram_bot.telegram_api import TelegramClient, TelegramError

logger = get_logger("webhook")

router = APIRouter(prefix="/telegram", tags=["telegram"])


async def relay_message(
    chat_id: int,
    prompt: str,
    backend: CompletionBackend,
    telegram: TelegramClient,
) -> None:
    """
    Ask the backend for a completion and post it back to the chat.

    Runs after the webhook response is sent. Never raises: Telegram already
    got its 200, so failures are only logged.
    """
    try:
        reply = await backend.complete(prompt)
    except BackendError as e:
        logger.error(f"Error calling chat API for chat {chat_id}: {e}")
        return

    try:
        await telegram.send_message(chat_id, reply)
    except TelegramError as e:
        logger.error(f"Failed to send reply to chat {chat_id}: {e}")
        return

    logger.info(f"Replied to chat {chat_id} ({len(reply)} chars)")


@router.post("/webhook")
async def telegram_webhook(
    update: TelegramUpdate,
    background_tasks: BackgroundTasks,
    x_telegram_bot_api_secret_token: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
    backend: CompletionBackend = Depends(get_backend),
    telegram: TelegramClient = Depends(get_telegram_client),
):
    """
    Webhook endpoint for Telegram updates.

    Answers 200 as soon as the update is accepted; the completion and the
    sendMessage call happen in the background. Backend or Telegram errors
    never turn into an error status, so Telegram does not redeliver.
    """
    # Verify secret token if configured
    if settings.telegram_webhook_secret:
        if x_telegram_bot_api_secret_token != settings.telegram_webhook_secret:
            raise HTTPException(status_code=403, detail="Invalid secret token")

    prompt = update.text
    if prompt is None or not prompt.strip():
        raise HTTPException(status_code=400, detail="No Message Text")

    chat_id = update.chat_id
    if chat_id is None:
        raise HTTPException(status_code=400, detail="No Chat Id")

    logger.debug(f"Update {update.update_id} from chat {chat_id}: {prompt!r}")

    background_tasks.add_task(relay_message, chat_id, prompt, backend, telegram)

    return {"ok": True}
