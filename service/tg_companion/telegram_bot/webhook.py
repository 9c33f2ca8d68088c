"""
Webhook registration with Telegram.

Uses python-telegram-bot's Bot to point Telegram at our
/telegram/webhook endpoint on startup.
"""

from telegram import Bot
from telegram.error import TelegramError as BotApiError

from tg_companion.config import Settings
from tg_companion.logging_config import get_logger

logger = get_logger("webhook")

WEBHOOK_PATH = "/telegram/webhook"


def webhook_url(settings: Settings) -> str:
    return f"{settings.telegram_webhook_url.rstrip('/')}{WEBHOOK_PATH}"


async def register_webhook(settings: Settings) -> bool:
    """
    Call setWebhook when TELEGRAM_WEBHOOK_URL is configured.

    Returns True if Telegram accepted the webhook. Failures are logged,
    the service keeps running either way.
    """
    if not settings.telegram_webhook_url:
        logger.info("TELEGRAM_WEBHOOK_URL not set, skipping setWebhook")
        return False

    url = webhook_url(settings)
    bot = Bot(
        token=settings.telegram_bot_token,
        base_url=f"{settings.telegram_api_base_url.rstrip('/')}/bot",
    )

    try:
        async with bot:
            result = await bot.set_webhook(
                url=url,
                secret_token=settings.telegram_webhook_secret or None,
                allowed_updates=["message"],
            )
    except BotApiError as e:
        logger.error(f"Failed to set webhook {url}: {e}")
        return False

    if result:
        logger.info(f"Webhook set: {url}")
    else:
        logger.warning(f"Telegram refused webhook: {url}")
    return bool(result)
