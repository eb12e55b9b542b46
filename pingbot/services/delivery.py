from __future__ import annotations

import logging
from typing import Optional

from telegram import Bot, Update
from telegram.error import TelegramError
from telegram.ext import Application

from pingbot.errors import StartupError
from pingbot.models import DeliveryMode, WebhookRoute

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = [Update.MESSAGE, Update.CALLBACK_QUERY, Update.INLINE_QUERY]


def select_mode(mode: str, public_url: Optional[str]) -> DeliveryMode:
    """Push only when explicitly in prod *and* reachable from outside."""
    if mode == "prod" and public_url:
        return DeliveryMode.PUSH
    return DeliveryMode.PULL


async def register_webhook(bot: Bot, public_url: str, route: WebhookRoute) -> None:
    try:
        await bot.set_webhook(
            route.url_for(public_url),
            secret_token=route.secret,
            allowed_updates=ALLOWED_UPDATES,
        )
    except TelegramError as exc:
        raise StartupError(f"Webhook registration failed: {exc}") from exc
    logger.info("Webhook registered under %s", public_url)


async def clear_webhook(bot: Bot) -> None:
    """Drop any webhook left behind by a push deployment.

    Advisory only: a stale webhook would starve getUpdates, but failing to
    clear it must not stop the bot from starting.
    """
    try:
        await bot.delete_webhook(drop_pending_updates=False)
    except Exception as exc:
        logger.debug("deleteWebhook failed, continuing: %s", exc)


async def start_long_polling(application: Application) -> None:
    await clear_webhook(application.bot)
    logger.warning("Starting in long polling mode. No webhook endpoint mounted.")
    # The updater deletes the webhook again while bootstrapping. bootstrap_retries=-1
    # keeps retrying that call instead of raising, so it can delay polling but
    # never abort startup.
    await application.updater.start_polling(allowed_updates=ALLOWED_UPDATES, bootstrap_retries=-1)


async def activate_delivery(
    mode: DeliveryMode,
    application: Application,
    public_url: Optional[str],
    route: WebhookRoute,
) -> None:
    if mode is DeliveryMode.PUSH:
        if not public_url:
            raise StartupError("Push mode requires PUBLIC_URL")
        await register_webhook(application.bot, public_url, route)
    else:
        await start_long_polling(application)
