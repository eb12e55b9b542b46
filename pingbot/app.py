"""
Ping Bot - runner.

Builds the process-wide singletons (bot application, HTTP listener),
activates exactly one delivery mode and shuts everything down on
SIGINT/SIGTERM.
"""
from __future__ import annotations

import asyncio
import logging
import signal

from telegram import Update
from telegram.ext import Application, ContextTypes, TypeHandler

from pingbot.config import Settings, load_settings
from pingbot.errors import StartupError
from pingbot.gateway import bind_listener, build_listener, create_web_app
from pingbot.handlers import build_router
from pingbot.logging import configure_logging
from pingbot.models import DeliveryMode, WebhookRoute
from pingbot.services.delivery import activate_delivery, select_mode
from pingbot.services.retry import DEFAULT_RETRY_POLICY, RetryingRequest, RetryPolicy

logger = logging.getLogger("pingbot")


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Last resort for anything escaping the router; never re-raises."""
    update_id = update.update_id if isinstance(update, Update) else None
    logger.error("Unhandled error while processing update %s", update_id, exc_info=context.error)


def build_application(settings: Settings, retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY) -> Application:
    application = (
        Application.builder()
        .token(settings.bot_token)
        .request(RetryingRequest(retry_policy=retry_policy))
        .job_queue(None)
        .concurrent_updates(True)
        .build()
    )
    router = build_router(application.bot, handler_timeout=settings.handler_timeout)
    application.add_handler(TypeHandler(Update, router.on_update))
    application.add_error_handler(error_handler)
    return application


async def run(settings: Settings) -> None:
    mode = select_mode(settings.mode, settings.public_url)
    route = WebhookRoute.from_secret(settings.webhook_secret)
    if mode is DeliveryMode.PUSH and settings.uses_default_secret:
        logger.warning("WEBHOOK_SECRET is the default value; set a private one for production")

    application = build_application(settings)
    web_app = create_web_app(mode, route, application.bot, application.update_queue.put)
    listener = build_listener(web_app, settings.shutdown_grace)

    sock = bind_listener(settings.host, settings.port)
    logger.info("Listening on %s:%s (mode: %s, delivery: %s)", settings.host, settings.port, settings.mode, mode.value)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, listener.handle_exit, sig, None)

    try:
        async with application:
            await application.start()
            try:
                await activate_delivery(mode, application, settings.public_url, route)
                await listener.serve(sockets=[sock])
            finally:
                if application.updater is not None and application.updater.running:
                    await application.updater.stop()
                await application.stop()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        sock.close()


def main() -> int:
    try:
        settings = load_settings()
    except StartupError as exc:
        configure_logging()
        logger.critical("%s", exc)
        return 1

    configure_logging(settings.log_level, secrets=(settings.bot_token, settings.webhook_secret))
    try:
        asyncio.run(run(settings))
    except StartupError as exc:
        logger.critical("Startup failed: %s", exc)
        return 1
    except Exception:
        logger.critical("Bot stopped with an unrecoverable error", exc_info=True)
        return 1

    logger.info("Shutdown complete")
    return 0
