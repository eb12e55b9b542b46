"""Webhook gateway: the HTTP listener Telegram pushes updates to."""

from __future__ import annotations

import contextlib
import hmac
import json
import logging
import socket
from typing import Any, Awaitable, Callable, Iterator

import uvicorn
from fastapi import FastAPI, Request, Response
from telegram import Update

from pingbot.errors import StartupError
from pingbot.models import DeliveryMode, WebhookRoute

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

UpdateSink = Callable[[Update], Awaitable[Any]]


def _secret_matches(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode(), expected.encode())


def create_web_app(mode: DeliveryMode, route: WebhookRoute, bot: Any, sink: UpdateSink) -> FastAPI:
    """
    Build the ASGI app served by the listener.

    Only push mode mounts anything: the secret webhook path and /health.
    In pull mode every request falls through to a 404.
    """
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    if mode is DeliveryMode.PUSH:
        _mount_webhook(app, route, bot, sink)
        _mount_health(app)
    return app


def _mount_webhook(app: FastAPI, route: WebhookRoute, bot: Any, sink: UpdateSink) -> None:
    async def telegram_webhook(request: Request) -> Response:
        if not _secret_matches(request.headers.get(SECRET_HEADER, ""), route.secret):
            logger.debug("Rejected webhook request: bad secret header")
            return Response(status_code=401)

        try:
            payload = json.loads(await request.body())
        except (ValueError, UnicodeDecodeError):
            logger.debug("Rejected webhook request: body is not JSON")
            return Response(status_code=400)
        if not isinstance(payload, dict):
            return Response(status_code=400)

        try:
            update = Update.de_json(payload, bot)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.debug("Rejected webhook request: not a Telegram update (%s)", exc)
            return Response(status_code=400)
        if update is None:
            return Response(status_code=400)

        # Acknowledge as soon as the update is queued; handler outcome is
        # never reported back, or Telegram would redeliver.
        await sink(update)
        return Response(status_code=200)

    app.add_api_route(route.path, telegram_webhook, methods=["POST"], include_in_schema=False)


def _mount_health(app: FastAPI) -> None:
    @app.get("/health", include_in_schema=False)
    async def health() -> dict:
        return {"ok": True}


def bind_listener(host: str, port: int) -> socket.socket:
    """Bind and listen before serving so a taken port fails fast."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
        sock.listen(128)
    except OSError as exc:
        sock.close()
        raise StartupError(f"Cannot listen on {host}:{port}: {exc}") from exc
    sock.set_inheritable(True)
    return sock


class Listener(uvicorn.Server):
    """uvicorn server that leaves signal handling to the runner.

    The runner maps SIGINT/SIGTERM onto ``handle_exit`` itself so that the
    bot application can be stopped after the HTTP drain completes.
    """

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        pass


def build_listener(app: FastAPI, shutdown_grace: float) -> Listener:
    config = uvicorn.Config(
        app,
        log_config=None,
        access_log=False,  # request lines would contain the secret path
        lifespan="off",
        timeout_graceful_shutdown=int(shutdown_grace) or 1,
    )
    return Listener(config)
