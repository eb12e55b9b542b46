from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional, Pattern, Tuple, Union

from telegram import Update

from pingbot.engine.normalizer import normalize_update
from pingbot.models import CallbackAction, CommandInvocation, HandlerResult, NormalizedEvent, TextMessage

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Any], Awaitable[Optional[HandlerResult]]]


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__name__", repr(handler))


class EventRouter:
    """
    First-match dispatch of normalized events to handlers.

    Commands are looked up by name, callbacks by token. Anything carrying
    text that no command claimed is matched against the text rules in
    registration order, then handed to the fallback. At most one handler
    runs per event, under ``handler_timeout`` seconds.

    ``route`` never raises: failures and timeouts come back as a
    HandlerResult so one bad update cannot stop the update stream.
    """

    def __init__(self, bot: Any, handler_timeout: Optional[float] = None):
        self._bot = bot
        self._timeout = handler_timeout
        self._commands: Dict[str, Handler] = {}
        self._callbacks: Dict[str, Handler] = {}
        self._text_rules: List[Tuple[Pattern[str], Handler]] = []
        self._fallback: Optional[Handler] = None

    def add_command(self, name: str, handler: Handler) -> None:
        self._commands[name] = handler

    def add_callback(self, token: str, handler: Handler) -> None:
        self._callbacks[token] = handler

    def add_text(self, pattern: Union[str, Pattern[str]], handler: Handler) -> None:
        self._text_rules.append((re.compile(pattern), handler))

    def set_fallback(self, handler: Handler) -> None:
        self._fallback = handler

    def resolve(self, event: NormalizedEvent) -> Optional[Handler]:
        if isinstance(event, CallbackAction):
            return self._callbacks.get(event.token)

        if isinstance(event, CommandInvocation):
            handler = self._commands.get(event.name)
            if handler is not None:
                return handler
        elif not isinstance(event, TextMessage):
            return None

        for pattern, handler in self._text_rules:
            if pattern.match(event.text):
                return handler
        return self._fallback

    async def route(self, event: Optional[NormalizedEvent]) -> HandlerResult:
        if event is None:
            return HandlerResult.ignored("nothing to route")

        handler = self.resolve(event)
        if handler is None:
            logger.debug("No handler for %s event", event.kind.value)
            return HandlerResult.ignored(f"no handler for {event.kind.value}")

        name = _handler_name(handler)
        try:
            result = await asyncio.wait_for(handler(event, self._bot), self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Handler %s timed out after %ss (chat %s)", name, self._timeout, event.chat_id)
            return HandlerResult.failure(name, "timed out")
        except Exception as exc:
            logger.error("Handler %s failed (chat %s): %s", name, event.chat_id, exc, exc_info=True)
            return HandlerResult.failure(name, str(exc) or type(exc).__name__)

        if result is None:
            result = HandlerResult.success(name)
        if not result.ok:
            logger.error("Handler %s reported failure (chat %s): %s", name, event.chat_id, result.reason)
        else:
            logger.debug("Handler %s completed (chat %s)", name, event.chat_id)
        return result

    def _bot_username(self) -> Optional[str]:
        try:
            return getattr(self._bot, "username", None)
        except RuntimeError:
            # telegram.Bot before initialize() has not fetched getMe yet
            return None

    async def dispatch_update(self, update: Update) -> HandlerResult:
        return await self.route(normalize_update(update, self._bot_username()))

    async def on_update(self, update: object, context: Any) -> None:
        """python-telegram-bot callback for a catch-all TypeHandler."""
        if isinstance(update, Update):
            await self.dispatch_update(update)
