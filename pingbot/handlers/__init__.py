from __future__ import annotations

from typing import Any, Optional

from pingbot.engine.router import EventRouter
from pingbot.handlers.commands import help_callback, ping_callback, start_command
from pingbot.handlers.messages import HELP_PREFIX, echo_message, help_text


def build_router(bot: Any, handler_timeout: Optional[float] = None) -> EventRouter:
    router = EventRouter(bot, handler_timeout=handler_timeout)
    router.add_command("start", start_command)
    router.add_callback("ping", ping_callback)
    router.add_callback("help", help_callback)
    router.add_text(HELP_PREFIX, help_text)
    router.set_fallback(echo_message)
    return router
