from __future__ import annotations

from telegram import Bot

from pingbot.config import ECHO_TEMPLATE, HELP_PROMPT
from pingbot.models import HandlerResult, NormalizedEvent

HELP_PREFIX = r"/help"


async def help_text(event: NormalizedEvent, bot: Bot) -> HandlerResult:
    await bot.send_message(chat_id=event.chat_id, text=HELP_PROMPT)
    return HandlerResult.success("help_text")


async def echo_message(event: NormalizedEvent, bot: Bot) -> HandlerResult:
    """Default reply for text no other handler claimed."""
    await bot.send_message(chat_id=event.chat_id, text=ECHO_TEMPLATE.format(text=event.text))
    return HandlerResult.success("echo_message")
