from __future__ import annotations

import asyncio
import logging

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup

from pingbot.config import HELP_BUTTON, HELP_MESSAGE, PING_BUTTON, PONG_ALERT, PONG_MESSAGE, WELCOME_MESSAGE
from pingbot.models import CallbackAction, CommandInvocation, HandlerResult

logger = logging.getLogger(__name__)

START_KEYBOARD = InlineKeyboardMarkup([
    [
        InlineKeyboardButton(PING_BUTTON, callback_data="ping"),
        InlineKeyboardButton(HELP_BUTTON, callback_data="help"),
    ],
])


async def start_command(event: CommandInvocation, bot: Bot) -> HandlerResult:
    """
    Greets the user and offers the Ping/Help buttons.
    Triggered by the /start command.
    """
    await bot.send_message(
        chat_id=event.chat_id,
        text=WELCOME_MESSAGE.format(first_name=event.sender_name),
        reply_markup=START_KEYBOARD,
    )
    return HandlerResult.success("start_command")


async def ping_callback(event: CallbackAction, bot: Bot) -> HandlerResult:
    """Answer the button press and rewrite the message, both at once."""
    if event.message_id is not None:
        edit = bot.edit_message_text(PONG_MESSAGE, chat_id=event.chat_id, message_id=event.message_id)
    else:
        edit = bot.edit_message_text(PONG_MESSAGE, inline_message_id=event.inline_message_id)

    await asyncio.gather(
        bot.answer_callback_query(event.callback_query_id, text=PONG_ALERT, cache_time=2),
        edit,
    )
    return HandlerResult.success("ping_callback")


async def help_callback(event: CallbackAction, bot: Bot) -> HandlerResult:
    await bot.answer_callback_query(event.callback_query_id)
    if event.chat_id is None:
        # button on an inline message, no chat to write to
        return HandlerResult.failure("help_callback", "callback has no chat")
    await bot.send_message(chat_id=event.chat_id, text=HELP_MESSAGE)
    return HandlerResult.success("help_callback")
