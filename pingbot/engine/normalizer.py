from __future__ import annotations

from typing import Optional

from telegram import MessageEntity, Update

from pingbot.models import CallbackAction, CommandInvocation, NormalizedEvent, TextMessage


def _sender(update: Update):
    user = update.effective_user
    if user is None:
        return None, ""
    return user.id, user.first_name or ""


def normalize_update(update: Update, bot_username: Optional[str] = None) -> Optional[NormalizedEvent]:
    """
    Turn a Telegram update into the event the router understands.

    Returns None for updates with nothing to route (inline queries,
    messages without text, callback queries without data) and for
    commands addressed to another bot, e.g. "/start@OtherBot" when
    ``bot_username`` is "PingBot". Without a username any suffix is accepted.
    """
    sender_id, sender_name = _sender(update)
    chat = update.effective_chat
    chat_id = chat.id if chat else None

    query = update.callback_query
    if query is not None:
        if not query.data:
            return None
        message = query.message
        return CallbackAction(
            sender_id=sender_id,
            sender_name=sender_name,
            chat_id=chat_id,
            raw=update,
            token=query.data,
            callback_query_id=query.id,
            message_id=message.message_id if message else None,
            inline_message_id=query.inline_message_id,
        )

    message = update.message
    if message is None or not message.text:
        return None

    text = message.text.strip()
    entities = message.entities or ()
    first = entities[0] if entities else None
    if first is not None and first.type == MessageEntity.BOT_COMMAND and first.offset == 0:
        # "/start@SomeBot arg" -> name "start", args ("arg",)
        name, _, addressee = message.text[1:first.length].partition("@")
        if addressee and bot_username and addressee.lower() != bot_username.lower():
            return None
        return CommandInvocation(
            sender_id=sender_id,
            sender_name=sender_name,
            chat_id=chat_id,
            raw=update,
            name=name,
            args=tuple(message.text[first.length:].split()),
            text=text,
        )

    return TextMessage(
        sender_id=sender_id,
        sender_name=sender_name,
        chat_id=chat_id,
        raw=update,
        text=text,
    )
