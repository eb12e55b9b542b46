from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union


class DeliveryMode(enum.Enum):
    PUSH = "push"
    PULL = "pull"


class EventKind(enum.Enum):
    COMMAND = "command"
    CALLBACK = "callback"
    TEXT = "text"


@dataclass(frozen=True)
class _EventBase:
    sender_id: Optional[int]
    sender_name: str
    chat_id: Optional[int]
    raw: Any = field(repr=False, compare=False)


@dataclass(frozen=True)
class CommandInvocation(_EventBase):
    name: str = ""
    args: Tuple[str, ...] = ()
    text: str = ""
    kind: EventKind = field(default=EventKind.COMMAND, init=False)


@dataclass(frozen=True)
class CallbackAction(_EventBase):
    token: str = ""
    callback_query_id: str = ""
    message_id: Optional[int] = None
    inline_message_id: Optional[str] = None
    kind: EventKind = field(default=EventKind.CALLBACK, init=False)


@dataclass(frozen=True)
class TextMessage(_EventBase):
    text: str = ""
    kind: EventKind = field(default=EventKind.TEXT, init=False)


NormalizedEvent = Union[CommandInvocation, CallbackAction, TextMessage]


@dataclass(frozen=True)
class WebhookRoute:
    """Secret-derived webhook path plus the header value Telegram must echo.

    The secret doubles as a path segment, so neither field may end up in
    logs or responses.
    """

    path: str = field(repr=False)
    secret: str = field(repr=False)

    @classmethod
    def from_secret(cls, secret: str) -> "WebhookRoute":
        return cls(path=f"/webhook/{secret}", secret=secret)

    def url_for(self, public_url: str) -> str:
        return f"{public_url.rstrip('/')}{self.path}"

    def __repr__(self) -> str:
        return "WebhookRoute(path='/webhook/***')"


@dataclass(frozen=True)
class HandlerResult:
    ok: bool
    handler: Optional[str] = None
    reason: str = ""

    @classmethod
    def success(cls, handler: str) -> "HandlerResult":
        return cls(ok=True, handler=handler)

    @classmethod
    def failure(cls, handler: str, reason: str) -> "HandlerResult":
        return cls(ok=False, handler=handler, reason=reason)

    @classmethod
    def ignored(cls, reason: str) -> "HandlerResult":
        return cls(ok=True, handler=None, reason=reason)

    @property
    def handled(self) -> bool:
        return self.handler is not None
