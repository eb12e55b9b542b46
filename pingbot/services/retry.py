from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from telegram.error import NetworkError, RetryAfter
from telegram.request import HTTPXRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_everything(exc: BaseException) -> bool:
    return True


def transient_only(exc: BaseException) -> bool:
    """Stricter classifier: only connection problems, timeouts and flood waits."""
    return isinstance(exc, (NetworkError, RetryAfter))


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 2
    retryable: Callable[[BaseException], bool] = retry_everything

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


DEFAULT_RETRY_POLICY = RetryPolicy()


async def call_with_retry(operation: Callable[[], Awaitable[T]], policy: RetryPolicy = DEFAULT_RETRY_POLICY) -> T:
    """
    Run ``operation`` and retry it immediately while the policy allows.

    There is no backoff and no shared budget: every call starts with a
    fresh attempt counter. The last error is re-raised unchanged.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= policy.max_attempts or not policy.retryable(exc):
                raise
            logger.debug("Outbound call failed (attempt %d/%d): %s", attempt, policy.max_attempts, exc)
            attempt += 1


class RetryingRequest(HTTPXRequest):
    """HTTPXRequest whose ``post`` goes through :func:`call_with_retry`.

    Every Bot API method funnels through ``post``, so installing this as the
    application's request object covers sendMessage, editMessageText,
    answerCallbackQuery, setWebhook and deleteWebhook in one place.
    """

    def __init__(self, *args: Any, retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.retry_policy = retry_policy

    async def post(self, *args: Any, **kwargs: Any) -> Any:
        return await call_with_retry(functools.partial(super().post, *args, **kwargs), self.retry_policy)
