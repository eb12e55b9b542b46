import asyncio
import os
import sys
from typing import Any, Dict, List, Optional

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from telegram import Update


class FakeBot:
    """Records every outbound Bot API call made by handlers."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.calls: List[tuple] = []
        self.timeline: List[str] = []
        self.fail_with = fail_with

    async def _record(self, method: str, *args: Any, **kwargs: Any):
        self.timeline.append(f"start:{method}")
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        self.calls.append((method, args, kwargs))
        self.timeline.append(f"end:{method}")
        return True

    async def send_message(self, chat_id, text, **kwargs):
        return await self._record("send_message", chat_id=chat_id, text=text, **kwargs)

    async def edit_message_text(self, text, **kwargs):
        return await self._record("edit_message_text", text=text, **kwargs)

    async def answer_callback_query(self, callback_query_id, **kwargs):
        return await self._record("answer_callback_query", callback_query_id=callback_query_id, **kwargs)

    async def set_webhook(self, url, **kwargs):
        return await self._record("set_webhook", url=url, **kwargs)

    async def delete_webhook(self, **kwargs):
        return await self._record("delete_webhook", **kwargs)

    def methods(self) -> List[str]:
        return [c[0] for c in self.calls]


USER = {"id": 7, "is_bot": False, "first_name": "Ada"}


def message_payload(text: str, update_id: int = 1, chat_id: int = 42, command: bool = False) -> Dict:
    message = {
        "message_id": 10,
        "date": 1700000000,
        "chat": {"id": chat_id, "type": "private"},
        "from": USER,
        "text": text,
    }
    if command:
        message["entities"] = [{"type": "bot_command", "offset": 0, "length": len(text.split()[0])}]
    return {"update_id": update_id, "message": message}


def callback_payload(data: Optional[str], update_id: int = 2, chat_id: int = 42) -> Dict:
    query = {
        "id": "cbq-1",
        "from": USER,
        "chat_instance": "ci-1",
        "message": {
            "message_id": 99,
            "date": 1700000000,
            "chat": {"id": chat_id, "type": "private"},
            "text": "menu",
        },
    }
    if data is not None:
        query["data"] = data
    return {"update_id": update_id, "callback_query": query}


def to_update(payload: Dict) -> Update:
    return Update.de_json(payload, None)


@pytest.fixture
def fake_bot():
    return FakeBot()
