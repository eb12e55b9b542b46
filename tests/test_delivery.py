import asyncio
import json

import pytest
from telegram.error import BadRequest, NetworkError
from telegram.ext import Application
from telegram.request import BaseRequest

from conftest import FakeBot

from pingbot.errors import StartupError
from pingbot.models import DeliveryMode, WebhookRoute
from pingbot.services.delivery import (
    ALLOWED_UPDATES,
    activate_delivery,
    clear_webhook,
    register_webhook,
    select_mode,
)

ROUTE = WebhookRoute.from_secret("hook-secret")


class FakeUpdater:
    def __init__(self):
        self.polling_calls = []

    async def start_polling(self, **kwargs):
        self.polling_calls.append(kwargs)


class FakeApplication:
    def __init__(self, bot):
        self.bot = bot
        self.updater = FakeUpdater()


class RecordingRequest(BaseRequest):
    """Answers Bot API calls locally and records the method names.

    ``failures`` maps a method name to how many of its first calls raise
    NetworkError.
    """

    def __init__(self, failures=None):
        self.methods = []
        self.failures = dict(failures or {})

    @property
    def read_timeout(self):
        return 1.0

    async def initialize(self):
        pass

    async def shutdown(self):
        pass

    async def do_request(self, url, method, request_data=None, **kwargs):
        endpoint = url.rsplit("/", 1)[-1]
        self.methods.append(endpoint)
        if self.failures.get(endpoint, 0) > 0:
            self.failures[endpoint] -= 1
            raise NetworkError("api unreachable")

        if endpoint == "getMe":
            result = {"id": 1, "is_bot": True, "first_name": "Ping", "username": "PingBot"}
        elif endpoint == "getUpdates":
            await asyncio.sleep(0.01)
            result = []
        else:
            result = True
        return 200, json.dumps({"ok": True, "result": result}).encode()


def _application(request):
    return Application.builder().token("123:ABC").request(request).get_updates_request(request).build()



@pytest.mark.parametrize(
    "mode, public_url, expected",
    [
        ("prod", "https://bot.example.com", DeliveryMode.PUSH),
        ("prod", None, DeliveryMode.PULL),
        ("prod", "", DeliveryMode.PULL),
        ("dev", "https://bot.example.com", DeliveryMode.PULL),
        ("dev", None, DeliveryMode.PULL),
        ("staging", "https://bot.example.com", DeliveryMode.PULL),
    ],
)
def test_select_mode(mode, public_url, expected):
    assert select_mode(mode, public_url) is expected


def test_allowed_updates_are_the_fixed_set():
    assert ALLOWED_UPDATES == ["message", "callback_query", "inline_query"]


@pytest.mark.asyncio
async def test_register_webhook_uses_secret_path_and_header(fake_bot):
    await register_webhook(fake_bot, "https://bot.example.com", ROUTE)

    method, _, kwargs = fake_bot.calls[0]
    assert method == "set_webhook"
    assert kwargs["url"] == "https://bot.example.com/webhook/hook-secret"
    assert kwargs["secret_token"] == "hook-secret"
    assert kwargs["allowed_updates"] == ALLOWED_UPDATES


@pytest.mark.asyncio
async def test_register_webhook_failure_is_fatal():
    bot = FakeBot(fail_with=BadRequest("bad webhook: HTTPS url must be provided"))

    with pytest.raises(StartupError):
        await register_webhook(bot, "http://insecure.example.com", ROUTE)


@pytest.mark.asyncio
async def test_clear_webhook_failure_is_swallowed():
    bot = FakeBot(fail_with=NetworkError("unreachable"))

    await clear_webhook(bot)

    assert bot.timeline == ["start:delete_webhook"]


@pytest.mark.asyncio
async def test_push_activation_registers_webhook_and_does_not_poll(fake_bot):
    app = FakeApplication(fake_bot)

    await activate_delivery(DeliveryMode.PUSH, app, "https://bot.example.com", ROUTE)

    assert fake_bot.methods() == ["set_webhook"]
    assert app.updater.polling_calls == []


@pytest.mark.asyncio
async def test_push_activation_without_public_url_is_fatal(fake_bot):
    with pytest.raises(StartupError):
        await activate_delivery(DeliveryMode.PUSH, FakeApplication(fake_bot), None, ROUTE)


@pytest.mark.asyncio
async def test_pull_activation_clears_webhook_then_polls():
    request = RecordingRequest()
    application = _application(request)

    async with application:
        await activate_delivery(DeliveryMode.PULL, application, None, ROUTE)
        assert application.updater.running
        await application.updater.stop()

    # one advisory cleanup of ours, one from the updater's bootstrap
    assert request.methods[:3] == ["getMe", "deleteWebhook", "deleteWebhook"]
    assert "setWebhook" not in request.methods


@pytest.mark.asyncio
async def test_pull_activation_survives_failed_cleanup():
    request = RecordingRequest(failures={"deleteWebhook": 1})
    application = _application(request)

    async with application:
        await activate_delivery(DeliveryMode.PULL, application, None, ROUTE)
        assert application.updater.running
        await application.updater.stop()

    assert request.methods[:3] == ["getMe", "deleteWebhook", "deleteWebhook"]


@pytest.mark.asyncio
async def test_pull_activation_waits_out_bootstrap_failures():
    # our cleanup and the updater's first bootstrap attempt both fail
    request = RecordingRequest(failures={"deleteWebhook": 2})
    application = _application(request)

    async with application:
        await activate_delivery(DeliveryMode.PULL, application, None, ROUTE)
        assert application.updater.running
        await application.updater.stop()

    assert request.methods.count("deleteWebhook") == 3
