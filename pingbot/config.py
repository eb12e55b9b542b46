"""
Configuration for the ping bot.

Values come from environment variables, optionally loaded from a local
.env file. They are read once at startup; there is no hot reload.
"""
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from pingbot.errors import ConfigError

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_WEBHOOK_SECRET = "change-me"
DEFAULT_HANDLER_TIMEOUT = 10.0
DEFAULT_SHUTDOWN_GRACE = 10.0

# Telegram only accepts these characters in secret_token
_SECRET_RE = re.compile(r"^[A-Za-z0-9_-]{1,256}$")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Reply texts
WELCOME_MESSAGE = "Hi {first_name}! I'm online 🚀"
PING_BUTTON = "Ping"
HELP_BUTTON = "Help"
PONG_ALERT = "pong"
PONG_MESSAGE = "Pong 🏓 (minimal latency)"
HELP_MESSAGE = "Commands:\n/start - start the bot\n/help - get help"
HELP_PROMPT = "Need help? Just write."
ECHO_TEMPLATE = "You wrote: “{text}”"


@dataclass(frozen=True)
class Settings:
    bot_token: str = field(repr=False)
    public_url: Optional[str] = None
    mode: str = "dev"
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    webhook_secret: str = field(default=DEFAULT_WEBHOOK_SECRET, repr=False)
    handler_timeout: float = DEFAULT_HANDLER_TIMEOUT
    shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE
    log_level: str = "INFO"

    @property
    def uses_default_secret(self) -> bool:
        return self.webhook_secret == DEFAULT_WEBHOOK_SECRET


def _seconds(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment (or an explicit mapping, for tests).

    MODE defaults to "prod" when PUBLIC_URL is set and "dev" otherwise, but only
    when MODE is absent; a set MODE is taken verbatim (case and all).
    """
    if env is None:
        load_dotenv()
        env = os.environ

    token = env.get("BOT_TOKEN") or env.get("TOKEN")
    if not token:
        raise ConfigError("BOT_TOKEN not set in environment variables!")

    public_url = (env.get("PUBLIC_URL") or "").strip().rstrip("/") or None
    mode = env.get("MODE")
    if mode is None:
        mode = "prod" if public_url else "dev"

    raw_port = env.get("PORT", str(DEFAULT_PORT))
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {raw_port!r}") from None
    if not 0 <= port <= 65535:
        raise ConfigError(f"PORT out of range: {port}")

    secret = env.get("WEBHOOK_SECRET") or DEFAULT_WEBHOOK_SECRET
    if not _SECRET_RE.match(secret):
        # do not echo the value back, it is a credential
        raise ConfigError("WEBHOOK_SECRET may only contain A-Z, a-z, 0-9, _ and - (1-256 chars)")

    log_level = (env.get("LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {log_level!r}")

    return Settings(
        bot_token=token,
        public_url=public_url,
        mode=mode,
        port=port,
        host=env.get("HOST") or DEFAULT_HOST,
        webhook_secret=secret,
        handler_timeout=_seconds(env, "HANDLER_TIMEOUT", DEFAULT_HANDLER_TIMEOUT),
        shutdown_grace=_seconds(env, "SHUTDOWN_GRACE", DEFAULT_SHUTDOWN_GRACE),
        log_level=log_level,
    )
