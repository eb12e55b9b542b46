from __future__ import annotations


class PingbotError(Exception):
    """Base class for errors raised by pingbot."""


class StartupError(PingbotError):
    """The process cannot start serving in the selected delivery mode."""


class ConfigError(StartupError):
    """Required configuration is missing or invalid."""
