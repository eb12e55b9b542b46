"""Telegram bot front end with webhook and long-polling delivery."""

__version__ = "0.1.0"
