"""
Thin entrypoint for `python bot.py`.

Delegates to pingbot.app, which picks webhook or long polling from the
environment (MODE/PUBLIC_URL/PORT/WEBHOOK_SECRET).
"""
import sys

from pingbot.app import main


if __name__ == "__main__":
    sys.exit(main())
