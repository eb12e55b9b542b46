import logging
from typing import Iterable, Union

_TRACEBACKS = logging.Formatter()


class SecretRedactingFilter(logging.Filter):
    """Mask configured secrets (bot token, webhook secret) in log records."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        redacted = self._redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        # Formatter.format reuses exc_text, so render the traceback here and mask it
        if record.exc_info and not record.exc_text:
            record.exc_text = _TRACEBACKS.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self._redact(record.exc_text)
        if record.stack_info:
            record.stack_info = self._redact(record.stack_info)
        return True


def configure_logging(level: Union[int, str] = logging.INFO, secrets: Iterable[str] = ()) -> logging.Logger:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
    )
    # httpx logs every Bot API URL, token included, at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    redactor = SecretRedactingFilter(secrets)
    for handler in logging.getLogger().handlers:
        handler.addFilter(redactor)
    return logging.getLogger("pingbot")
