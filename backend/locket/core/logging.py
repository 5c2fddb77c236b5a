from __future__ import annotations

import logging

from locket.core.security import redact_secrets


class RedactionFilter(logging.Filter):
    """Log filter that redacts credentials before output."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_secrets(record.getMessage())
        record.args = ()
        return True


def setup_logging(level: str) -> None:
    """Configure application logging with credential redaction."""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Handler-level so records propagated from child loggers are redacted too.
    for handler in root.handlers:
        if not any(isinstance(item, RedactionFilter) for item in handler.filters):
            handler.addFilter(RedactionFilter())
