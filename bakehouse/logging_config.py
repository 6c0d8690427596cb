from __future__ import annotations

import logging
import re
from typing import Iterable, Mapping

from flask import Flask

DEV_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
PROD_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
PII_PATTERNS = {
    "email": re.compile(r"[A-Za-z0-9_.+-]+@[A-Za-z0-9-]+\.[A-Za-z0-9-.]+"),
    "token": re.compile(r"(token|api[_-]?key|secret|password|passwd|authorization)\s*[:=]\s*([^\s,;]+)", re.IGNORECASE),
}
NOISY_LOGGERS = ("werkzeug", "sqlalchemy.engine", "alembic")


class PiiRedactionFilter(logging.Filter):
    """Scrub e-mail addresses and credentials from the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except (TypeError, ValueError):  # pragma: no cover - malformed record args
            return True
        msg = PII_PATTERNS["email"].sub("[REDACTED_EMAIL]", msg)
        msg = PII_PATTERNS["token"].sub(lambda m: f"{m.group(1)}=[REDACTED]", msg)
        record.msg = msg
        record.args = None
        return True


def configure_logging(app: Flask) -> None:
    """Apply LOG_LEVEL, formats and redaction to the root, app and package loggers.

    `LOG_LEVELS` may map logger names to levels, e.g.
    {"bakehouse.services.production_service": "INFO"}, to follow one
    orchestrator's state transitions without raising everything else.
    """
    level = _coerce_level(app.config.get("LOG_LEVEL", "DEBUG" if app.debug else "INFO"))
    root = logging.getLogger()
    root.setLevel(level)
    app.logger.setLevel(level)
    logging.getLogger("bakehouse").setLevel(level)

    if level > logging.DEBUG:
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)
    _apply_overrides(app.config.get("LOG_LEVELS") or {})

    if not root.handlers and not app.testing:
        root.addHandler(logging.StreamHandler())

    is_production = app.config.get("ENV") == "production" and not app.debug
    formatter = logging.Formatter(PROD_FORMAT if is_production else DEV_FORMAT)
    redact_pii = app.config.get("LOG_REDACT_PII", True)
    _apply_formatter(root.handlers, formatter, redact_pii)
    _apply_formatter(app.logger.handlers, formatter, redact_pii)


def _apply_overrides(overrides: Mapping[str, object]) -> None:
    for name, raw_level in overrides.items():
        logging.getLogger(name).setLevel(_coerce_level(raw_level))


def _apply_formatter(handlers: Iterable[logging.Handler], formatter: logging.Formatter, redact_pii: bool) -> None:
    for handler in handlers:
        handler.setFormatter(formatter)
        if redact_pii and not any(isinstance(f, PiiRedactionFilter) for f in handler.filters):
            handler.addFilter(PiiRedactionFilter())


def _coerce_level(raw_level) -> int:
    if isinstance(raw_level, int):
        return raw_level
    if isinstance(raw_level, str):
        candidate = raw_level.strip().upper()
        level = logging.getLevelName(candidate)
        return level if isinstance(level, int) else logging.INFO
    return logging.INFO
