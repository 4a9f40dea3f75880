"""Logging for sitekit builds.

Build messages are mostly about one page in one locale, so page-scoped
loggers prefix every record with ``[<page> <locale>]``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_ROOT = "sitekit"
_CONSOLE_FORMAT = "[sitekit] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``sitekit.<name>``, or the package logger itself."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


class PageLogAdapter(logging.LoggerAdapter):
    """Prefixes records with the page and locale being built."""

    def __init__(self, logger: logging.Logger, page: str, locale: str) -> None:
        super().__init__(logger, {"page": page, "locale": locale})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = self.extra or {}
        return f"[{extra['page']} {extra['locale']}] {msg}", kwargs


def page_logger(logger: logging.Logger, page: object, locale: str) -> PageLogAdapter:
    return PageLogAdapter(logger, str(page), locale)


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Install console output, and a full debug trace in ``log_file`` when given."""
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT)
    logger.propagate = False

    # main() may run more than once per process
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.addHandler(_handler(logging.StreamHandler(), console_level, _CONSOLE_FORMAT))
    level = console_level
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, _FILE_FORMAT))
        level = logging.DEBUG
    logger.setLevel(level)
    return logger


__all__ = ["PageLogAdapter", "configure_logging", "get_logger", "page_logger"]
