"""Tests for sitekit.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from sitekit.logging import configure_logging, get_logger, page_logger


@pytest.fixture
def sitekit_logger():
    logger = logging.getLogger("sitekit")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_get_logger_nests_under_package() -> None:
    assert get_logger().name == "sitekit"
    assert get_logger("builder").name == "sitekit.builder"


def test_page_logger_prefixes_page_and_locale(caplog) -> None:
    log = page_logger(logging.getLogger("pages.under.test"), "res/page/index", "fr")

    with caplog.at_level(logging.INFO, logger="pages.under.test"):
        log.info("Wrote %s", "index.htm")

    assert caplog.messages == ["[res/page/index fr] Wrote index.htm"]


def test_configure_logging_replaces_handlers(sitekit_logger) -> None:
    configure_logging()
    configure_logging(verbose=True)

    assert len(sitekit_logger.handlers) == 1
    assert sitekit_logger.level == logging.DEBUG
    assert sitekit_logger.propagate is False


def test_log_file_receives_debug_records(sitekit_logger, tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "build.log"
    configure_logging(log_file=log_file)

    get_logger("builder").debug("Indexed %d script class(es)", 3)
    for handler in sitekit_logger.handlers:
        handler.flush()

    assert sitekit_logger.handlers[0].level == logging.INFO
    assert "sitekit.builder: Indexed 3 script class(es)" in log_file.read_text(encoding="utf-8")
