"""Tests for logging setup."""

import io
import logging

import pytest

from blindbid.utils.logger import BlindBidLogger, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    BlindBidLogger.reset()


def test_subsystem_loggers_are_children():
    assert get_logger("auction").name == "blindbid.auction"
    assert get_logger("storage.sqlite").name == "blindbid.storage.sqlite"


def test_console_output():
    stream = io.StringIO()
    BlindBidLogger.setup(level=logging.INFO, stream=stream)

    get_logger("auction").info("New highest bid 3100")
    get_logger("auction").debug("hidden")

    output = stream.getvalue()
    assert "New highest bid 3100" in output
    assert "blindbid.auction" in output
    assert "hidden" not in output


def test_setup_again_replaces_handlers():
    first, second = io.StringIO(), io.StringIO()
    BlindBidLogger.setup(level=logging.INFO, stream=first)
    BlindBidLogger.setup(level=logging.DEBUG, stream=second)

    get_logger("journal").debug("detail")

    assert first.getvalue() == ""
    assert "detail" in second.getvalue()


def test_file_logging(tmp_path):
    setup_logging(level=logging.WARNING, log_dir=str(tmp_path / "logs"), log_to_file=True)
    get_logger("journal").warning("reveal rolled back")
    BlindBidLogger.reset()

    content = (tmp_path / "logs" / "blindbid.log").read_text(encoding="utf-8")
    assert "WARNING" in content
    assert "blindbid.journal reveal rolled back" in content


def test_reset_leaves_only_null_handler():
    BlindBidLogger.setup(stream=io.StringIO())
    BlindBidLogger.reset()
    handlers = logging.getLogger("blindbid").handlers
    assert all(isinstance(h, logging.NullHandler) for h in handlers)
