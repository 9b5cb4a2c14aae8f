from __future__ import annotations

import io
import logging

from swap_router.logger import TRACE, ColoredFormatter, setup_logging


def test_setup_logging_writes_plain_text_to_non_tty():
    stream = io.StringIO()
    setup_logging("debug", stream=stream)

    logging.getLogger("swap_router.test").debug("fetched %s", "pool")

    output = stream.getvalue()
    assert "DEBUG - fetched pool" in output
    assert "\033[" not in output
    assert logging.getLogger("web3").level == logging.WARNING


def test_trace_level_opens_library_loggers():
    setup_logging("TRACE", stream=io.StringIO())

    assert logging.getLogger().level == TRACE
    assert logging.getLogger("urllib3").level == TRACE


def test_unknown_level_falls_back_to_info():
    setup_logging("chatty", stream=io.StringIO())

    assert logging.getLogger().level == logging.INFO


def test_colored_formatter_restores_level_name():
    formatter = ColoredFormatter(fmt="%(levelname)s %(message)s", use_color=True)
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)

    assert formatter.format(record) == "\033[33m\033[1mWARNING\033[0m careful"
    assert record.levelname == "WARNING"
