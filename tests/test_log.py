"""Tests for logging helpers."""

import asyncio
import logging

import pytest

from sttsync.core.errors import RemoteCallTimeout
from sttsync.core.timeouts import call_with_timeout
from sttsync.utils.log import StructuredFormatter, init_logger


@pytest.fixture
def log_dir(tmp_path):
    init_logger(log_dir=tmp_path)
    yield tmp_path
    init_logger()


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("sttsync", logging.INFO, __file__, 1, "[sync] Committed", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _log_text(log_dir) -> str:
    log_files = list(log_dir.glob("sttsync_*.log"))
    assert len(log_files) == 1
    return log_files[0].read_text(encoding="utf-8")


def test_structured_formatter_appends_sorted_extras():
    formatter = StructuredFormatter("%(message)s")
    line = formatter.format(_record(provider_id="groq", field="model"))
    assert line == '[sync] Committed | {"field": "model", "provider_id": "groq"}'


def test_structured_formatter_without_extras():
    formatter = StructuredFormatter("%(message)s")
    assert formatter.format(_record()) == "[sync] Committed"


def test_file_handler_writes_debug_lines(log_dir):
    logger = init_logger(log_dir=log_dir)
    logger.debug("[test] hello", extra={"answer": 42})

    assert '[test] hello | {"answer": 42}' in _log_text(log_dir)


def test_reinit_does_not_duplicate_handlers(log_dir):
    logger = init_logger(log_dir=log_dir)
    assert len(logger.logger.handlers) == 2


@pytest.mark.asyncio
async def test_timeout_is_logged_with_operation(log_dir):
    with pytest.raises(RemoteCallTimeout):
        await call_with_timeout(asyncio.sleep(1), "set_model", timeout_sec=0.01)

    assert '[timeout] set_model timed out after 0.0s | {"operation": "set_model"}' in _log_text(
        log_dir
    )
