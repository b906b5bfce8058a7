"""Tests for session-aware logging."""

import asyncio
import logging

import pytest

from src.logging_context import (
    SessionIdFilter,
    get_session_id,
    get_session_logger,
    set_session_id,
)


class TestSessionLogging:
    def test_filter_injects_session_id(self):
        set_session_id("sess-42")
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
        assert SessionIdFilter().filter(record) is True
        assert record.session_id == "sess-42"

    def test_logger_gets_filter_once(self):
        logger = get_session_logger("tests.session_logger")
        get_session_logger("tests.session_logger")
        filters = [f for f in logger.filters if isinstance(f, SessionIdFilter)]
        assert len(filters) == 1

    @pytest.mark.asyncio
    async def test_session_id_is_per_task(self):
        async def handle(session_id: str) -> str:
            set_session_id(session_id)
            await asyncio.sleep(0)
            return get_session_id()

        results = await asyncio.gather(handle("a"), handle("b"))
        assert results == ["a", "b"]
