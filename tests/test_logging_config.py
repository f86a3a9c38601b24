"""
Tests for logging configuration
"""

import json
import logging

from finnhub_mcp.logging_config import (
    HumanReadableFormatter,
    StructuredFormatter,
    clear_request_id,
    get_request_id,
    set_request_id,
)


def _record(message: str = "Search completed", **extra_fields) -> logging.LogRecord:
    record = logging.LogRecord(
        name="finnhub_mcp.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    if extra_fields:
        record.extra_fields = extra_fields
    return record


class TestRequestId:
    def test_set_and_clear(self):
        assert set_request_id("abc123def4") == "abc123def4"
        assert get_request_id() == "abc123def4"

        clear_request_id()

        assert get_request_id() is None

    def test_generated_request_id(self):
        request_id = set_request_id()

        assert len(request_id) == 10
        clear_request_id()


class TestFormatters:
    """Test log formatters"""

    def test_structured_formatter(self):
        set_request_id("req0000001")
        try:
            output = json.loads(StructuredFormatter().format(_record(query="AAPL")))
        finally:
            clear_request_id()

        assert output["message"] == "Search completed"
        assert output["level"] == "INFO"
        assert output["request_id"] == "req0000001"
        assert output["query"] == "AAPL"

    def test_human_readable_formatter(self):
        output = HumanReadableFormatter().format(_record(total_count=3))

        assert "Search completed" in output
        assert "[finnhub_mcp.test]" in output
        assert "total_count=3" in output
