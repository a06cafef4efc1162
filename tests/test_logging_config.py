import json
import logging
import sys

from verwatch.logging_config import JsonFormatter


def test_json_formatter_includes_thread_and_exception():
    record = logging.LogRecord("verwatch.test", logging.ERROR, __file__, 1, "check %s failed", ("tool",), None)
    try:
        raise ValueError("bad payload")
    except ValueError:
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "check tool failed"
    assert payload["level"] == "ERROR"
    assert payload["thread"]
    assert "ValueError: bad payload" in payload["exception"]
