"""Tests for logging utilities."""

import json
import logging
from pathlib import Path

from tldrpy.logging_utils import StructuredTextFormatter, log_event, setup_logging


def _record(message: str, name: str = "root") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


def test_structured_formatter_orders_event_keys():
    formatter = StructuredTextFormatter()
    payload = {
        "event": "archive_installed",
        "target": "/cache/pages.fr",
        "language": "fr",
        "archive": "tldr-pages.fr.zip",
        "page_count": 10,
        "new_page_count": 2,
    }

    result = formatter.format(_record(json.dumps(payload)))

    lines = result.splitlines()
    assert lines[0] == "=== archive_installed ==="
    keys = [line.split(":", 1)[0] for line in lines[1:]]
    assert keys.index("language") < keys.index("archive") < keys.index("page_count")
    assert keys.index("new_page_count") < keys.index("target")


def test_structured_formatter_extracts_httpx_request_fields():
    formatter = StructuredTextFormatter()
    record = logging.LogRecord(
        name="httpx",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='HTTP Request: %s %s "%s %d %s"',
        args=(
            "GET",
            "https://github.com/tldr-pages/tldr/releases/latest/download/tldr.sha256sums",
            "HTTP/1.1",
            200,
            "OK",
        ),
        exc_info=None,
    )

    result = formatter.format(record)

    assert "=== httpx_request ===" in result
    assert "http_method: GET" in result
    assert "http_status: 200" in result
    assert "message: HTTP Request:" not in result


def test_structured_formatter_separates_entries_with_blank_line():
    formatter = StructuredTextFormatter()

    first = formatter.format(_record("one"))
    second = formatter.format(_record("two"))

    assert not first.startswith("\n")
    assert second.startswith("\n=== root ===")


def test_setup_logging_writes_events_to_file(tmp_path: Path):
    log_path = tmp_path / "logs" / "tldr.log"

    setup_logging(log_path)
    log_event("cache_clean", cache_dir=tmp_path, removed=2)
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)

    text = log_path.read_text(encoding="utf-8")
    assert "=== cache_clean ===" in text
    assert f"cache_dir: {tmp_path}" in text
    assert "removed: 2" in text


def test_setup_logging_without_file_disables_logging():
    setup_logging(None)

    assert logging.getLogger("tldrpy").isEnabledFor(logging.CRITICAL) is False
