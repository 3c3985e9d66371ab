"""Structured logging utilities for tldrpy."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

EVENT_KEY_ORDER: dict[str, list[str]] = {
    "sync_start": ["ts", "level", "languages", "force", "offline", "cache_dir"],
    "sync_skip": ["ts", "level", "reason", "cache_age_sec", "max_age_sec"],
    "sync_finish": [
        "ts",
        "level",
        "updated",
        "unchanged",
        "skipped",
        "failed",
        "downloads",
        "elapsed_ms",
    ],
    "manifest_fetch": ["ts", "level", "url", "archive_count", "error_type", "error"],
    "archive_download": ["ts", "level", "language", "url", "bytes", "elapsed_ms"],
    "archive_rejected": [
        "ts",
        "level",
        "language",
        "archive",
        "expected",
        "actual",
        "error_type",
        "error",
    ],
    "archive_installed": [
        "ts",
        "level",
        "language",
        "archive",
        "page_count",
        "new_page_count",
        "target",
    ],
    "cache_clean": ["ts", "level", "cache_dir", "removed"],
    "page_lookup": ["ts", "level", "command", "platform", "languages", "found"],
    "page_render_error": ["ts", "level", "source", "issue_count"],
    "httpx_request": [
        "ts",
        "level",
        "logger",
        "http_method",
        "http_url",
        "http_version",
        "http_status",
        "http_reason",
    ],
}
_FALLBACK_KEYS = ["ts", "level", "logger"]
_PATH_FIELDS = frozenset({"cache_dir", "target", "source", "log_file"})

# Format string httpx uses for its per-request INFO line.
_HTTPX_REQUEST_MSG = 'HTTP Request: %s %s "%s %d %s"'


def _local_timestamp() -> str:
    return datetime.now().astimezone().isoformat()


def _decode_json_message(message: str) -> dict[str, Any] | None:
    if not (message.startswith("{") and message.endswith("}")):
        return None
    try:
        decoded = json.loads(message)
    except json.JSONDecodeError:
        return None
    return decoded if isinstance(decoded, dict) else None


def _httpx_request_fields(record: logging.LogRecord) -> dict[str, Any] | None:
    """Split httpx's request line into separate fields, or return None."""
    if record.name != "httpx" or str(record.msg) != _HTTPX_REQUEST_MSG:
        return None
    if not isinstance(record.args, tuple) or len(record.args) != 5:
        return None
    method, url, http_version, status, reason = record.args
    return {
        "event": "httpx_request",
        "http_method": str(method),
        "http_url": str(url),
        "http_version": str(http_version),
        "http_status": status if isinstance(status, int) else str(status),
        "http_reason": str(reason),
    }


class StructuredTextFormatter(logging.Formatter):
    """Render each record as a ``=== event ===`` header plus ``key: value`` lines.

    Messages produced by :func:`log_event` are JSON and contribute their
    fields directly; httpx request lines are decoded; anything else is shown
    under the logger name. Entries after the first are preceded by a blank
    line.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._emitted = False

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "ts": _local_timestamp(),
            "level": record.levelname,
            "logger": record.name,
        }
        message = record.getMessage()
        extra = _decode_json_message(message) or _httpx_request_fields(record)
        if extra is None:
            extra = {"event": record.name, "message": message}
        fields.update(extra)

        event = str(fields.pop("event", record.name))
        block = [f"=== {event} ==="]
        block.extend(f"{key}: {_single_line(fields[key])}" for key in _key_order(event, fields))
        if record.exc_info:
            block.extend(["traceback:", self.formatException(record.exc_info)])

        text = "\n".join(block)
        if self._emitted:
            return "\n" + text
        self._emitted = True
        return text


def _single_line(value: Any) -> str:
    return str(value).replace("\n", "\\n")


def _key_order(event: str, fields: dict[str, Any]) -> list[str]:
    """Known keys for the event first, in table order; the rest sorted."""
    known = EVENT_KEY_ORDER.get(event, _FALLBACK_KEYS)
    present = {key for key, value in fields.items() if value is not None}
    leading = [key for key in known if key in present]
    return leading + sorted(present.difference(known))


def _loggable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, dict):
        return {str(key): _loggable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_loggable(item) for item in value]
    return str(value)


def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Log ``event`` with its fields as one compact JSON message."""
    payload: dict[str, Any] = {"ts": _local_timestamp(), "event": event}
    for key, value in fields.items():
        if key in _PATH_FIELDS and isinstance(value, str):
            value = Path(value).expanduser()
        payload[key] = _loggable(value)
    logging.log(level, json.dumps(payload, ensure_ascii=False, separators=(",", ":")))


def elapsed_ms(started: float, finished: float) -> int:
    return round((finished - started) * 1000)


def setup_logging(log_file: str | Path | None = None) -> None:
    """Send structured logs to ``log_file``; without one, logging is off."""
    if not log_file:
        logging.disable(logging.CRITICAL)
        return

    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(StructuredTextFormatter())
    logging.disable(logging.NOTSET)
    logging.basicConfig(level=logging.INFO, handlers=[handler], force=True)
