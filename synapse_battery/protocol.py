"""Parser for device records embedded in Synapse systray logs.

A record starts on a line of the form

    [2025-01-01 10:00:00.000] [info] ... mapDevices ... [{"serialNumber": ...}]

and its payload is the JSON array opened on that line, which may continue
over the following lines until the bracket that balances the opening one.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any

from .const import RECORD_KEYWORDS
from .exceptions import MalformedPayloadError, NoRecordFoundError
from .models import LogRecord

_LOGGER = logging.getLogger(__name__)

RECORD_MARKER = re.compile(
    r"^\[(?P<timestamp>.+?)\].*?(?:"
    + "|".join(re.escape(keyword) for keyword in RECORD_KEYWORDS)
    + r").*?(?P<open>\[)",
    re.MULTILINE,
)


def _payload_end(text: str, start: int) -> int | None:
    """Return the index just past the bracket balancing text[start]."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def find_last_record(text: str) -> LogRecord | None:
    """Return the last complete record in `text`, or None.

    A marker whose payload is still open at the end of the text (a write
    that is not flushed yet) is ignored.
    """
    last: LogRecord | None = None
    pos = 0
    while match := RECORD_MARKER.search(text, pos):
        start = match.start("open")
        end = _payload_end(text, start)
        if end is None:
            _LOGGER.debug("Ignoring unterminated record at %s", match.group("timestamp"))
            pos = match.end()
            continue
        last = LogRecord(timestamp=match.group("timestamp"), payload=text[start:end])
        pos = end
    return last


def parse_devices(payload: str) -> list[dict[str, Any]]:
    """Decode a record payload into a list of raw device objects.

    Both a bare array and an object with a "devices" array are accepted;
    any other JSON shape yields an empty list.
    """
    try:
        raw = json.loads(payload)
    except (ValueError, RecursionError) as ex:
        raise MalformedPayloadError(f"Invalid device payload: {ex}") from ex

    if isinstance(raw, dict) and isinstance(raw.get("devices"), list):
        raw = raw["devices"]
    if not isinstance(raw, list):
        return []
    return [device for device in raw if isinstance(device, dict)]


def scan_log(text: str) -> tuple[str, list[dict[str, Any]]]:
    """Return the timestamp and devices of the last record in `text`."""
    record = find_last_record(text)
    if record is None:
        raise NoRecordFoundError("No device data found in log")
    return record.timestamp, parse_devices(record.payload)
