from __future__ import annotations

import logging

_LOGGER = logging.getLogger(__name__)


class DedupGate:
    """Skip records whose timestamp was already consumed."""

    def __init__(self) -> None:
        self._last_timestamp: str | None = None

    @property
    def last_timestamp(self) -> str | None:
        return self._last_timestamp

    def accept(self, timestamp: str) -> bool:
        """Return False for an already seen timestamp, else advance the marker."""
        if timestamp == self._last_timestamp:
            _LOGGER.debug("No new timestamp (%s)", timestamp)
            return False
        self._last_timestamp = timestamp
        return True

    def reset(self) -> None:
        self._last_timestamp = None
