from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass
class DeviceRecord:
    handle: str
    name: str
    is_connected: bool = True
    battery_percentage: int = 0
    is_charging: bool = False
    is_selected: bool = True

    def summary(self) -> str:
        """Return a one-line description for logs."""
        state = "charging" if self.is_charging else "on battery"
        return f"{self.name} - {self.battery_percentage}% {state}"


@dataclass(frozen=True)
class LogRecord:
    """The last device record found in a log file."""

    timestamp: str
    payload: str


class WatcherState(Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    WATCHING = "watching"
    ERROR = "error"
    RETRY_SCHEDULED = "retry_scheduled"


class ScanOutcome(Enum):
    """Result of one read-scan-merge cycle."""

    MERGED = "merged"
    NO_NEW_DATA = "no_new_data"
    NO_RECORD = "no_record"
    MALFORMED = "malformed"
    READ_FAILED = "read_failed"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    DISCARDED = "discarded"
