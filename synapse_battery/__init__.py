from __future__ import annotations

__version__ = "0.1.0"


from .config import WatcherConfig, load_watcher_config
from .dedup import DedupGate
from .exceptions import (
    DirectoryMissingError,
    FileReadError,
    InitializationError,
    MalformedPayloadError,
    NoCandidateFileError,
    NoRecordFoundError,
    SynapseBatteryError,
)
from .locator import find_latest_log_file, resolve_latest_log_file
from .models import DeviceRecord, LogRecord, ScanOutcome, WatcherState
from .protocol import find_last_record, parse_devices, scan_log
from .store import DeviceStateStore, merge_devices
from .watcher import WatchController

__all__ = [
    "WatchController",
    "WatcherConfig",
    "load_watcher_config",
    "DedupGate",
    "DeviceStateStore",
    "merge_devices",
    "DeviceRecord",
    "LogRecord",
    "ScanOutcome",
    "WatcherState",
    "find_latest_log_file",
    "resolve_latest_log_file",
    "find_last_record",
    "parse_devices",
    "scan_log",
    "SynapseBatteryError",
    "DirectoryMissingError",
    "NoCandidateFileError",
    "NoRecordFoundError",
    "MalformedPayloadError",
    "FileReadError",
    "InitializationError",
]
