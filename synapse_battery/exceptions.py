from __future__ import annotations


class SynapseBatteryError(Exception):
    """Base error for the log watcher."""


class LogFileNotFoundError(SynapseBatteryError):
    """No log file could be resolved."""


class DirectoryMissingError(LogFileNotFoundError):
    """The log directory does not exist."""


class NoCandidateFileError(LogFileNotFoundError):
    """The log directory holds no file matching the naming convention."""


class NoRecordFoundError(SynapseBatteryError):
    """The log text holds no complete device record."""


class MalformedPayloadError(SynapseBatteryError):
    """The JSON payload following a record marker could not be decoded."""


class FileReadError(SynapseBatteryError):
    """The log file could not be read."""


class InitializationError(SynapseBatteryError):
    """The watcher could not reach the watching state."""


class ConfigError(SynapseBatteryError):
    """The configuration is missing or invalid."""
