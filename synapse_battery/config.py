"""
Configuration for the log watcher.

A single YAML file, all sections optional:

    watcher:
      log_dir: "C:/Users/me/AppData/Local/Razer/RazerAppEngine/User Data/Logs"
      polling_interval_s: 5
      shown_device_handle: ""
      read_timeout_s: 10
    log:
      level: INFO

Unknown keys are ignored. Missing values fall back to defaults; values of
the wrong type raise ConfigError with the offending key.
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .const import DEFAULT_POLLING_INTERVAL, DEFAULT_READ_TIMEOUT, default_log_dir
from .exceptions import ConfigError


def _positive_float(section: dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"watcher.{key} must be a number, got {value!r}")
    if not math.isfinite(number) or number <= 0:
        raise ConfigError(f"watcher.{key} must be greater than zero, got {value!r}")
    return number


@dataclass
class WatcherConfig:
    log_dir: Path = field(default_factory=default_log_dir)
    polling_interval_s: float = DEFAULT_POLLING_INTERVAL
    shown_device_handle: str = ""
    read_timeout_s: float = DEFAULT_READ_TIMEOUT

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "WatcherConfig":
        section = (data or {}).get("watcher", {}) or {}
        if not isinstance(section, dict):
            raise ConfigError("watcher section must be a mapping")

        log_dir = section.get("log_dir")
        shown = section.get("shown_device_handle") or ""
        if not isinstance(shown, str):
            raise ConfigError(f"watcher.shown_device_handle must be a string, got {shown!r}")

        return cls(
            log_dir=Path(os.path.expandvars(str(log_dir))) if log_dir else default_log_dir(),
            polling_interval_s=_positive_float(
                section, "polling_interval_s", DEFAULT_POLLING_INTERVAL
            ),
            shown_device_handle=shown,
            read_timeout_s=_positive_float(section, "read_timeout_s", DEFAULT_READ_TIMEOUT),
        )

    def with_overrides(self, **overrides: Any) -> "WatcherConfig":
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(path: str | os.PathLike[str]) -> dict[str, Any]:
    """Load the YAML mapping at `path`."""
    cfg_path = Path(path)
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Missing configuration file: {cfg_path.resolve()}")
    except OSError as ex:
        raise ConfigError(f"Failed to read {cfg_path}: {type(ex).__name__}: {ex}")

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as ex:
        raise ConfigError(f"Failed to parse YAML {cfg_path}: {ex}")

    if not isinstance(data, dict):
        raise ConfigError(
            f"Root of {cfg_path} must be a mapping/object, not {type(data).__name__}"
        )
    return data


def load_watcher_config(path: str | os.PathLike[str] | None = None) -> WatcherConfig:
    """Return the watcher settings from `path`, or the defaults without a file."""
    if path is None:
        return WatcherConfig()
    return WatcherConfig.from_mapping(load_config(path))


def get_log_level(cfg: dict[str, Any] | None, default: str = "INFO") -> str:
    """Return the configured log level name, e.g. 'INFO' or 'DEBUG'."""
    lvl = ((cfg or {}).get("log", {}) or {}).get("level", default)
    return str(lvl).upper()
