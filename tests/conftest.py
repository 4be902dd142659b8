from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import pytest


def record_line(timestamp: str, devices: Any, keyword: str = "mapDevices") -> str:
    """Return one log line carrying a device payload."""
    return f"[{timestamp}] [info] systray: {keyword} {json.dumps(devices)}\n"


def device(serial: str, level: int = 50, charging: bool = False, **extra: Any) -> dict:
    raw = {
        "serialNumber": serial,
        "hasBattery": True,
        "powerStatus": {
            "level": level,
            "chargingStatus": "Charging" if charging else "NoCharge_BatteryFull",
        },
        "name": {"en": f"Device {serial}"},
    }
    raw.update(extra)
    return raw


def write_log(directory: Path, name: str, text: str, mtime: float | None = None) -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Logs"
    path.mkdir()
    return path
