"""Constants"""

from __future__ import annotations

import os
import re
from pathlib import Path

LOG_FILE_PATTERN = re.compile(r"^systray_systrayv2\d*\.log$", re.IGNORECASE)

RECORD_KEYWORDS = ("connectingDeviceData", "mapDevices", "SYNAPSE_DEVICES_SET")

CHARGING_STATUS = "Charging"
UNKNOWN_HANDLE = "UNKNOWN"
UNKNOWN_DEVICE_NAME = "Unknown Device"

DEFAULT_POLLING_INTERVAL = 5.0
DEFAULT_READ_TIMEOUT = 10.0


def default_log_dir() -> Path:
    """Return the Synapse 4 log directory under LOCALAPPDATA."""
    base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    return Path(base) / "Razer" / "RazerAppEngine" / "User Data" / "Logs"
