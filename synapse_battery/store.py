"""Merge-only device state built from log records."""
from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from .const import CHARGING_STATUS, UNKNOWN_DEVICE_NAME, UNKNOWN_HANDLE
from .models import DeviceRecord

_LOGGER = logging.getLogger(__name__)

SnapshotCallback = Callable[[Mapping[str, DeviceRecord]], None]


def _identifier(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def device_handle(raw: Mapping[str, Any]) -> str | None:
    """Return the serial number, else the container id, or None."""
    handle = _identifier(raw.get("serialNumber")) or _identifier(
        raw.get("deviceContainerId")
    )
    if handle == UNKNOWN_HANDLE:
        return None
    return handle


def _localized(value: Any) -> str | None:
    if isinstance(value, Mapping):
        return _identifier(value.get("en"))
    return None


def _battery_level(power_status: Mapping[str, Any]) -> int:
    level = power_status.get("level")
    if isinstance(level, bool) or not isinstance(level, (int, float)):
        return 0
    if not math.isfinite(level):
        return 0
    return max(0, min(100, int(round(level))))


def device_from_raw(
    raw: Mapping[str, Any], shown_device_handle: str = ""
) -> DeviceRecord | None:
    """Build a DeviceRecord from one raw device object, or None without a handle."""
    handle = device_handle(raw)
    if handle is None:
        return None

    power_status = raw.get("powerStatus")
    if not isinstance(power_status, Mapping):
        power_status = {}

    return DeviceRecord(
        handle=handle,
        name=_localized(raw.get("name"))
        or _localized(raw.get("productName"))
        or UNKNOWN_DEVICE_NAME,
        is_connected=True,
        battery_percentage=_battery_level(power_status),
        is_charging=power_status.get("chargingStatus") == CHARGING_STATUS,
        is_selected=not shown_device_handle or shown_device_handle == handle,
    )


def merge_devices(
    current: Mapping[str, DeviceRecord],
    raw_devices: Iterable[Mapping[str, Any]],
    shown_device_handle: str = "",
) -> tuple[dict[str, DeviceRecord], int]:
    """Return the merged device map and the number of upserted records.

    Only devices reporting a battery are considered. Existing handles that
    are missing from `raw_devices` are kept as they are.
    """
    merged = dict(current)
    updated = 0
    for raw in raw_devices:
        if raw.get("hasBattery") is not True:
            continue
        record = device_from_raw(raw, shown_device_handle)
        if record is None:
            continue
        merged[record.handle] = record
        updated += 1
    return merged, updated


class DeviceStateStore:
    """Device map keyed by handle that only ever grows or overwrites."""

    def __init__(self) -> None:
        """Init the DeviceStateStore."""
        self._devices: dict[str, DeviceRecord] = {}
        self._lock = threading.Lock()
        self._callbacks: list[SnapshotCallback] = []

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, handle: object) -> bool:
        return handle in self._devices

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._devices))

    def get(self, handle: str) -> DeviceRecord | None:
        return self._devices.get(handle)

    def snapshot(self) -> Mapping[str, DeviceRecord]:
        """Return a read-only copy of the device map."""
        with self._lock:
            return MappingProxyType(dict(self._devices))

    def merge(
        self,
        raw_devices: Iterable[Mapping[str, Any]],
        shown_device_handle: str = "",
    ) -> int:
        """Merge a batch of raw devices and notify callbacks."""
        raw_devices = list(raw_devices)
        with self._lock:
            self._devices, updated = merge_devices(
                self._devices, raw_devices, shown_device_handle
            )
            size = len(self._devices)

        _LOGGER.info(
            "Last message: %s devices, %s updated; map size %s",
            len(raw_devices),
            updated,
            size,
        )
        if updated == 0:
            _LOGGER.info("No battery device in this message, keeping previous devices")

        snapshot = self.snapshot()
        _LOGGER.debug(
            "Devices now: %s", [record.summary() for record in snapshot.values()]
        )
        self._fire_callbacks(snapshot)
        return updated

    def register_callback(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a callback to be called with each new snapshot."""

        def unregister_callback() -> None:
            self._callbacks.remove(callback)

        self._callbacks.append(callback)
        return unregister_callback

    def _fire_callbacks(self, snapshot: Mapping[str, DeviceRecord]) -> None:
        """Fire the callbacks."""
        for callback in list(self._callbacks):
            try:
                callback(snapshot)
            except Exception:
                _LOGGER.exception("Device update callback %s failed", callback)
