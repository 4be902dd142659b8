"""
Command line runner.

By default the watcher keeps running and prints every device snapshot.
Use `--once` to locate the log, scan it a single time and exit.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from collections.abc import Mapping
from pathlib import Path

from .config import WatcherConfig, get_log_level, load_config
from .exceptions import SynapseBatteryError
from .locator import find_latest_log_file
from .models import DeviceRecord
from .protocol import scan_log
from .store import DeviceStateStore
from .watcher import WatchController

_LOGGER = logging.getLogger(__name__)


def _print_devices(devices: Mapping[str, DeviceRecord]) -> None:
    if not devices:
        print("No battery devices known", flush=True)
        return
    for record in devices.values():
        marker = "*" if record.is_selected else " "
        print(f"{marker} {record.handle}: {record.summary()}", flush=True)


def _run_once(config: WatcherConfig) -> int:
    path = find_latest_log_file(config.log_dir)
    if path is None:
        return 1
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
        timestamp, devices = scan_log(text)
    except (OSError, SynapseBatteryError) as ex:
        print(f"{path.name}: {ex}", file=sys.stderr)
        return 1

    store = DeviceStateStore()
    store.merge(devices, config.shown_device_handle)
    print(f"{path.name} @ {timestamp}", flush=True)
    _print_devices(store.snapshot())
    return 0


async def _run_forever(config: WatcherConfig) -> None:
    controller = WatchController(config)
    controller.register_callback(_print_devices)
    await controller.async_start()
    try:
        await asyncio.Event().wait()
    finally:
        controller.stop()


def _build_config(args: argparse.Namespace) -> tuple[WatcherConfig, str]:
    data = load_config(args.config) if args.config else {}
    config = WatcherConfig.from_mapping(data).with_overrides(
        log_dir=args.log_dir,
        polling_interval_s=args.interval,
        shown_device_handle=args.shown_device,
    )
    return config, args.log_level or get_log_level(data)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="synapse-battery",
        description="Follow Razer Synapse logs and report device battery levels.",
    )
    ap.add_argument("--config", type=Path, help="YAML configuration file")
    ap.add_argument("--log-dir", type=Path, help="Directory holding the systray logs")
    ap.add_argument("--interval", type=float, help="Polling interval in seconds")
    ap.add_argument("--shown-device", help="Handle of the device shown in the tray")
    ap.add_argument("--log-level", help="Logging level, e.g. DEBUG or INFO")
    ap.add_argument("--once", action="store_true", help="Scan once and exit")
    args = ap.parse_args(argv)

    try:
        config, level = _build_config(args)
    except SynapseBatteryError as ex:
        print(ex, file=sys.stderr)
        return 2
    if not math.isfinite(config.polling_interval_s) or config.polling_interval_s <= 0:
        ap.error("--interval must be a finite number greater than zero")
    if not isinstance(logging.getLevelName(level.upper()), int):
        ap.error(f"unknown log level: {level}")

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.once:
        return _run_once(config)
    try:
        asyncio.run(_run_forever(config))
    except KeyboardInterrupt:
        _LOGGER.info("Interrupted, stopping")
    return 0


if __name__ == "__main__":
    sys.exit(main())
