from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Mapping
from pathlib import Path
from typing import Any

import async_timeout

from .config import WatcherConfig
from .dedup import DedupGate
from .exceptions import (
    FileReadError,
    InitializationError,
    LogFileNotFoundError,
    MalformedPayloadError,
)
from .locator import resolve_latest_log_file
from .models import DeviceRecord, ScanOutcome, WatcherState
from .protocol import find_last_record, parse_devices
from .store import DeviceStateStore, SnapshotCallback

_LOGGER = logging.getLogger(__name__)

StatKey = tuple[int, int]


def _read_if_changed(
    path: Path, last_stat: StatKey | None, force: bool
) -> tuple[StatKey, str | None]:
    """Return the file stat key and its text, or None as text when unchanged."""
    stat = path.stat()
    key = (stat.st_mtime_ns, stat.st_size)
    if not force and key == last_stat:
        return key, None
    return key, path.read_text(encoding="utf-8", errors="replace")


class WatchController:
    """Follow the newest systray log and keep the device store up to date."""

    def __init__(
        self,
        config: WatcherConfig | None = None,
        store: DeviceStateStore | None = None,
        dedup: DedupGate | None = None,
    ) -> None:
        """Init the WatchController."""
        self._config = config or WatcherConfig()
        self._store = store or DeviceStateStore()
        self._dedup = dedup or DedupGate()
        self.loop = asyncio.get_running_loop()
        self._state = WatcherState.STOPPED
        self._log_path: Path | None = None
        self._last_stat: StatKey | None = None
        self._poll_timer: asyncio.TimerHandle | None = None
        self._retry_timer: asyncio.TimerHandle | None = None
        self._scan_lock = asyncio.Lock()
        self._generation = 0
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def config(self) -> WatcherConfig:
        return self._config

    @property
    def log_path(self) -> Path | None:
        """Return the log file being watched."""
        return self._log_path

    @property
    def store(self) -> DeviceStateStore:
        return self._store

    @property
    def devices(self) -> Mapping[str, DeviceRecord]:
        """Return a read-only snapshot of the known devices."""
        return self._store.snapshot()

    def register_callback(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a callback to be called with each device snapshot."""
        return self._store.register_callback(callback)

    async def async_start(self, config: WatcherConfig | None = None) -> bool:
        """Start watching; on failure a retry is scheduled.

        Returns True when the watcher reached the watching state.
        """
        if config is not None:
            self._config = config
        self.stop()
        self._state = WatcherState.STARTING
        _LOGGER.debug("Starting log watcher in %s", self._config.log_dir)
        try:
            await self._async_initialize()
        except InitializationError as ex:
            _LOGGER.warning("Error during log watcher init: %s", ex)
            self._schedule_retry()
            return False
        except Exception:
            _LOGGER.exception("Unexpected error during log watcher init")
            self._schedule_retry()
            return False
        return True

    def stop(self) -> None:
        """Stop polling and cancel a pending retry."""
        self._generation += 1
        if self._poll_timer:
            self._poll_timer.cancel()
        self._poll_timer = None
        if self._retry_timer:
            self._retry_timer.cancel()
        self._retry_timer = None
        self._log_path = None
        self._last_stat = None
        self._state = WatcherState.STOPPED

    async def async_poll(self) -> ScanOutcome:
        """Run one poll cycle unless the previous one is still running."""
        if self._scan_lock.locked():
            _LOGGER.debug("Previous scan of %s still running, dropping tick", self._log_path)
            return ScanOutcome.SKIPPED
        return await self.async_process_log()

    async def async_process_log(self, force: bool = False) -> ScanOutcome:
        """Read the log and merge its last device record into the store.

        Without `force` the read is skipped while the file's modification
        time and size are unchanged since the previous cycle.
        """
        path = self._log_path
        if path is None:
            return ScanOutcome.DISCARDED
        generation = self._generation

        async with self._scan_lock:
            try:
                stat_key, text = await self._async_read(path, force)
            except FileReadError as ex:
                _LOGGER.warning("%s", ex)
                return ScanOutcome.READ_FAILED

            if generation != self._generation:
                _LOGGER.debug("Watcher stopped while reading %s, discarding", path)
                return ScanOutcome.DISCARDED
            self._last_stat = stat_key
            if text is None:
                return ScanOutcome.UNCHANGED

            _LOGGER.debug("Log change detected in %s (mtime %s)", path.name, stat_key[0])
            return self._process_text(text)

    async def _async_initialize(self) -> None:
        try:
            self._log_path = resolve_latest_log_file(self._config.log_dir)
        except LogFileNotFoundError as ex:
            raise InitializationError(
                f"Log path could not be resolved: {ex}"
            ) from ex
        except OSError as ex:
            raise InitializationError(
                f"Failed to list {self._config.log_dir}: {ex}"
            ) from ex

        self._state = WatcherState.WATCHING
        _LOGGER.info(
            "Watching %s every %ss", self._log_path, self._config.polling_interval_s
        )
        self._arm_poll()
        await self.async_process_log(force=True)

    async def _async_read(
        self, path: Path, force: bool
    ) -> tuple[StatKey, str | None]:
        try:
            async with async_timeout.timeout(self._config.read_timeout_s):
                return await self.loop.run_in_executor(
                    None, _read_if_changed, path, self._last_stat, force
                )
        except asyncio.TimeoutError as ex:
            raise FileReadError(
                f"Timed out after {self._config.read_timeout_s}s reading {path}"
            ) from ex
        except OSError as ex:
            raise FileReadError(f"Failed to read {path}: {ex}") from ex

    def _process_text(self, text: str) -> ScanOutcome:
        record = find_last_record(text)
        if record is None:
            _LOGGER.warning("No device data found in log")
            return ScanOutcome.NO_RECORD

        if not self._dedup.accept(record.timestamp):
            return ScanOutcome.NO_NEW_DATA

        try:
            devices = parse_devices(record.payload)
        except MalformedPayloadError as ex:
            _LOGGER.error("Parse error in record %s: %s", record.timestamp, ex)
            return ScanOutcome.MALFORMED

        self._store.merge(devices, self._config.shown_device_handle)
        return ScanOutcome.MERGED

    def _arm_poll(self) -> None:
        self._poll_timer = self.loop.call_later(
            self._config.polling_interval_s, self._on_poll_timer
        )

    def _on_poll_timer(self) -> None:
        self._poll_timer = None
        if self._state is not WatcherState.WATCHING:
            return
        self._arm_poll()
        self._create_task(self.async_poll())

    def _schedule_retry(self) -> None:
        self.stop()
        self._state = WatcherState.ERROR
        delay = self._config.polling_interval_s
        self._retry_timer = self.loop.call_later(delay, self._retry)
        self._state = WatcherState.RETRY_SCHEDULED
        _LOGGER.debug("Retrying log watcher start in %ss", delay)

    def _retry(self) -> None:
        self._retry_timer = None
        self._create_task(self._async_retry(self._generation))

    async def _async_retry(self, generation: int) -> None:
        if generation != self._generation:
            _LOGGER.debug("Watcher stopped before retry ran, not restarting")
            return
        await self.async_start()

    def _create_task(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = self.loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._log_task_error)

    @staticmethod
    def _log_task_error(task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        if ex := task.exception():
            _LOGGER.error("Log watcher task failed: %s", ex, exc_info=ex)
