"""Selection of the newest Synapse systray log among rotated files."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from .const import LOG_FILE_PATTERN
from .exceptions import DirectoryMissingError, LogFileNotFoundError, NoCandidateFileError

_LOGGER = logging.getLogger(__name__)


def _candidates(directory: Path) -> list[tuple[int, str, Path]]:
    found = []
    with os.scandir(directory) as entries:
        for entry in entries:
            if not LOG_FILE_PATTERN.match(entry.name):
                continue
            try:
                if not entry.is_file():
                    continue
                mtime = entry.stat().st_mtime_ns
            except FileNotFoundError:
                # rotated away between listing and stat
                continue
            found.append((mtime, entry.name, Path(entry.path).resolve()))
    return found


def resolve_latest_log_file(directory: str | os.PathLike[str]) -> Path:
    """Return the newest matching log file in `directory`.

    Recency is the modification time; equal times fall back to the file
    name so the choice is stable. Raises DirectoryMissingError or
    NoCandidateFileError when nothing can be selected; any other OSError
    propagates.
    """
    path = Path(directory)
    if not path.is_dir():
        raise DirectoryMissingError(f"Log directory not found: {path}")

    candidates = _candidates(path)
    if not candidates:
        raise NoCandidateFileError(f"No log files found in {path}")

    _, name, selected = max(candidates)
    _LOGGER.info("Selected newest log file %s (%s candidates)", name, len(candidates))
    return selected


def find_latest_log_file(directory: str | os.PathLike[str]) -> Path | None:
    """Return the newest matching log file or None when there is none."""
    try:
        return resolve_latest_log_file(directory)
    except LogFileNotFoundError as ex:
        _LOGGER.warning("%s", ex)
        return None
