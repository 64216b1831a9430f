"""pdf_scout.storage: download directory layout.

Every run writes into ``<downloads_root>/<timestamp>/`` where the timestamp
is an ISO-8601 UTC instant with ``:`` and ``.`` replaced by ``-``
(``2024-05-01T12-30-05-123Z``).
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from pdf_scout.logger import logger

__all__ = ["run_timestamp", "create_run_directory", "unique_path"]


def run_timestamp(now: Optional[datetime] = None) -> str:
    """Filesystem-safe ISO-8601 timestamp with millisecond precision."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    iso = moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def create_run_directory(
    root: Union[str, Path],
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> Path:
    """Create *root* if needed plus a fresh timestamped subdirectory inside it.

    Two runs started within the same millisecond still get separate
    directories: the later one receives a numeric suffix.
    """
    root_path = Path(root)
    root_path.mkdir(parents=True, exist_ok=True)
    base = run_timestamp(clock())
    candidate = root_path / base
    counter = 1
    while True:
        try:
            candidate.mkdir()
        except FileExistsError:
            candidate = root_path / f"{base}_{counter}"
            counter += 1
            continue
        logger.info("Run directory: %s", candidate)
        return candidate


def unique_path(directory: Path, filename: str, taken: set[str]) -> Path:
    """Path for *filename* in *directory* not yet present in *taken* (names reserved so far)."""
    stem, dot, suffix = filename.rpartition(".")
    if not dot or not stem:
        stem, suffix = filename, ""
    name = filename
    counter = 1
    while name in taken or (directory / name).exists():
        name = f"{stem}_{counter}.{suffix}" if suffix else f"{stem}_{counter}"
        counter += 1
    taken.add(name)
    return directory / name
