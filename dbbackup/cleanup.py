"""Best-effort removal of transient backup files."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Union

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


def remove_file(path: PathLike) -> bool:
    """Delete *path*, logging instead of raising on failure."""

    try:
        Path(path).unlink()
    except OSError as exc:
        LOGGER.warning("Error deleting file %s: %s", path, exc)
        return False
    LOGGER.debug("Deleted file %s", path)
    return True


def remove_files(paths: Iterable[PathLike]) -> int:
    removed = 0
    for path in paths:
        if remove_file(path):
            removed += 1
    return removed


__all__ = ["remove_file", "remove_files"]
