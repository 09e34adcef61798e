"""Helper utilities for the backup agent."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

LOGGER = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def ensure_directory(path: Path) -> Path:
    """Create *path* if it does not exist and return it.

    A failure to create the directory is only logged; writing into it later
    reports the real error.
    """

    path = Path(path)
    if not path.is_dir():
        LOGGER.info("Directory '%s' not found, creating it.", path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.warning("Error creating directory '%s': %s", path, exc)
    return path


def timestamp_for_filename(dt: Optional[datetime] = None) -> str:
    dt = dt or datetime.now()
    return dt.strftime(TIMESTAMP_FORMAT)


def mask_sensitive(value: str, secrets: Iterable[str]) -> str:
    """Replace occurrences of secret values in *value* with '***'."""

    masked = value
    for secret in secrets:
        if secret:
            masked = masked.replace(secret, "***")
    return masked


__all__ = [
    "ensure_directory",
    "timestamp_for_filename",
    "mask_sensitive",
]
