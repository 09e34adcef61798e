"""Packing dump files into a single ``tar.gz`` archive."""
from __future__ import annotations

import logging
import tarfile
from pathlib import Path
from typing import BinaryIO, Sequence, Union

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ArchiveError(Exception):
    """Raised when the archive cannot be written."""


def create_archive(files: Sequence[PathLike], fileobj: BinaryIO) -> None:
    """Write a gzip-compressed tar of *files* to *fileobj*.

    Entries are stored under the exact path given, in the given order, so
    extracting the archive reproduces the ``backups/`` layout. Closing the
    tar layer also flushes and closes the gzip layer; *fileobj* itself stays
    open. Any I/O problem aborts the whole archive and the output must not be
    used.
    """

    try:
        with tarfile.open(fileobj=fileobj, mode="w:gz") as archive:
            for path in files:
                archive.add(str(path), arcname=str(path), recursive=False)
                LOGGER.debug("Added '%s' to archive.", path)
    except OSError as exc:
        raise ArchiveError(f"Error creating archive: {exc}") from exc


def write_archive(files: Sequence[PathLike], path: PathLike) -> Path:
    path = Path(path)
    try:
        output = path.open("wb")
    except OSError as exc:
        raise ArchiveError(f"Error writing archive '{path}': {exc}") from exc
    with output:
        create_archive(files, output)
    LOGGER.info("Compressed %d backup file(s) into '%s'.", len(files), path)
    return path


__all__ = ["ArchiveError", "create_archive", "write_archive"]
