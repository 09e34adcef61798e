"""Core backup pipeline: dump, archive, upload, clean up, heartbeat."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List

from .archive import write_archive
from .cleanup import remove_file, remove_files
from .config import AppConfig, DatabaseConfig
from .dump import DumpError, MysqlDumper
from .heartbeat import send_heartbeat
from .storage import S3Uploader, backup_key
from .utils import timestamp_for_filename

LOGGER = logging.getLogger(__name__)


@dataclass
class BackupRun:
    """State of a single pipeline execution."""

    timestamp: str
    files: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return backup_key(self.timestamp)


def _default_uploader_factory(config: AppConfig) -> S3Uploader:
    return S3Uploader.from_config(config.s3)


@dataclass
class BackupRunner:
    config: AppConfig
    dumper: MysqlDumper
    uploader_factory: Callable[[AppConfig], S3Uploader] = _default_uploader_factory
    clock: Callable[[], datetime] = datetime.now
    logger: logging.Logger = LOGGER

    def run(self) -> BackupRun:
        """Execute one full backup run.

        Per-database dump failures are logged and skipped. Archive and upload
        failures propagate as :class:`ArchiveError` / :class:`UploadError` and
        are expected to end the process.
        """

        run = BackupRun(timestamp=timestamp_for_filename(self.clock()))
        self.logger.info("Starting backup jobs")

        self.logger.info("Deleting temp files")
        remove_file(self.config.archive_path)

        for source in self.config.databases:
            self._dump_source(source, run)

        self.logger.info("Compressing backup files")
        archive_path = write_archive(run.files, self.config.archive_path)

        uploader = self.uploader_factory(self.config)
        uploader.upload(archive_path, run.key)

        self.logger.info("Deleting backup files")
        remove_files(run.files)

        if run.failed:
            self.logger.warning(
                "Backup %s uploaded without %d failed database(s): %s",
                run.key,
                len(run.failed),
                ", ".join(run.failed),
            )

        send_heartbeat(self.config.heartbeat_uri, timeout=self.config.heartbeat_timeout)
        return run

    # ------------------------------------------------------------------
    def _dump_source(self, source: DatabaseConfig, run: BackupRun) -> None:
        for name in source.resolved_names():
            try:
                run.files.append(self.dumper.dump(source, name, run.timestamp))
            except DumpError as exc:
                self.logger.error("Error running backup: %s", exc)
                run.failed.append(f"{source.host}/{name}")


__all__ = ["BackupRun", "BackupRunner"]
