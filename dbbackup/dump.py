"""Invocation of the external ``mysqldump`` tool."""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .cleanup import remove_file
from .config import WILDCARD_NAME, DatabaseConfig
from .utils import mask_sensitive

LOGGER = logging.getLogger(__name__)

ALL_DATABASES_SUFFIX = "all-databases"


class DumpError(Exception):
    """Raised when the dump tool is missing or a dump fails."""


def dump_filename(timestamp: str, host: str, name: str) -> str:
    if name == WILDCARD_NAME:
        name = ALL_DATABASES_SUFFIX
    return f"{timestamp}_{host}_{name}.sql"


@dataclass
class MysqlDumper:
    binary: str = "mysqldump"
    backups_dir: Path = field(default_factory=lambda: Path("backups"))
    logger: logging.Logger = LOGGER

    def check_available(self) -> None:
        """Make sure the dump tool can be executed at all."""

        try:
            result = subprocess.run(
                [self.binary, "--help"],
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise DumpError(f"Cannot run '{self.binary}': {exc}") from exc
        if result.returncode != 0:
            raise DumpError(
                f"'{self.binary} --help' exited with code {result.returncode}: {result.stderr.strip()}"
            )
        self.logger.debug("Found dump tool '%s'.", self.binary)

    # ------------------------------------------------------------------
    def build_command(self, source: DatabaseConfig, name: str, result_file: Path) -> List[str]:
        command = [
            self.binary,
            f"--host={source.host}",
            f"--port={source.port}",
            f"--user={source.username}",
            f"--password={source.password}",
            f"--result-file={result_file}",
            "--extended-insert",
            "--single-transaction=TRUE",
        ]
        command.extend(source.extra_args)
        command.append("--all-databases" if name == WILDCARD_NAME else name)
        return command

    # ------------------------------------------------------------------
    def dump(self, source: DatabaseConfig, name: str, timestamp: str) -> Path:
        """Dump one database and return the path of the written file."""

        result_file = self.backups_dir / dump_filename(timestamp, source.host, name)
        command = self.build_command(source, name, result_file)
        secrets = [source.password]
        self.logger.info("Backing up database %s on host %s", name, source.host)
        self.logger.debug("Running: %s", mask_sensitive(" ".join(command), secrets))

        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError as exc:
            raise DumpError(f"Cannot run '{self.binary}': {exc}") from exc

        if result.stdout:
            self.logger.debug("STDOUT: %s", result.stdout.strip())
        stderr = mask_sensitive(result.stderr.strip(), secrets)
        if result.returncode != 0:
            if result_file.exists():
                remove_file(result_file)
            raise DumpError(
                f"Dump of '{name}' on host '{source.host}' exited with code {result.returncode}: {stderr}"
            )
        if stderr:
            self.logger.warning("STDERR: %s", stderr)
        return result_file


__all__ = ["DumpError", "MysqlDumper", "dump_filename", "ALL_DATABASES_SUFFIX"]
