"""Command line interface for the scheduled database backup agent."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Optional

from dbbackup.archive import ArchiveError
from dbbackup.backup import BackupRunner
from dbbackup.config import AppConfig, ConfigError, load_config
from dbbackup.dump import DumpError, MysqlDumper
from dbbackup.scheduler import BackupScheduler, SchedulerError
from dbbackup.storage import UploadError
from dbbackup.utils import ensure_directory

LOGGER = logging.getLogger("backup_agent")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Dump MySQL databases on a schedule and upload the archive to S3.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-t",
        "--test",
        action="store_true",
        help="Run a single backup to test the configuration, then exit.",
    )
    parser.add_argument("--config", default="config.yaml", help="Path to the configuration file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def fail(message: str, exc: Exception) -> None:
    LOGGER.error("%s: %s", message, exc)
    sys.exit(1)


def terminate(exit_code: int) -> None:
    """Exit immediately; an in-flight run on a worker thread is not joined."""

    logging.shutdown()
    os._exit(exit_code)


def load_application_config(path: Path) -> AppConfig:
    LOGGER.info("Loading configuration file...")
    try:
        return load_config(path)
    except ConfigError as exc:
        fail("Error reading configuration file", exc)


def create_dumper(config: AppConfig) -> MysqlDumper:
    dumper = MysqlDumper(binary=config.dump_binary, backups_dir=config.backups_dir)
    try:
        dumper.check_available()
    except DumpError as exc:
        fail("Error running mysqldump", exc)
    return dumper


def handle_test(scheduler: BackupScheduler) -> None:
    try:
        scheduler.run_once()
    except (ArchiveError, UploadError) as exc:
        fail("Backup failed", exc)


def handle_schedule(scheduler: BackupScheduler) -> None:
    scheduler.install_signal_handlers()
    try:
        scheduler.start()
    except SchedulerError as exc:
        fail("Error starting scheduler", exc)
    terminate(scheduler.wait())


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = build_parser()
    args, unknown = parser.parse_known_args(None if argv is None else list(argv))
    configure_logging(args.verbose)
    if unknown:
        LOGGER.error("Unrecognised argument(s): %s", " ".join(unknown))
        return

    config = load_application_config(Path(args.config))
    dumper = create_dumper(config)

    ensure_directory(config.backups_dir)
    ensure_directory(config.temp_dir)

    runner = BackupRunner(config=config, dumper=dumper)
    scheduler = BackupScheduler(runner, config.cron_interval)
    if args.test:
        handle_test(scheduler)
    else:
        handle_schedule(scheduler)


if __name__ == "__main__":
    main()
