"""Recurring and one-shot execution of the backup pipeline.

Usage::

    scheduler = BackupScheduler(runner, config.cron_interval)
    scheduler.install_signal_handlers()
    scheduler.start()
    exit_code = scheduler.wait()  # blocks until SIGINT/SIGTERM or a fatal error
"""
from __future__ import annotations

import logging
import re
import signal
import threading
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from .archive import ArchiveError
from .backup import BackupRun, BackupRunner
from .storage import UploadError

LOGGER = logging.getLogger(__name__)

JOB_ID = "database_backup"

DESCRIPTORS = {
    "@yearly": "0 0 0 1 1 *",
    "@annually": "0 0 0 1 1 *",
    "@monthly": "0 0 0 1 * *",
    "@weekly": "0 0 0 * * 0",
    "@daily": "0 0 0 * * *",
    "@midnight": "0 0 0 * * *",
    "@hourly": "0 0 * * * *",
}

WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


class SchedulerError(Exception):
    """Raised when the schedule expression is missing or invalid."""


def parse_duration(value: str) -> float:
    """Parse a duration such as ``1h30m`` or ``45s`` into seconds."""

    text = value.strip()
    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if not text or position != len(text):
        raise SchedulerError(f"Invalid duration '{value}'.")
    if total <= 0:
        raise SchedulerError(f"Duration '{value}' must be positive.")
    return total


def _weekday_number(token: str, field: str) -> int:
    token = token.strip().lower()
    if token.isdigit() and int(token) <= 7:
        return int(token)
    if token[:3] in WEEKDAY_NAMES:
        return WEEKDAY_NAMES.index(token[:3])
    raise SchedulerError(f"Invalid day of week '{field}'.")


def _crontab_weekday(field: str) -> str:
    """Expand a cron weekday field into day names.

    Cron counts from Sunday (0 or 7) while APScheduler counts from Monday,
    so ranges and steps are resolved here rather than passed through.
    """

    if field == "*":
        return field
    days = set()
    for part in field.split(","):
        base, _, step_text = part.partition("/")
        try:
            step = int(step_text) if step_text else 1
        except ValueError:
            raise SchedulerError(f"Invalid day of week '{field}'.") from None
        if step <= 0:
            raise SchedulerError(f"Invalid day of week '{field}'.")
        if base == "*":
            start, end = 0, 6
        elif "-" in base:
            first, last = base.split("-", 1)
            start, end = _weekday_number(first, field), _weekday_number(last, field)
        else:
            start = _weekday_number(base, field)
            end = 6 if step_text else start
        if start > end:
            raise SchedulerError(f"Invalid day of week '{field}'.")
        days.update(number % 7 for number in range(start, end + 1, step))
    return ",".join(WEEKDAY_NAMES[number] for number in sorted(days))


def _cron_trigger(fields: List[str]) -> CronTrigger:
    # Seconds always come first; a missing day of week means every day.
    if len(fields) == 5:
        fields = fields + ["*"]
    second, minute, hour, day, month, day_of_week = [
        "*" if item == "?" else item for item in fields
    ]
    try:
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=_crontab_weekday(day_of_week),
        )
    except ValueError as exc:
        raise SchedulerError(f"Invalid cron expression '{' '.join(fields)}': {exc}") from exc


def build_trigger(expression: Optional[str]) -> BaseTrigger:
    """Turn the configured ``cron_interval`` into an APScheduler trigger.

    Fields are ``sec min hour dom month [dow]``: the seconds column is
    mandatory and the day of week optional. The ``@daily``-style descriptors
    and ``@every <duration>`` are accepted as well.
    """

    text = (expression or "").strip()
    if not text:
        raise SchedulerError("No 'cron_interval' configured.")
    if text.startswith("@every"):
        return IntervalTrigger(seconds=parse_duration(text[len("@every"):]))
    if text.startswith("@"):
        try:
            text = DESCRIPTORS[text.lower()]
        except KeyError:
            raise SchedulerError(f"Unknown schedule descriptor '{text}'.") from None
    fields = text.split()
    if len(fields) not in (5, 6):
        raise SchedulerError(
            f"Cron expression '{text}' must have 5 or 6 fields, got {len(fields)}."
        )
    return _cron_trigger(fields)


class BackupScheduler:
    """Run the backup pipeline once or on a recurring schedule."""

    def __init__(self, runner: BackupRunner, expression: Optional[str] = None):
        self._runner = runner
        self._expression = expression
        self._scheduler = BackgroundScheduler()
        self._stop_event = threading.Event()
        self._exit_code = 0
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def exit_code(self) -> int:
        return self._exit_code

    def run_once(self) -> BackupRun:
        LOGGER.info("Running backup job to test configuration")
        return self._runner.run()

    def start(self) -> None:
        if self._running:
            LOGGER.warning("Scheduler is already running.")
            return
        trigger = build_trigger(self._expression)
        self._scheduler.add_job(
            self._run_job,
            trigger=trigger,
            id=JOB_ID,
            name="Database backup",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        self._running = True
        LOGGER.info("Starting cronjob to run backups (%s)", self._expression)

    def stop(self) -> None:
        """Stop scheduling; an in-flight run is not waited for."""

        if not self._running:
            return
        self._scheduler.shutdown(wait=False)
        self._running = False
        LOGGER.info("Scheduler stopped.")

    def request_stop(self, exit_code: int = 0) -> None:
        if exit_code and not self._exit_code:
            self._exit_code = exit_code
        self._stop_event.set()

    def wait(self, poll_interval: float = 1.0) -> int:
        """Block until a stop is requested, then shut down and return the exit code."""

        while not self._stop_event.wait(poll_interval):
            pass
        self.stop()
        return self._exit_code

    def install_signal_handlers(self) -> None:
        for signum in (signal.SIGINT, signal.SIGTERM):
            signal.signal(signum, self._handle_signal)

    # ------------------------------------------------------------------
    def _handle_signal(self, signum, frame) -> None:
        LOGGER.info("Received signal %s, shutting down.", signal.Signals(signum).name)
        self.request_stop(0)

    def _run_job(self) -> None:
        try:
            self._runner.run()
        except (ArchiveError, UploadError) as exc:
            LOGGER.error("Fatal backup error: %s", exc)
            self.request_stop(1)
        except Exception:
            LOGGER.exception("Unexpected error during scheduled backup.")
            self.request_stop(1)


__all__ = [
    "BackupScheduler",
    "SchedulerError",
    "build_trigger",
    "parse_duration",
]
