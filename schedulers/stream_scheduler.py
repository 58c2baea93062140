"""
APScheduler-based scheduling of recurring broadcast jobs.
"""

import logging
import re
import threading
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MAX_INSTANCES,
    EVENT_JOB_MISSED
)
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from models.stream import StreamDefinition
from utils.error_utils import ScheduleError

# Setup logging
logger = logging.getLogger(__name__)

SCHEDULE_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * sun",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

# Cron weekday numbering: 0 and 7 are Sunday
CRON_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")
WEEKDAY_ITEM_PATTERN = re.compile(r"(\*|\d+)(?:-(\d+))?(?:/(\d+))?")

DURATION_PATTERN = re.compile(r"(\d+)(h|m|s)")
DURATION_UNITS = {"h": 3600, "m": 60, "s": 1}


def parse_duration(value: str) -> int:
    """Parse durations such as ``1h30m`` or ``90s`` into seconds."""
    value = value.strip()
    if not value or DURATION_PATTERN.sub("", value):
        raise ScheduleError(f"invalid duration '{value}': use h/m/s units, e.g. 1h30m")

    seconds = sum(int(amount) * DURATION_UNITS[unit] for amount, unit in DURATION_PATTERN.findall(value))
    if seconds <= 0:
        raise ScheduleError(f"duration '{value}' must be greater than zero")
    return seconds


def _weekday_items(item: str) -> List[str]:
    match = WEEKDAY_ITEM_PATTERN.fullmatch(item)
    if not match:
        # Weekday names mean the same thing to cron and APScheduler
        return [item]

    start, end, step = match.groups()
    if start == "*":
        if end is not None:
            return [item]
        if step is None:
            return ["*"]
        first, last = 0, 6
    else:
        first = int(start)
        last = int(end) if end is not None else (6 if step else first)

    if first > 7 or last > 7 or first > last:
        raise ScheduleError(f"invalid day-of-week '{item}': use 0-7 (0 and 7 are Sunday) or weekday names")

    increment = int(step) if step else 1
    if increment <= 0:
        raise ScheduleError(f"invalid day-of-week step in '{item}'")

    return [CRON_WEEKDAYS[day % 7] for day in range(first, last + 1, increment)]


def cron_day_of_week(field: str) -> str:
    """
    Rewrite a cron day-of-week field into weekday names.

    APScheduler numbers weekdays from Monday (0), cron from Sunday (0 or 7).
    """
    days: List[str] = []
    for item in field.lower().split(","):
        for day in _weekday_items(item):
            if day not in days:
                days.append(day)
    return ",".join(days)


def parse_schedule(expression: str, timezone=None) -> BaseTrigger:
    """
    Parse a schedule expression into a trigger.

    Accepts 5-field cron expressions, the ``@daily``-style descriptors and
    ``@every <duration>``.

    Raises:
        ScheduleError: the expression is not a valid schedule
    """
    expression = (expression or "").strip()
    if not expression:
        raise ScheduleError("schedule expression is empty")

    if expression.startswith("@every"):
        return IntervalTrigger(seconds=parse_duration(expression[len("@every"):]), timezone=timezone)

    crontab = SCHEDULE_DESCRIPTORS.get(expression.lower(), expression)
    fields = crontab.split()
    if len(fields) == 5:
        fields[4] = cron_day_of_week(fields[4])
        crontab = " ".join(fields)

    try:
        return CronTrigger.from_crontab(crontab, timezone=timezone)
    except ValueError as e:
        raise ScheduleError(f"invalid schedule expression '{expression}': {e}") from e


class JobState(str, Enum):
    PENDING = "pending"
    ARMED = "armed"
    FIRING = "firing"
    STOPPED = "stopped"


class ScheduledJob:
    """Binds one stream definition to its trigger and tracks its lifecycle."""

    def __init__(self, job_id: str, stream: StreamDefinition):
        self.job_id = job_id
        self.stream = stream
        self.trigger: Optional[BaseTrigger] = None
        self.state = JobState.PENDING
        self.fire_count = 0
        self._lock = threading.Lock()

    def arm(self, trigger: BaseTrigger) -> None:
        with self._lock:
            self.trigger = trigger
            self.state = JobState.ARMED

    def begin_fire(self) -> None:
        with self._lock:
            self.state = JobState.FIRING
            self.fire_count += 1

    def end_fire(self) -> None:
        with self._lock:
            if self.state == JobState.FIRING:
                self.state = JobState.ARMED

    def stop(self) -> None:
        with self._lock:
            self.state = JobState.STOPPED


class StreamScheduler:
    """Scheduler for recurring broadcast creation, one job per stream definition."""

    def __init__(
        self,
        work: Callable[[StreamDefinition], Any],
        max_workers: int = 10,
        misfire_grace_time: int = 60,
        timezone: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            work: unit of work run for a stream on every fire
            max_workers: thread pool size shared by all jobs
            misfire_grace_time: seconds a late fire is still allowed to run
            timezone: scheduler timezone, local zone when omitted
        """
        self.work = work
        self.timezone = timezone
        self.logger = logger or logging.getLogger(__name__)
        self.jobs: Dict[str, ScheduledJob] = {}
        self.is_running = False
        self.jobs_executed = 0
        self.jobs_failed = 0
        self.jobs_missed = 0
        self.jobs_skipped = 0

        # Job defaults
        job_defaults = {
            'coalesce': True,  # Combine multiple pending executions into one
            'max_instances': 1,  # A fire for a job that is still running is skipped
            'misfire_grace_time': misfire_grace_time
        }

        scheduler_options = {}
        if timezone:
            scheduler_options["timezone"] = timezone

        self.scheduler = BackgroundScheduler(
            executors={'default': ThreadPoolExecutor(max_workers)},
            job_defaults=job_defaults,
            **scheduler_options
        )

        # Add event listeners
        self.scheduler.add_listener(self._job_executed_listener, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)
        self.scheduler.add_listener(self._job_missed_listener, EVENT_JOB_MISSED)
        self.scheduler.add_listener(self._job_skipped_listener, EVENT_JOB_MAX_INSTANCES)

    @staticmethod
    def job_id_for(index: int, stream: StreamDefinition) -> str:
        return f"stream_{index}_{stream.name}"

    def register(self, streams: Iterable[StreamDefinition]) -> List[str]:
        """
        Arm one job per stream definition.

        Every expression is parsed before any job is added, so a single bad
        schedule leaves nothing armed.

        Returns:
            Job IDs in definition order

        Raises:
            ScheduleError: any stream has an invalid schedule expression
        """
        pending = []
        for index, stream in enumerate(streams):
            job = ScheduledJob(self.job_id_for(index, stream), stream)
            try:
                trigger = parse_schedule(stream.schedule, timezone=self.timezone)
            except ScheduleError as e:
                self.logger.error(
                    f"failed to create scheduled job for stream {stream.name}: {e}",
                    extra={"stream": stream.name}
                )
                raise
            pending.append((job, trigger))

        for job, trigger in pending:
            self.scheduler.add_job(
                func=self._run_job,
                trigger=trigger,
                args=[job.job_id],
                id=job.job_id,
                name=f"Broadcast {job.stream.name}",
                replace_existing=True
            )
            job.arm(trigger)
            self.jobs[job.job_id] = job
            self.logger.info(
                f"added new job to scheduler (jobName: {job.stream.name}, jobSchedule: {job.stream.schedule})",
                extra={"stream": job.stream.name}
            )

        return [job.job_id for job, _ in pending]

    def _run_job(self, job_id: str) -> None:
        job = self.jobs[job_id]
        job.begin_fire()
        try:
            self.work(job.stream)
        finally:
            job.end_fire()

    def start(self) -> None:
        """Start the scheduler."""
        if self.is_running:
            self.logger.warning("Scheduler already running")
            return

        self.scheduler.start()
        self.is_running = True
        self.logger.info(f"Scheduler started with {len(self.jobs)} jobs")

    def stop(self, wait: bool = True) -> None:
        """Stop dispatching fires; with ``wait`` block until in-flight fires finish."""
        if not self.is_running:
            self.logger.warning("Scheduler not running")
            return

        self.scheduler.shutdown(wait=wait)
        self.is_running = False
        for job in self.jobs.values():
            job.stop()
        self.logger.info("Scheduler stopped")

    def _job_executed_listener(self, event) -> None:
        """Handle job execution events."""
        self.jobs_executed += 1
        self.logger.debug(f"Job executed: {event.job_id}")

    def _job_error_listener(self, event) -> None:
        """Handle job error events."""
        self.jobs_failed += 1
        self.logger.error(f"Job failed: {event.job_id} - {event.exception}")

    def _job_missed_listener(self, event) -> None:
        """Handle missed job events."""
        self.jobs_missed += 1
        self.logger.warning(f"Job missed: {event.job_id}")

    def _job_skipped_listener(self, event) -> None:
        """Handle fires skipped because the job was still running."""
        self.jobs_skipped += 1
        self.logger.warning(f"Job skipped, previous run still in progress: {event.job_id}")

    def get_scheduled_jobs(self) -> List[Dict[str, Any]]:
        """
        Get information about all scheduled jobs.

        Returns:
            List of job information dictionaries
        """
        jobs = []
        for job_id, job in self.jobs.items():
            aps_job = self.scheduler.get_job(job_id)
            jobs.append({
                "id": job_id,
                "stream": job.stream.name,
                "schedule": job.stream.schedule,
                "state": job.state.value,
                "fire_count": job.fire_count,
                "next_run_time": getattr(aps_job, "next_run_time", None) if aps_job else None,
                "trigger": str(job.trigger)
            })

        return jobs

    def get_stats(self) -> Dict[str, Any]:
        """Get scheduler statistics."""
        return {
            "is_running": self.is_running,
            "scheduled_jobs": len(self.jobs),
            "jobs_executed": self.jobs_executed,
            "jobs_failed": self.jobs_failed,
            "jobs_missed": self.jobs_missed,
            "jobs_skipped": self.jobs_skipped
        }
