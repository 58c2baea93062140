"""
Scheduling of recurring broadcast jobs.
"""

from .stream_scheduler import JobState, ScheduledJob, StreamScheduler, parse_schedule

__all__ = [
    "JobState",
    "ScheduledJob",
    "StreamScheduler",
    "parse_schedule"
]
