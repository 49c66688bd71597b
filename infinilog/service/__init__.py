"""Service lifecycle helpers."""
from __future__ import annotations

from .jobs import PipelineJobs
from .scheduler import JobState, SchedulerEngine
from .supervisor import TelemetryService
from .watchdog import SnapshotWatchdog, WatchdogEvent

__all__ = [
    "JobState",
    "PipelineJobs",
    "SchedulerEngine",
    "SnapshotWatchdog",
    "TelemetryService",
    "WatchdogEvent",
]
