"""
CPU schedule simulator package.

Builds FCFS, SJF and Round Robin timelines for a process set, derives
per-process and aggregate statistics from them, and plays the timeline back
through a cursor that answers point-in-time queries.
"""

from .errors import DegenerateResult, InvalidInput, PlaybackError, ScheduleError
from .models import AggregateStats, Process, ProcessStats, ScheduleConfig, TimelineSegment
from .playback import PlaybackCursor, PlaybackState
from .schedule import Schedule

__all__ = [
    "AggregateStats",
    "DegenerateResult",
    "InvalidInput",
    "PlaybackCursor",
    "PlaybackError",
    "PlaybackState",
    "Process",
    "ProcessStats",
    "Schedule",
    "ScheduleConfig",
    "ScheduleError",
    "TimelineSegment",
    "cli",
]
