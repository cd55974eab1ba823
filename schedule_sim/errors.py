from __future__ import annotations


class ScheduleError(Exception):
    """Base class for every error raised by the scheduling engine."""


class InvalidInput(ScheduleError, ValueError):
    """
    The process list or configuration violates a precondition (empty list,
    non-positive burst, negative arrival, unknown algorithm). Raised before any
    timeline is produced.
    """


class DegenerateResult(ScheduleError, RuntimeError):
    """
    A build produced a timeline that breaks an engine invariant, e.g. a process
    that never received a segment.
    """


class PlaybackError(ScheduleError):
    """An operation was requested that the playback cursor's state does not allow."""
