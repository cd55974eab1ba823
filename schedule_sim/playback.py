from __future__ import annotations

import enum
import logging
import math
from typing import Dict, List, Optional, Sequence

from .algorithms import timeline_end
from .errors import PlaybackError
from .models import Process, TimelineSegment

logger = logging.getLogger(__name__)

# Simulated time units per real second at speed 1.
DEFAULT_SCALE_FACTOR = 4.0


def running_process(timeline: Sequence[TimelineSegment], t: float) -> Optional[str]:
    """Pid of the process on the CPU at time ``t``, or None when idle."""
    for seg in timeline:
        if seg.pid is not None and seg.start <= t < seg.end:
            return seg.pid
    return None


def finish_times(timeline: Sequence[TimelineSegment]) -> Dict[str, float]:
    finish: Dict[str, float] = {}
    for seg in timeline:
        if seg.pid is not None:
            finish[seg.pid] = seg.end
    return finish


def ready_set(
    timeline: Sequence[TimelineSegment],
    processes: Sequence[Process],
    t: float,
) -> List[str]:
    """
    Pids that have arrived by ``t``, have not reached their finish time and are
    not the running process, in arrival order.
    """
    running = running_process(timeline, t)
    finish = finish_times(timeline)

    ready: List[str] = []
    for p in sorted(processes, key=lambda proc: proc.arrival):
        if p.arrival > t or p.pid == running:
            continue
        if p.pid in finish and finish[p.pid] <= t:
            continue
        ready.append(p.pid)
    return ready


def visible_prefix(timeline: Sequence[TimelineSegment], t: float) -> List[TimelineSegment]:
    """
    The part of the timeline already played at ``t``: completed segments as
    they are and the in-progress one cut at ``t``.
    """
    prefix: List[TimelineSegment] = []
    for seg in timeline:
        if seg.start >= t:
            break
        if seg.end <= t:
            prefix.append(seg)
        else:
            prefix.append(TimelineSegment(pid=seg.pid, start=seg.start, end=t))
    return prefix


def _require_finite(name: str, value: float) -> None:
    # sim_time must stay inside [0, t_end].
    if not (isinstance(value, (int, float)) and math.isfinite(value)):
        raise PlaybackError(f"{name} must be a finite number (got {value!r})")


class PlaybackState(enum.Enum):
    IDLE = "idle"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackCursor:
    """
    Cursor over an immutable timeline.

    The cursor never recomputes the schedule: it only moves ``sim_time``
    inside ``[0, t_end]`` and answers point-in-time queries. Time advances
    either by explicit ``step`` calls or by ``advance(real_dt)`` ticks fed
    from the caller's own loop while playing.
    """

    def __init__(self, speed: float = 1.0, scale_factor: float = DEFAULT_SCALE_FACTOR) -> None:
        if not (math.isfinite(scale_factor) and scale_factor > 0):
            raise PlaybackError(f"scale_factor must be a positive finite number (got {scale_factor})")
        self.timeline: List[TimelineSegment] = []
        self.processes: List[Process] = []
        self.t_end: float = 0
        self.sim_time: float = 0
        self.scale_factor = scale_factor
        self.state = PlaybackState.IDLE
        self.speed = 1.0
        self.set_speed(speed)

    @property
    def playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    @property
    def at_end(self) -> bool:
        return self.state is not PlaybackState.IDLE and self.sim_time >= self.t_end

    def load(
        self,
        timeline: Sequence[TimelineSegment],
        processes: Sequence[Process],
        start_at: float = 0,
    ) -> None:
        _require_finite("start_at", start_at)
        self.timeline = list(timeline)
        self.processes = list(processes)
        self.t_end = timeline_end(self.timeline)
        self.sim_time = self._clamp(start_at)
        self._transition(PlaybackState.READY)

    def play(self) -> None:
        self._require_loaded("play")
        if self.state is PlaybackState.PLAYING:
            return
        self._transition(PlaybackState.PLAYING)

    def pause(self) -> None:
        self._require_loaded("pause")
        if self.state is PlaybackState.PLAYING:
            self._transition(PlaybackState.PAUSED)

    def step(self, delta: float = 1) -> float:
        self._require_loaded("step")
        _require_finite("step delta", delta)
        if delta < 0:
            raise PlaybackError(f"step delta must be non-negative (got {delta})")
        self.sim_time = self._clamp(self.sim_time + delta)
        return self.sim_time

    def reset(self) -> None:
        self.sim_time = 0
        if self.state is not PlaybackState.IDLE:
            self._transition(PlaybackState.READY)

    def advance(self, real_dt: float) -> float:
        """
        Move the cursor by ``real_dt`` seconds of wall-clock time. Only has an
        effect while playing; reaching the end of the timeline pauses.
        """
        if self.state is not PlaybackState.PLAYING:
            return self.sim_time
        _require_finite("real_dt", real_dt)
        if real_dt < 0:
            raise PlaybackError(f"real_dt must be non-negative (got {real_dt})")

        self.sim_time = self._clamp(self.sim_time + real_dt * self.speed * self.scale_factor)
        if self.sim_time >= self.t_end:
            self._transition(PlaybackState.PAUSED)
        return self.sim_time

    def set_speed(self, speed: float) -> None:
        _require_finite("speed", speed)
        if speed <= 0:
            raise PlaybackError(f"speed must be positive (got {speed})")
        self.speed = speed

    def running_process(self, t: Optional[float] = None) -> Optional[str]:
        return running_process(self.timeline, self._at(t))

    def ready_set(self, t: Optional[float] = None) -> List[str]:
        return ready_set(self.timeline, self.processes, self._at(t))

    def visible_prefix(self, t: Optional[float] = None) -> List[TimelineSegment]:
        return visible_prefix(self.timeline, self._at(t))

    def _at(self, t: Optional[float]) -> float:
        return self.sim_time if t is None else t

    def _clamp(self, t: float) -> float:
        return min(max(t, 0), self.t_end)

    def _require_loaded(self, action: str) -> None:
        if self.state is PlaybackState.IDLE:
            raise PlaybackError(f"Cannot {action}: no schedule has been built")

    def _transition(self, state: PlaybackState) -> None:
        logger.debug("Cursor %s -> %s at t=%s", self.state.value, state.value, self.sim_time)
        self.state = state
