from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Iterable, List, Mapping, Optional

from .algorithms import build_timeline, timeline_end
from .errors import DegenerateResult, InvalidInput, PlaybackError
from .metrics import derive_stats
from .models import AggregateStats, Process, ProcessStats, ScheduleConfig, TimelineSegment
from .playback import PlaybackCursor

logger = logging.getLogger(__name__)


class Schedule:
    """
    A caller-owned simulation: the process list, the algorithm configuration,
    the timeline built from them, its statistics and a playback cursor.

    A build either replaces all of timeline, stats and cursor at once or, on
    failure, leaves the previous build untouched.
    """

    def __init__(
        self,
        processes: Optional[Iterable[Process]] = None,
        config: Optional[ScheduleConfig] = None,
        cursor: Optional[PlaybackCursor] = None,
    ) -> None:
        self.processes: List[Process] = list(processes or [])
        self.config = config or ScheduleConfig()
        self.cursor = cursor or PlaybackCursor()
        self.timeline: List[TimelineSegment] = []
        self.stats: List[ProcessStats] = []
        self.aggregate: Optional[AggregateStats] = None
        self.t_end: float = 0

    @property
    def built(self) -> bool:
        return self.aggregate is not None

    def build(
        self,
        processes: Optional[Iterable[Process]] = None,
        config: Optional[ScheduleConfig] = None,
    ) -> List[TimelineSegment]:
        procs = list(self.processes if processes is None else processes)
        cfg = config or self.config

        timeline = build_timeline(cfg.algorithm, procs, cfg.quantum)
        stats, aggregate = derive_stats(timeline, procs)

        self.processes = procs
        self.config = cfg
        self.timeline = timeline
        self.stats = stats
        self.aggregate = aggregate
        self.t_end = timeline_end(timeline)
        self.cursor.load(timeline, procs, start_at=cfg.start_at)

        logger.info(
            "Built %s schedule for %d processes (t_end=%s, avg waiting %.2f)",
            cfg.algorithm,
            len(procs),
            self.t_end,
            aggregate.avg_waiting,
        )
        return timeline

    def rebuild(self) -> List[TimelineSegment]:
        return self.build()

    def stats_for(self, pid: str) -> ProcessStats:
        for st in self.stats:
            if st.pid == pid:
                return st
        raise KeyError(pid)

    # Playback, building on demand the way the play/step buttons did.

    def play(self) -> None:
        self._ensure_built()
        self.cursor.play()

    def pause(self) -> None:
        self.cursor.pause()

    def step(self, delta: float = 1) -> float:
        self._ensure_built()
        return self.cursor.step(delta)

    def reset(self) -> None:
        self.cursor.reset()

    def advance(self, real_dt: float) -> float:
        return self.cursor.advance(real_dt)

    def _ensure_built(self) -> None:
        if self.built:
            return
        if not self.processes:
            raise PlaybackError("Nothing to play: add at least one process")
        self.build()

    def snapshot(self) -> dict:
        """
        JSON-serializable trace of the current build. Feeding its processes,
        algorithm and quantum back to the builder reproduces ``timeline``.
        """
        if not self.built:
            raise PlaybackError("No schedule has been built yet")

        data = self.config.to_mapping()
        data["processes"] = [asdict(p) for p in self.processes]
        data["timeline"] = [asdict(seg) for seg in self.timeline]
        data["stats"] = {st.pid: asdict(st) for st in self.stats}
        data["aggregate"] = asdict(self.aggregate)
        return data

    @classmethod
    def from_snapshot(cls, data: Mapping[str, Any]) -> "Schedule":
        """
        Rebuild a schedule from a trace. When the trace carries a timeline it
        must match the rebuilt one exactly.
        """
        try:
            processes = [
                Process(
                    pid=str(p["pid"]),
                    arrival=p["arrival"],
                    burst=p["burst"],
                    priority=p.get("priority", 0),
                )
                for p in data["processes"]
            ]
        except (KeyError, TypeError, AttributeError) as exc:
            raise InvalidInput(f"Trace has no valid process list: {exc}") from exc

        schedule = cls(processes, ScheduleConfig.from_mapping(data))
        schedule.build()

        recorded = data.get("timeline")
        if recorded is not None:
            expected = [asdict(seg) for seg in schedule.timeline]
            if list(recorded) != expected:
                raise DegenerateResult("Trace timeline does not match the rebuilt schedule")
        return schedule
