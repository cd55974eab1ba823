from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from .errors import InvalidInput

ALGORITHM_NAMES = ("FCFS", "SJF", "RR")


@dataclass(frozen=True)
class Process:
    pid: str
    arrival: float
    burst: float
    priority: float = 0


@dataclass(frozen=True)
class TimelineSegment:
    """
    One contiguous interval of the timeline. ``pid`` is None for idle time.
    """

    pid: Optional[str]
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def is_idle(self) -> bool:
        return self.pid is None


@dataclass
class ProcessStats:
    pid: str
    arrival: float
    burst: float
    start: Optional[float] = None
    finish: Optional[float] = None
    waiting: Optional[float] = None
    turnaround: Optional[float] = None
    response: Optional[float] = None

    @property
    def scheduled(self) -> bool:
        return self.finish is not None


@dataclass
class AggregateStats:
    avg_turnaround: float
    avg_waiting: float
    avg_response: float
    throughput: float
    process_count: int
    # pids that received no timeline segment at all
    missing: List[str] = field(default_factory=list)

    @property
    def degenerate(self) -> bool:
        return bool(self.missing)


@dataclass
class ScheduleConfig:
    algorithm: str = "FCFS"
    quantum: float = 1
    start_at: float = 0

    def __post_init__(self) -> None:
        algorithm = str(self.algorithm).strip().upper()
        if algorithm not in ALGORITHM_NAMES:
            raise InvalidInput(
                f"Unknown algorithm '{self.algorithm}' (use one of {', '.join(ALGORITHM_NAMES)})"
            )
        self.algorithm = algorithm

        try:
            quantum = float(self.quantum)
            start_at = float(self.start_at)
        except (TypeError, ValueError) as exc:
            raise InvalidInput(
                f"quantum and startAt must be numbers (got {self.quantum!r}, {self.start_at!r})"
            ) from exc

        if not (math.isfinite(quantum) and math.isfinite(start_at)):
            raise InvalidInput(
                f"quantum and startAt must be finite numbers (got {self.quantum!r}, {self.start_at!r})"
            )
        if start_at < 0:
            raise InvalidInput(f"startAt must be non-negative (got {self.start_at})")

        # Round Robin never slices below one time unit.
        self.quantum = _tidy(max(1.0, quantum))
        self.start_at = _tidy(start_at)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ScheduleConfig":
        """
        Build a config from ``{algorithm, quantum, startAt}``; missing keys fall
        back to the defaults.
        """
        start_at = mapping.get("startAt", mapping.get("start_at"))
        quantum = mapping.get("quantum")
        return cls(
            algorithm=mapping.get("algorithm", "FCFS"),
            quantum=1 if quantum in (None, "") else quantum,
            start_at=0 if start_at in (None, "") else start_at,
        )

    def to_mapping(self) -> dict:
        return {"algorithm": self.algorithm, "quantum": self.quantum, "startAt": self.start_at}


def _tidy(value: float) -> float:
    # Keep integral values as ints so traces read "quantum": 2 rather than 2.0.
    return int(value) if float(value).is_integer() else value
