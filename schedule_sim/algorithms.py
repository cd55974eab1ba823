from __future__ import annotations

import logging
import math
from collections import deque
from typing import Callable, Deque, Dict, List, Sequence, Tuple

from .errors import DegenerateResult, InvalidInput
from .models import Process, TimelineSegment

logger = logging.getLogger(__name__)

# Remaining burst at or below this is treated as done (float quanta).
EPSILON = 1e-9

Builder = Callable[[List[Process], float], List[TimelineSegment]]


def validate_processes(processes: Sequence[Process]) -> None:
    """
    Reject inputs no timeline can be built from. The message names the
    constraint that failed and the offending process.
    """
    if not processes:
        raise InvalidInput("Add at least one process before building a schedule")

    for p in processes:
        if not isinstance(p.pid, str) or not p.pid:
            raise InvalidInput(f"Process id must be a non-empty string (got {p.pid!r})")
        if not _is_number(p.arrival):
            raise InvalidInput(f"Process {p.pid}: arrival must be a finite number (got {p.arrival!r})")
        if not _is_number(p.burst):
            raise InvalidInput(f"Process {p.pid}: burst must be a finite number (got {p.burst!r})")
        if p.arrival < 0:
            raise InvalidInput(f"Process {p.pid}: arrival must be non-negative (got {p.arrival})")
        if p.burst <= 0:
            raise InvalidInput(f"Process {p.pid}: burst must be positive (got {p.burst})")


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _idle_gap(time: float, next_arrival: float) -> List[TimelineSegment]:
    """
    Idle segment covering the CPU's wait for the next arrival, or nothing when
    that arrival is not strictly in the future.
    """
    if next_arrival > time:
        return [TimelineSegment(pid=None, start=time, end=next_arrival)]
    return []


def build_fcfs(processes: List[Process], quantum: float = 1) -> List[TimelineSegment]:
    """
    First-Come First-Serve (non-preemptive). ``processes`` must already be in
    arrival order.
    """
    time: float = 0
    timeline: List[TimelineSegment] = []

    for p in processes:
        if time < p.arrival:
            timeline.extend(_idle_gap(time, p.arrival))
            time = p.arrival

        timeline.append(TimelineSegment(pid=p.pid, start=time, end=time + p.burst))
        time += p.burst

    return timeline


def build_sjf(processes: List[Process], quantum: float = 1) -> List[TimelineSegment]:
    """
    Shortest Job First (non-preemptive).

    At each decision point every process that has arrived joins the ready set
    and the shortest burst runs to completion. Ties go to the earlier arrival,
    then to insertion order. A shorter job arriving mid-burst waits.
    """
    time: float = 0
    timeline: List[TimelineSegment] = []

    incoming: Deque[Tuple[int, Process]] = deque(enumerate(processes))
    ready: List[Tuple[int, Process]] = []

    while ready or incoming:
        while incoming and incoming[0][1].arrival <= time:
            ready.append(incoming.popleft())

        if not ready:
            if not incoming:
                raise DegenerateResult(f"SJF stalled at t={time} with no ready or incoming process")
            next_arrival = incoming[0][1].arrival
            timeline.extend(_idle_gap(time, next_arrival))
            time = next_arrival
            continue

        choice = min(ready, key=lambda entry: (entry[1].burst, entry[1].arrival, entry[0]))
        ready.remove(choice)
        p = choice[1]

        timeline.append(TimelineSegment(pid=p.pid, start=time, end=time + p.burst))
        time += p.burst

    return timeline


def build_rr(processes: List[Process], quantum: float = 1) -> List[TimelineSegment]:
    """
    Round Robin with a fixed time quantum (clamped to at least 1).

    Processes that arrive while a slice runs are queued ahead of the process
    that was just preempted.
    """
    quantum = max(1, quantum)

    time: float = 0
    timeline: List[TimelineSegment] = []

    incoming: Deque[Process] = deque(processes)
    queue: Deque[Process] = deque()
    remaining: Dict[str, float] = {p.pid: p.burst for p in processes}

    def enqueue_arrivals(up_to: float) -> None:
        while incoming and incoming[0].arrival <= up_to:
            queue.append(incoming.popleft())

    enqueue_arrivals(time)

    while queue or incoming:
        if not queue:
            if not incoming:
                raise DegenerateResult(f"Round Robin stalled at t={time} with an empty queue")
            next_arrival = incoming[0].arrival
            timeline.extend(_idle_gap(time, next_arrival))
            time = next_arrival
            enqueue_arrivals(time)
            continue

        p = queue.popleft()
        run = min(quantum, remaining[p.pid])
        timeline.append(TimelineSegment(pid=p.pid, start=time, end=time + run))

        remaining[p.pid] -= run
        time += run

        enqueue_arrivals(time)
        if remaining[p.pid] > EPSILON:
            queue.append(p)

    return timeline


ALGORITHMS: Dict[str, Builder] = {
    "FCFS": build_fcfs,
    "SJF": build_sjf,
    "RR": build_rr,
}


def build_timeline(algorithm: str, processes: Sequence[Process], quantum: float = 1) -> List[TimelineSegment]:
    """
    Validate the process list and dispatch to the requested algorithm. The
    builders see a copy sorted by arrival; ``sorted`` is stable so equal
    arrivals keep their insertion order.
    """
    name = algorithm.upper()
    if name not in ALGORITHMS:
        raise InvalidInput(f"Unknown algorithm '{algorithm}' (use one of {', '.join(ALGORITHMS)})")

    validate_processes(processes)

    ordered = sorted(processes, key=lambda p: p.arrival)
    timeline = ALGORITHMS[name](ordered, quantum)

    logger.debug(
        "Built %s timeline: %d processes, %d segments, t_end=%s",
        name,
        len(ordered),
        len(timeline),
        timeline_end(timeline),
    )
    return timeline


def timeline_end(timeline: Sequence[TimelineSegment]) -> float:
    return timeline[-1].end if timeline else 0
