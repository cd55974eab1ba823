from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from .algorithms import timeline_end
from .models import AggregateStats, Process, ProcessStats, TimelineSegment

logger = logging.getLogger(__name__)


def derive_stats(
    timeline: Sequence[TimelineSegment],
    processes: Sequence[Process],
) -> Tuple[List[ProcessStats], AggregateStats]:
    """
    Derive per-process and aggregate metrics from a built timeline.

    Start is the first segment of a process, finish the end of its last one;
    turnaround, waiting and response follow from those. A process that never
    appears on the timeline keeps ``None`` metrics, is left out of the
    averages and reported in ``AggregateStats.missing``.
    """
    first_start: Dict[str, float] = {}
    last_end: Dict[str, float] = {}

    for seg in timeline:
        if seg.pid is None:
            continue
        first_start.setdefault(seg.pid, seg.start)
        last_end[seg.pid] = seg.end

    stats: List[ProcessStats] = []
    missing: List[str] = []

    for p in sorted(processes, key=lambda proc: proc.arrival):
        st = ProcessStats(pid=p.pid, arrival=p.arrival, burst=p.burst)
        if p.pid in last_end:
            st.start = first_start[p.pid]
            st.finish = last_end[p.pid]
            st.turnaround = st.finish - p.arrival
            st.waiting = st.turnaround - p.burst
            st.response = st.start - p.arrival
        else:
            missing.append(p.pid)
        stats.append(st)

    if missing:
        logger.warning("Processes with no timeline segments: %s", ", ".join(missing))

    summary = summarize(stats)
    # Schedules are anchored at t=0 whatever the cursor's start offset.
    span = timeline_end(timeline)
    aggregate = AggregateStats(
        avg_turnaround=summary["avg_turnaround"],
        avg_waiting=summary["avg_waiting"],
        avg_response=summary["avg_response"],
        throughput=len(processes) / max(span, 1),
        process_count=len(processes),
        missing=missing,
    )
    return stats, aggregate


def summarize(stats: Sequence[ProcessStats]) -> dict:
    """
    Return averages of the key per-process metrics over the processes that
    were actually scheduled.
    """
    scheduled = [s for s in stats if s.scheduled]
    if not scheduled:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(scheduled)
    return {
        "avg_waiting": sum(s.waiting for s in scheduled) / n,
        "avg_turnaround": sum(s.turnaround for s in scheduled) / n,
        "avg_response": sum(s.response for s in scheduled) / n,
    }
