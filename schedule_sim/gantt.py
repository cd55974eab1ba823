from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import TimelineSegment

COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def _fmt_time(t: float) -> str:
    return f"{t:g}"


def build_rich_gantt(
    segments: Sequence[TimelineSegment],
    t_end: Optional[float] = None,
    cell_width: int = 1,
) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.

    ``segments`` may be a visible prefix of a longer timeline; passing the full
    ``t_end`` pads the unplayed remainder with dots so the chart keeps its width.
    """
    if not segments:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            idx = len(pid_to_color) % len(COLORS)
            pid_to_color[pid] = COLORS[idx]
        return pid_to_color[pid]

    def width_of(duration: float) -> int:
        return max(1, round(duration * cell_width))

    timeline = Text()
    labels = Text()
    marks: List[str] = [_fmt_time(segments[0].start)]

    for seg in segments:
        width = width_of(seg.duration)
        if seg.pid is None:
            timeline.append("." * width, style="dim")
            labels.append("idle"[:width].ljust(width), style="dim")
        else:
            timeline.append(" " * width, style=f"on {pid_color(seg.pid)}")
            labels.append(seg.pid[:width].ljust(width), style="bold")
        marks.append(_fmt_time(seg.end))

    last = segments[-1].end
    if t_end is not None and t_end > last:
        timeline.append("·" * width_of(t_end - last), style="dim")

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, " ".join(marks)
