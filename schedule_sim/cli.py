from __future__ import annotations

import argparse
import logging
import math
import time
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import ALGORITHMS
from .errors import ScheduleError
from .gantt import build_rich_gantt
from .models import Process, ScheduleConfig
from .schedule import Schedule
from .workload_io import load_trace, load_workload, sample_processes, save_trace

logger = logging.getLogger(__name__)


def _add_schedule_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workload",
        "-w",
        default=None,
        help="Path to JSON or CSV workload file (default: built-in four-process sample).",
    )
    parser.add_argument(
        "--algorithm",
        "-a",
        default="FCFS",
        help="Algorithm to use (FCFS, SJF, RR; default: FCFS).",
    )
    parser.add_argument(
        "--quantum",
        "-q",
        type=float,
        default=1,
        help="Time quantum for round-robin, raised to at least 1 (default: 1).",
    )
    parser.add_argument(
        "--start-at",
        type=float,
        default=0,
        help="Initial playback cursor time; the schedule itself always starts at 0.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedule-sim",
        description="CPU scheduling simulator with timeline playback (FCFS, SJF, RR).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Build a schedule and print its timeline and statistics.")
    _add_schedule_args(run_parser)

    play_parser = subparsers.add_parser("play", help="Play the schedule back frame by frame in the terminal.")
    _add_schedule_args(play_parser)
    play_parser.add_argument(
        "--speed",
        type=float,
        default=1.0,
        help="Playback speed multiplier (default: 1).",
    )
    play_parser.add_argument(
        "--fps",
        type=float,
        default=4.0,
        help="Frames per real second; each frame advances the cursor by 1/fps seconds of playback (default: 4).",
    )
    play_parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to sleep between frames (default: 1/fps; 0 disables sleeping).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run every algorithm on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        default=None,
        help="Path to JSON or CSV workload file (default: built-in sample).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=float,
        default=2,
        help="Time quantum used for RR (default: 2).",
    )

    export_parser = subparsers.add_parser("export", help="Build a schedule and write its JSON trace.")
    _add_schedule_args(export_parser)
    export_parser.add_argument(
        "--output",
        "-o",
        default="cpu_schedule_trace.json",
        help="Trace file to write (default: cpu_schedule_trace.json).",
    )

    replay_parser = subparsers.add_parser(
        "replay",
        help="Rebuild a schedule from a JSON trace and check it reproduces the recorded timeline.",
    )
    replay_parser.add_argument("trace", help="Path to a trace written by 'export'.")

    return parser


def _load_processes(workload: Optional[str]) -> List[Process]:
    if workload is None:
        return sample_processes()
    return load_workload(Path(workload))


def _build_from_args(args: argparse.Namespace) -> Schedule:
    config = ScheduleConfig(algorithm=args.algorithm, quantum=args.quantum, start_at=args.start_at)
    schedule = Schedule(_load_processes(args.workload), config)
    schedule.build()
    return schedule


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:g}"


def _print_result(schedule: Schedule, console: Console) -> None:
    config = schedule.config
    console.print(f"[bold]Algorithm:[/bold] {config.algorithm}")
    if config.algorithm == "RR":
        console.print(f"[bold]Quantum:[/bold] {config.quantum:g}")

    console.print()

    panel, time_marks = build_rich_gantt(schedule.timeline)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = ["PID", "Arrive", "Burst", "Start", "Finish", "Wait", "Turnaround", "Response"]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h == "PID" else "right"
        proc_table.add_column(h, justify=justify)

    for st in schedule.stats:
        proc_table.add_row(
            st.pid,
            _fmt(st.arrival),
            _fmt(st.burst),
            _fmt(st.start),
            _fmt(st.finish),
            _fmt(st.waiting),
            _fmt(st.turnaround),
            _fmt(st.response),
        )

    console.print(proc_table)
    console.print()

    agg = schedule.aggregate
    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg turnaround", f"{agg.avg_turnaround:.2f}")
    sys_table.add_row("Avg waiting", f"{agg.avg_waiting:.2f}")
    sys_table.add_row("Avg response", f"{agg.avg_response:.2f}")
    sys_table.add_row("Throughput (jobs/unit time)", f"{agg.throughput:.3f}")

    console.print(sys_table)

    if agg.missing:
        console.print(f"[yellow]Not scheduled (excluded from averages): {', '.join(agg.missing)}[/yellow]")


def _play(schedule: Schedule, speed: float, fps: float, delay: Optional[float], console: Console) -> None:
    """
    Drive the playback cursor with fixed wall-clock ticks until it pauses at
    the end of the timeline.
    """
    if not (math.isfinite(fps) and fps > 0):
        raise ValueError(f"--fps must be a positive finite number (got {fps})")

    cursor = schedule.cursor
    cursor.set_speed(speed)
    frame_dt = 1.0 / fps
    sleep_for = frame_dt if delay is None else delay

    console.print(f"[bold]Playing {schedule.config.algorithm}[/bold] (t = {cursor.sim_time:g} .. {schedule.t_end:g})")
    console.print("[dim]Press Ctrl+C to skip playback.[/dim]")

    schedule.play()
    while cursor.playing:
        t = cursor.advance(frame_dt)
        running = cursor.running_process() or "(idle)"
        ready = ", ".join(cursor.ready_set()) or "-"
        console.print(f"t={t:6.2f}  running: {running:<8} ready: {ready}", markup=False)
        if sleep_for > 0:
            time.sleep(sleep_for)

    panel, time_marks = build_rich_gantt(cursor.visible_prefix(), t_end=schedule.t_end)
    console.print(panel)
    if time_marks:
        console.print(time_marks)


def _compare(processes: List[Process], quantum: float, console: Console) -> None:
    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("Throughput", justify="right")

    for alg in ALGORITHMS:
        schedule = Schedule(processes, ScheduleConfig(algorithm=alg, quantum=quantum))
        schedule.build()
        agg = schedule.aggregate
        summary_table.add_row(
            alg,
            f"{schedule.config.quantum:g}" if alg == "RR" else "",
            f"{agg.avg_waiting:.2f}",
            f"{agg.avg_turnaround:.2f}",
            f"{agg.avg_response:.2f}",
            f"{agg.throughput:.3f}",
        )

    console.print(summary_table)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    console = Console()

    try:
        if args.command == "run":
            _print_result(_build_from_args(args), console)
            return 0

        if args.command == "play":
            schedule = _build_from_args(args)
            try:
                _play(schedule, args.speed, args.fps, args.delay, console)
            except KeyboardInterrupt:
                console.print("[yellow]Playback skipped.[/yellow]")
            _print_result(schedule, console)
            return 0

        if args.command == "compare":
            _compare(_load_processes(args.workload), args.quantum, console)
            return 0

        if args.command == "export":
            schedule = _build_from_args(args)
            path = save_trace(schedule, args.output)
            console.print(f"[green]Trace written to {path}[/green]")
            return 0

        if args.command == "replay":
            schedule = load_trace(args.trace)
            console.print("[green]Trace reproduced the recorded timeline.[/green]")
            _print_result(schedule, console)
            return 0
    except (ScheduleError, ValueError, OSError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
