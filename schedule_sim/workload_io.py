from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, List, Union

from .models import Process
from .schedule import Schedule

Number = Union[int, float]


def sample_processes() -> List[Process]:
    """The built-in four-process sample workload."""
    return [
        Process("P1", arrival=0, burst=6, priority=2),
        Process("P2", arrival=2, burst=4, priority=1),
        Process("P3", arrival=4, burst=5, priority=3),
        Process("P4", arrival=6, burst=2, priority=2),
    ]


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        processes = _load_json(path)
    elif suffix == ".csv":
        processes = _load_csv(path)
    else:
        raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    seen: set[str] = set()
    for p in processes:
        if p.pid in seen:
            raise ValueError(f"Duplicate process id '{p.pid}' in {path.name}")
        seen.add(p.pid)

    return processes


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, dict) or not isinstance(raw, Iterable):
        raise ValueError("JSON workload must be a list of process objects")

    return [_process_from_mapping(entry) for entry in raw]


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(_process_from_mapping(row))
    return processes


def _process_from_mapping(mapping) -> Process:
    try:
        pid = str(mapping["pid"]).strip()
        arrival = _number(_field(mapping, "arrival", "arrival_time"))
        burst = _number(_field(mapping, "burst", "burst_time"))
        priority_val = mapping.get("priority")
        priority = _number(priority_val) if priority_val not in (None, "") else 0
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc

    if not pid:
        raise ValueError(f"Invalid process entry (empty pid): {mapping!r}")

    return Process(pid=pid, arrival=arrival, burst=burst, priority=priority)


def _field(mapping, name: str, alias: str):
    value = mapping.get(name)
    if value in (None, ""):
        value = mapping[alias]
    return value


def _number(value) -> Number:
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got {value!r}")
    number = float(value)
    return int(number) if number.is_integer() else number


def save_trace(schedule: Schedule, path: str | Path) -> Path:
    """
    Write the schedule's snapshot (configuration, processes, timeline and
    stats) as an indented JSON trace.
    """
    path = Path(path)
    with path.open("w", encoding="utf-8") as f:
        json.dump(schedule.snapshot(), f, indent=2)
        f.write("\n")
    return path


def load_trace(path: str | Path) -> Schedule:
    """
    Read a trace written by ``save_trace`` and rebuild it, checking that the
    recorded timeline is reproduced.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Trace {path.name} must be a JSON object")

    return Schedule.from_snapshot(data)
