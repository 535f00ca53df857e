from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import Process

# Canonical field -> accepted column names, first match wins.
COLUMN_ALIASES = {
    "pid": ("pid", "PID", "id", "Id", "ID"),
    "arrival": ("arrival", "Arrival", "arrival_time", "arrivalTime"),
    "burst": ("burst", "Burst", "burst_time", "burstTime"),
    "priority": ("priority", "Priority"),
    "deadline": ("deadline", "Deadline"),
    "period": ("period", "Period"),
    "tickets": ("tickets", "Tickets"),
    "shareGroup": ("shareGroup", "share_group", "ShareGroup", "group"),
    "shareWeight": ("shareWeight", "share_weight", "ShareWeight", "weight"),
    "queueLevel": ("queueLevel", "queue_level", "QueueLevel", "queue"),
}

_NUMERIC = {"arrival", "burst", "priority", "deadline", "period", "tickets", "shareWeight", "queueLevel"}


def load_workload(path: str | Path) -> List[Dict[str, Any]]:
    """
    Load a workload from a JSON or CSV file into plain process records.

    Records are normalised to the engine's input keys but not validated;
    run them through ``validate`` before building processes.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")


def _load_json(path: Path) -> List[Dict[str, Any]]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, Mapping) and "processes" in raw:
        raw = raw["processes"]
    if not isinstance(raw, list):
        raise ValueError("JSON workload must be a list of process objects")

    return normalize_records(raw)


def _load_csv(path: Path) -> List[Dict[str, Any]]:
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return normalize_records(reader)


def normalize_records(rows: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Map flexible column names onto the input keys.

    A missing pid becomes ``P{index+1}``, a missing arrival 0 and a missing
    burst 1. Entries that are not mappings are passed through untouched so
    the validator can report them.
    """
    records: List[Dict[str, Any]] = []
    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            records.append(row)
            continue

        record: Dict[str, Any] = {}
        for field, aliases in COLUMN_ALIASES.items():
            value = _pick(row, aliases)
            if value is None:
                continue
            record[field] = _coerce_number(value) if field in _NUMERIC else value

        record.setdefault("pid", f"P{index + 1}")
        if not isinstance(record["pid"], str):
            record["pid"] = str(record["pid"])
        record.setdefault("arrival", 0)
        record.setdefault("burst", 1)
        records.append(record)
    return records


def records_to_processes(records: Iterable[Mapping[str, Any]]) -> List[Process]:
    return [Process.from_mapping(record) for record in records]


def _pick(row: Mapping[str, Any], aliases) -> Optional[Any]:
    for name in aliases:
        value = row.get(name)
        if value not in (None, ""):
            return value
    return None


def _coerce_number(value: Any) -> Any:
    # CSV cells arrive as strings; leave anything unparseable for the validator.
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return value
