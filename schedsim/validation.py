from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Mapping, Optional

from .models import Process


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _field(entry: Any, *names: str) -> Any:
    if isinstance(entry, Process):
        return getattr(entry, names[-1])
    for name in names:
        if name in entry:
            return entry[name]
    return None


def validate(processes: Any) -> ValidationResult:
    """
    Check a process set before simulation.

    Accepts ``Process`` objects or plain mappings with the ``pid``/``arrival``/
    ``burst`` keys. Stops at the first problem found and reports it instead of
    raising. Discipline-specific hints are left to the discipline that reads
    them.
    """
    if not isinstance(processes, (list, tuple)):
        return ValidationResult(False, "Input must be an array of processes")

    seen: set[str] = set()
    for entry in processes:
        if not isinstance(entry, (Mapping, Process)):
            return ValidationResult(False, "Process must be an object")

        pid = _field(entry, "pid")
        if not isinstance(pid, str) or not pid:
            return ValidationResult(False, "Process missing valid PID")

        if pid in seen:
            return ValidationResult(False, f"Duplicate PID found: {pid}")
        seen.add(pid)

        arrival = _field(entry, "arrival", "arrival_time")
        if not _is_number(arrival) or arrival < 0:
            return ValidationResult(False, f"Invalid arrival time for {pid}")

        burst = _field(entry, "burst", "burst_time")
        if not _is_number(burst) or burst <= 0:
            return ValidationResult(False, f"Invalid burst time for {pid}. Must be > 0")

    return ValidationResult(True)
