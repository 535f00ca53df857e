"""
Readers for the discipline-specific process hints.

Each reader applies the discipline's default when the hint is absent and
rejects values of the wrong type, naming the offending pid.
"""

from __future__ import annotations

from numbers import Real
from typing import Any

from ..models import Process

DEFAULT_PRIORITY = 100
DEFAULT_SHARE_GROUP = "default"


def _number(process: Process, name: str, value: Any) -> Real:
    if not isinstance(value, Real) or isinstance(value, bool):
        raise ValueError(f"Invalid {name} for {process.pid}: {value!r}")
    return value


def priority_of(process: Process) -> Real:
    value = process.hints.priority
    if value is None:
        return DEFAULT_PRIORITY
    return _number(process, "priority", value)


def deadline_of(process: Process) -> Real:
    """Absolute deadline; a process without one is due at arrival + burst."""
    value = process.hints.deadline
    if value is None:
        return process.arrival_time + process.burst_time
    return _number(process, "deadline", value)


def period_of(process: Process) -> Real:
    """Rate-monotonic period; falls back to the burst when absent or not positive."""
    value = process.hints.period
    if value is None:
        return process.burst_time
    value = _number(process, "period", value)
    return value if value > 0 else process.burst_time


def tickets_of(process: Process) -> int:
    value = process.hints.tickets
    if value is None:
        return 1
    value = _number(process, "tickets", value)
    if value != int(value):
        raise ValueError(f"Invalid tickets for {process.pid}: {value!r} is not a whole number")
    return int(value) if value > 0 else 1


def share_group_of(process: Process) -> str:
    value = process.hints.share_group
    if value is None or value == "":
        return DEFAULT_SHARE_GROUP
    if not isinstance(value, str):
        raise ValueError(f"Invalid shareGroup for {process.pid}: {value!r}")
    return value


def share_weight_of(process: Process) -> Real:
    value = process.hints.share_weight
    if value is None:
        return 1
    value = _number(process, "shareWeight", value)
    return value if value > 0 else 1


def queue_level_of(process: Process) -> int:
    value = process.hints.queue_level
    if value is None:
        return 0
    value = _number(process, "queueLevel", value)
    if value < 0 or value != int(value):
        raise ValueError(f"Invalid queueLevel for {process.pid}: must be a non-negative integer")
    return int(value)
