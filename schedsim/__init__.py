"""
Scheduling simulator package.

Deterministic discrete-event simulation of CPU scheduling disciplines, with a
command-line interface for running and comparing them on workload files.
"""

from .algorithms import ALGORITHMS, resolve_algorithm, run_algorithm
from .engine import SimulationError
from .models import (
    Algorithm,
    DecisionLog,
    GanttEvent,
    Metrics,
    Process,
    SchedulingHints,
    SimulationOptions,
    SimulationResult,
    Snapshot,
)
from .validation import ValidationResult, validate

__all__ = [
    "ALGORITHMS",
    "Algorithm",
    "DecisionLog",
    "GanttEvent",
    "Metrics",
    "Process",
    "SchedulingHints",
    "SimulationError",
    "SimulationOptions",
    "SimulationResult",
    "Snapshot",
    "ValidationResult",
    "resolve_algorithm",
    "run_algorithm",
    "validate",
]
