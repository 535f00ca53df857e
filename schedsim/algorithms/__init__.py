from __future__ import annotations

from typing import Callable, Dict, List, Optional, Union

from ..models import Algorithm, Process, SimulationOptions, SimulationResult
from .nonpreemptive import schedule_fcfs, schedule_hrrn, schedule_ljf, schedule_priority, schedule_sjf
from .preemptive import schedule_edf, schedule_lrtf, schedule_priority_preemptive, schedule_rms, schedule_srtf
from .proportional import schedule_fair_share, schedule_lottery
from .queues import schedule_mlfq, schedule_mq, schedule_rr

Scheduler = Callable[[List[Process], Optional[SimulationOptions]], SimulationResult]

ALGORITHMS: Dict[Algorithm, Scheduler] = {
    Algorithm.FCFS: schedule_fcfs,
    Algorithm.SJF: schedule_sjf,
    Algorithm.LJF: schedule_ljf,
    Algorithm.SRTF: schedule_srtf,
    Algorithm.LRTF: schedule_lrtf,
    Algorithm.RR: schedule_rr,
    Algorithm.PRIORITY: schedule_priority,
    Algorithm.PRIORITY_PREEMPTIVE: schedule_priority_preemptive,
    Algorithm.MQ: schedule_mq,
    Algorithm.MLFQ: schedule_mlfq,
    Algorithm.HRRN: schedule_hrrn,
    Algorithm.FAIR_SHARE: schedule_fair_share,
    Algorithm.LOTTERY: schedule_lottery,
    Algorithm.EDF: schedule_edf,
    Algorithm.RMS: schedule_rms,
}

_missing = set(Algorithm) - set(ALGORITHMS)
if _missing:
    raise ImportError(f"No scheduler bound for: {sorted(a.value for a in _missing)}")

# Extra spellings accepted on the command line.
_ALIASES = {
    "PRIORITY_PREEMPTIVE": Algorithm.PRIORITY_PREEMPTIVE,
    "PP": Algorithm.PRIORITY_PREEMPTIVE,
    "FAIRSHARE": Algorithm.FAIR_SHARE,
    "FAIR-SHARE": Algorithm.FAIR_SHARE,
}


def resolve_algorithm(name: Union[str, Algorithm]) -> Algorithm:
    """
    Map a user-supplied name onto the enum; raises ValueError if unknown.
    """
    if isinstance(name, Algorithm):
        return name
    key = name.strip().upper()
    try:
        return Algorithm(key)
    except ValueError:
        pass
    if key in _ALIASES:
        return _ALIASES[key]
    raise ValueError(f"Unknown or unimplemented algorithm '{name}'")


def run_algorithm(
    name: Union[str, Algorithm],
    processes: List[Process],
    options: Optional[SimulationOptions] = None,
) -> SimulationResult:
    """
    Dispatch to the requested discipline.
    """
    return ALGORITHMS[resolve_algorithm(name)](processes, options)


__all__ = [
    "ALGORITHMS",
    "Algorithm",
    "resolve_algorithm",
    "run_algorithm",
    "schedule_edf",
    "schedule_fair_share",
    "schedule_fcfs",
    "schedule_hrrn",
    "schedule_ljf",
    "schedule_lottery",
    "schedule_lrtf",
    "schedule_mlfq",
    "schedule_mq",
    "schedule_priority",
    "schedule_priority_preemptive",
    "schedule_rms",
    "schedule_srtf",
    "schedule_sjf",
]
