"""
Preemptive disciplines ranked by a single key: remaining time, priority,
deadline or period. The ranking is redone at every arrival and completion,
and every tick for LRTF, whose key moves while a process runs.
"""

from __future__ import annotations

from typing import List, Optional

from ..engine import ProcessState, simulate
from ..models import Algorithm, Process, SimulationOptions, SimulationResult
from .hints import deadline_of, period_of, priority_of
from .keyed import KeyedPolicy


class SrtfPolicy(KeyedPolicy):
    label = "remaining time"
    preemptive = True

    def value(self, state: ProcessState, now: float) -> float:
        return state.remaining


class LrtfPolicy(KeyedPolicy):
    label = "remaining time"
    maximize = True
    preemptive = True
    tick = 1

    def value(self, state: ProcessState, now: float) -> float:
        return state.remaining


class PriorityPreemptivePolicy(KeyedPolicy):
    label = "priority"
    preemptive = True
    sticky = True

    def value(self, state: ProcessState, now: float) -> float:
        return priority_of(state.process)

    def reason(self, state: ProcessState, now: float) -> str:
        return f"{state.pid} has the highest priority ({self.value(state, now)})"


class EdfPolicy(KeyedPolicy):
    label = "deadline"
    preemptive = True
    sticky = True

    def value(self, state: ProcessState, now: float) -> float:
        return deadline_of(state.process)

    def reason(self, state: ProcessState, now: float) -> str:
        return f"{state.pid} has the earliest deadline ({self.value(state, now)})"


class RmsPolicy(KeyedPolicy):
    label = "period"
    preemptive = True

    def value(self, state: ProcessState, now: float) -> float:
        return period_of(state.process)


def schedule_srtf(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Shortest Remaining Time First (preemptive SJF).
    """
    return simulate(processes, SrtfPolicy, options, Algorithm.SRTF.value)


def schedule_lrtf(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Longest Remaining Time First, re-evaluated every time unit.

    On equal remaining time the earlier arrival wins, so two equal jobs
    alternate tick by tick.
    """
    return simulate(processes, LrtfPolicy, options, Algorithm.LRTF.value)


def schedule_priority_preemptive(
    processes: List[Process], options: Optional[SimulationOptions] = None
) -> SimulationResult:
    """
    Preemptive Priority scheduling.

    A waiting process takes the CPU only with a strictly smaller priority
    number than the running one; equal priority never preempts.
    """
    return simulate(processes, PriorityPreemptivePolicy, options, Algorithm.PRIORITY_PREEMPTIVE.value)


def schedule_edf(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Earliest Deadline First.

    Preempts only for a strictly earlier deadline. A process without a
    deadline is due at ``arrival + burst``.
    """
    return simulate(processes, EdfPolicy, options, Algorithm.EDF.value)


def schedule_rms(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Rate Monotonic Scheduling: fixed priority by period, shortest first.
    A process without a period uses its burst.
    """
    return simulate(processes, RmsPolicy, options, Algorithm.RMS.value)
