"""
Run-to-completion disciplines: once a process holds a core it keeps it until
its burst is done. Decisions happen only when a core frees up.
"""

from __future__ import annotations

from typing import List, Optional

from ..engine import ProcessState, simulate
from ..models import Algorithm, Process, SimulationOptions, SimulationResult
from .hints import priority_of
from .keyed import KeyedPolicy


class FcfsPolicy(KeyedPolicy):
    label = "arrival time"

    def value(self, state: ProcessState, now: float) -> float:
        return state.arrival_time

    def reason(self, state: ProcessState, now: float) -> str:
        return f"{state.pid} arrived earliest (t={state.arrival_time})"


class SjfPolicy(KeyedPolicy):
    label = "burst time"

    def value(self, state: ProcessState, now: float) -> float:
        return state.burst_time


class LjfPolicy(KeyedPolicy):
    label = "burst time"
    maximize = True

    def value(self, state: ProcessState, now: float) -> float:
        return state.burst_time


class PriorityPolicy(KeyedPolicy):
    label = "priority"

    def value(self, state: ProcessState, now: float) -> float:
        return priority_of(state.process)

    def reason(self, state: ProcessState, now: float) -> str:
        return f"{state.pid} has the highest priority ({self.value(state, now)})"


class HrrnPolicy(KeyedPolicy):
    """
    Highest Response Ratio Next: ``(waiting + burst) / burst``, recomputed at
    every decision so long-waiting jobs age past short newcomers.
    """

    label = "response ratio"
    maximize = True

    def value(self, state: ProcessState, now: float) -> float:
        waiting = now - state.arrival_time
        return (waiting + state.burst_time) / state.burst_time

    def reason(self, state: ProcessState, now: float) -> str:
        waiting = now - state.arrival_time
        return (
            f"{state.pid} has the highest response ratio: "
            f"({waiting} + {state.burst_time}) / {state.burst_time} = {self.value(state, now):.2f}"
        )


def schedule_fcfs(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    First-Come First-Serve (non-preemptive).
    """
    return simulate(processes, FcfsPolicy, options, Algorithm.FCFS.value)


def schedule_sjf(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Shortest Job First (non-preemptive).

    Whenever a core frees up, the ready process with the smallest burst runs
    next (tie-breaker: earlier arrival, then input order).
    """
    return simulate(processes, SjfPolicy, options, Algorithm.SJF.value)


def schedule_ljf(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Longest Job First (non-preemptive).
    """
    return simulate(processes, LjfPolicy, options, Algorithm.LJF.value)


def schedule_priority(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Static Priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority; a process without a
    priority is treated as priority 100.
    """
    return simulate(processes, PriorityPolicy, options, Algorithm.PRIORITY.value)


def schedule_hrrn(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Highest Response Ratio Next (non-preemptive).
    """
    return simulate(processes, HrrnPolicy, options, Algorithm.HRRN.value)
