"""
Proportional-share disciplines: weighted fair share across groups and
lottery scheduling. Both re-decide after every slice.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..engine import Policy, ProcessState, simulate
from ..models import Algorithm, Process, SimulationOptions, SimulationResult
from ..rng import draw_weighted, make_rng
from .hints import share_group_of, share_weight_of, tickets_of


class _SlicedPolicy(Policy):
    """Ready set kept in arrival order; every dispatch lasts one slice."""

    slice = 1

    def __init__(self, options: SimulationOptions) -> None:
        super().__init__(options)
        self._ready: List[ProcessState] = []

    def admit(self, state: ProcessState, now: float) -> None:
        self._ready.append(state)
        self._ready.sort(key=lambda s: (s.arrival_time, s.order))

    def queue_state(self) -> List[str]:
        return [s.pid for s in self._ready]

    def slice_length(self, state: ProcessState) -> Optional[float]:
        return self.slice


class FairSharePolicy(_SlicedPolicy):
    """
    Stride-style fair share: the group with the least service per unit of
    weight runs next, and inside a group the earliest arrival runs first.
    A group's weight is the first ``share_weight`` declared by one of its
    members in input order.
    """

    def __init__(self, options: SimulationOptions) -> None:
        super().__init__(options)
        self.slice = options.fair_share_quantum
        self._usage: Dict[str, float] = {}
        self._weight: Dict[str, float] = {}
        self._rank: Dict[str, int] = {}

    def prepare(self, states: Sequence[ProcessState]) -> None:
        for state in states:
            group = share_group_of(state.process)
            if group not in self._rank:
                self._rank[group] = len(self._rank)
                self._usage[group] = 0
            if state.process.hints.share_weight is not None and group not in self._weight:
                self._weight[group] = share_weight_of(state.process)
        for group in self._rank:
            self._weight.setdefault(group, 1)

    def _score(self, group: str, usage: Dict[str, float]) -> tuple:
        return (usage[group] / self._weight[group], self._rank[group])

    def select(self, now: float, running: List[ProcessState], capacity: int) -> List[ProcessState]:
        chosen = list(running)
        # charge picks made in this round up front so parallel cores spread
        # across groups
        usage = dict(self._usage)
        for state in running:
            usage[share_group_of(state.process)] += min(self.slice, state.remaining)

        while len(chosen) < capacity:
            candidates = [s for s in self._ready if s not in chosen]
            if not candidates:
                break
            groups = {share_group_of(s.process) for s in candidates}
            group = min(groups, key=lambda g: self._score(g, usage))
            pick = next(s for s in candidates if share_group_of(s.process) == group)
            usage[group] += min(self.slice, pick.remaining)
            chosen.append(pick)

        for state in chosen:
            if state in self._ready:
                self._ready.remove(state)
        return chosen

    def charge(self, state: ProcessState, duration: float) -> None:
        self._usage[share_group_of(state.process)] += duration

    def reason(self, state: ProcessState, now: float) -> str:
        group = share_group_of(state.process)
        return (
            f"group {group} has the least weighted usage "
            f"({self._usage[group]:g} / {self._weight[group]:g}); {state.pid} is its earliest arrival"
        )


class LotteryPolicy(_SlicedPolicy):
    """
    One ticket is drawn per free core and time unit from a generator seeded
    with ``random_seed``; the generator belongs to this run alone.
    """

    def __init__(self, options: SimulationOptions) -> None:
        super().__init__(options)
        self._rng = make_rng(options.random_seed)
        self._pool_tickets: Dict[str, int] = {}

    def select(self, now: float, running: List[ProcessState], capacity: int) -> List[ProcessState]:
        chosen = list(running)
        pool = list(self._ready)
        while len(chosen) < capacity and pool:
            weighted = [(s, tickets_of(s.process)) for s in pool]
            pick = draw_weighted(self._rng, weighted)
            self._pool_tickets[pick.pid] = sum(weight for _, weight in weighted)
            pool.remove(pick)
            chosen.append(pick)

        for state in chosen:
            if state in self._ready:
                self._ready.remove(state)
        return chosen

    def reason(self, state: ProcessState, now: float) -> str:
        return f"{state.pid} won the draw with {tickets_of(state.process)} of {self._pool_tickets[state.pid]} tickets"


def schedule_fair_share(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Weighted fair-share scheduling across ``share_group`` groups.
    """
    return simulate(processes, FairSharePolicy, options, Algorithm.FAIR_SHARE.value)


def schedule_lottery(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Lottery scheduling. The same seed always reproduces the same schedule.
    """
    return simulate(processes, LotteryPolicy, options, Algorithm.LOTTERY.value)
