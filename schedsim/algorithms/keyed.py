from __future__ import annotations

from abc import abstractmethod
from numbers import Real
from typing import List, Optional, Tuple

from ..engine import Policy, ProcessState
from ..models import SimulationOptions


def _fmt(value: Real) -> str:
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.2f}"
    return str(int(value)) if isinstance(value, float) else str(value)


class KeyedPolicy(Policy):
    """
    Ranks ready processes by a single numeric key.

    Ties on the key fall back to arrival time, then input order. Subclasses
    choose whether the key is minimized or maximized, whether a running
    process can lose its core, and whether an equal key is enough to take it.
    """

    label = "key"
    maximize = False
    preemptive = False
    # Running process keeps its core unless a waiting one is strictly better.
    sticky = False
    # Re-rank every `tick` time units instead of only at arrivals/completions.
    tick: Optional[int] = None

    def __init__(self, options: SimulationOptions) -> None:
        super().__init__(options)
        self._ready: List[ProcessState] = []
        self._now: float = 0

    @abstractmethod
    def value(self, state: ProcessState, now: float) -> Real:
        """The discipline's key as shown to users."""

    def _rank(self, state: ProcessState, now: float, running: bool) -> Tuple:
        key = self.value(state, now)
        if self.maximize:
            key = -key
        return (key, 0 if running and self.sticky else 1, state.arrival_time, state.order)

    def admit(self, state: ProcessState, now: float) -> None:
        self._ready.append(state)

    def select(self, now: float, running: List[ProcessState], capacity: int) -> List[ProcessState]:
        self._now = now
        if self.preemptive:
            pool = [(self._rank(s, now, True), s) for s in running]
            pool += [(self._rank(s, now, False), s) for s in self._ready]
            pool.sort(key=lambda item: item[0])
            chosen = [s for _, s in pool[:capacity]]
        else:
            ranked = sorted(self._ready, key=lambda s: self._rank(s, now, False))
            chosen = list(running) + ranked[: capacity - len(running)]

        for state in chosen:
            if state in self._ready:
                self._ready.remove(state)
        return chosen

    def queue_state(self) -> List[str]:
        ranked = sorted(self._ready, key=lambda s: self._rank(s, self._now, False))
        return [s.pid for s in ranked]

    def slice_length(self, state: ProcessState) -> Optional[float]:
        return self.tick

    def reason(self, state: ProcessState, now: float) -> str:
        best = "highest" if self.maximize else "lowest"
        return f"{state.pid} has the {best} {self.label} ({_fmt(self.value(state, now))})"

    def preemption_reason(self, new: ProcessState, old: ProcessState, now: float) -> str:
        new_value, old_value = self.value(new, now), self.value(old, now)
        if new_value == old_value:
            return f"{self.label} tied at {_fmt(new_value)}; {new.pid} arrived first"
        op = ">" if self.maximize else "<"
        return f"{self.label} {_fmt(new_value)} {op} {_fmt(old_value)}"
