"""
Queue-based disciplines: Round Robin, Multilevel Queue and Multi-Level
Feedback Queue.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List, Optional

from ..engine import Policy, ProcessState, simulate
from ..models import Algorithm, Process, SimulationOptions, SimulationResult
from .hints import queue_level_of


class RoundRobinPolicy(Policy):
    def __init__(self, options: SimulationOptions) -> None:
        super().__init__(options)
        self._queue: Deque[ProcessState] = deque()

    def admit(self, state: ProcessState, now: float) -> None:
        self._queue.append(state)

    def select(self, now: float, running: List[ProcessState], capacity: int) -> List[ProcessState]:
        chosen = list(running)
        while len(chosen) < capacity and self._queue:
            chosen.append(self._queue.popleft())
        return chosen

    def queue_state(self) -> List[str]:
        return [s.pid for s in self._queue]

    def slice_length(self, state: ProcessState) -> Optional[float]:
        return self.options.quantum

    def reason(self, state: ProcessState, now: float) -> str:
        return f"{state.pid} is at the head of the queue. Quantum: {self.options.quantum}."


class _LeveledPolicy(Policy):
    """
    Several FIFO queues served strictly by level, lowest level first.

    A running process counts as the head of its own level, so it is only
    displaced by a process from a lower-numbered level.
    """

    def __init__(self, options: SimulationOptions) -> None:
        super().__init__(options)
        self._queues: Dict[int, Deque[ProcessState]] = {}

    def _enqueue(self, state: ProcessState, front: bool = False) -> None:
        queue = self._queues.setdefault(state.level, deque())
        if front:
            queue.appendleft(state)
        else:
            queue.append(state)

    def select(self, now: float, running: List[ProcessState], capacity: int) -> List[ProcessState]:
        levels = sorted(set(self._queues) | {s.level for s in running})
        ordered: List[ProcessState] = []
        for level in levels:
            ordered.extend(s for s in running if s.level == level)
            ordered.extend(self._queues.get(level, ()))
        chosen = ordered[:capacity]
        for state in chosen:
            queue = self._queues.get(state.level)
            if queue and state in queue:
                queue.remove(state)
        return chosen

    def queue_state(self) -> List[str]:
        return [s.pid for level in sorted(self._queues) for s in self._queues[level]]

    def preemption_reason(self, new: ProcessState, old: ProcessState, now: float) -> str:
        return f"queue {new.level} outranks queue {old.level}"


class MultilevelQueuePolicy(_LeveledPolicy):
    """
    Static queues chosen by each process's ``queue_level``. Level 0 is served
    round robin and every other level first-come first-served, unless
    ``mq_queue_policies`` says otherwise.
    """

    def _policy_of(self, level: int) -> str:
        configured = self.options.mq_queue_policies or {}
        if level in configured:
            return configured[level]
        return "rr" if level == 0 else "fcfs"

    def admit(self, state: ProcessState, now: float) -> None:
        state.level = queue_level_of(state.process)
        self._enqueue(state)

    def preempt(self, state: ProcessState, now: float) -> None:
        state.slice_used = 0
        self._enqueue(state, front=True)

    def slice_length(self, state: ProcessState) -> Optional[float]:
        if self._policy_of(state.level) == "rr":
            return self.options.quantum
        return None

    def reason(self, state: ProcessState, now: float) -> str:
        policy = self._policy_of(state.level).upper()
        return f"{state.pid} is first in the highest non-empty queue (queue {state.level}, {policy})"


class MlfqPolicy(_LeveledPolicy):
    """
    Feedback queues with quanta q, 2q, 4q, ... and an unbounded last level.

    New arrivals start at level 0. Using up a whole quantum demotes a process
    one level. A process preempted by a lower level keeps its place and the
    part of the quantum it already used. With ``mlfq_boost_interval`` set,
    every process is moved back to level 0 at each multiple of the interval.
    """

    def __init__(self, options: SimulationOptions) -> None:
        super().__init__(options)
        self._last_level = options.mlfq_levels - 1
        self._next_boost = options.mlfq_boost_interval

    def quantum_of(self, level: int) -> Optional[int]:
        if level >= self._last_level:
            return None
        return self.options.quantum * 2 ** level

    def admit(self, state: ProcessState, now: float) -> None:
        state.level = 0
        self._enqueue(state)

    def requeue(self, state: ProcessState, now: float) -> None:
        state.level = min(state.level + 1, self._last_level)
        self._enqueue(state)

    def preempt(self, state: ProcessState, now: float) -> None:
        self._enqueue(state, front=True)

    def select(self, now: float, running: List[ProcessState], capacity: int) -> List[ProcessState]:
        while self._next_boost is not None and now >= self._next_boost:
            self._boost(running)
            self._next_boost += self.options.mlfq_boost_interval
        return super().select(now, running, capacity)

    def _boost(self, running: List[ProcessState]) -> None:
        merged: Deque[ProcessState] = deque()
        for level in sorted(self._queues):
            merged.extend(self._queues[level])
        for state in list(running) + list(merged):
            state.level = 0
            state.slice_used = 0
        self._queues = {0: merged}

    def wakeup_time(self, now: float) -> Optional[float]:
        return self._next_boost

    def slice_length(self, state: ProcessState) -> Optional[float]:
        return self.quantum_of(state.level)

    def reason(self, state: ProcessState, now: float) -> str:
        quantum = self.quantum_of(state.level)
        budget = "unbounded" if quantum is None else str(quantum)
        return f"{state.pid} is first in the highest non-empty queue (queue {state.level}, quantum {budget})"


def schedule_rr(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Processes arriving at the instant a slice expires join the queue before
    the expired process is put back at its tail.
    """
    return simulate(processes, RoundRobinPolicy, options, Algorithm.RR.value)


def schedule_mq(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Multilevel Queue scheduling with static queue membership.
    """
    return simulate(processes, MultilevelQueuePolicy, options, Algorithm.MQ.value)


def schedule_mlfq(processes: List[Process], options: Optional[SimulationOptions] = None) -> SimulationResult:
    """
    Multi-Level Feedback Queue.
    """
    return simulate(processes, MlfqPolicy, options, Algorithm.MLFQ.value)
