"""
Discrete-event simulation kernel shared by every scheduling discipline.

The kernel owns logical time, core assignment and event recording. A
``Policy`` owns the ready structures and decides which processes should hold
the cores at each decision point.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .metrics import compute_metrics
from .models import CONTEXT_SWITCH, DecisionLog, Process, SimulationOptions, SimulationResult
from .recorder import EventRecorder
from .snapshots import generate_snapshots

logger = logging.getLogger(__name__)

EPSILON = 1e-9


class SimulationError(RuntimeError):
    """A policy broke the kernel's progress guarantees."""


@dataclass(eq=False)
class ProcessState:
    """Mutable runtime state wrapped around an immutable ``Process``."""

    process: Process
    order: int
    remaining: float
    level: int = 0
    slice_used: float = 0

    @property
    def pid(self) -> str:
        return self.process.pid

    @property
    def arrival_time(self) -> int:
        return self.process.arrival_time

    @property
    def burst_time(self) -> int:
        return self.process.burst_time

    def is_complete(self) -> bool:
        return self.remaining <= EPSILON


class Policy(ABC):
    """Selection rules of one discipline."""

    def __init__(self, options: SimulationOptions) -> None:
        self.options = options

    def prepare(self, states: Sequence[ProcessState]) -> None:
        """Hook invoked once with every process before time starts."""

    @abstractmethod
    def admit(self, state: ProcessState, now: float) -> None:
        """Add a newly arrived process to the ready structures."""

    @abstractmethod
    def select(self, now: float, running: List[ProcessState], capacity: int) -> List[ProcessState]:
        """
        Return the processes that should hold the cores from ``now`` on.

        ``running`` lists the processes currently on a core. Processes left out
        of the result are preempted; newly chosen ones must be taken out of
        the ready structures by the policy.
        """

    @abstractmethod
    def queue_state(self) -> List[str]:
        """Pids waiting to run, in the policy's own order."""

    def slice_length(self, state: ProcessState) -> Optional[float]:
        """Longest run granted per dispatch, or None to run until completion."""
        return None

    def requeue(self, state: ProcessState, now: float) -> None:
        """Hook invoked when a running process uses up its slice."""
        self.admit(state, now)

    def preempt(self, state: ProcessState, now: float) -> None:
        """Hook invoked when a running process loses its core."""
        state.slice_used = 0
        self.requeue(state, now)

    def complete(self, state: ProcessState, now: float) -> None:
        """Hook invoked when a process finishes."""

    def charge(self, state: ProcessState, duration: float) -> None:
        """Hook invoked after a process ran for ``duration``."""

    def wakeup_time(self, now: float) -> Optional[float]:
        """Extra decision point the policy needs, if any."""
        return None

    def reason(self, state: ProcessState, now: float) -> str:
        return f"{state.pid} is next in line"

    def preemption_reason(self, new: ProcessState, old: ProcessState, now: float) -> str:
        return f"{new.pid} outranks {old.pid}"


class DecisionRecorder:
    """Collects decision log entries when enabled; otherwise a no-op."""

    def __init__(self, enabled: bool) -> None:
        self.enabled = enabled
        self.entries: List[DecisionLog] = []

    def record(self, time: float, core_id: int, message: str, reason: str, queue_state: List[str]) -> None:
        if self.enabled:
            self.entries.append(DecisionLog(time, core_id, message, reason, list(queue_state)))

    def result(self) -> Optional[List[DecisionLog]]:
        return self.entries if self.enabled else None


def _step_limit(states: Sequence[ProcessState], core_count: int, switch_overhead: float = 0) -> int:
    # Every step ends at an arrival, a completion, a slice expiry, the end of
    # a context switch or a policy wakeup; slices are at least one time unit
    # long and each dispatch adds at most one switch.
    if not states:
        return 1
    horizon = max(s.arrival_time for s in states) + sum(s.burst_time for s in states)
    limit = 8 * (len(states) + (core_count + 1) * int(math.ceil(horizon))) + 64
    return 2 * limit if switch_overhead else limit


def simulate(
    processes: Sequence[Process],
    policy_factory: Callable[[SimulationOptions], Policy],
    options: Optional[SimulationOptions],
    algorithm: str,
) -> SimulationResult:
    """
    Run one discipline over a validated process set.

    Time jumps straight to the next relevant instant: an arrival, a
    completion, a slice expiry, the end of a context switch or a policy
    wakeup. All state lives in this call, so concurrent runs never interfere.

    With ``context_switch_overhead`` set, a core that goes straight from one
    process to a different one spends that long switching first. The incoming
    process holds the core during the switch but makes no progress and
    cannot be preempted. A core coming out of idle starts without a switch.
    """
    options = options or SimulationOptions()
    policy = policy_factory(options)
    core_count = options.core_count
    overhead = options.context_switch_overhead

    states = [ProcessState(process=p, order=i, remaining=p.burst_time) for i, p in enumerate(processes)]
    policy.prepare(states)
    pending = deque(sorted(states, key=lambda s: (s.arrival_time, s.order)))

    cores: List[Optional[ProcessState]] = [None] * core_count
    # end of the context switch in progress on each core
    switching: List[Optional[float]] = [None] * core_count
    last_pid: List[Optional[str]] = [None] * core_count
    recorder = EventRecorder()
    decisions = DecisionRecorder(options.enable_logging)

    now: float = 0
    unfinished = len(states)
    limit = _step_limit(states, core_count, overhead)
    steps = 0

    logger.debug("%s: simulating %d processes on %d core(s)", algorithm, len(states), core_count)

    while unfinished:
        steps += 1
        if steps > limit:
            msg = f"{algorithm}: no termination after {limit} steps (t={now}, {unfinished} unfinished)"
            raise SimulationError(msg)

        while pending and pending[0].arrival_time <= now:
            arrived = pending.popleft()
            logger.debug("t=%s: %s arrived", now, arrived.pid)
            policy.admit(arrived, now)

        for core_id, until in enumerate(switching):
            if until is not None and until <= now:
                switching[core_id] = None

        for core_id, state in enumerate(cores):
            if state is None or switching[core_id] is not None:
                continue
            if state.is_complete():
                cores[core_id] = None
                unfinished -= 1
                logger.debug("t=%s: %s completed on core %d", now, state.pid, core_id)
                policy.complete(state, now)
                continue
            allowance = _allowance(policy, state)
            if allowance is not None and allowance <= EPSILON:
                cores[core_id] = None
                state.slice_used = 0
                policy.requeue(state, now)

        if not unfinished:
            break

        open_cores = [core_id for core_id in range(core_count) if switching[core_id] is None]
        running = [cores[core_id] for core_id in open_cores if cores[core_id] is not None]
        capacity = len(open_cores)
        selected = policy.select(now, running, capacity)
        if len(selected) > capacity or len({id(s) for s in selected}) != len(selected):
            msg = f"{algorithm}: invalid selection at t={now}: {[s.pid for s in selected]}"
            raise SimulationError(msg)

        displaced = {}
        for core_id in open_cores:
            state = cores[core_id]
            if state is not None and state not in selected:
                cores[core_id] = None
                displaced[core_id] = state
                policy.preempt(state, now)

        newcomers = [s for s in selected if s not in cores]
        free_cores = [core_id for core_id in open_cores if cores[core_id] is None]
        for state, core_id in zip(newcomers, free_cores):
            cores[core_id] = state
            old = displaced.get(core_id)
            if old is not None:
                decisions.record(
                    now,
                    core_id,
                    f"{state.pid} preempts {old.pid}",
                    policy.preemption_reason(state, old, now),
                    policy.queue_state(),
                )
            decisions.record(now, core_id, f"Selected {state.pid}", policy.reason(state, now), policy.queue_state())
            if overhead and last_pid[core_id] not in (None, state.pid):
                switching[core_id] = now + overhead
                recorder.record(CONTEXT_SWITCH, core_id, now, now + overhead)
                logger.debug("t=%s: core %d switches %s -> %s", now, core_id, last_pid[core_id], state.pid)
            last_pid[core_id] = state.pid
            logger.debug("t=%s: core %d runs %s", now, core_id, state.pid)

        for core_id, state in enumerate(cores):
            if state is None:
                last_pid[core_id] = None

        active = [(core_id, s) for core_id, s in enumerate(cores) if s is not None]
        next_arrival = pending[0].arrival_time if pending else None

        if not active:
            if policy.queue_state():
                msg = f"{algorithm}: ready processes {policy.queue_state()} left unscheduled at t={now}"
                raise SimulationError(msg)
            if next_arrival is None:
                msg = f"{algorithm}: {unfinished} process(es) unfinished with nothing left to run at t={now}"
                raise SimulationError(msg)
            decisions.record(now, 0, f"IDLE until {next_arrival}", "No process is ready.", [])
            now = next_arrival
            continue

        horizon = [
            switching[core_id] if switching[core_id] is not None else now + _run_limit(policy, s)
            for core_id, s in active
        ]
        if next_arrival is not None:
            horizon.append(next_arrival)
        wakeup = policy.wakeup_time(now)
        if wakeup is not None:
            horizon.append(wakeup)
        until = min(horizon)
        if until <= now:
            msg = f"{algorithm}: zero-length step at t={now}"
            raise SimulationError(msg)

        delta = until - now
        for core_id, state in active:
            if switching[core_id] is not None:
                continue
            recorder.record(state.pid, core_id, now, until)
            state.remaining -= delta
            state.slice_used += delta
            policy.charge(state, delta)
        now = until

    events = recorder.events
    return SimulationResult(
        algorithm=algorithm,
        events=events,
        metrics=compute_metrics(events, processes, core_count, options.energy),
        snapshots=generate_snapshots(events, processes, core_count),
        decision_log=decisions.result(),
    )


def _allowance(policy: Policy, state: ProcessState) -> Optional[float]:
    length = policy.slice_length(state)
    if length is None:
        return None
    return length - state.slice_used


def _run_limit(policy: Policy, state: ProcessState) -> float:
    allowance = _allowance(policy, state)
    if allowance is None:
        return state.remaining
    return min(state.remaining, allowance)
