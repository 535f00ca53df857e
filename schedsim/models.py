from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class Algorithm(str, Enum):
    """The scheduling disciplines the engine implements."""

    FCFS = "FCFS"
    SJF = "SJF"
    LJF = "LJF"
    SRTF = "SRTF"
    LRTF = "LRTF"
    RR = "RR"
    PRIORITY = "PRIORITY"
    PRIORITY_PREEMPTIVE = "PRIORITY_PE"
    MQ = "MQ"
    MLFQ = "MLFQ"
    HRRN = "HRRN"
    FAIR_SHARE = "FAIR_SHARE"
    LOTTERY = "LOTTERY"
    EDF = "EDF"
    RMS = "RMS"


@dataclass(frozen=True)
class SchedulingHints:
    """
    Discipline-specific attributes of a process.

    Every field is optional. Each discipline reads only the hints it needs
    and applies its own defaults, so an absent hint never leaves a metric
    undefined.
    """

    priority: Optional[int] = None
    deadline: Optional[int] = None
    period: Optional[int] = None
    tickets: Optional[int] = None
    share_group: Optional[str] = None
    share_weight: Optional[float] = None
    queue_level: Optional[int] = None


# Input keys accepted by Process.from_mapping, camelCase first.
_HINT_KEYS = {
    "priority": ("priority",),
    "deadline": ("deadline",),
    "period": ("period",),
    "tickets": ("tickets",),
    "share_group": ("shareGroup", "share_group"),
    "share_weight": ("shareWeight", "share_weight"),
    "queue_level": ("queueLevel", "queue_level"),
}


def _first_present(mapping: Mapping[str, Any], keys) -> Any:
    for key in keys:
        if key in mapping and mapping[key] is not None:
            return mapping[key]
    return None


@dataclass(frozen=True)
class Process:
    pid: str
    arrival_time: int
    burst_time: int
    hints: SchedulingHints = field(default_factory=SchedulingHints)

    @property
    def priority(self) -> Optional[int]:
        return self.hints.priority

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "Process":
        """
        Build a process from a plain record such as a decoded JSON object.

        The record is expected to have passed ``validate`` already.
        """
        hints = SchedulingHints(**{name: _first_present(mapping, keys) for name, keys in _HINT_KEYS.items()})
        return cls(
            pid=mapping["pid"],
            arrival_time=_first_present(mapping, ("arrival", "arrival_time")),
            burst_time=_first_present(mapping, ("burst", "burst_time")),
            hints=hints,
        )


# Pseudo-pids used in events and snapshots for time that belongs to no process.
IDLE = "IDLE"
CONTEXT_SWITCH = "CS"


@dataclass(frozen=True)
class EnergyConfig:
    """Power model: watts per busy and idle core, joules per context switch."""

    active_watts: float = 20.0
    idle_watts: float = 5.0
    switch_joules: float = 0.1

    def __post_init__(self) -> None:
        for name in ("active_watts", "idle_watts", "switch_joules"):
            if getattr(self, name) < 0:
                msg = f"{name} must not be negative"
                raise ValueError(msg)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "EnergyConfig":
        aliases = {"activeWatts": "active_watts", "idleWatts": "idle_watts", "switchJoules": "switch_joules"}
        kwargs = {aliases.get(k, k): v for k, v in mapping.items() if v is not None}
        return cls(**{k: v for k, v in kwargs.items() if k in cls.__dataclass_fields__})


@dataclass
class SimulationOptions:
    """
    Run configuration shared by every discipline.

    Options a discipline does not use are ignored by it.
    """

    quantum: int = 2
    core_count: int = 1
    random_seed: int = 42
    enable_logging: bool = False
    fair_share_quantum: int = 1
    mlfq_levels: int = 3
    mlfq_boost_interval: Optional[int] = None
    mq_queue_policies: Optional[Mapping[int, str]] = None
    context_switch_overhead: int = 0
    energy: EnergyConfig = field(default_factory=EnergyConfig)

    def __post_init__(self) -> None:
        if self.quantum is None or self.quantum < 1:
            msg = "quantum must be a positive integer"
            raise ValueError(msg)
        if self.core_count < 1:
            msg = "core_count must be at least 1"
            raise ValueError(msg)
        if self.fair_share_quantum < 1:
            msg = "fair_share_quantum must be a positive integer"
            raise ValueError(msg)
        if self.mlfq_levels < 1:
            msg = "mlfq_levels must be at least 1"
            raise ValueError(msg)
        if self.mlfq_boost_interval is not None and self.mlfq_boost_interval < 1:
            msg = "mlfq_boost_interval must be a positive integer"
            raise ValueError(msg)
        if self.context_switch_overhead < 0:
            msg = "context_switch_overhead must not be negative"
            raise ValueError(msg)
        if self.mq_queue_policies is not None:
            for level, policy in self.mq_queue_policies.items():
                if policy not in ("rr", "fcfs"):
                    msg = f"Unknown MQ queue policy {policy!r} for level {level} (use 'rr' or 'fcfs')"
                    raise ValueError(msg)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "SimulationOptions":
        """
        Build options from a request-style dict using camelCase keys.
        Unknown keys are ignored.
        """
        aliases = {
            "quantum": "quantum",
            "timeQuantum": "quantum",
            "coreCount": "core_count",
            "randomSeed": "random_seed",
            "enableLogging": "enable_logging",
            "fairShareQuantum": "fair_share_quantum",
            "mlfqLevels": "mlfq_levels",
            "mlfqBoostInterval": "mlfq_boost_interval",
            "mqQueuePolicies": "mq_queue_policies",
            "contextSwitchOverhead": "context_switch_overhead",
            "energyConfig": "energy",
        }
        kwargs: Dict[str, Any] = {}
        for key, value in mapping.items():
            name = aliases.get(key, key)
            if name in cls.__dataclass_fields__ and value is not None:
                kwargs[name] = value
        if "mq_queue_policies" in kwargs:
            kwargs["mq_queue_policies"] = {int(k): v for k, v in kwargs["mq_queue_policies"].items()}
        if isinstance(kwargs.get("energy"), Mapping):
            kwargs["energy"] = EnergyConfig.from_mapping(kwargs["energy"])
        return cls(**kwargs)


@dataclass(frozen=True)
class GanttEvent:
    """
    One contiguous slice of core time, ``[start, end)``: a process running,
    or a context switch when ``pid`` is ``CONTEXT_SWITCH``.
    """

    pid: str
    start: float
    end: float
    core_id: int = 0

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def is_switch(self) -> bool:
        return self.pid == CONTEXT_SWITCH

    def to_dict(self) -> Dict[str, Any]:
        return {"pid": self.pid, "start": self.start, "end": self.end, "coreId": self.core_id}


@dataclass
class EnergyReport:
    total: float = 0.0
    active: float = 0.0
    idle: float = 0.0
    switch: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "totalEnergy": self.total,
            "activeEnergy": self.active,
            "idleEnergy": self.idle,
            "switchEnergy": self.switch,
        }


@dataclass
class Metrics:
    completion: Dict[str, float] = field(default_factory=dict)
    waiting: Dict[str, float] = field(default_factory=dict)
    turnaround: Dict[str, float] = field(default_factory=dict)
    response: Dict[str, float] = field(default_factory=dict)
    avg_waiting: float = 0.0
    avg_turnaround: float = 0.0
    avg_response: float = 0.0
    p95_waiting: float = 0.0
    p95_turnaround: float = 0.0
    p95_response: float = 0.0
    std_dev_waiting: float = 0.0
    std_dev_turnaround: float = 0.0
    std_dev_response: float = 0.0
    cpu_busy_time: float = 0
    switch_time: float = 0
    makespan: float = 0
    cpu_utilization: float = 0.0
    throughput: float = 0.0
    context_switches: int = 0
    energy: EnergyReport = field(default_factory=EnergyReport)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completion": dict(self.completion),
            "waiting": dict(self.waiting),
            "turnaround": dict(self.turnaround),
            "response": dict(self.response),
            "avgWaiting": self.avg_waiting,
            "avgTurnaround": self.avg_turnaround,
            "avgResponse": self.avg_response,
            "p95Waiting": self.p95_waiting,
            "p95Turnaround": self.p95_turnaround,
            "p95Response": self.p95_response,
            "stdDevWaiting": self.std_dev_waiting,
            "stdDevTurnaround": self.std_dev_turnaround,
            "stdDevResponse": self.std_dev_response,
            "cpuBusyTime": self.cpu_busy_time,
            "switchTime": self.switch_time,
            "makespan": self.makespan,
            "cpuUtilization": self.cpu_utilization,
            "throughput": self.throughput,
            "contextSwitches": self.context_switches,
            "energy": self.energy.to_dict(),
        }


@dataclass(frozen=True)
class DecisionLog:
    time: float
    core_id: int
    message: str
    reason: str
    queue_state: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "coreId": self.core_id,
            "message": self.message,
            "reason": self.reason,
            "queueState": list(self.queue_state),
        }


@dataclass(frozen=True)
class Snapshot:
    time: int
    running: List[str]
    ready_queue: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "runningPid": list(self.running), "readyQueue": list(self.ready_queue)}


@dataclass
class SimulationResult:
    algorithm: str
    events: List[GanttEvent] = field(default_factory=list)
    metrics: Metrics = field(default_factory=Metrics)
    snapshots: List[Snapshot] = field(default_factory=list)
    decision_log: Optional[List[DecisionLog]] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON-serialisable form of the result using the output contract's keys.
        """
        data: Dict[str, Any] = {
            "algorithm": self.algorithm,
            "events": [e.to_dict() for e in self.events],
            "metrics": self.metrics.to_dict(),
            "snapshots": [s.to_dict() for s in self.snapshots],
        }
        if self.decision_log is not None:
            data["decisionLog"] = [entry.to_dict() for entry in self.decision_log]
        return data
