import random

import pytest

from schedsim.algorithms import ALGORITHMS, resolve_algorithm, run_algorithm, schedule_fcfs, schedule_rr
from schedsim.engine import Policy, SimulationError, simulate
from schedsim.metrics import compute_metrics, count_context_switches, summarize
from schedsim.models import (
    CONTEXT_SWITCH,
    Algorithm,
    EnergyConfig,
    GanttEvent,
    Process,
    SchedulingHints,
    SimulationOptions,
)
from schedsim.recorder import EventRecorder
from schedsim.rng import draw_weighted, make_rng
from schedsim.snapshots import IDLE, generate_snapshots


def test_recorder_coalesces_contiguous_runs():
    rec = EventRecorder()
    rec.record("P1", 0, 0, 1)
    rec.record("P1", 0, 1, 2)
    rec.record("P1", 0, 2, 3)
    assert rec.events == [GanttEvent("P1", 0, 3, 0)]


def test_recorder_keeps_gaps_and_interleavings_apart():
    rec = EventRecorder()
    rec.record("P1", 0, 0, 2)
    rec.record("P2", 0, 2, 3)
    rec.record("P1", 0, 3, 4)
    rec.record("P1", 0, 5, 6)
    rec.record("P1", 1, 6, 7)
    assert [(e.pid, e.start, e.end, e.core_id) for e in rec.events] == [
        ("P1", 0, 2, 0),
        ("P2", 2, 3, 0),
        ("P1", 3, 4, 0),
        ("P1", 5, 6, 0),
        ("P1", 6, 7, 1),
    ]


def test_recorder_ignores_empty_intervals():
    rec = EventRecorder()
    rec.record("P1", 0, 2, 2)
    assert rec.events == []


def test_empty_process_set():
    res = schedule_fcfs([])
    assert res.events == []
    assert res.snapshots == []
    assert res.metrics.avg_waiting == 0
    assert res.metrics.cpu_utilization == 0
    assert res.decision_log is None


def test_metrics_definitions():
    procs = [Process("P1", 0, 2), Process("P2", 1, 2)]
    events = [GanttEvent("P1", 0, 1), GanttEvent("P2", 1, 3), GanttEvent("P1", 3, 4)]
    m = compute_metrics(events, procs)
    assert m.completion == {"P1": 4, "P2": 3}
    assert m.turnaround == {"P1": 4, "P2": 2}
    assert m.waiting == {"P1": 2, "P2": 0}
    assert m.response == {"P1": 0, "P2": 0}
    assert m.avg_waiting == 1
    assert m.makespan == 4
    assert m.cpu_utilization == 1
    assert m.throughput == pytest.approx(0.5)
    assert m.context_switches == 2


def test_context_switches_are_counted_per_core():
    events = [GanttEvent("P1", 0, 2, 0), GanttEvent("P2", 0, 2, 1), GanttEvent("P2", 2, 3, 0)]
    assert count_context_switches(events, core_count=2) == 1


def test_snapshots_track_running_and_ready():
    res = schedule_fcfs([Process("P1", 0, 2), Process("P2", 1, 1)])
    assert [(s.time, s.running, s.ready_queue) for s in res.snapshots] == [
        (0, ["P1"], []),
        (1, ["P1"], ["P2"]),
        (2, ["P2"], []),
        (3, [IDLE], []),
    ]


def test_snapshots_show_idle_gaps():
    procs = [Process("P1", 0, 1), Process("P2", 3, 1)]
    snaps = generate_snapshots(schedule_fcfs(procs).events, procs)
    assert [s.running for s in snaps] == [["P1"], [IDLE], [IDLE], ["P2"], [IDLE]]


def test_decision_log_records_preemption():
    procs = [
        Process("P1", 0, 4, SchedulingHints(priority=2)),
        Process("P2", 1, 1, SchedulingHints(priority=1)),
    ]
    res = run_algorithm("priority_pe", procs, SimulationOptions(enable_logging=True))
    assert [entry.message for entry in res.decision_log] == [
        "Selected P1",
        "P2 preempts P1",
        "Selected P2",
        "Selected P1",
    ]
    preemption = res.decision_log[1]
    assert preemption.time == 1
    assert preemption.reason == "priority 1 < 2"
    assert preemption.queue_state == ["P1"]


def test_decision_log_records_idle_gap():
    procs = [Process("P1", 0, 1), Process("P2", 3, 1)]
    res = schedule_fcfs(procs, SimulationOptions(enable_logging=True))
    messages = [entry.message for entry in res.decision_log]
    assert messages == ["Selected P1", "IDLE until 3", "Selected P2"]
    times = [entry.time for entry in res.decision_log]
    assert times == sorted(times)


@pytest.mark.parametrize("algorithm", list(Algorithm))
def test_decision_log_never_changes_the_schedule(algorithm):
    procs = [
        Process("P1", 0, 5, SchedulingHints(priority=3, tickets=2, queue_level=1)),
        Process("P2", 1, 3, SchedulingHints(priority=1, deadline=6, share_group="B")),
        Process("P3", 2, 4, SchedulingHints(period=3)),
    ]
    quiet = run_algorithm(algorithm, procs, SimulationOptions(quantum=2))
    logged = run_algorithm(algorithm, procs, SimulationOptions(quantum=2, enable_logging=True))
    assert quiet.events == logged.events
    assert quiet.decision_log is None
    assert logged.decision_log


def test_to_dict_uses_output_keys():
    data = schedule_fcfs([Process("P1", 0, 2)]).to_dict()
    assert data["algorithm"] == "FCFS"
    assert data["events"] == [{"pid": "P1", "start": 0, "end": 2, "coreId": 0}]
    assert data["metrics"]["avgWaiting"] == 0
    assert data["snapshots"][0] == {"time": 0, "runningPid": ["P1"], "readyQueue": []}
    assert "decisionLog" not in data


class _StubbornPolicy(Policy):
    """Admits processes but never picks one."""

    def __init__(self, options):
        super().__init__(options)
        self.ready = []

    def admit(self, state, now):
        self.ready.append(state)

    def select(self, now, running, capacity):
        return []

    def queue_state(self):
        return [s.pid for s in self.ready]


def test_policy_that_stalls_raises():
    with pytest.raises(SimulationError, match="left unscheduled"):
        simulate([Process("P1", 0, 1)], _StubbornPolicy, None, "STUB")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"quantum": 0},
        {"core_count": 0},
        {"fair_share_quantum": 0},
        {"mlfq_levels": 0},
        {"mlfq_boost_interval": 0},
        {"mq_queue_policies": {1: "lottery"}},
        {"context_switch_overhead": -1},
    ],
)
def test_bad_options_raise(kwargs):
    with pytest.raises(ValueError):
        SimulationOptions(**kwargs)


def test_options_from_mapping():
    opts = SimulationOptions.from_mapping(
        {"timeQuantum": 3, "coreCount": 2, "randomSeed": 9, "mqQueuePolicies": {"1": "rr"}, "other": True}
    )
    assert opts.quantum == 3
    assert opts.core_count == 2
    assert opts.random_seed == 9
    assert opts.mq_queue_policies == {1: "rr"}
    assert opts.enable_logging is False


def test_process_from_mapping():
    proc = Process.from_mapping({"pid": "P1", "arrival": 2, "burst": 3, "shareGroup": "A", "queue_level": 1})
    assert proc.arrival_time == 2
    assert proc.burst_time == 3
    assert proc.hints.share_group == "A"
    assert proc.hints.queue_level == 1
    assert proc.priority is None


def test_every_algorithm_is_bound():
    assert set(ALGORITHMS) == set(Algorithm)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("fcfs", Algorithm.FCFS),
        ("Priority_PE", Algorithm.PRIORITY_PREEMPTIVE),
        ("pp", Algorithm.PRIORITY_PREEMPTIVE),
        ("fair-share", Algorithm.FAIR_SHARE),
        (Algorithm.RR, Algorithm.RR),
    ],
)
def test_resolve_algorithm(name, expected):
    assert resolve_algorithm(name) is expected


def test_unknown_algorithm_raises():
    with pytest.raises(ValueError, match="Unknown"):
        run_algorithm("SHORTEST_FIRST_MAYBE", [Process("P1", 0, 1)])


def test_summarize_rows():
    procs = [Process("P1", 0, 3), Process("P2", 0, 1)]
    rows = summarize([run_algorithm("fcfs", procs), run_algorithm("sjf", procs)])
    assert [row["algorithm"] for row in rows] == ["FCFS", "SJF"]
    assert rows[0]["avg_waiting"] == 1.5
    assert rows[1]["avg_waiting"] == 0.5


def test_draw_weighted_is_repeatable():
    pool = [("a", 1), ("b", 3), ("c", 6)]
    first = [draw_weighted(make_rng(11), pool) for _ in range(5)]
    second = [draw_weighted(make_rng(11), pool) for _ in range(5)]
    assert first == second


def test_draw_weighted_uses_its_own_generator():
    random.seed(0)
    before = random.random()
    random.seed(0)
    draw_weighted(make_rng(3), [("a", 1), ("b", 1)])
    assert random.random() == before


def test_draw_weighted_empty_pool():
    with pytest.raises(ValueError):
        draw_weighted(make_rng(1), [])


def _overhead(n, **kwargs):
    return SimulationOptions(context_switch_overhead=n, **kwargs)


def test_context_switch_between_different_processes():
    procs = [Process("P1", 0, 2), Process("P2", 0, 2)]
    res = schedule_fcfs(procs, _overhead(1))
    assert [(e.pid, e.start, e.end, e.core_id) for e in res.events] == [
        ("P1", 0, 2, 0),
        (CONTEXT_SWITCH, 2, 3, 0),
        ("P2", 3, 5, 0),
    ]
    m = res.metrics
    assert m.completion == {"P1": 2, "P2": 5}
    assert m.context_switches == 1
    assert m.cpu_busy_time == 4
    assert m.switch_time == 1
    assert m.makespan == 5
    assert m.cpu_utilization == pytest.approx(0.8)
    assert [(s.time, s.running, s.ready_queue) for s in res.snapshots[1:4]] == [
        (1, ["P1"], ["P2"]),
        (2, [CONTEXT_SWITCH], ["P2"]),
        (3, ["P2"], []),
    ]


def test_context_switches_under_round_robin():
    procs = [Process("P1", 0, 4), Process("P2", 1, 5)]
    res = schedule_rr(procs, _overhead(1, quantum=2))
    assert [(e.pid, e.start, e.end) for e in res.events] == [
        ("P1", 0, 2),
        (CONTEXT_SWITCH, 2, 3),
        ("P2", 3, 5),
        (CONTEXT_SWITCH, 5, 6),
        ("P1", 6, 8),
        (CONTEXT_SWITCH, 8, 9),
        ("P2", 9, 12),
    ]
    assert res.metrics.context_switches == 3
    assert res.metrics.response == {"P1": 0, "P2": 2}
    assert res.metrics.cpu_utilization == pytest.approx(9 / 12)


def test_no_context_switch_out_of_idle():
    res = schedule_fcfs([Process("P1", 0, 1), Process("P2", 3, 1)], _overhead(1))
    assert [(e.pid, e.start, e.end) for e in res.events] == [("P1", 0, 1), ("P2", 3, 4)]


def test_no_context_switch_when_the_same_process_continues():
    res = schedule_rr([Process("P1", 0, 10)], _overhead(1, quantum=2))
    assert [(e.pid, e.start, e.end) for e in res.events] == [("P1", 0, 10)]
    assert res.metrics.switch_time == 0


def test_switching_process_is_not_preempted():
    procs = [
        Process("P1", 0, 2, SchedulingHints(priority=2)),
        Process("P2", 0, 3, SchedulingHints(priority=3)),
        Process("P3", 3, 1, SchedulingHints(priority=1)),
    ]
    res = run_algorithm(Algorithm.PRIORITY_PREEMPTIVE, procs, _overhead(2))
    # P2 is switching in over [2, 4) when P3 arrives; P3 takes the core at 4
    assert [(e.pid, e.start, e.end) for e in res.events][:3] == [
        ("P1", 0, 2),
        (CONTEXT_SWITCH, 2, 4),
        (CONTEXT_SWITCH, 4, 6),
    ]
    assert res.metrics.completion["P3"] == 7


def test_recorder_never_merges_context_switches():
    rec = EventRecorder()
    rec.record(CONTEXT_SWITCH, 0, 0, 1)
    rec.record(CONTEXT_SWITCH, 0, 1, 2)
    assert len(rec.events) == 2


def test_options_from_mapping_reads_overhead_and_energy():
    opts = SimulationOptions.from_mapping(
        {"contextSwitchOverhead": 2, "energyConfig": {"activeWatts": 30, "idleWatts": 1, "switchJoules": 0.5}}
    )
    assert opts.context_switch_overhead == 2
    assert opts.energy == EnergyConfig(active_watts=30, idle_watts=1, switch_joules=0.5)
    assert SimulationOptions.from_mapping({}).energy == EnergyConfig()
