import math

import pytest

from schedsim.algorithms import schedule_fcfs
from schedsim.metrics import compute_metrics, energy_report, percentile
from schedsim.models import CONTEXT_SWITCH, EnergyConfig, GanttEvent, Metrics, Process, SimulationOptions


def _procs():
    return [Process("P1", 0, 5), Process("P2", 1, 3), Process("P3", 2, 8)]


def test_percentile_uses_nearest_rank():
    assert percentile([], 95) == 0
    assert percentile([7], 95) == 7
    assert percentile([0, 4, 6], 95) == 6
    assert percentile(list(range(1, 21)), 95) == 19
    assert percentile([3, 1, 2, 4], 50) == 2


def test_tail_and_spread_of_waiting_times():
    m = schedule_fcfs(_procs()).metrics
    assert m.waiting == {"P1": 0, "P2": 4, "P3": 6}
    assert m.p95_waiting == 6
    assert m.std_dev_waiting == pytest.approx(math.sqrt(56 / 9))
    assert m.p95_turnaround == 14
    assert m.p95_response == 6


def test_equal_processes_have_no_spread():
    m = schedule_fcfs([Process("P1", 0, 2), Process("P2", 2, 2)]).metrics
    assert m.std_dev_waiting == 0
    assert m.std_dev_turnaround == 0
    assert m.std_dev_response == 0


def test_energy_with_default_power_model():
    m = schedule_fcfs([Process("P1", 0, 2), Process("P2", 5, 1)]).metrics
    # 3 busy units, 3 idle units and one implicit switch
    assert m.energy.active == pytest.approx(60)
    assert m.energy.idle == pytest.approx(15)
    assert m.energy.switch == pytest.approx(0.1)
    assert m.energy.total == pytest.approx(75.1)


def test_energy_with_custom_power_model():
    opts = SimulationOptions(energy=EnergyConfig(active_watts=10, idle_watts=1, switch_joules=2))
    m = schedule_fcfs([Process("P1", 0, 2), Process("P2", 5, 1)], opts).metrics
    assert m.energy.total == pytest.approx(30 + 3 + 2)


def test_switch_time_draws_active_power():
    opts = SimulationOptions(context_switch_overhead=1)
    m = schedule_fcfs([Process("P1", 0, 2), Process("P2", 0, 2)], opts).metrics
    assert m.energy.active == pytest.approx(100)
    assert m.energy.idle == 0
    assert m.energy.switch == pytest.approx(0.1)
    assert m.energy.total == pytest.approx(100.1)


def test_energy_report_never_bills_negative_idle_time():
    m = Metrics(cpu_busy_time=4, switch_time=1, context_switches=0)
    report = energy_report(m, capacity=4, config=EnergyConfig())
    assert report.idle == 0


def test_switch_events_are_not_process_time():
    procs = [Process("P1", 0, 2), Process("P2", 0, 1)]
    events = [GanttEvent("P1", 0, 2), GanttEvent(CONTEXT_SWITCH, 2, 4), GanttEvent("P2", 4, 5)]
    m = compute_metrics(events, procs)
    assert m.completion == {"P1": 2, "P2": 5}
    assert m.response == {"P1": 0, "P2": 4}
    assert m.cpu_busy_time == 3
    assert m.switch_time == 2
    assert m.context_switches == 1
    assert m.cpu_utilization == pytest.approx(3 / 5)


@pytest.mark.parametrize("field", ["active_watts", "idle_watts", "switch_joules"])
def test_negative_energy_config_raises(field):
    with pytest.raises(ValueError, match=field):
        EnergyConfig(**{field: -1})


def test_metrics_dict_carries_statistics_and_energy():
    data = schedule_fcfs(_procs()).to_dict()["metrics"]
    for key in ("p95Waiting", "p95Turnaround", "p95Response", "stdDevWaiting", "stdDevTurnaround", "stdDevResponse"):
        assert key in data
    assert data["switchTime"] == 0
    assert set(data["energy"]) == {"totalEnergy", "activeEnergy", "idleEnergy", "switchEnergy"}
    assert data["energy"]["totalEnergy"] == pytest.approx(16 * 20 + 2 * 0.1)
