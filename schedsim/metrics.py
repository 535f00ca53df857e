from __future__ import annotations

import math
from statistics import pstdev
from typing import Dict, List, Optional, Sequence

from .models import EnergyConfig, EnergyReport, GanttEvent, Metrics, Process


def compute_metrics(
    events: Sequence[GanttEvent],
    processes: Sequence[Process],
    core_count: int = 1,
    energy: Optional[EnergyConfig] = None,
) -> Metrics:
    """
    Derive per-process and system metrics from a finished event list.

    Completion is the latest event end of each pid, turnaround is completion
    minus arrival and waiting is turnaround minus burst. Utilization is the
    process core-time over the capacity ``makespan * core_count``; context
    switch time is not counted as useful work. When the schedule contains
    context-switch events, ``context_switches`` is their number.
    """
    runs = [e for e in events if not e.is_switch]
    switches = [e for e in events if e.is_switch]

    if not processes or not runs:
        return Metrics(
            completion={p.pid: 0 for p in processes},
            waiting={p.pid: 0 for p in processes},
            turnaround={p.pid: 0 for p in processes},
            response={p.pid: 0 for p in processes},
        )

    completion: Dict[str, float] = {}
    first_start: Dict[str, float] = {}
    for ev in runs:
        if ev.pid not in completion or ev.end > completion[ev.pid]:
            completion[ev.pid] = ev.end
        if ev.pid not in first_start or ev.start < first_start[ev.pid]:
            first_start[ev.pid] = ev.start

    metrics = Metrics()
    for p in processes:
        done = completion[p.pid]
        metrics.completion[p.pid] = done
        metrics.turnaround[p.pid] = done - p.arrival_time
        metrics.waiting[p.pid] = metrics.turnaround[p.pid] - p.burst_time
        metrics.response[p.pid] = first_start[p.pid] - p.arrival_time

    n = len(processes)
    metrics.avg_waiting = sum(metrics.waiting.values()) / n
    metrics.avg_turnaround = sum(metrics.turnaround.values()) / n
    metrics.avg_response = sum(metrics.response.values()) / n

    metrics.p95_waiting = percentile(list(metrics.waiting.values()), 95)
    metrics.p95_turnaround = percentile(list(metrics.turnaround.values()), 95)
    metrics.p95_response = percentile(list(metrics.response.values()), 95)
    metrics.std_dev_waiting = pstdev(list(metrics.waiting.values()))
    metrics.std_dev_turnaround = pstdev(list(metrics.turnaround.values()))
    metrics.std_dev_response = pstdev(list(metrics.response.values()))

    metrics.makespan = max(ev.end for ev in events)
    metrics.cpu_busy_time = sum(ev.duration for ev in runs)
    metrics.switch_time = sum(ev.duration for ev in switches)
    capacity = metrics.makespan * core_count
    metrics.cpu_utilization = metrics.cpu_busy_time / capacity if capacity > 0 else 0.0
    metrics.throughput = n / metrics.makespan if metrics.makespan > 0 else 0.0
    if switches:
        metrics.context_switches = len(switches)
    else:
        metrics.context_switches = count_context_switches(runs, core_count)
    metrics.energy = energy_report(metrics, capacity, energy or EnergyConfig())
    return metrics


def energy_report(metrics: Metrics, capacity: float, config: EnergyConfig) -> EnergyReport:
    """
    Cores draw ``active_watts`` while running a process or switching and
    ``idle_watts`` otherwise; every context switch adds ``switch_joules``.
    """
    active_time = metrics.cpu_busy_time + metrics.switch_time
    idle_time = max(capacity - active_time, 0)
    report = EnergyReport(
        active=active_time * config.active_watts,
        idle=idle_time * config.idle_watts,
        switch=metrics.context_switches * config.switch_joules,
    )
    report.total = report.active + report.idle + report.switch
    return report


def percentile(values: Sequence[float], pct: float) -> float:
    """Nearest-rank percentile; 0 for no values."""
    if not values:
        return 0.0
    ordered = sorted(values)
    index = math.ceil(pct * len(ordered) / 100) - 1
    return ordered[max(0, min(index, len(ordered) - 1))]


def count_context_switches(events: Sequence[GanttEvent], core_count: int = 1) -> int:
    """
    Count, per core, consecutive process events whose pids differ.
    """
    switches = 0
    for core in range(core_count):
        on_core = sorted((e for e in events if e.core_id == core and not e.is_switch), key=lambda e: e.start)
        switches += sum(1 for prev, nxt in zip(on_core, on_core[1:]) if prev.pid != nxt.pid)
    return switches


def summarize(results) -> List[dict]:
    """
    Return the headline averages of several results for quick comparison.
    """
    rows = []
    for result in results:
        m = result.metrics
        rows.append(
            {
                "algorithm": result.algorithm,
                "avg_waiting": m.avg_waiting,
                "avg_turnaround": m.avg_turnaround,
                "avg_response": m.avg_response,
                "p95_turnaround": m.p95_turnaround,
                "cpu_utilization": m.cpu_utilization,
                "context_switches": m.context_switches,
                "energy": m.energy.total,
            }
        )
    return rows
