from __future__ import annotations

import math
from typing import Dict, List, Sequence

from .models import IDLE, GanttEvent, Process, Snapshot


def generate_snapshots(
    events: Sequence[GanttEvent],
    processes: Sequence[Process],
    core_count: int = 1,
) -> List[Snapshot]:
    """
    Rebuild the per-tick machine state from a finished schedule.

    One snapshot per integer tick from 0 to the makespan inclusive. This is a
    read-only view for presentation; nothing in the engine consumes it. A core
    busy with a context switch shows ``CS``.
    """
    if not events:
        return []

    makespan = max(e.end for e in events)
    last_tick = int(math.ceil(makespan))

    completion: Dict[str, float] = {}
    for e in events:
        completion[e.pid] = max(completion.get(e.pid, e.end), e.end)

    by_core: Dict[int, List[GanttEvent]] = {core: [] for core in range(core_count)}
    for e in events:
        by_core.setdefault(e.core_id, []).append(e)

    snapshots: List[Snapshot] = []
    for t in range(last_tick):
        running: List[str] = []
        for core in range(core_count):
            current = next((e for e in by_core[core] if e.start <= t < e.end), None)
            running.append(current.pid if current else IDLE)

        ready = [
            p.pid
            for p in processes
            if p.pid not in running
            and p.arrival_time <= t
            and completion.get(p.pid, math.inf) > t
        ]
        snapshots.append(Snapshot(time=t, running=running, ready_queue=ready))

    snapshots.append(Snapshot(time=last_tick, running=[IDLE] * core_count, ready_queue=[]))
    return snapshots
