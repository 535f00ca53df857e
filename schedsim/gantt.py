from __future__ import annotations

from typing import Dict, List, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import CONTEXT_SWITCH, GanttEvent

COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def build_rich_gantt(events: Sequence[GanttEvent], core_count: int = 1) -> tuple[Panel, str]:
    """
    Build a Rich Panel with one colored Gantt row per core, plus a string
    with the time marks of every event boundary.
    """
    if not events:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            pid_to_color[pid] = COLORS[len(pid_to_color) % len(COLORS)]
        return pid_to_color[pid]

    table = Table.grid(padding=(0, 1))
    for core in range(core_count):
        row = sorted((e for e in events if e.core_id == core), key=lambda e: e.start)
        timeline = Text()
        labels = Text()
        last_time = 0
        for ev in row:
            idle_gap = int(ev.start - last_time)
            if idle_gap > 0:
                timeline.append("." * idle_gap, style="dim")
                labels.append(" " * idle_gap)

            width = max(1, int(ev.end - ev.start))
            color = "grey50" if ev.pid == CONTEXT_SWITCH else pid_color(ev.pid)
            timeline.append(" " * width, style=f"on {color}")
            labels.append(ev.pid[:width].ljust(width), style="bold")
            last_time = ev.end

        if core_count > 1:
            table.add_row(Text(f"core {core}", style="dim"), timeline)
            table.add_row(Text(""), labels)
        else:
            table.add_row(timeline)
            table.add_row(labels)

    marks: List[str] = ["0"]
    for boundary in sorted({e.start for e in events} | {e.end for e in events}):
        if boundary:
            marks.append(f"{boundary:g}")

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, " ".join(marks)
