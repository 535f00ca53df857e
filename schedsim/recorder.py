from __future__ import annotations

from typing import Dict, List

from .models import CONTEXT_SWITCH, GanttEvent


class EventRecorder:
    """
    Collects execution intervals and merges back-to-back runs.

    An interval is merged into the previous interval on the same core only
    when both belong to the same pid and the new one starts exactly where the
    old one ended. Anything else (a gap, or another process in between)
    starts a new event. Context switches are never merged: each one is a
    separate event.
    """

    def __init__(self) -> None:
        self._events: List[GanttEvent] = []
        # index into _events of the latest event per core
        self._last_on_core: Dict[int, int] = {}

    def record(self, pid: str, core_id: int, start: float, end: float) -> None:
        if end <= start:
            return

        idx = self._last_on_core.get(core_id)
        if idx is not None and pid != CONTEXT_SWITCH:
            last = self._events[idx]
            if last.pid == pid and last.end == start:
                self._events[idx] = GanttEvent(pid=pid, start=last.start, end=end, core_id=core_id)
                return

        self._events.append(GanttEvent(pid=pid, start=start, end=end, core_id=core_id))
        self._last_on_core[core_id] = len(self._events) - 1

    @property
    def events(self) -> List[GanttEvent]:
        """Events ordered by start time, then core."""
        return sorted(self._events, key=lambda e: (e.start, e.core_id))
