"""In-process record of recent downstream model calls."""

from collections import deque
from datetime import datetime
from typing import Deque, Dict, List, Optional

from .analytics import as_utc, compute_model_stats
from .models import ModelPerformanceEvent

MAX_EVENTS = 1000


class PerformanceTracker:
    """Keeps the most recent ``max_events`` model calls."""

    def __init__(self, max_events: int = MAX_EVENTS):
        self._events: Deque[ModelPerformanceEvent] = deque(maxlen=max_events)

    def record(self, event: ModelPerformanceEvent) -> None:
        self._events.append(event)

    def model_stats(self, model: str) -> Optional[Dict]:
        stats = compute_model_stats(event for event in self._events if event.model == model)
        return stats[0] if stats else None

    def all_stats(self) -> List[Dict]:
        return compute_model_stats(self._events)

    def recent(self, count: int = 50) -> List[ModelPerformanceEvent]:
        if count <= 0:
            return []
        return list(self._events)[-count:]

    def in_range(self, start: datetime, end: datetime) -> List[ModelPerformanceEvent]:
        start, end = as_utc(start), as_utc(end)
        return [event for event in self._events if start <= as_utc(event.timestamp) <= end]

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)
