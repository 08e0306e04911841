"""In-memory adapters, used by tests and the demo app."""

from datetime import date, datetime, timezone
from math import sqrt
from typing import Iterable, List, Sequence

from ..analytics import as_utc
from ..models import CorpusStats, EventRecord, QueryLogEntry, ScoredRecord, SearchFilters


class InMemoryEventStore:
    """Brute-force cosine search over a list of records, with the same filter rules as the SQL store."""

    def __init__(self, records: Iterable[EventRecord] = ()):
        self.records: List[EventRecord] = list(records)

    def add(self, record: EventRecord) -> None:
        self.records.append(record)

    def similarity_search(
        self,
        vector: Sequence[float],
        filters: SearchFilters,
        limit: int,
    ) -> Sequence[ScoredRecord]:
        candidates = [
            ScoredRecord(
                id=record.id,
                metadata=record.metadata,
                distance=cosine_distance(vector, record.vector),
            )
            for record in self.records
            if matches_filters(record, filters)
        ]
        candidates.sort(key=lambda candidate: candidate.distance)
        return candidates[:limit]

    def fetch_stats(self) -> CorpusStats:
        event_type_counts = {}
        for record in self.records:
            key = record.event_type or "unknown"
            event_type_counts[key] = event_type_counts.get(key, 0) + 1
        dates = [record.event_date for record in self.records if record.event_date is not None]

        return CorpusStats(
            total_records=len(self.records),
            event_type_counts=event_type_counts,
            unique_emails=len({record.email for record in self.records if record.email}),
            earliest_date=min(dates) if dates else None,
            latest_date=max(dates) if dates else None,
        )


class InMemoryQueryLog:
    def __init__(self):
        self.entries: List[QueryLogEntry] = []

    def record(self, entry: QueryLogEntry) -> None:
        if entry.created_at is None:
            entry = QueryLogEntry(
                query=entry.query,
                result_count=entry.result_count,
                latency_ms=entry.latency_ms,
                method=entry.method,
                created_at=datetime.now(timezone.utc),
            )
        self.entries.append(entry)

    def fetch_query_logs(self, start_date: datetime, end_date: datetime) -> Sequence[QueryLogEntry]:
        start, end = as_utc(start_date), as_utc(end_date)
        return [entry for entry in self.entries if start <= as_utc(entry.created_at) <= end]


def matches_filters(record: EventRecord, filters: SearchFilters) -> bool:
    if filters.event_types and record.event_type not in filters.event_types:
        return False
    if filters.dates and _date_key(record.event_date) not in filters.dates:
        return False
    if filters.emails and record.email not in filters.emails:
        return False
    return True


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """``1 - cosine similarity``; zero vectors are treated as orthogonal."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 1.0
    return 1 - dot / (norm_a * norm_b)


def _date_key(value) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value) if value is not None else ""
