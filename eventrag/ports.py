"""Port definitions for the collaborators the pipeline talks to."""

from datetime import datetime
from typing import Protocol, Sequence

from .models import CorpusStats, QueryLogEntry, ScoredRecord, SearchFilters


class EmbeddingProvider(Protocol):
    """Turns text into a fixed-width vector."""

    def embed(self, text: str) -> Sequence[float]:
        """Return the embedding of ``text``."""


class EventStore(Protocol):
    """Similarity-search capable store of embedded events."""

    def similarity_search(
        self,
        vector: Sequence[float],
        filters: SearchFilters,
        limit: int,
    ) -> Sequence[ScoredRecord]:
        """Return up to ``limit`` rows matching ``filters``, closest first by cosine distance."""

    def fetch_stats(self) -> CorpusStats:
        """Return summary statistics for the stored corpus."""


class QueryLogSink(Protocol):
    """Best-effort destination for query log entries."""

    def record(self, entry: QueryLogEntry) -> None:
        """Persist one entry."""


class QueryLogRepository(Protocol):
    def fetch_query_logs(
        self,
        start_date: datetime,
        end_date: datetime,
    ) -> Sequence[QueryLogEntry]:
        """Return query log entries for a period."""
