"""Application service composing classification, retrieval and reporting."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from .analytics import compute_query_log_metrics
from .classifier import classify_query, should_use_rag
from .config import Settings
from .errors import RetrievalError
from .models import QueryAnswer
from .ports import EmbeddingProvider, EventStore, QueryLogRepository, QueryLogSink
from .search import DEFAULT_TOP_K, QUERY_LOG_MAX_CHARS, HybridSearchEngine, generate_response

logger = logging.getLogger(__name__)

RETRIEVAL_FAILED_MESSAGE = "Sorry, I couldn't process your query. Please try again."
METRIC_NOT_FOUND = "Metric not found"


class RetrievalService:
    """Facade service that exposes the retrieval core independent of web frameworks."""

    def __init__(
        self,
        store: EventStore,
        embedder: EmbeddingProvider,
        query_log: Optional[QueryLogSink] = None,
        log_repository: Optional[QueryLogRepository] = None,
        default_top_k: int = DEFAULT_TOP_K,
        query_log_max_chars: int = QUERY_LOG_MAX_CHARS,
    ):
        self.store = store
        self.engine = HybridSearchEngine(
            store, embedder, query_log=query_log, query_log_max_chars=query_log_max_chars
        )
        self.log_repository = log_repository
        self.default_top_k = default_top_k

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: EventStore,
        embedder: EmbeddingProvider,
        query_log: Optional[QueryLogSink] = None,
        log_repository: Optional[QueryLogRepository] = None,
    ) -> "RetrievalService":
        return cls(
            store,
            embedder,
            query_log=query_log,
            log_repository=log_repository,
            default_top_k=settings.default_top_k,
            query_log_max_chars=settings.query_log_max_chars,
        )

    def has_data_loaded(self) -> bool:
        return self.store.fetch_stats().total_records > 0

    def answer(
        self,
        query: str,
        top_k: Optional[int] = None,
        has_data_loaded: Optional[bool] = None,
    ) -> QueryAnswer:
        """
        Serve one user query.

        General conversation is not retrieved and comes back with status
        ``general`` for the caller's chat model. A failed embedding gives
        status ``error`` with ``RETRIEVAL_FAILED_MESSAGE``; a successful search
        with no rows gives ``no_matches``. Store failures propagate.
        """
        classification = classify_query(query)
        if has_data_loaded is None:
            has_data_loaded = self.has_data_loaded()

        if not should_use_rag(query, has_data_loaded):
            logger.info(f"Skipping retrieval ({classification.reason}, data loaded: {has_data_loaded})")
            return QueryAnswer(status="general", classification=classification)

        try:
            result = self.engine.process_query(query, top_k or self.default_top_k)
        except RetrievalError as e:
            logger.error(f"Retrieval failed for query {query!r}: {e}")
            return QueryAnswer(
                status="error",
                classification=classification,
                response=RETRIEVAL_FAILED_MESSAGE,
            )

        return QueryAnswer(
            status="ok" if result.matches else "no_matches",
            classification=classification,
            response=generate_response(query, result),
            result=result,
        )

    def get_statistic(self, metric: str) -> Dict:
        stats = self.store.fetch_stats()
        metrics = {
            "total_records": {"total": stats.total_records},
            "event_types": {"by_type": dict(stats.event_type_counts)},
            "unique_emails": {"total": stats.unique_emails},
            "date_range": {
                "earliest": stats.earliest_date.isoformat() if stats.earliest_date else None,
                "latest": stats.latest_date.isoformat() if stats.latest_date else None,
            },
        }
        if metric not in metrics:
            return {"message": METRIC_NOT_FOUND, "metric": metric}
        return metrics[metric]

    def get_query_metrics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict:
        if self.log_repository is None:
            raise ValueError("No query log repository configured")
        start, end = _normalize_period(start_date, end_date)
        entries = self.log_repository.fetch_query_logs(start, end)
        return compute_query_log_metrics(entries, start_date=start, end_date=end)


def _normalize_period(
    start_date: Optional[datetime],
    end_date: Optional[datetime],
) -> tuple[datetime, datetime]:
    if end_date is None:
        end_date = datetime.now(timezone.utc)
    if start_date is None:
        start_date = end_date - timedelta(days=7)
    return start_date, end_date
