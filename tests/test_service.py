from datetime import date, datetime, timezone

import pytest

from eventrag.adapters.memory import InMemoryEventStore, InMemoryQueryLog
from eventrag.config import Settings
from eventrag.models import EventRecord, QueryLogEntry
from eventrag.search import NO_MATCHES_MESSAGE
from eventrag.service import RETRIEVAL_FAILED_MESSAGE, RetrievalService


class FakeEmbedder:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return [1.0, 0.0]


class FakeLogRepo:
    def __init__(self):
        self.last_range = None

    def fetch_query_logs(self, start_date, end_date):
        self.last_range = (start_date, end_date)
        return [
            QueryLogEntry(
                query="show purchases",
                result_count=2,
                latency_ms=40,
                method="hybrid-search",
                created_at=end_date,
            )
        ]


def _store():
    return InMemoryEventStore(
        [
            EventRecord(
                id="e1",
                vector=[1.0, 0.0],
                metadata={"eventType": "purchase", "price": 20, "email": "jane@example.com"},
                event_date=date(2024, 5, 1),
                event_type="purchase",
                email="jane@example.com",
            ),
            EventRecord(
                id="e2",
                vector=[0.0, 1.0],
                metadata={"eventType": "search", "searchTerm": "mascara"},
                event_date=date(2024, 5, 2),
                event_type="search",
            ),
        ]
    )


def test_greeting_skips_retrieval():
    embedder = FakeEmbedder()
    service = RetrievalService(_store(), embedder)

    answer = service.answer("Hello, how are you?")

    assert answer.status == "general"
    assert answer.classification.type == "general"
    assert answer.classification.confidence == 0.9
    assert answer.result is None
    assert embedder.calls == []


def test_no_data_loaded_answers_as_general():
    embedder = FakeEmbedder()
    service = RetrievalService(InMemoryEventStore(), embedder)

    answer = service.answer("Show me purchases")

    assert answer.status == "general"
    assert answer.classification.type == "rag"
    assert embedder.calls == []


def test_data_query_returns_formatted_matches():
    service = RetrievalService(_store(), FakeEmbedder())

    answer = service.answer("Show me purchases", top_k=5)

    assert answer.status == "ok"
    assert [match.id for match in answer.result.matches] == ["e1"]
    assert "**PURCHASE Events (1):**" in answer.response


def test_no_matches_message():
    service = RetrievalService(_store(), FakeEmbedder())

    answer = service.answer("Show me purchases by nobody@example.com")

    assert answer.status == "no_matches"
    assert answer.response == NO_MATCHES_MESSAGE


def test_embedding_failure_is_distinct_from_no_matches():
    service = RetrievalService(_store(), FakeEmbedder(error=ConnectionError("down")))

    answer = service.answer("Show me purchases", has_data_loaded=True)

    assert answer.status == "error"
    assert answer.response == RETRIEVAL_FAILED_MESSAGE
    assert answer.response != NO_MATCHES_MESSAGE


def test_statistics():
    service = RetrievalService(_store(), FakeEmbedder())

    assert service.get_statistic("total_records") == {"total": 2}
    assert service.get_statistic("event_types") == {"by_type": {"purchase": 1, "search": 1}}
    assert service.get_statistic("unique_emails") == {"total": 1}
    assert service.get_statistic("date_range") == {"earliest": "2024-05-01", "latest": "2024-05-02"}
    assert service.get_statistic("revenue") == {"message": "Metric not found", "metric": "revenue"}


def test_service_uses_explicit_period():
    repo = FakeLogRepo()
    service = RetrievalService(_store(), FakeEmbedder(), log_repository=repo)
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    end = datetime(2026, 1, 2, tzinfo=timezone.utc)

    metrics = service.get_query_metrics(start, end)

    assert repo.last_range == (start, end)
    assert metrics["overview"]["total_queries"] == 1
    assert metrics["period"] == {"start": start.isoformat(), "end": end.isoformat()}


def test_query_metrics_require_a_repository():
    service = RetrievalService(_store(), FakeEmbedder())

    with pytest.raises(ValueError):
        service.get_query_metrics()


def test_from_settings_applies_top_k_and_log_truncation():
    log = InMemoryQueryLog()
    settings = Settings(_env_file=None, default_top_k=1, query_log_max_chars=12)
    store = InMemoryEventStore(
        [
            EventRecord(
                id=f"e{idx}",
                vector=[1.0, 0.0],
                metadata={"eventType": "purchase"},
                event_date=date(2024, 5, 1),
                event_type="purchase",
            )
            for idx in range(3)
        ]
    )
    service = RetrievalService.from_settings(settings, store, FakeEmbedder(), query_log=log)

    answer = service.answer("Show me purchases")

    assert len(answer.result.matches) == 1
    assert log.entries[0].query == "Show me purc"
