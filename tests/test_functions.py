import json
from datetime import date

from eventrag.adapters.memory import InMemoryEventStore, InMemoryQueryLog
from eventrag.functions import FunctionExecutor, export_data, format_result_for_model, validate_function_params
from eventrag.models import EventRecord
from eventrag.service import RetrievalService

FILES = [
    {"id": "1", "name": "purchases_march.csv", "uploaded_at": "2024-03-02T10:00:00Z"},
    {"id": "2", "name": "searches_april.csv", "uploaded_at": "2024-04-05T09:30:00Z"},
]


class FakeEmbedder:
    def embed(self, text):
        return [1.0, 0.0]


class FailingStore(InMemoryEventStore):
    def similarity_search(self, vector, filters, limit):
        raise ConnectionError("database unavailable")


def _executor(store=None, query_log=None):
    if store is None:
        store = InMemoryEventStore(
            [
                EventRecord(
                    id="near",
                    vector=[1.0, 0.0],
                    metadata={"eventType": "purchase", "email": "jane@example.com"},
                    event_date=date(2024, 5, 1),
                    event_type="purchase",
                    email="jane@example.com",
                ),
                EventRecord(
                    id="far",
                    vector=[0.0, 1.0],
                    metadata={"eventType": "purchase"},
                    event_date=date(2024, 5, 2),
                    event_type="purchase",
                ),
            ]
        )
    service = RetrievalService(store, FakeEmbedder(), query_log=query_log, log_repository=query_log)
    return FunctionExecutor(service, files=FILES)


def test_unknown_function_returns_error_payload():
    result = _executor().execute("delete_everything", {})

    assert result.success is False
    assert result.error == "Unknown function: delete_everything"
    assert result.function_name == "delete_everything"
    assert result.timestamp is not None


def test_unknown_operation_returns_error_payload():
    result = _executor().execute("get_file_info", {"operation": "purge"})

    assert result.success is False
    assert result.error.startswith("Parameter validation failed: Parameter 'operation' must be one of")


def test_parameter_validation():
    assert validate_function_params("search_vector_database", {"query": "x"}) == []
    assert validate_function_params("search_vector_database", {"limit": "5", "extra": 1}) == [
        "Missing required parameter: query",
        "Parameter 'limit' must be a number",
        "Unknown parameter: extra",
    ]
    assert validate_function_params("export_data", {"data": "x", "format": "json", "include_metadata": 1}) == [
        "Parameter 'include_metadata' must be a boolean"
    ]


def test_search_applies_similarity_threshold():
    result = _executor().execute("search_vector_database", {"query": "show purchases", "threshold": 0.5})

    assert result.success is True
    assert [r["id"] for r in result.data["results"]] == ["near"]
    assert result.data["results"][0]["metadata"]["email"] == "jane###@example.com"
    assert result.metadata == {"threshold": 0.5, "total_found": 2, "after_filtering": 1}


def test_handler_failure_is_reported_not_raised():
    result = _executor(store=FailingStore()).execute("search_vector_database", {"query": "show purchases"})

    assert result.success is False
    assert result.error == "Vector search failed: database unavailable"


def test_unknown_metric_is_a_successful_not_found():
    result = _executor().execute("get_statistics", {"metric": "revenue"})

    assert result.success is True
    assert result.data == {"message": "Metric not found", "metric": "revenue"}
    assert result.metadata["time_range"] == "week"


def test_query_metrics_statistic_reads_the_log():
    log = InMemoryQueryLog()
    executor = _executor(query_log=log)
    executor.service.engine.process_query("show purchases")

    result = executor.execute("get_statistics", {"metric": "query_metrics", "time_range": "today"})

    assert result.success is True
    assert result.data["overview"]["total_queries"] == 1


def test_export_csv_and_markdown():
    rows = json.dumps([{"id": 1, "name": "mascara"}, {"id": 2, "name": "lipstick"}])

    csv = export_data(rows, "csv", filename="rows.csv")
    markdown = export_data(rows, "markdown", include_metadata=False)

    assert csv["content"] == 'id,name\n1,"mascara"\n2,"lipstick"'
    assert csv["mime_type"] == "text/csv"
    assert csv["filename"] == "rows.csv"
    assert csv["metadata"]["record_count"] == 2
    assert markdown["content"].startswith("## Item 1\n\n")
    assert "metadata" not in markdown


def test_export_plain_text_passes_through():
    result = export_data("not json", "text")

    assert result["content"] == "not json"
    assert result["size"] == 8


def test_export_rejects_unsupported_format_through_executor():
    result = _executor().execute("export_data", {"data": "[]", "format": "xml"})

    assert result.success is False
    assert "must be one of: json, csv, markdown, text" in result.error


def test_file_info_operations():
    executor = _executor()

    recent = executor.execute("get_file_info", {"operation": "get_recent", "limit": 1})
    details = executor.execute("get_file_info", {"operation": "get_details", "file_id": "1"})
    missing_id = executor.execute("get_file_info", {"operation": "get_details"})
    by_name = executor.execute("get_file_info", {"operation": "search_by_name", "search_term": "SEARCH"})

    assert [f["id"] for f in recent.data] == ["2"]
    assert details.data["name"] == "purchases_march.csv"
    assert missing_id.success is False
    assert missing_id.error == "File info retrieval failed: file_id required for get_details operation"
    assert [f["id"] for f in by_name.data] == ["2"]
    assert by_name.metadata == {"operation": "search_by_name", "count": 1}


def test_format_result_for_model():
    executor = _executor()

    failed = format_result_for_model(executor.execute("nope", {}))
    ok = json.loads(format_result_for_model(executor.execute("get_statistics", {"metric": "total_records"})))

    assert failed == "Error executing nope: Unknown function: nope"
    assert ok["function"] == "get_statistics"
    assert ok["result"] == {"total": 2}


def test_execute_all_keeps_going_after_a_failure():
    results = _executor().execute_all([("nope", {}), ("get_statistics", {"metric": "unique_emails"})])

    assert [r.success for r in results] == [False, True]
