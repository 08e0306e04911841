"""Pure analytics over query log entries and model performance events."""

from datetime import datetime, timezone
from math import floor
from typing import Dict, Iterable, List, Optional

from .models import ModelPerformanceEvent, QueryLogEntry

ERROR_METHOD = "error"


def compute_query_log_metrics(
    entries: Iterable[QueryLogEntry],
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict:
    """Compute retrieval volume, latency and outcome metrics from query logs."""
    entries_list = list(entries)
    if not entries_list:
        return empty_query_log_metrics(start_date=start_date, end_date=end_date)

    total_queries = len(entries_list)
    error_count = sum(1 for entry in entries_list if entry.method == ERROR_METHOD)
    served = [entry for entry in entries_list if entry.method != ERROR_METHOD]
    zero_result_count = sum(1 for entry in served if entry.result_count == 0)

    latencies = [entry.latency_ms for entry in entries_list if entry.latency_ms is not None]
    avg_latency = sum(latencies) / len(latencies) if latencies else 0
    avg_result_count = sum(entry.result_count for entry in served) / len(served) if served else 0

    by_method: Dict[str, Dict] = {}
    for entry in entries_list:
        method_data = by_method.setdefault(
            entry.method or "unknown",
            {"count": 0, "total_results": 0, "total_latency": 0.0},
        )
        method_data["count"] += 1
        method_data["total_results"] += entry.result_count
        if entry.latency_ms is not None:
            method_data["total_latency"] += entry.latency_ms

    for method_data in by_method.values():
        count = method_data["count"]
        method_data["avg_latency"] = method_data["total_latency"] / count if count > 0 else 0
        method_data["avg_results"] = method_data["total_results"] / count if count > 0 else 0

    return {
        "period": _period(start_date, end_date),
        "overview": {
            "total_queries": total_queries,
            "error_count": error_count,
            "error_rate": error_count / total_queries,
            "zero_result_count": zero_result_count,
            "zero_result_rate": zero_result_count / len(served) if served else 0.0,
            "avg_result_count": avg_result_count,
            "avg_latency_ms": avg_latency,
            "latency_percentiles_ms": _compute_percentiles(latencies),
        },
        "by_method": by_method,
    }


def empty_query_log_metrics(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict:
    """Return empty query log metrics structure."""
    return {
        "period": _period(start_date, end_date),
        "overview": {
            "total_queries": 0,
            "error_count": 0,
            "error_rate": 0.0,
            "zero_result_count": 0,
            "zero_result_rate": 0.0,
            "avg_result_count": 0,
            "avg_latency_ms": 0,
            "latency_percentiles_ms": _empty_percentiles(),
        },
        "by_method": {},
    }


def compute_model_stats(events: Iterable[ModelPerformanceEvent]) -> List[Dict]:
    """
    Per-model request statistics, in first-seen model order.

    Average response time and token totals only count successful calls.
    """
    by_model: Dict[str, List[ModelPerformanceEvent]] = {}
    for event in events:
        by_model.setdefault(event.model, []).append(event)

    stats = []
    for model, model_events in by_model.items():
        successful = [event for event in model_events if event.success]
        total_response_time = sum(event.response_time_ms for event in successful)
        stats.append(
            {
                "model": model,
                "provider": model_events[0].provider,
                "total_requests": len(model_events),
                "successful_requests": len(successful),
                "failed_requests": len(model_events) - len(successful),
                "success_rate": len(successful) / len(model_events),
                "average_response_time_ms": total_response_time / len(successful) if successful else 0,
                "total_tokens": sum(event.token_count or 0 for event in successful),
            }
        )
    return stats


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _period(start_date: Optional[datetime], end_date: Optional[datetime]) -> Dict:
    return {
        "start": start_date.isoformat() if start_date else None,
        "end": end_date.isoformat() if end_date else None,
    }


def _compute_percentiles(values: Iterable[float]) -> Dict[str, float]:
    points = [50, 90, 95, 99]
    sorted_values = sorted(float(value) for value in values)
    if not sorted_values:
        return _empty_percentiles()

    return {f"p{point}": _percentile(sorted_values, point / 100) for point in points}


def _percentile(sorted_values: list[float], quantile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return sorted_values[0]

    position = quantile * (len(sorted_values) - 1)
    lower_index = floor(position)
    upper_index = min(lower_index + 1, len(sorted_values) - 1)
    lower_value = sorted_values[lower_index]
    upper_value = sorted_values[upper_index]
    weight = position - lower_index
    return lower_value + (upper_value - lower_value) * weight


def _empty_percentiles() -> Dict[str, float]:
    return {"p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
