"""
Named functions a chat model can call, and a dispatcher that runs them.

``FunctionExecutor.execute`` never raises: validation failures, unknown
function names, unknown operations and handler errors all come back as a
``FunctionResult`` with ``success=False`` and an error message.
"""

import json
import logging
import numbers
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from .models import FunctionResult
from .service import RetrievalService

logger = logging.getLogger(__name__)

FUNCTION_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": "search_vector_database",
        "description": "Search the event corpus by vector similarity with exact filters.",
        "parameters": {
            "query": {"type": "string"},
            "limit": {"type": "number", "default": 5},
            "threshold": {"type": "number", "default": 0.7},
        },
        "required": ["query"],
    },
    {
        "name": "get_statistics",
        "description": "Corpus statistics or query-log metrics.",
        "parameters": {
            "metric": {"type": "string"},
            "time_range": {"type": "string", "enum": ["today", "week", "month", "all"], "default": "week"},
            "group_by": {"type": "string", "enum": ["day", "week", "type", "user"]},
        },
        "required": ["metric"],
    },
    {
        "name": "export_data",
        "description": "Export data as JSON, CSV, Markdown or plain text.",
        "parameters": {
            "data": {"type": "string"},
            "format": {"type": "string", "enum": ["json", "csv", "markdown", "text"], "default": "json"},
            "filename": {"type": "string"},
            "include_metadata": {"type": "boolean", "default": True},
        },
        "required": ["data", "format"],
    },
    {
        "name": "get_file_info",
        "description": "Information about imported data files.",
        "parameters": {
            "operation": {
                "type": "string",
                "enum": ["list_all", "get_details", "search_by_name", "get_recent"],
                "default": "list_all",
            },
            "file_id": {"type": "string"},
            "search_term": {"type": "string"},
            "limit": {"type": "number", "default": 10},
        },
        "required": ["operation"],
    },
]

TIME_RANGES: Dict[str, Optional[timedelta]] = {
    "today": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "all": None,
}

_TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": lambda value: isinstance(value, str),
    "number": lambda value: isinstance(value, numbers.Real) and not isinstance(value, bool),
    "boolean": lambda value: isinstance(value, bool),
}


def get_function_definition(name: str) -> Optional[Dict[str, Any]]:
    return next((definition for definition in FUNCTION_DEFINITIONS if definition["name"] == name), None)


def validate_function_params(name: str, params: Mapping[str, Any]) -> List[str]:
    """Return every validation error for ``params``; an empty list means valid."""
    definition = get_function_definition(name)
    if definition is None:
        return [f"Unknown function: {name}"]

    errors = [
        f"Missing required parameter: {required}"
        for required in definition["required"]
        if required not in params
    ]
    for key, value in params.items():
        spec = definition["parameters"].get(key)
        if spec is None:
            errors.append(f"Unknown parameter: {key}")
            continue
        if not _TYPE_CHECKS[spec["type"]](value):
            errors.append(f"Parameter '{key}' must be a {spec['type']}")
        if "enum" in spec and value not in spec["enum"]:
            errors.append(f"Parameter '{key}' must be one of: {', '.join(spec['enum'])}")
    return errors


def export_data(
    data: str,
    format: str,
    filename: Optional[str] = None,
    include_metadata: bool = True,
) -> Dict[str, Any]:
    """
    Render ``data`` (a JSON string, or any other text) in ``format``.

    Raises:
        ValueError: for an unsupported format.
    """
    try:
        parsed = json.loads(data)
    except (TypeError, ValueError):
        parsed = data

    if format == "json":
        content, mime_type = json.dumps(parsed, indent=2), "application/json"
    elif format == "csv":
        content, mime_type = _to_csv(parsed), "text/csv"
    elif format == "markdown":
        content, mime_type = _to_markdown(parsed), "text/markdown"
    elif format == "text":
        content = parsed if isinstance(parsed, str) else json.dumps(parsed, indent=2)
        mime_type = "text/plain"
    else:
        raise ValueError(f"Unsupported format: {format}")

    result: Dict[str, Any] = {
        "content": content,
        "format": format,
        "mime_type": mime_type,
        "size": len(content),
    }
    if filename:
        result["filename"] = filename
    if include_metadata:
        result["metadata"] = {
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "record_count": len(parsed) if isinstance(parsed, list) else 1,
        }
    return result


class FunctionExecutor:
    """Dispatches named function calls against a ``RetrievalService``."""

    def __init__(self, service: RetrievalService, files: Iterable[Mapping[str, Any]] = ()):
        self.service = service
        self.files = list(files)
        self._handlers: Dict[str, Tuple[str, Callable[..., Tuple[Any, Dict[str, Any]]]]] = {
            "search_vector_database": ("Vector search", self._search_vector_database),
            "get_statistics": ("Statistics retrieval", self._get_statistics),
            "export_data": ("Data export", self._export_data),
            "get_file_info": ("File info retrieval", self._get_file_info),
        }

    def execute(self, name: str, params: Optional[Mapping[str, Any]] = None) -> FunctionResult:
        start = time.monotonic()
        params = dict(params or {})

        errors = validate_function_params(name, params)
        if errors:
            error = (
                errors[0]
                if name not in self._handlers
                else f"Parameter validation failed: {', '.join(errors)}"
            )
            return self._result(name, start, success=False, error=error)

        label, handler = self._handlers[name]
        try:
            data, metadata = handler(**params)
        except Exception as e:
            logger.error(f"Function {name} failed: {e}")
            return self._result(name, start, success=False, error=f"{label} failed: {e}")

        result = self._result(name, start, success=True, data=data, metadata=metadata)
        logger.info(f"Function {name} completed in {result.execution_time_ms}ms")
        return result

    def execute_all(self, calls: Iterable[Tuple[str, Mapping[str, Any]]]) -> List[FunctionResult]:
        return [self.execute(name, params) for name, params in calls]

    def _search_vector_database(self, query: str, limit: int = 5, threshold: float = 0.7):
        result = self.service.engine.search(query, int(limit))
        kept = [match for match in result.matches if match.score >= threshold]
        data = {
            "results": [
                {"id": match.id, "score": match.score, "metadata": dict(match.metadata)} for match in kept
            ],
            "count": len(kept),
            "query": query,
        }
        metadata = {"threshold": threshold, "total_found": len(result.matches), "after_filtering": len(kept)}
        return data, metadata

    def _get_statistics(self, metric: str, time_range: str = "week", group_by: Optional[str] = None):
        if metric == "query_metrics":
            end = datetime.now(timezone.utc)
            window = TIME_RANGES[time_range]
            start = end - window if window else datetime(1970, 1, 1, tzinfo=timezone.utc)
            data = self.service.get_query_metrics(start, end)
        else:
            data = self.service.get_statistic(metric)
        metadata = {
            "metric": metric,
            "time_range": time_range,
            "group_by": group_by,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
        return data, metadata

    def _export_data(self, **params):
        return export_data(**params), {}

    def _get_file_info(
        self,
        operation: str,
        file_id: Optional[str] = None,
        search_term: Optional[str] = None,
        limit: int = 10,
    ):
        limit = int(limit)
        if operation == "list_all":
            data: Any = self.files[:limit]
        elif operation == "get_details":
            if not file_id:
                raise ValueError("file_id required for get_details operation")
            data = next((f for f in self.files if str(f.get("id")) == file_id), None)
        elif operation == "search_by_name":
            if not search_term:
                raise ValueError("search_term required for search_by_name operation")
            term = search_term.lower()
            data = [f for f in self.files if term in str(f.get("name", "")).lower()][:limit]
        elif operation == "get_recent":
            data = sorted(self.files, key=lambda f: str(f.get("uploaded_at", "")), reverse=True)[:limit]
        else:
            raise ValueError(f"Unknown operation: {operation}")

        count = len(data) if isinstance(data, list) else (1 if data else 0)
        return data, {"operation": operation, "count": count}

    def _result(self, name: str, start: float, **fields) -> FunctionResult:
        return FunctionResult(
            function_name=name,
            execution_time_ms=int((time.monotonic() - start) * 1000),
            timestamp=datetime.now(timezone.utc).isoformat(),
            **fields,
        )


def format_result_for_model(result: FunctionResult) -> str:
    """Serialize a result for the chat model's next turn."""
    if not result.success:
        return f"Error executing {result.function_name}: {result.error}"
    return json.dumps(
        {
            "function": result.function_name,
            "result": result.data,
            "metadata": result.metadata,
            "execution_time": f"{result.execution_time_ms}ms",
        },
        indent=2,
        default=str,
    )


def _to_csv(parsed: Any) -> str:
    if isinstance(parsed, list) and parsed and isinstance(parsed[0], dict):
        headers = list(parsed[0].keys())
        rows = [",".join(json.dumps(item.get(h) or "") for h in headers) for item in parsed]
        return "\n".join([",".join(headers), *rows])
    return parsed if isinstance(parsed, str) else json.dumps(parsed)


def _to_markdown(parsed: Any) -> str:
    if isinstance(parsed, list):
        return "\n".join(
            f"## Item {index}\n\n{json.dumps(item, indent=2)}\n" for index, item in enumerate(parsed, start=1)
        )
    return f"# Data Export\n\n```json\n{json.dumps(parsed, indent=2)}\n```"
