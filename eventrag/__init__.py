"""eventrag - query understanding, hybrid event retrieval and model routing."""

from .classifier import classify_query, should_use_rag
from .errors import EventRagError, InvalidEmbeddingError, RetrievalError
from .extraction import extract_entities, extract_top_k, scramble_email
from .functions import FunctionExecutor
from .router import ModelRouter
from .search import HybridSearchEngine, generate_response
from .service import RetrievalService
from .tracker import PerformanceTracker

__all__ = [
    "EventRagError",
    "FunctionExecutor",
    "HybridSearchEngine",
    "InvalidEmbeddingError",
    "ModelRouter",
    "PerformanceTracker",
    "RetrievalError",
    "RetrievalService",
    "classify_query",
    "extract_entities",
    "extract_top_k",
    "generate_response",
    "scramble_email",
    "should_use_rag",
]

__version__ = "0.1.0"
