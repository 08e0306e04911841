"""Core domain models shared by the retrieval and routing pipelines."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Literal, Mapping, Optional, Sequence, Tuple

QueryType = Literal["rag", "general"]
Complexity = Literal["simple", "moderate", "complex"]
Domain = Literal["general", "coding", "creative", "analytics", "technical"]

# Event metadata is stored as a JSON blob keyed by ``eventType``. Purchase
# rows carry price/quantity/brands/sku, search rows carry searchTerm/url and
# pageview rows carry category/subCategory/url.
RecordMetadata = Mapping[str, Any]


@dataclass(frozen=True)
class QueryEntities:
    """Structured constraints pulled out of a free-text query."""

    dates: Tuple[str, ...] = ()
    emails: Tuple[str, ...] = ()
    prices: Tuple[str, ...] = ()
    brands: Tuple[str, ...] = ()
    event_types: Tuple[str, ...] = ()
    search_terms: Tuple[str, ...] = ()

    def non_empty_categories(self) -> list[str]:
        return [
            name
            for name in ("dates", "emails", "prices", "brands", "event_types", "search_terms")
            if getattr(self, name)
        ]


@dataclass(frozen=True)
class QueryClassification:
    type: QueryType
    confidence: float
    reason: str


@dataclass(frozen=True)
class EventRecord:
    """A stored, embedded event row. Read-only to this package."""

    id: str
    vector: Sequence[float]
    metadata: RecordMetadata
    event_date: Optional[date]
    event_type: str
    email: Optional[str] = None


@dataclass(frozen=True)
class SearchFilters:
    """Store filters: AND across categories, ANY within one."""

    event_types: Tuple[str, ...] = ()
    dates: Tuple[str, ...] = ()
    emails: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoredRecord:
    """A candidate row returned by the store with its cosine distance."""

    id: str
    metadata: RecordMetadata
    distance: float


@dataclass(frozen=True)
class SearchMatch:
    id: str
    score: float
    metadata: RecordMetadata


@dataclass(frozen=True)
class SearchResult:
    matches: Tuple[SearchMatch, ...]
    method: str
    filters: Tuple[str, ...]
    requested_top_k: int


@dataclass(frozen=True)
class QueryLogEntry:
    """One retrieval call as written to the query log."""

    query: str
    result_count: int
    latency_ms: int
    method: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CorpusStats:
    total_records: int
    event_type_counts: Dict[str, int] = field(default_factory=dict)
    unique_emails: int = 0
    earliest_date: Optional[date] = None
    latest_date: Optional[date] = None


@dataclass(frozen=True)
class QueryAnswer:
    """What the caller shows the user for one query."""

    status: Literal["ok", "no_matches", "general", "error"]
    classification: QueryClassification
    response: Optional[str] = None
    result: Optional[SearchResult] = None


@dataclass(frozen=True)
class Requirements:
    needs_long_context: bool = False
    needs_reasoning: bool = False
    needs_creativity: bool = False
    needs_code_generation: bool = False
    needs_data_analysis: bool = False


@dataclass(frozen=True)
class QueryAnalysis:
    complexity: Complexity
    domain: Domain
    requirements: Requirements
    estimated_tokens: int
    confidence: float


@dataclass(frozen=True)
class PriorityScores:
    speed: float = 0.5
    reasoning: float = 0.5
    coding: float = 0.5
    creative: float = 0.5
    analytics: float = 0.5


@dataclass(frozen=True)
class ModelCapability:
    """One row of the capability matrix. Capability scores are in [0, 1]."""

    model: str
    provider: Literal["openai", "google", "anthropic", "ollama"]
    display_name: str
    context_window: int
    max_output_tokens: int
    speed: float
    reasoning: float
    coding: float
    creative: float
    analytics: float
    cost_per_1m_input: float
    cost_per_1m_output: float
    available: bool


@dataclass(frozen=True)
class RouterPreferences:
    prioritize_cost: bool = False
    prioritize_speed: bool = False
    prioritize_quality: bool = False
    max_cost_per_1m: Optional[float] = None
    min_speed: Optional[float] = None


@dataclass(frozen=True)
class ModelRecommendation:
    model: str
    provider: str
    display_name: str
    score: int
    reasoning: str
    cost_estimate: Optional[float] = None


@dataclass(frozen=True)
class RoutingDecision:
    selected_model: str
    selected_provider: str
    display_name: str
    analysis: QueryAnalysis
    recommendations: Tuple[ModelRecommendation, ...]
    reasoning: str
    confidence: float


@dataclass(frozen=True)
class ModelPerformanceEvent:
    """A single downstream model invocation."""

    model: str
    provider: str
    timestamp: datetime
    response_time_ms: float
    success: bool
    error_message: Optional[str] = None
    token_count: Optional[int] = None


@dataclass(frozen=True)
class FunctionResult:
    """Outcome of one named function call. Failures are reported, never raised."""

    function_name: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    execution_time_ms: int = 0
    timestamp: Optional[str] = None
