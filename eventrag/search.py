"""
Hybrid search engine.

Vector similarity over the event store, narrowed by exact metadata filters
derived from the query and re-ranked with cheap lexical/price heuristics.
"""

import logging
import numbers
import time
from collections.abc import Iterable, Mapping
from typing import Dict, List, Optional, Sequence

from .errors import InvalidEmbeddingError, RetrievalError
from .extraction import (
    detect_event_types,
    detect_intent,
    exact_dates,
    extract_entities,
    extract_top_k,
    scramble_email,
)
from .models import (
    QueryEntities,
    QueryLogEntry,
    ScoredRecord,
    SearchFilters,
    SearchMatch,
    SearchResult,
)
from .ports import EmbeddingProvider, EventStore, QueryLogSink

logger = logging.getLogger(__name__)

SEARCH_METHOD = "hybrid-search"
ERROR_METHOD = "error"
OVERFETCH_FACTOR = 2
DEFAULT_TOP_K = 10
QUERY_LOG_MAX_CHARS = 500

PRICE_WEIGHT = 0.3
PRICE_SCALE = 1000
SEARCH_TERM_BOOST = 0.2

NO_MATCHES_MESSAGE = (
    "No matches found. Try refining your query with dates, emails, event types, or specific terms."
)


class HybridSearchEngine:
    """Runs the retrieval pipeline for one query at a time; holds no per-query state."""

    def __init__(
        self,
        store: EventStore,
        embedder: EmbeddingProvider,
        query_log: Optional[QueryLogSink] = None,
        query_log_max_chars: int = QUERY_LOG_MAX_CHARS,
    ):
        self.store = store
        self.embedder = embedder
        self.query_log = query_log
        self.query_log_max_chars = query_log_max_chars

    def process_query(self, query: str, default_top_k: int = DEFAULT_TOP_K) -> SearchResult:
        """
        Extract constraints, search, and log the call.

        Raises:
            RetrievalError: if the query embedding cannot be produced.
        """
        start = time.monotonic()
        try:
            intents = detect_intent(query)
            entities = extract_entities(query)
            requested_top_k = extract_top_k(query)
            final_top_k = requested_top_k or default_top_k

            logger.info(
                f"Query: {query!r} | requested top K: {requested_top_k} | final top K: {final_top_k}"
            )
            logger.info(f"Query intents: {', '.join(intents)}, entities: {entities}")

            result = self.search(query, final_top_k, entities=entities)
        except Exception:
            self._log_query(query, 0, _elapsed_ms(start), ERROR_METHOD)
            raise

        self._log_query(query, len(result.matches), _elapsed_ms(start), result.method)
        return result

    def search(
        self,
        query: str,
        top_k: int,
        entities: Optional[QueryEntities] = None,
    ) -> SearchResult:
        if entities is None:
            entities = extract_entities(query)
        entities = with_inferred_event_types(entities, query)

        vector = self._embed(query)

        filters = SearchFilters(
            event_types=entities.event_types,
            dates=tuple(exact_dates(list(entities.dates))),
            emails=entities.emails,
        )
        try:
            candidates = self.store.similarity_search(vector, filters, top_k * OVERFETCH_FACTOR)
        except Exception as e:
            logger.error(f"Event store query failed: {e}")
            raise
        logger.debug(f"Store returned {len(candidates)} candidates for top K {top_k}")

        matches = [_mask_email(match) for match in rerank(candidates, query, top_k)]

        return SearchResult(
            matches=tuple(matches),
            method=SEARCH_METHOD,
            filters=tuple(entities.non_empty_categories()),
            requested_top_k=top_k,
        )

    def _embed(self, query: str) -> List[float]:
        try:
            embedding = self.embedder.embed(query)
        except Exception as e:
            logger.error(f"Error generating query embedding: {e}")
            raise RetrievalError(f"Failed to process query: {e}") from e

        vector = validate_embedding(embedding)
        logger.debug(f"Generated query embedding with length {len(vector)}")
        return vector

    def _log_query(self, query: str, result_count: int, latency_ms: int, method: str) -> None:
        if self.query_log is None:
            return
        entry = QueryLogEntry(
            query=query[: self.query_log_max_chars],
            result_count=result_count,
            latency_ms=latency_ms,
            method=method,
        )
        try:
            self.query_log.record(entry)
        except Exception as e:
            logger.warning(f"Failed to log query analytics: {e}")


def with_inferred_event_types(entities: QueryEntities, query: str) -> QueryEntities:
    """Add any event type the query vocabulary implies but ``entities`` lacks."""
    missing = [t for t in detect_event_types(query) if t not in entities.event_types]
    if not missing:
        return entities
    return QueryEntities(
        dates=entities.dates,
        emails=entities.emails,
        prices=entities.prices,
        brands=entities.brands,
        event_types=entities.event_types + tuple(missing),
        search_terms=entities.search_terms,
    )


def validate_embedding(embedding) -> List[float]:
    """Return the embedding as a list of floats or raise ``InvalidEmbeddingError``."""
    if (
        embedding is None
        or isinstance(embedding, (str, bytes, Mapping))
        or not isinstance(embedding, Iterable)
    ):
        raise InvalidEmbeddingError("Failed to process query: invalid query embedding generated")

    values = list(embedding)
    if not values or not all(
        isinstance(v, numbers.Real) and not isinstance(v, bool) for v in values
    ):
        raise InvalidEmbeddingError("Failed to process query: invalid query embedding generated")
    return [float(v) for v in values]


def rerank(candidates: Sequence[ScoredRecord], query: str, top_k: int) -> List[SearchMatch]:
    """
    Adjust similarity scores with price intent and exact search-term hits.

    Base score is ``1 - distance``. Candidates are sorted descending on the
    unclamped adjusted score and truncated to ``top_k``; only the returned
    ``SearchMatch.score`` is clamped to [0, 1].
    """
    query_lower = query.lower()
    wants_expensive = "expensive" in query_lower or "highest price" in query_lower
    wants_cheap = "cheap" in query_lower or "lowest price" in query_lower

    scored = []
    for candidate in candidates:
        metadata = candidate.metadata
        score = 1 - float(candidate.distance or 0)

        price = _as_float(metadata.get("price"))
        if price:
            if wants_expensive:
                score += (price / PRICE_SCALE) * PRICE_WEIGHT
            if wants_cheap:
                score -= (price / PRICE_SCALE) * PRICE_WEIGHT

        search_term = metadata.get("searchTerm")
        if search_term and str(search_term).lower() in query_lower:
            score += SEARCH_TERM_BOOST

        scored.append((score, candidate))

    scored.sort(key=lambda item: item[0], reverse=True)
    return [
        SearchMatch(id=str(candidate.id), score=min(1.0, max(0.0, score)), metadata=candidate.metadata)
        for score, candidate in scored[:top_k]
    ]


def generate_response(query: str, result: SearchResult) -> str:
    """Render matches as a plain-text answer grouped by event type."""
    if not result.matches:
        return NO_MATCHES_MESSAGE

    grouped: Dict[str, List[SearchMatch]] = {}
    for match in result.matches:
        grouped.setdefault(match.metadata.get("eventType") or "unknown", []).append(match)

    lines: List[str] = []
    for event_type, matches in grouped.items():
        lines.append("")
        lines.append(f"**{event_type.upper()} Events ({len(matches)}):**")
        lines.append("")
        for index, match in enumerate(matches, start=1):
            m = match.metadata
            lines.append(f"**{index}.** {m.get('date')} | {m.get('email') or 'N/A'}")
            if event_type == "purchase":
                brands = m.get("brands")
                lines.append(f"   • Product: {m.get('productName') or 'N/A'}")
                lines.append(f"   • SKU: {m.get('sku') or 'N/A'}")
                lines.append(f"   • Price: ${_as_float(m.get('price')) or 0:.2f}")
                lines.append(f"   • Quantity: {m.get('quantity') or 0}")
                lines.append(f"   • Brands: {', '.join(brands) if isinstance(brands, list) else 'N/A'}")
                lines.append(f"   • Order: {m.get('orderNumber') or 'N/A'}")
            elif event_type == "pageview":
                lines.append(f"   • Category: {m.get('category') or 'N/A'}")
                lines.append(f"   • Sub Category: {m.get('subCategory') or 'N/A'}")
                lines.append(f"   • URL: {m.get('url') or 'N/A'}")
            elif event_type == "search":
                lines.append(f"   • Search Term: **{m.get('searchTerm') or 'N/A'}**")
                lines.append(f"   • URL: {m.get('url') or 'N/A'}")
            lines.append(f"   • Country: {m.get('country') or 'N/A'}")
            lines.append("")

    return "\n".join(lines)


def _mask_email(match: SearchMatch) -> SearchMatch:
    metadata = dict(match.metadata)
    email = metadata.pop("email", None)
    if email:
        metadata["email"] = scramble_email(email)
    return SearchMatch(id=match.id, score=match.score, metadata=metadata)


def _as_float(value) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
