"""
Query classifier.

Decides whether a query asks about the stored event data (``rag``) or is
ordinary conversation (``general``). Rules are evaluated first-match-wins in
the order of ``CLASSIFICATION_RULES``; when no rule fires, keyword counts
decide.
"""

import re
from typing import List, Tuple

from .models import QueryClassification

RAG_KEYWORDS = [
    # data
    "show", "display", "list", "find", "search", "get", "fetch",
    "purchases", "orders", "transactions", "sales",
    "page views", "pageviews", "views", "visits",
    "searches", "search terms", "queries",
    "products", "items", "catalog",
    "users", "customers", "clients",
    "data", "records", "entries",
    # analytics
    "top", "best", "worst", "most", "least", "highest", "lowest",
    "average", "total", "count", "sum", "statistics", "stats",
    "last week", "last month", "yesterday", "today", "recent",
    "between", "from date", "to date",
    # e-commerce
    "bought", "purchased", "ordered", "viewed", "searched for",
    "price", "cost", "amount", "spent",
    "category", "brand", "department",
    "uploaded", "csv", "file", "imported",
]

GENERAL_KEYWORDS = [
    "what is", "what are", "who is", "who are", "when was", "when did",
    "how does", "how do", "how to", "how can",
    "why is", "why do", "why are",
    "explain", "describe", "tell me about", "define",
    "help me", "can you", "could you", "would you",
    "write", "create", "generate", "compose",
    "summarize", "translate", "convert",
    "think", "opinion", "believe", "feel",
    "recommend", "suggest", "advice",
    "hello", "hi", "hey", "thanks", "thank you",
    "who are you", "what can you do",
]

RAG_PATTERNS = [
    re.compile(r"show\s+(me\s+)?(all\s+)?", re.IGNORECASE),
    re.compile(r"list\s+(all\s+)?", re.IGNORECASE),
    re.compile(r"find\s+(all\s+)?", re.IGNORECASE),
    re.compile(r"get\s+(me\s+)?", re.IGNORECASE),
    re.compile(r"top\s+\d+", re.IGNORECASE),
    re.compile(r"last\s+(week|month|day|year)", re.IGNORECASE),
    re.compile(r"from\s+\d{4}", re.IGNORECASE),
    re.compile(r"purchases?\s+(from|by|of)", re.IGNORECASE),
    re.compile(r"search(es)?\s+(for|by|from)", re.IGNORECASE),
    re.compile(r"page\s*views?\s+(for|of|on|from)", re.IGNORECASE),
    re.compile(r"how\s+many\s+(purchases?|orders?|views?|searches?)", re.IGNORECASE),
    re.compile(r"what\s+did\s+(users?|customers?|people)\s+(buy|search|view|purchase)", re.IGNORECASE),
]

GENERAL_PATTERNS = [
    re.compile(r"^(hi|hello|hey|thanks|thank you)", re.IGNORECASE),
    re.compile(r"what\s+is\s+(a|an|the)?\s*\w+\s*\?$", re.IGNORECASE),
    re.compile(r"how\s+(does|do)\s+\w+\s+work", re.IGNORECASE),
    re.compile(r"explain\s+(to\s+me\s+)?", re.IGNORECASE),
    re.compile(r"tell\s+me\s+(about|more)", re.IGNORECASE),
    re.compile(r"can\s+you\s+(help|explain|tell|write)", re.IGNORECASE),
    re.compile(r"who\s+(is|are|was|were)", re.IGNORECASE),
]

RAG_PATTERN_MATCH = QueryClassification("rag", 0.9, "Query matches data retrieval pattern")
GENERAL_PATTERN_MATCH = QueryClassification("general", 0.9, "Query matches general conversation pattern")

CLASSIFICATION_RULES: List[Tuple[re.Pattern, QueryClassification]] = [
    *((pattern, RAG_PATTERN_MATCH) for pattern in RAG_PATTERNS),
    *((pattern, GENERAL_PATTERN_MATCH) for pattern in GENERAL_PATTERNS),
]


def classify_query(query: str) -> QueryClassification:
    query_lower = query.lower().strip()

    for pattern, classification in CLASSIFICATION_RULES:
        if pattern.search(query_lower):
            return classification

    rag_score = _count_keywords(query_lower, RAG_KEYWORDS)
    general_score = _count_keywords(query_lower, GENERAL_KEYWORDS)
    total_score = rag_score + general_score

    if total_score == 0:
        return QueryClassification("general", 0.5, "No clear data or general indicators found")

    rag_ratio = rag_score / total_score

    if rag_ratio > 0.6:
        return QueryClassification(
            "rag", min(0.5 + rag_ratio * 0.4, 0.95), "Query contains data-related keywords"
        )
    if rag_ratio < 0.4:
        return QueryClassification(
            "general",
            min(0.5 + (1 - rag_ratio) * 0.4, 0.95),
            "Query contains general conversation keywords",
        )
    # Mixed signals lean towards retrieval whenever any data keyword is present.
    return QueryClassification(
        "rag" if rag_score > 0 else "general", 0.6, "Mixed indicators, using best guess"
    )


def should_use_rag(query: str, has_data_loaded: bool) -> bool:
    """Retrieval only runs when a corpus exists and the query asks for it."""
    if not has_data_loaded:
        return False
    return classify_query(query).type == "rag"


def _count_keywords(text: str, keywords: List[str]) -> int:
    return sum(1 for keyword in keywords if keyword in text)
