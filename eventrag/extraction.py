"""
Entity and intent extraction.

Pure functions that pull structured search constraints out of a raw query
string. Nothing here raises or performs I/O: every extractor returns an
empty result when its patterns do not match.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from .models import QueryEntities

logger = logging.getLogger(__name__)


# Ordered; every matching category is reported.
INTENT_PATTERNS: Dict[str, re.Pattern] = {
    "aggregation": re.compile(r"how many|count|total|number of|sum|aggregate", re.IGNORECASE),
    "ranking": re.compile(r"top|best|worst|highest|lowest|most|least|popular", re.IGNORECASE),
    "temporal": re.compile(
        r"today|yesterday|last week|this month|between|before|after|recent", re.IGNORECASE
    ),
    "comparison": re.compile(r"compare|versus|vs|difference between", re.IGNORECASE),
    "specific": re.compile(r"show me|find|get|what|who|when|list|display", re.IGNORECASE),
}

EVENT_TYPE_PATTERNS: Dict[str, re.Pattern] = {
    "purchase": re.compile(r"\b(buy|purchas|bought|order|ordered|product|price|expensive|cheap)\b"),
    "search": re.compile(r"\b(search|searched|query|look for|finding|seeking|looked for)\b"),
    "pageview": re.compile(r"\b(view|page|visit|browse|look at|seen)\b"),
}

# Plain substrings that also mark a query as being about an event type.
# "purchases" does not satisfy the word-bounded "purchas" pattern above.
EVENT_TYPE_VOCABULARY: Dict[str, Tuple[str, ...]] = {
    "purchase": ("purchase", "buy", "bought"),
    "search": ("search", "query"),
}

DATE_PATTERNS = [
    re.compile(r"(\d{4}-\d{2}-\d{2})"),
    re.compile(r"(today|yesterday)", re.IGNORECASE),
    re.compile(r"(last week|this month|last month)", re.IGNORECASE),
]

ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

EMAIL_PATTERN = re.compile(r"[\w.-]+@[\w.-]+\.[\w]+")

PRICE_PATTERN = re.compile(r"\$\d+(?:\.\d{2})?|\d+\s*(?:dollars|usd)", re.IGNORECASE)

SEARCH_TERM_PATTERNS = [
    re.compile(r"search(?:ed|ing)?\s+(?:for\s+)?[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"search(?:ed|ing)?\s+(?:for\s+)?(\w+)", re.IGNORECASE),
    re.compile(r"query\s+[\"']([^\"']+)[\"']", re.IGNORECASE),
    re.compile(r"look(?:ing)?\s+for\s+[\"']([^\"']+)[\"']", re.IGNORECASE),
]

KNOWN_BRANDS = [
    "sephora collection",
    "yves saint laurent",
    "nars",
    "fenty",
    "rare beauty",
    "dior",
    "lancome",
    "mac",
]

TOP_K_PATTERNS = [
    re.compile(r"top\s+(\d+)"),
    re.compile(r"(\d+)\s+most"),
    re.compile(r"(\d+)\s+top"),
    re.compile(r"first\s+(\d+)"),
    re.compile(r"show\s+me\s+(\d+)"),
    re.compile(r"get\s+me\s+(\d+)"),
    re.compile(r"find\s+(\d+)"),
    re.compile(r"(\d+)\s+(?:results?|records?|items?)"),
]

DEFAULT_TOP_WITHOUT_NUMBER = 5

EMAIL_VISIBLE_CHARS = 4
EMAIL_MASK_CHAR = "#"
EMAIL_MIN_MASK_LENGTH = 3


def detect_intent(query: str) -> List[str]:
    """Return every intent category the query matches, or ``["semantic"]``."""
    intents = [name for name, pattern in INTENT_PATTERNS.items() if pattern.search(query)]
    return intents or ["semantic"]


def detect_event_types(query: str) -> List[str]:
    """
    Infer which event types a query is about.

    This is the single place that decides whether a query is purchase-,
    search- or pageview-ish; both entity extraction and the hybrid search
    event-type override go through it.
    """
    query_lower = query.lower()
    event_types = []
    for event_type, pattern in EVENT_TYPE_PATTERNS.items():
        vocabulary = EVENT_TYPE_VOCABULARY.get(event_type, ())
        if pattern.search(query_lower) or any(word in query_lower for word in vocabulary):
            event_types.append(event_type)
    return event_types


def extract_dates(query: str) -> List[str]:
    dates: List[str] = []
    for pattern in DATE_PATTERNS:
        dates.extend(pattern.findall(query))
    return dates


def exact_dates(dates: List[str]) -> List[str]:
    """Keep only the ISO ``YYYY-MM-DD`` values usable as store filters."""
    return [value for value in dates if ISO_DATE_PATTERN.search(value)]


def extract_emails(query: str) -> List[str]:
    return EMAIL_PATTERN.findall(query)


def extract_prices(query: str) -> List[str]:
    return PRICE_PATTERN.findall(query)


def extract_brands(query: str) -> List[str]:
    """Return the first known brand mentioned in the query, if any."""
    query_lower = query.lower()
    for brand in KNOWN_BRANDS:
        if brand in query_lower:
            return [brand]
    return []


def extract_search_terms(query: str) -> List[str]:
    """First capture of each search-term pattern, in pattern order."""
    terms = []
    for pattern in SEARCH_TERM_PATTERNS:
        match = pattern.search(query)
        if match and match.group(1):
            terms.append(match.group(1))
    return terms


def extract_top_k(query: str) -> Optional[int]:
    """
    Read a requested result count from the query.

    Returns the first positive integer captured by ``TOP_K_PATTERNS``,
    ``5`` when "top" appears without any number, else ``None`` so the caller
    can substitute its own default.
    """
    query_lower = query.lower()

    for pattern in TOP_K_PATTERNS:
        match = pattern.search(query_lower)
        if match:
            k = int(match.group(1))
            if k > 0:
                logger.debug(f"Extracted top K {k} from query: {query!r}")
                return k

    if "top" in query_lower and not re.search(r"\d+", query_lower):
        return DEFAULT_TOP_WITHOUT_NUMBER

    return None


def extract_entities(query: str) -> QueryEntities:
    """
    Extract all entity categories from a query.

    Categories are extracted independently and overlapping captures are not
    deduplicated: ``'searched for "today"'`` yields "today" both as a date
    and as a search term.
    """
    return QueryEntities(
        dates=tuple(extract_dates(query)),
        emails=tuple(extract_emails(query)),
        prices=tuple(extract_prices(query)),
        brands=tuple(extract_brands(query)),
        event_types=tuple(detect_event_types(query)),
        search_terms=tuple(extract_search_terms(query)),
    )


def scramble_email(email: Optional[str]) -> str:
    """
    Mask the local part of an email address.

    Keeps the first four characters of the local part, masks the rest with
    at least three ``#`` characters and keeps the domain. Values that are not
    ``local@domain`` are returned unchanged; empty values become ``""``.
    """
    if not email or not isinstance(email, str):
        return ""

    parts = email.split("@")
    local_part = parts[0]
    domain = parts[1] if len(parts) > 1 else ""
    if not local_part or not domain:
        return email

    chars_to_show = min(EMAIL_VISIBLE_CHARS, len(local_part))
    mask_length = max(EMAIL_MIN_MASK_LENGTH, len(local_part) - chars_to_show)
    return f"{local_part[:chars_to_show]}{EMAIL_MASK_CHAR * mask_length}@{domain}"
