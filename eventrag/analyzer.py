"""Query analysis for model routing: complexity, domain and requirements."""

import math
import re
from typing import Dict, List, Tuple

from .models import Complexity, Domain, PriorityScores, QueryAnalysis, Requirements

SIMPLE_PATTERNS = [
    re.compile(r"^(what|who|when|where|which|how much|how many)\s+", re.IGNORECASE),
    re.compile(r"^(define|explain|describe|tell me about)\s+\w+$", re.IGNORECASE),
    re.compile(r"^(yes|no|thanks|thank you|hi|hello|hey)", re.IGNORECASE),
]

COMPLEX_PATTERNS = [
    re.compile(r"\b(analyze|compare|evaluate|synthesize|design|architect|implement)\b", re.IGNORECASE),
    re.compile(r"\b(explain.*why|explain.*how.*works?|implications?|trade-?offs?)\b", re.IGNORECASE),
    re.compile(r"\b(multi-?step|complex|intricate|comprehensive)\b", re.IGNORECASE),
    re.compile(r"\b(algorithm|optimization|performance|architecture)\b", re.IGNORECASE),
]

COMPLEX_WORD_COUNT = 30
LONG_CONTEXT_WORD_COUNT = 50
TOKENS_PER_WORD = 1.3

# Iteration order is the tie-break: on equal keyword counts the earlier
# domain wins.
DOMAIN_KEYWORDS: Tuple[Tuple[Domain, List[str]], ...] = (
    (
        "coding",
        [
            "code", "function", "class", "api", "bug", "debug", "implement", "algorithm",
            "typescript", "javascript", "python", "react", "component", "refactor",
            "test", "unit test", "integration", "repository", "git", "deploy",
        ],
    ),
    (
        "analytics",
        [
            "data", "analyze", "statistics", "metrics", "trends", "insights",
            "calculate", "measure", "report", "dashboard", "chart", "graph",
        ],
    ),
    (
        "technical",
        [
            "system", "architecture", "infrastructure", "database", "server",
            "scalability", "performance", "security", "optimization", "protocol",
        ],
    ),
    (
        "creative",
        [
            "write", "create", "story", "poem", "article", "blog", "creative",
            "imagine", "brainstorm", "ideas", "suggest", "slogan", "marketing",
        ],
    ),
)

LONG_CONTEXT_PATTERN = re.compile(r"\b(document|article|essay|detailed|comprehensive)\b", re.IGNORECASE)
REASONING_PATTERN = re.compile(r"\b(why|how|reason|explain|understand)\b", re.IGNORECASE)
CREATIVITY_PATTERN = re.compile(r"\b(creative|innovative|unique|original)\b", re.IGNORECASE)
CODE_GENERATION_PATTERN = re.compile(r"\b(write|create|implement|code|function|class)\b", re.IGNORECASE)
DATA_ANALYSIS_PATTERN = re.compile(r"\b(analyze|data|statistics|trends)\b", re.IGNORECASE)


def analyze_query(query: str) -> QueryAnalysis:
    query_lower = query.lower().strip()
    word_count = len(re.split(r"\s+", query))

    complexity = _detect_complexity(query, word_count)

    scores: Dict[Domain, int] = {
        domain: _count_keywords(query_lower, keywords) for domain, keywords in DOMAIN_KEYWORDS
    }
    domain: Domain = "general"
    max_score = 0
    for candidate, score in scores.items():
        if score > max_score:
            max_score = score
            domain = candidate

    requirements = Requirements(
        needs_long_context=word_count > LONG_CONTEXT_WORD_COUNT or bool(LONG_CONTEXT_PATTERN.search(query)),
        needs_reasoning=complexity == "complex" or bool(REASONING_PATTERN.search(query)),
        needs_creativity=domain == "creative" or bool(CREATIVITY_PATTERN.search(query)),
        needs_code_generation=domain == "coding" or bool(CODE_GENERATION_PATTERN.search(query)),
        needs_data_analysis=domain == "analytics" or bool(DATA_ANALYSIS_PATTERN.search(query)),
    )

    total_keywords = sum(scores.values())
    confidence = min(0.5 + total_keywords * 0.1 + (0.2 if complexity == "simple" else 0.1), 0.95)

    return QueryAnalysis(
        complexity=complexity,
        domain=domain,
        requirements=requirements,
        estimated_tokens=math.ceil(word_count * TOKENS_PER_WORD),
        confidence=confidence,
    )


def calculate_priority_scores(analysis: QueryAnalysis) -> PriorityScores:
    """Weight each model capability for this query; every score is in [0, 1]."""
    scores = {"speed": 0.5, "reasoning": 0.5, "coding": 0.5, "creative": 0.5, "analytics": 0.5}

    if analysis.complexity == "simple":
        scores["speed"] = 0.9
        scores["reasoning"] = 0.3
    elif analysis.complexity == "complex":
        scores["speed"] = 0.3
        scores["reasoning"] = 0.9

    if analysis.domain == "coding":
        scores["coding"] = 0.95
        scores["reasoning"] = 0.8
    elif analysis.domain == "creative":
        scores["creative"] = 0.95
        scores["reasoning"] = 0.7
    elif analysis.domain == "analytics":
        scores["analytics"] = 0.95
        scores["reasoning"] = 0.8
    elif analysis.domain == "technical":
        scores["reasoning"] = 0.9
        scores["coding"] = 0.7

    requirements = analysis.requirements
    if requirements.needs_reasoning:
        scores["reasoning"] = max(scores["reasoning"], 0.8)
    if requirements.needs_code_generation:
        scores["coding"] = max(scores["coding"], 0.85)
    if requirements.needs_creativity:
        scores["creative"] = max(scores["creative"], 0.85)
    if requirements.needs_data_analysis:
        scores["analytics"] = max(scores["analytics"], 0.85)

    return PriorityScores(**scores)


def _detect_complexity(query: str, word_count: int) -> Complexity:
    if any(pattern.search(query) for pattern in SIMPLE_PATTERNS):
        return "simple"
    if any(pattern.search(query) for pattern in COMPLEX_PATTERNS) or word_count > COMPLEX_WORD_COUNT:
        return "complex"
    return "moderate"


def _count_keywords(text: str, keywords: List[str]) -> int:
    return sum(1 for keyword in keywords if keyword in text)
