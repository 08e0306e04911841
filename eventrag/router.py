"""
Model router.

Scores every available model in the capability matrix against the query's
priority scores and the caller's preferences, and picks the best one. The
scorer is a fixed weighted sum; weights, multiplier order and thresholds are
part of the contract.
"""

import logging
import math
from typing import List, Optional, Sequence

from .analyzer import analyze_query, calculate_priority_scores
from .catalog import MODEL_CATALOG
from .models import (
    ModelCapability,
    ModelRecommendation,
    PriorityScores,
    QueryAnalysis,
    RouterPreferences,
    RoutingDecision,
)

logger = logging.getLogger(__name__)

SPEED_WEIGHT = 20
REASONING_WEIGHT = 25
CODING_WEIGHT = 20
CREATIVE_WEIGHT = 15
ANALYTICS_WEIGHT = 15

COST_BONUS = 20
SPEED_PREFERENCE_WEIGHT = 25
QUALITY_PREFERENCE_WEIGHT = 30

COST_LIMIT_PENALTY = 0.3
MIN_SPEED_PENALTY = 0.5
SMALL_CONTEXT_PENALTY = 0.7
SMALL_CONTEXT_WINDOW = 32000
LARGE_CONTEXT_WINDOW = 100000

MAX_RECOMMENDATIONS = 5
MAX_CONFIDENCE = 0.95


class ModelRouter:
    """Selects a downstream model from a static, read-only capability matrix."""

    def __init__(self, catalog: Sequence[ModelCapability] = MODEL_CATALOG):
        self.catalog = tuple(catalog)
        self.available_models = [entry for entry in self.catalog if entry.available]
        if not self.available_models:
            raise ValueError("Model catalog has no available models")

    def select_model(
        self,
        query: str,
        preferences: Optional[RouterPreferences] = None,
    ) -> RoutingDecision:
        preferences = preferences or RouterPreferences()
        analysis = analyze_query(query)
        recommendations = self.rank_models(analysis, preferences)
        best = recommendations[0]

        confidence = min(analysis.confidence * 0.7 + (best.score / 100) * 0.3, MAX_CONFIDENCE)
        logger.info(
            f"Routed {analysis.complexity} {analysis.domain} query to {best.model} "
            f"(score={best.score}, confidence={confidence:.2f})"
        )

        return RoutingDecision(
            selected_model=best.model,
            selected_provider=best.provider,
            display_name=best.display_name,
            analysis=analysis,
            recommendations=tuple(recommendations[:MAX_RECOMMENDATIONS]),
            reasoning=generate_reasoning(best, analysis, preferences),
            confidence=confidence,
        )

    def rank_models(
        self,
        analysis: QueryAnalysis,
        preferences: RouterPreferences,
    ) -> List[ModelRecommendation]:
        """Score every available model, best first. Ties keep catalog order."""
        priorities = calculate_priority_scores(analysis)
        recommendations = [
            score_model(model, priorities, preferences, analysis) for model in self.available_models
        ]
        recommendations.sort(key=lambda rec: rec.score, reverse=True)
        return recommendations

    def get_model_recommendations(
        self,
        query: str,
        top_n: int = MAX_RECOMMENDATIONS,
        preferences: Optional[RouterPreferences] = None,
    ) -> List[ModelRecommendation]:
        return list(self.select_model(query, preferences).recommendations[:top_n])


def score_model(
    model: ModelCapability,
    priorities: PriorityScores,
    preferences: RouterPreferences,
    analysis: QueryAnalysis,
) -> ModelRecommendation:
    reasons: List[str] = []

    score = (
        model.speed * priorities.speed * SPEED_WEIGHT
        + model.reasoning * priorities.reasoning * REASONING_WEIGHT
        + model.coding * priorities.coding * CODING_WEIGHT
        + model.creative * priorities.creative * CREATIVE_WEIGHT
        + model.analytics * priorities.analytics * ANALYTICS_WEIGHT
    )

    if preferences.prioritize_cost:
        if model.cost_per_1m_input == 0:
            score += COST_BONUS
            reasons.append("zero cost")
        else:
            score += max(0, COST_BONUS - model.cost_per_1m_input)

    if preferences.prioritize_speed:
        score += model.speed * SPEED_PREFERENCE_WEIGHT
        if model.speed > 0.9:
            reasons.append("very fast")

    if preferences.prioritize_quality:
        score += model.reasoning * QUALITY_PREFERENCE_WEIGHT
        if model.reasoning > 0.9:
            reasons.append("high quality reasoning")

    if preferences.max_cost_per_1m and model.cost_per_1m_input > preferences.max_cost_per_1m:
        score *= COST_LIMIT_PENALTY
        reasons.append("exceeds cost limit")

    if preferences.min_speed and model.speed < preferences.min_speed:
        score *= MIN_SPEED_PENALTY

    needs_long_context = analysis.requirements.needs_long_context
    if needs_long_context and model.context_window < SMALL_CONTEXT_WINDOW:
        score *= SMALL_CONTEXT_PENALTY
    elif needs_long_context and model.context_window >= LARGE_CONTEXT_WINDOW:
        reasons.append("large context window")

    if model.coding > 0.9 and priorities.coding > 0.8:
        reasons.append("excellent at coding")
    if model.creative > 0.9 and priorities.creative > 0.8:
        reasons.append("excellent at creative tasks")
    if model.reasoning > 0.9 and priorities.reasoning > 0.8:
        reasons.append("excellent reasoning ability")

    cost_estimate = (
        analysis.estimated_tokens * (model.cost_per_1m_input + model.cost_per_1m_output) / 1_000_000
    )

    return ModelRecommendation(
        model=model.model,
        provider=model.provider,
        display_name=model.display_name,
        score=_round_half_up(score),
        reasoning=", ".join(reasons) if reasons else "balanced capabilities",
        cost_estimate=cost_estimate if cost_estimate > 0 else None,
    )


def generate_reasoning(
    selected: ModelRecommendation,
    analysis: QueryAnalysis,
    preferences: RouterPreferences,
) -> str:
    parts = [
        f"Query is {analysis.complexity} complexity {analysis.domain} task",
        f"Selected {selected.display_name} because: {selected.reasoning}",
    ]
    if preferences.prioritize_cost:
        parts.append("cost optimization enabled")
    if preferences.prioritize_speed:
        parts.append("speed optimization enabled")
    if preferences.prioritize_quality:
        parts.append("quality optimization enabled")
    return ". ".join(parts) + "."


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
