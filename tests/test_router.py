import pytest

from eventrag.analyzer import analyze_query, calculate_priority_scores
from eventrag.catalog import (
    MODEL_CATALOG,
    get_available_models,
    get_model_capability,
    get_models_by_provider,
)
from eventrag.models import PriorityScores, QueryAnalysis, Requirements, RouterPreferences
from eventrag.router import ModelRouter, score_model

QUERIES = [
    "hi",
    "Write a TypeScript function to debounce API calls",
    "Compare the trade-offs of event sourcing for our data platform",
    "Write a short poem about autumn",
    "Summarize this detailed document about database security",
]


def test_coding_query_selects_best_available_coder():
    decision = ModelRouter().select_model("Write a TypeScript function to debounce API calls")

    assert decision.analysis.domain == "coding"
    assert decision.analysis.complexity in ("moderate", "complex")
    best_coding = max(model.coding for model in get_available_models())
    assert get_model_capability(decision.selected_model).coding == best_coding
    assert get_model_capability(decision.selected_model).available


def test_select_model_is_idempotent():
    router = ModelRouter()

    for query in QUERIES:
        assert router.select_model(query) == router.select_model(query)


@pytest.mark.parametrize("query", QUERIES)
def test_cost_preference_never_demotes_zero_cost_models(query):
    router = ModelRouter()
    analysis = analyze_query(query)
    baseline = [rec.model for rec in router.rank_models(analysis, RouterPreferences())]
    with_cost = [rec.model for rec in router.rank_models(analysis, RouterPreferences(prioritize_cost=True))]

    for model in get_available_models():
        if model.cost_per_1m_input == 0:
            assert with_cost.index(model.model) <= baseline.index(model.model)


def test_recommendations_are_top_five_sorted():
    decision = ModelRouter().select_model("Compare the trade-offs of event sourcing for our data platform")

    scores = [rec.score for rec in decision.recommendations]
    assert len(decision.recommendations) == 5
    assert scores == sorted(scores, reverse=True)
    assert decision.selected_model == decision.recommendations[0].model
    assert 0 < decision.confidence <= 0.95


def test_reasoning_mentions_active_preferences():
    decision = ModelRouter().select_model(
        "hi", RouterPreferences(prioritize_cost=True, prioritize_speed=True)
    )

    assert decision.reasoning.startswith("Query is simple complexity general task.")
    assert "cost optimization enabled" in decision.reasoning
    assert "speed optimization enabled" in decision.reasoning
    assert "quality optimization enabled" not in decision.reasoning
    assert decision.reasoning.endswith(".")


def test_cost_limit_penalty_and_reason():
    analysis = analyze_query("hi")
    priorities = calculate_priority_scores(analysis)
    gpt4 = get_model_capability("gpt-4")

    free = score_model(gpt4, priorities, RouterPreferences(), analysis)
    limited = score_model(gpt4, priorities, RouterPreferences(max_cost_per_1m=5), analysis)

    assert "exceeds cost limit" in limited.reasoning
    assert limited.score < free.score


def test_long_context_penalizes_small_windows():
    analysis = analyze_query("Summarize this detailed document about database security")
    priorities = calculate_priority_scores(analysis)
    assert analysis.requirements.needs_long_context

    llama = score_model(get_model_capability("llama3"), priorities, RouterPreferences(), analysis)
    pro = score_model(get_model_capability("gemini-1.5-pro"), priorities, RouterPreferences(), analysis)

    assert "large context window" in pro.reasoning
    assert "large context window" not in llama.reasoning
    assert llama.cost_estimate is None
    assert pro.cost_estimate == pytest.approx(analysis.estimated_tokens * 6.25 / 1_000_000)


def test_analyze_query_complexity():
    assert analyze_query("hello there").complexity == "simple"
    assert analyze_query("Compare the trade-offs of microservices").complexity == "complex"
    assert analyze_query("Write a poem about the sea").complexity == "moderate"
    assert analyze_query(" ".join(["word"] * 31)).complexity == "complex"


def test_analyze_query_domain_and_requirements():
    analysis = analyze_query("Write a poem about the sea")

    assert analysis.domain == "creative"
    assert analysis.requirements.needs_creativity
    assert analysis.requirements.needs_code_generation
    assert analysis.estimated_tokens == 8


def test_domain_ties_follow_fixed_priority_order():
    assert analyze_query("python data").domain == "coding"
    assert analyze_query("data security").domain == "analytics"
    assert analyze_query("server poem").domain == "technical"


def test_priority_scores_for_coding_query():
    scores = calculate_priority_scores(analyze_query("Write a TypeScript function to debounce API calls"))

    assert scores.coding == 0.95
    assert scores.reasoning == 0.8
    assert scores.speed == 0.5


def test_router_requires_an_available_model():
    unavailable = [model for model in MODEL_CATALOG if not model.available]

    with pytest.raises(ValueError):
        ModelRouter(unavailable)


def test_catalog_helpers():
    assert get_model_capability("gpt-4").display_name == "GPT-4"
    assert get_model_capability("missing") is None
    assert len(get_available_models()) == 9
    assert get_models_by_provider("anthropic") == []
    assert [m.model for m in get_models_by_provider("ollama")] == ["llama3", "mistral:7b"]


def test_get_model_recommendations_limits_results():
    recs = ModelRouter().get_model_recommendations("hi", top_n=2)

    assert len(recs) == 2


NEUTRAL_ANALYSIS = QueryAnalysis(
    complexity="moderate",
    domain="general",
    requirements=Requirements(),
    estimated_tokens=10,
    confidence=0.7,
)


@pytest.mark.parametrize(
    "preferences, expected",
    [
        (RouterPreferences(), 42),
        (RouterPreferences(prioritize_cost=True), 52),
        (RouterPreferences(prioritize_speed=True), 61),
        (RouterPreferences(prioritize_quality=True), 71),
        (RouterPreferences(max_cost_per_1m=5), 13),
        (RouterPreferences(min_speed=0.8), 21),
        (RouterPreferences(prioritize_cost=True, max_cost_per_1m=5), 16),
    ],
)
def test_score_model_exact_values(preferences, expected):
    # gpt-4-turbo at neutral priorities: 7.5 + 11.875 + 9.5 + 6.75 + 6.75 = 42.375
    rec = score_model(get_model_capability("gpt-4-turbo"), PriorityScores(), preferences, NEUTRAL_ANALYSIS)

    assert rec.score == expected
    assert rec.cost_estimate == pytest.approx(10 * 40 / 1_000_000)


def test_score_model_zero_cost_bonus():
    llama = get_model_capability("llama3")

    base = score_model(llama, PriorityScores(), RouterPreferences(), NEUTRAL_ANALYSIS)
    cheap = score_model(llama, PriorityScores(), RouterPreferences(prioritize_cost=True), NEUTRAL_ANALYSIS)

    assert base.score == 34
    assert cheap.score == 54
    assert cheap.reasoning == "zero cost"
    assert cheap.cost_estimate is None


def test_score_model_small_context_multiplier():
    long_context = QueryAnalysis(
        complexity="moderate",
        domain="general",
        requirements=Requirements(needs_long_context=True),
        estimated_tokens=10,
        confidence=0.7,
    )
    gpt35 = get_model_capability("gpt-3.5-turbo")

    normal = score_model(gpt35, PriorityScores(), RouterPreferences(), NEUTRAL_ANALYSIS)
    penalized = score_model(gpt35, PriorityScores(), RouterPreferences(), long_context)

    # 37.75 before and 37.75 * 0.7 = 26.425 after
    assert normal.score == 38
    assert penalized.score == 26
