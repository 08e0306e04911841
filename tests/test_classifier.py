import pytest

from eventrag.classifier import classify_query, should_use_rag


def test_greeting_is_general_conversation():
    result = classify_query("Hello, how are you?")

    assert result.type == "general"
    assert result.confidence == 0.9
    assert result.reason == "Query matches general conversation pattern"


def test_top_n_request_is_retrieval():
    result = classify_query("Show me top 3 most expensive purchases")

    assert result.type == "rag"
    assert result.confidence == 0.9


def test_classification_is_deterministic():
    query = "what did customers buy yesterday"

    assert classify_query(query) == classify_query(query)


def test_no_indicators_defaults_to_general():
    result = classify_query("zzz")

    assert result.type == "general"
    assert result.confidence == 0.5


def test_data_keywords_without_pattern():
    result = classify_query("purchases total")

    assert result.type == "rag"
    assert result.confidence == pytest.approx(0.9)
    assert result.reason == "Query contains data-related keywords"


def test_general_keywords_without_pattern():
    # "think" also contains the keyword "hi"
    result = classify_query("I think so")

    assert result.type == "general"
    assert result.confidence == pytest.approx(0.9)


def test_mixed_band_leans_to_retrieval_on_a_single_data_keyword():
    # One data keyword ("price") against one general keyword ("opinion")
    # lands in the mixed band and is routed to retrieval.
    result = classify_query("your opinion on the price")

    assert result.type == "rag"
    assert result.confidence == 0.6
    assert result.reason == "Mixed indicators, using best guess"


def test_should_use_rag_requires_loaded_data():
    assert should_use_rag("Show me purchases", has_data_loaded=False) is False
    assert should_use_rag("Show me purchases", has_data_loaded=True) is True
    assert should_use_rag("Hello there", has_data_loaded=True) is False


def test_definition_question_is_general():
    result = classify_query("What is a vector?")

    assert result.type == "general"
    assert result.confidence == 0.9
    assert result.reason == "Query matches general conversation pattern"
