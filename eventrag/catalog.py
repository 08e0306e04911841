"""Capability matrix of the downstream language models the router can pick."""

from typing import List, Optional, Tuple

from .models import ModelCapability

MODEL_CATALOG: Tuple[ModelCapability, ...] = (
    # OpenAI
    ModelCapability(
        model="gpt-4",
        provider="openai",
        display_name="GPT-4",
        context_window=128000,
        max_output_tokens=4096,
        speed=0.6,
        reasoning=0.95,
        coding=0.95,
        creative=0.90,
        analytics=0.90,
        cost_per_1m_input=30.0,
        cost_per_1m_output=60.0,
        available=True,
    ),
    ModelCapability(
        model="gpt-4-turbo",
        provider="openai",
        display_name="GPT-4 Turbo",
        context_window=128000,
        max_output_tokens=4096,
        speed=0.75,
        reasoning=0.95,
        coding=0.95,
        creative=0.90,
        analytics=0.90,
        cost_per_1m_input=10.0,
        cost_per_1m_output=30.0,
        available=True,
    ),
    ModelCapability(
        model="gpt-3.5-turbo",
        provider="openai",
        display_name="GPT-3.5 Turbo",
        context_window=16385,
        max_output_tokens=4096,
        speed=0.95,
        reasoning=0.75,
        coding=0.80,
        creative=0.75,
        analytics=0.70,
        cost_per_1m_input=0.5,
        cost_per_1m_output=1.5,
        available=True,
    ),
    ModelCapability(
        model="gpt-4.1-mini",
        provider="openai",
        display_name="GPT-4.1 Mini",
        context_window=128000,
        max_output_tokens=16384,
        speed=0.90,
        reasoning=0.85,
        coding=0.88,
        creative=0.82,
        analytics=0.80,
        cost_per_1m_input=0.15,
        cost_per_1m_output=0.60,
        available=True,
    ),
    # Google
    ModelCapability(
        model="gemini-2.0-flash-exp",
        provider="google",
        display_name="Gemini 2.0 Flash",
        context_window=1000000,
        max_output_tokens=8192,
        speed=0.98,
        reasoning=0.90,
        coding=0.92,
        creative=0.88,
        analytics=0.85,
        cost_per_1m_input=0.0,  # free while experimental
        cost_per_1m_output=0.0,
        available=True,
    ),
    ModelCapability(
        model="gemini-1.5-pro",
        provider="google",
        display_name="Gemini 1.5 Pro",
        context_window=2000000,
        max_output_tokens=8192,
        speed=0.70,
        reasoning=0.93,
        coding=0.90,
        creative=0.85,
        analytics=0.88,
        cost_per_1m_input=1.25,
        cost_per_1m_output=5.0,
        available=True,
    ),
    ModelCapability(
        model="gemini-1.5-flash",
        provider="google",
        display_name="Gemini 1.5 Flash",
        context_window=1000000,
        max_output_tokens=8192,
        speed=0.95,
        reasoning=0.85,
        coding=0.85,
        creative=0.80,
        analytics=0.82,
        cost_per_1m_input=0.075,
        cost_per_1m_output=0.30,
        available=True,
    ),
    # Anthropic
    ModelCapability(
        model="claude-3-opus",
        provider="anthropic",
        display_name="Claude 3 Opus",
        context_window=200000,
        max_output_tokens=4096,
        speed=0.65,
        reasoning=0.98,
        coding=0.93,
        creative=0.95,
        analytics=0.92,
        cost_per_1m_input=15.0,
        cost_per_1m_output=75.0,
        available=False,
    ),
    ModelCapability(
        model="claude-3-sonnet",
        provider="anthropic",
        display_name="Claude 3 Sonnet",
        context_window=200000,
        max_output_tokens=4096,
        speed=0.80,
        reasoning=0.90,
        coding=0.88,
        creative=0.90,
        analytics=0.87,
        cost_per_1m_input=3.0,
        cost_per_1m_output=15.0,
        available=False,
    ),
    # Ollama (local)
    ModelCapability(
        model="llama3",
        provider="ollama",
        display_name="Llama 3 (Local)",
        context_window=8192,
        max_output_tokens=2048,
        speed=0.70,
        reasoning=0.75,
        coding=0.75,
        creative=0.70,
        analytics=0.65,
        cost_per_1m_input=0.0,
        cost_per_1m_output=0.0,
        available=True,
    ),
    ModelCapability(
        model="mistral:7b",
        provider="ollama",
        display_name="Mistral 7B (Local)",
        context_window=8192,
        max_output_tokens=2048,
        speed=0.85,
        reasoning=0.70,
        coding=0.72,
        creative=0.68,
        analytics=0.65,
        cost_per_1m_input=0.0,
        cost_per_1m_output=0.0,
        available=True,
    ),
)


def get_model_capability(
    model: str, catalog: Tuple[ModelCapability, ...] = MODEL_CATALOG
) -> Optional[ModelCapability]:
    return next((entry for entry in catalog if entry.model == model), None)


def get_available_models(catalog: Tuple[ModelCapability, ...] = MODEL_CATALOG) -> List[ModelCapability]:
    return [entry for entry in catalog if entry.available]


def get_models_by_provider(
    provider: str, catalog: Tuple[ModelCapability, ...] = MODEL_CATALOG
) -> List[ModelCapability]:
    return [entry for entry in catalog if entry.provider == provider and entry.available]
