"""Adapters for integrating eventrag with storage and embedding backends."""

from .memory import InMemoryEventStore, InMemoryQueryLog
from .ollama import OllamaEmbeddingProvider
from .sqlalchemy_store import SQLAlchemyEventStore, SQLAlchemyQueryLog, create_session_factory

__all__ = [
    "InMemoryEventStore",
    "InMemoryQueryLog",
    "OllamaEmbeddingProvider",
    "SQLAlchemyEventStore",
    "SQLAlchemyQueryLog",
    "create_session_factory",
]
