"""
Runtime configuration and logging setup.

Settings come from ``EVENTRAG_*`` environment variables or a ``.env`` file.
"""

import logging
import sys
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_prefix="EVENTRAG_", env_file=".env", case_sensitive=False)

    # Storage
    database_url: str = "postgresql+psycopg2://localhost:5432/eventrag"
    events_table: str = "purchase_embeddings"
    query_log_table: str = "query_logs"

    # Embeddings
    ollama_url: str = "http://localhost:11434/api/embeddings"
    ollama_model: str = "nomic-embed-text"
    embedding_timeout: float = 30.0
    embedding_dimensions: int = 768

    # Search
    default_top_k: int = 10
    query_log_max_chars: int = 500

    log_level: str = "info"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    level = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
