"""Embedding provider backed by an Ollama server."""

import logging
from typing import List, Optional

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)


class OllamaEmbeddingProvider:
    """Calls Ollama's ``/api/embeddings`` endpoint once per text."""

    def __init__(
        self,
        url: str = "http://localhost:11434/api/embeddings",
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
        expected_dimensions: Optional[int] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.model = model
        self.timeout = timeout
        self.expected_dimensions = expected_dimensions
        self.client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "OllamaEmbeddingProvider":
        return cls(
            url=settings.ollama_url,
            model=settings.ollama_model,
            timeout=settings.embedding_timeout,
            expected_dimensions=settings.embedding_dimensions,
        )

    def embed(self, text: str) -> List[float]:
        logger.debug(f"Generating embedding with {self.model} for: {text[:50]!r}")
        try:
            response = self.client.post(
                self.url,
                json={"model": self.model, "prompt": text},
                timeout=self.timeout,
            )
            response.raise_for_status()
            embedding = response.json().get("embedding")
        except httpx.HTTPError as e:
            logger.error(f"HTTP error generating embedding with {self.model}: {e}")
            raise

        if self.expected_dimensions and embedding is not None and len(embedding) != self.expected_dimensions:
            logger.warning(
                f"Embedding dimension mismatch: got {len(embedding)}, "
                f"expected {self.expected_dimensions}"
            )
        return embedding

    def close(self) -> None:
        self.client.close()
