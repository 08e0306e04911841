import json

import httpx
import pytest

from eventrag.adapters.ollama import OllamaEmbeddingProvider
from eventrag.config import Settings

URL = "http://ollama.test/api/embeddings"


def _provider(handler, **kwargs):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return OllamaEmbeddingProvider(url=URL, model="nomic-embed-text", client=client, **kwargs)


def test_embed_posts_model_and_prompt():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})

    provider = _provider(handler)

    assert provider.embed("top 3 purchases") == [0.1, 0.2, 0.3]
    assert str(requests[0].url) == URL
    assert json.loads(requests[0].content) == {"model": "nomic-embed-text", "prompt": "top 3 purchases"}


def test_embed_returns_vector_even_on_dimension_mismatch():
    provider = _provider(lambda request: httpx.Response(200, json={"embedding": [0.1]}), expected_dimensions=768)

    assert provider.embed("anything") == [0.1]


def test_missing_embedding_key_returns_none():
    provider = _provider(lambda request: httpx.Response(200, json={"error": "model not loaded"}))

    assert provider.embed("anything") is None


def test_server_error_raises():
    provider = _provider(lambda request: httpx.Response(500, json={"error": "boom"}))

    with pytest.raises(httpx.HTTPStatusError):
        provider.embed("anything")


def test_from_settings():
    settings = Settings(ollama_url=URL, ollama_model="mxbai-embed-large", embedding_timeout=5, embedding_dimensions=1024)

    provider = OllamaEmbeddingProvider.from_settings(settings)

    assert provider.url == URL
    assert provider.model == "mxbai-embed-large"
    assert provider.timeout == 5
    assert provider.expected_dimensions == 1024
    provider.close()
