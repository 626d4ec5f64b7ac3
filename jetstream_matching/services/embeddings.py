"""Embedding client: Cohere as the primary provider, OpenAI as fallback."""

from __future__ import annotations

import logging
import math
from typing import Any, List, Sequence, Tuple

import requests

from ..clients.http_session import get_session
from ..clients.openai_client import get_openai
from ..config import COHERE_MODEL, EMBEDDING_DIMENSIONS, OPENAI_EMBEDDING_MODEL, Settings
from ..exceptions import ConfigurationError, EmbeddingFailure
from ..models import Embedding

# ---------------------------------------------------------------------------
# Local Cohere settings (only used by this service)
# ---------------------------------------------------------------------------
COHERE_API_ENDPOINT: str = "https://api.cohere.ai/v1/embed"
# v3 models require an input type; documents and queries share one space
COHERE_INPUT_TYPE: str = "search_document"

logger = logging.getLogger(__name__)


class CohereProvider:
    """Calls the Cohere ``/v1/embed`` HTTP endpoint."""

    name = "cohere"

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = COHERE_MODEL,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("COHERE_API_KEY is not set in environment variables")
        self._api_key = api_key
        self.model = model
        self._session = session

    def embed(self, texts: List[str]) -> List[Embedding]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        data = {
            "texts": texts,
            "model": self.model,
            "input_type": COHERE_INPUT_TYPE,
            "truncate": "END",
        }
        session = self._session or get_session()
        response = session.post(COHERE_API_ENDPOINT, headers=headers, json=data)

        if response.status_code != 200:
            logger.error("Error from Cohere API: %s - %s", response.status_code, response.text)
            raise RuntimeError(f"Cohere API error: {response.status_code}")

        embeddings = response.json().get("embeddings")
        if not embeddings or len(embeddings) != len(texts):
            raise RuntimeError("Cohere API returned no embeddings")
        return [list(vector) for vector in embeddings]


class OpenAIProvider:
    """Calls the OpenAI embeddings endpoint through the SDK."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        model: str = OPENAI_EMBEDDING_MODEL,
        dimensions: int = EMBEDDING_DIMENSIONS,
        client: Any = None,
    ) -> None:
        self._client = client if client is not None else get_openai(api_key)
        self.model = model
        self.dimensions = dimensions

    def embed(self, texts: List[str]) -> List[Embedding]:
        response = self._client.embeddings.create(
            model=self.model,
            input=texts,
            dimensions=self.dimensions,
        )
        ordered = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in ordered]


class EmbeddingClient:
    """Turns text into fixed-length vectors with a single fallback attempt."""

    def __init__(self, primary: Any, fallback: Any = None) -> None:
        self.primary = primary
        self.fallback = fallback

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddingClient":
        """Build the Cohere/OpenAI pair; a missing OpenAI key disables the fallback."""
        primary = CohereProvider(settings.cohere_api_key, model=settings.cohere_model)
        fallback = None
        if settings.openai_api_key:
            fallback = OpenAIProvider(
                settings.openai_api_key,
                model=settings.openai_embedding_model,
                dimensions=settings.embedding_dimensions,
            )
        else:
            logger.warning("OPENAI_API_KEY not set - embedding fallback disabled")
        return cls(primary, fallback)

    def encode_with_provider(self, text: str) -> Tuple[Embedding, str]:
        """Embed *text*; return the vector and the name of the provider that served it."""
        logger.info("Generating embedding for text (first 50 chars): %s…", text[:50])
        try:
            vector = self.primary.embed([text])[0]
            logger.debug("Generated embedding of length %d via %s", len(vector), self.primary.name)
            return vector, self.primary.name
        except Exception as exc:
            primary_error = exc

        if self.fallback is None:
            logger.error("Embedding with %s failed and no fallback is configured: %s", self.primary.name, primary_error)
            raise EmbeddingFailure(
                f"{self.primary.name} embedding failed: {primary_error}",
                provider=self.primary.name,
                stage="primary",
                cause=primary_error,
            ) from primary_error

        logger.warning("%s embedding failed, trying %s fallback: %s", self.primary.name, self.fallback.name, primary_error)
        try:
            vector = self.fallback.embed([text])[0]
        except Exception as fallback_error:
            logger.error("%s fallback embedding also failed: %s", self.fallback.name, fallback_error)
            raise EmbeddingFailure(
                f"{self.primary.name} embedding failed: {primary_error} | "
                f"{self.fallback.name} fallback error: {fallback_error}",
                provider=self.fallback.name,
                stage="fallback",
                cause=primary_error,
                fallback_error=fallback_error,
            ) from fallback_error

        logger.debug("Generated embedding of length %d via %s", len(vector), self.fallback.name)
        return vector, self.fallback.name

    def encode(self, text: str) -> Embedding:
        """Embed a single text, falling back once to the secondary provider."""
        vector, _ = self.encode_with_provider(text)
        return vector

    def batch_encode(self, texts: Sequence[str]) -> List[Embedding]:
        """Embed *texts* in one primary-provider call, preserving input order."""
        if not texts:
            return []
        logger.info("Generating %d embeddings in one batch via %s", len(texts), self.primary.name)
        try:
            vectors = self.primary.embed(list(texts))
        except Exception as exc:
            logger.error("Batch embedding with %s failed: %s", self.primary.name, exc)
            raise EmbeddingFailure(
                f"{self.primary.name} batch embedding failed: {exc}",
                provider=self.primary.name,
                stage="batch",
                cause=exc,
            ) from exc
        return vectors


def calculate_similarity(embedding1: Sequence[float], embedding2: Sequence[float]) -> float:
    """Cosine similarity of two vectors; ``0.0`` when either has zero magnitude."""
    if len(embedding1) != len(embedding2):
        raise ValueError("Embeddings must have the same dimensions")

    dot_product = sum(a * b for a, b in zip(embedding1, embedding2))
    magnitude1 = math.sqrt(sum(a * a for a in embedding1))
    magnitude2 = math.sqrt(sum(b * b for b in embedding2))
    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0
    return dot_product / (magnitude1 * magnitude2)


__all__ = [
    "CohereProvider",
    "OpenAIProvider",
    "EmbeddingClient",
    "calculate_similarity",
]
