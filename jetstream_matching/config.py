"""Centralised configuration for jetstream_matching.

Environment variables are loaded once and all related constants are
grouped by service for easier maintenance. Services never read these
globals directly; they receive a :class:`Settings` instance (or the
collaborators built from one) at construction time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Core credentials (from environment)
# ---------------------------------------------------------------------------
COHERE_API_KEY: str | None = os.getenv("COHERE_API_KEY")
OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
PINECONE_API_KEY: str | None = os.getenv("PINECONE_API_KEY")
MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://localhost:27017")

# ---------------------------------------------------------------------------
# Cross-cutting service settings
# (referenced in more than one component)
# ---------------------------------------------------------------------------
PINECONE_INDEX_NAME: str = os.getenv("PINECONE_INDEX_NAME", "jetstream")
VECTOR_API_BASE_URL: str | None = os.getenv("VECTOR_API_BASE_URL")
VECTOR_BACKEND: str = os.getenv("VECTOR_BACKEND", "pinecone")
MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "jetstream")

# One namespace per entity type
USERS_NAMESPACE: str = "users"
FLIGHTS_NAMESPACE: str = "flights"
OFFERS_NAMESPACE: str = "offers"
CREWS_NAMESPACE: str = "crews"
SIMULATIONS_NAMESPACE: str = "simulations"

# ---------------------------------------------------------------------------
# Embedding models
# Cohere embed-english-v3.0 emits 1024 floats; the OpenAI fallback is asked
# for the same length so both providers can write into one namespace.
# ---------------------------------------------------------------------------
COHERE_MODEL: str = "embed-english-v3.0"
OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-large"
EMBEDDING_DIMENSIONS: int = 1024


@dataclass(frozen=True, slots=True)
class Settings:
    """Explicit configuration handed to clients and services."""

    cohere_api_key: str | None = None
    openai_api_key: str | None = None
    pinecone_api_key: str | None = None
    pinecone_index_name: str = PINECONE_INDEX_NAME
    vector_api_base_url: str | None = None
    vector_backend: str = VECTOR_BACKEND
    mongodb_uri: str = MONGODB_URI
    mongodb_database: str = MONGODB_DATABASE
    cohere_model: str = COHERE_MODEL
    openai_embedding_model: str = OPENAI_EMBEDDING_MODEL
    embedding_dimensions: int = EMBEDDING_DIMENSIONS

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current process environment."""
        return cls(
            cohere_api_key=os.getenv("COHERE_API_KEY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            pinecone_api_key=os.getenv("PINECONE_API_KEY"),
            pinecone_index_name=os.getenv("PINECONE_INDEX_NAME", PINECONE_INDEX_NAME),
            vector_api_base_url=os.getenv("VECTOR_API_BASE_URL"),
            vector_backend=os.getenv("VECTOR_BACKEND", VECTOR_BACKEND),
            mongodb_uri=os.getenv("MONGODB_URI", MONGODB_URI),
            mongodb_database=os.getenv("MONGODB_DATABASE", MONGODB_DATABASE),
        )

    def require(self, name: str) -> str:
        """Return the value of setting *name* or raise :class:`ConfigurationError`."""
        value = getattr(self, name)
        if not value:
            raise ConfigurationError(f"{name.upper()} is not set in environment variables")
        return value


# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # credentials
    "COHERE_API_KEY",
    "OPENAI_API_KEY",
    "PINECONE_API_KEY",
    "MONGODB_URI",
    # shared
    "PINECONE_INDEX_NAME",
    "VECTOR_API_BASE_URL",
    "VECTOR_BACKEND",
    "MONGODB_DATABASE",
    "USERS_NAMESPACE",
    "FLIGHTS_NAMESPACE",
    "OFFERS_NAMESPACE",
    "CREWS_NAMESPACE",
    "SIMULATIONS_NAMESPACE",
    # embeddings
    "COHERE_MODEL",
    "OPENAI_EMBEDDING_MODEL",
    "EMBEDDING_DIMENSIONS",
    "Settings",
]
