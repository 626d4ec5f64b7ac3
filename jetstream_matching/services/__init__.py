"""Service layer modules grouping business logic by concern.

This module provides convenience re-exports so that callers can simply do for
example `from jetstream_matching.services import MatchingService` without
having to know which underlying module provides the symbol.
"""

from .text_generator import generate_entity_text, generate_embedding_input  # noqa: F401
from .embeddings import EmbeddingClient, calculate_similarity  # noqa: F401
from .vector_store import build_vector_store, HttpVectorStore, PineconeVectorStore  # noqa: F401
from .storage import Repository  # noqa: F401
from .indexing import EntityIndexer  # noqa: F401
from .matching import MatchingService  # noqa: F401
from .background import BackgroundIndexer  # noqa: F401
from .simulation import SimulationEngine  # noqa: F401
from .search import SemanticSearch  # noqa: F401

__all__ = [
    "generate_entity_text",
    "generate_embedding_input",
    "EmbeddingClient",
    "calculate_similarity",
    "build_vector_store",
    "HttpVectorStore",
    "PineconeVectorStore",
    "Repository",
    "EntityIndexer",
    "MatchingService",
    "BackgroundIndexer",
    "SimulationEngine",
    "SemanticSearch",
]
