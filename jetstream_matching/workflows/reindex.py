"""Re-embed every stored entity and rewrite its vector record."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..logging_config import logging as _  # noqa: F401  # ensure config applied early
from ..clients.mongodb_client import get_database
from ..config import Settings
from ..exceptions import EmbeddingFailure
from ..models import EntityKind
from ..services.embeddings import EmbeddingClient
from ..services.indexing import build_metadata
from ..services.storage import Repository
from ..services.text_generator import generate_entity_text
from ..services.vector_store import VectorStore, build_vector_store, namespace_for

DEFAULT_BATCH_SIZE: int = 50

logger = logging.getLogger(__name__)


def _batches(ids: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(ids), size):
        yield ids[start:start + size]


def run(
    kinds: Optional[List[EntityKind]] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    settings: Settings | None = None,
    *,
    repository: Repository | None = None,
    embedder: EmbeddingClient | None = None,
    vector_store: VectorStore | None = None,
) -> Dict[str, int]:
    """Reindex *kinds* (default: all) and return the run's counters.

    Collaborators not passed in are built from *settings*, which in turn
    defaults to the process environment.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    settings = settings or Settings.from_env()
    repository = repository or Repository(get_database(settings.mongodb_database, settings.mongodb_uri))
    embedder = embedder or EmbeddingClient.from_settings(settings)
    vector_store = vector_store or build_vector_store(settings)

    logger.info("Starting reindex workflow")
    stats = {"found": 0, "missing": 0, "indexed": 0, "failed": 0}

    for kind in kinds or list(EntityKind):
        kind = EntityKind(kind)
        ids = repository.list_entity_ids(kind)
        stats["found"] += len(ids)
        logger.info("Reindexing %d %s records", len(ids), kind.value)

        for batch in _batches(ids, batch_size):
            loaded = []
            for entity_id in batch:
                entity = repository.get_entity(kind, entity_id)
                if entity is None:
                    stats["missing"] += 1
                    continue
                loaded.append((entity_id, entity))
            if not loaded:
                continue

            try:
                vectors = embedder.batch_encode([generate_entity_text(kind, entity) for _, entity in loaded])
            except EmbeddingFailure as exc:
                logger.error("Skipping batch of %d %s records: %s", len(loaded), kind.value, exc)
                stats["failed"] += len(loaded)
                continue

            for (entity_id, entity), vector in zip(loaded, vectors):
                try:
                    vector_store.upsert(
                        kind.record_id(entity_id), vector, build_metadata(kind, entity), namespace_for(kind)
                    )
                except Exception as exc:
                    logger.error("Failed to upsert %s %s: %s", kind.value, entity_id, exc)
                    stats["failed"] += 1
                    continue
                stats["indexed"] += 1

    _log_stats(stats)
    return stats


def _log_stats(stats: Dict[str, int]) -> None:
    logger.info("=== Reindex Statistics ===")
    logger.info("Records found: %d", stats["found"])
    logger.info("Records missing from the database: %d", stats["missing"])
    logger.info("Records indexed: %d", stats["indexed"])
    logger.info("Records failed: %d", stats["failed"])
    logger.info("==========================")

__all__ = ["run"]
