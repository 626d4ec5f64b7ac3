"""Free-text semantic search over the indexed entity namespaces."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..models import CrewMember, EntityKind, Flight, JetShareOffer, SimResult, VectorMatch
from ..utils import get_current_timestamp
from .embeddings import EmbeddingClient
from .simulation import from_document
from .storage import Repository
from .text_generator import generate_user_profile_text
from .vector_store import VectorStore, namespace_for

DEFAULT_LIMIT: int = 5

logger = logging.getLogger(__name__)


class SemanticSearch:
    """Embeds a query once per call and hydrates hits from the document store."""

    def __init__(self, repository: Repository, embedder: EmbeddingClient, vector_store: VectorStore) -> None:
        self.repository = repository
        self.embedder = embedder
        self.vector_store = vector_store

    def _query(self, kind: EntityKind, vector: List[float], limit: int) -> List[VectorMatch]:
        return self.vector_store.query(
            vector, limit, filter={"type": kind.value}, namespace=namespace_for(kind)
        )

    def _search(self, kind: EntityKind, query: str, limit: int, user_id: str | None = None) -> List[Any]:
        matches = self._query(kind, self.embedder.encode(query), limit)
        entities = []
        for match in matches:
            entity_id = kind.entity_id(match.id)
            try:
                entity = self.repository.get_entity(kind, entity_id)
            except Exception as exc:
                logger.warning("Skipping %s %s - lookup failed: %s", kind.value, entity_id, exc)
                continue
            if entity is None:
                logger.warning("Skipping %s %s - indexed but missing from the database", kind.value, entity_id)
                continue
            entities.append(entity)
        self._log_search(query, user_id, kind, len(entities))
        return entities

    def _log_search(self, query: str, user_id: str | None, kind: EntityKind | None, count: int) -> None:
        try:
            self.repository.insert_search_log(
                {
                    "query_text": query,
                    "user_id": user_id,
                    "object_type": kind.value if kind else "all",
                    "results_count": count,
                    "timestamp": get_current_timestamp(),
                }
            )
        except Exception as exc:  # pragma: no cover - log store outage
            logger.warning("Failed to log vector search: %s", exc)

    def similar_offers(self, query: str, limit: int = DEFAULT_LIMIT, user_id: str | None = None) -> List[JetShareOffer]:
        return self._search(EntityKind.JETSHARE_OFFER, query, limit, user_id)

    def suggest_offers_for_user(self, user_id: str, limit: int = DEFAULT_LIMIT) -> List[JetShareOffer]:
        """JetShare offers resembling *user_id*'s own profile; empty when the profile is missing."""
        profile = self.repository.get_profile(user_id)
        if profile is None:
            logger.info("No profile for user %s - no offer suggestions", user_id)
            return []
        return self.similar_offers(generate_user_profile_text(profile), limit, user_id)

    def matching_crews(self, query: str, limit: int = DEFAULT_LIMIT, user_id: str | None = None) -> List[CrewMember]:
        return self._search(EntityKind.CREW, query, limit, user_id)

    def related_simulations(self, query: str, limit: int = DEFAULT_LIMIT, user_id: str | None = None) -> List[SimResult]:
        results = []
        for doc in self._search(EntityKind.SIMULATION, query, limit, user_id):
            try:
                results.append(from_document(doc))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping simulation %s - malformed log: %s", doc.get("id"), exc)
        return results

    def find_flights(self, query: str, limit: int = DEFAULT_LIMIT, user_id: str | None = None) -> List[Flight]:
        return self._search(EntityKind.FLIGHT, query, limit, user_id)

    def search_all(
        self,
        query: str,
        limit: int = DEFAULT_LIMIT,
        kinds: Optional[List[EntityKind]] = None,
    ) -> Dict[EntityKind, List[VectorMatch]]:
        """Raw vector hits for *query* in every namespace.

        A namespace whose query fails contributes an empty list; the
        failure is logged and the remaining namespaces are still searched.
        """
        vector = self.embedder.encode(query)
        results: Dict[EntityKind, List[VectorMatch]] = {}
        for kind in kinds or list(EntityKind):
            try:
                results[kind] = self._query(kind, vector, limit)
            except Exception as exc:
                logger.error("Search in namespace '%s' failed: %s", namespace_for(kind), exc)
                results[kind] = []
        self._log_search(query, None, None, sum(len(hits) for hits in results.values()))
        return results


__all__ = ["SemanticSearch"]
