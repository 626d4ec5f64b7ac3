"""Vector persistence and similarity search, one namespace per entity type.

Two interchangeable implementations share the :class:`VectorStore`
contract: :class:`PineconeVectorStore` talks to the Pinecone SDK directly,
:class:`HttpVectorStore` goes through the web app's ``/api/embedding/*``
proxy routes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

import requests

from ..clients.http_session import get_session
from ..clients.pinecone_client import get_index as get_pinecone_index
from ..config import (
    CREWS_NAMESPACE,
    FLIGHTS_NAMESPACE,
    OFFERS_NAMESPACE,
    SIMULATIONS_NAMESPACE,
    USERS_NAMESPACE,
    Settings,
)
from ..exceptions import ConfigurationError, DimensionMismatchError, VectorStoreError
from ..models import EntityKind, VectorMatch

logger = logging.getLogger(__name__)

_NAMESPACES: Dict[EntityKind, str] = {
    EntityKind.USER: USERS_NAMESPACE,
    EntityKind.FLIGHT: FLIGHTS_NAMESPACE,
    EntityKind.JETSHARE_OFFER: OFFERS_NAMESPACE,
    EntityKind.CREW: CREWS_NAMESPACE,
    EntityKind.SIMULATION: SIMULATIONS_NAMESPACE,
}


def namespace_for(kind: EntityKind) -> str:
    """Return the namespace that holds vectors of *kind*."""
    return _NAMESPACES[EntityKind(kind)]


def _coerce_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        return value.value  # enums
    return str(value)


def coerce_metadata(metadata: Mapping[str, Any]) -> Dict[str, str]:
    """String-coerce metadata values; ``None`` entries are dropped."""
    return {key: _coerce_value(value) for key, value in metadata.items() if value is not None}


def coerce_filter(filter: Mapping[str, Any] | None) -> Dict[str, Any]:
    """String-coerce scalar filter operands so they compare against stored metadata."""
    if not filter:
        return {}
    coerced: Dict[str, Any] = {}
    for key, condition in filter.items():
        if isinstance(condition, Mapping):
            coerced[key] = {
                op: [_coerce_value(v) for v in operand] if isinstance(operand, (list, tuple)) else _coerce_value(operand)
                for op, operand in condition.items()
            }
        else:
            coerced[key] = _coerce_value(condition)
    return coerced


class VectorStore:
    """Contract shared by every vector-store backend."""

    def __init__(self, expected_dimension: int | None = None) -> None:
        self.expected_dimension = expected_dimension

    def _check_dimension(self, values: Sequence[float], action: str) -> None:
        if self.expected_dimension is not None and len(values) != self.expected_dimension:
            raise DimensionMismatchError(
                f"Refusing to {action} a {len(values)}-dimensional vector; "
                f"store expects {self.expected_dimension}"
            )

    def upsert(self, record_id: str, values: Sequence[float], metadata: Mapping[str, Any], namespace: str) -> None:
        raise NotImplementedError

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Mapping[str, Any] | None = None,
        namespace: str = "",
    ) -> List[VectorMatch]:
        raise NotImplementedError

    def delete(self, record_id: str, namespace: str) -> None:
        raise NotImplementedError


def _ranked(matches: List[VectorMatch], top_k: int) -> List[VectorMatch]:
    return sorted(matches, key=lambda m: m.score, reverse=True)[:top_k]


class PineconeVectorStore(VectorStore):
    """Backend calling a :class:`pinecone.Index` directly."""

    def __init__(self, index: Any, expected_dimension: int | None = None) -> None:
        super().__init__(expected_dimension)
        self._index = index

    def upsert(self, record_id: str, values: Sequence[float], metadata: Mapping[str, Any], namespace: str) -> None:
        self._check_dimension(values, "upsert")
        logger.info("Upserting record %s to Pinecone namespace '%s'", record_id, namespace)
        self._index.upsert(
            namespace=namespace,
            vectors=[(record_id, list(values), coerce_metadata(metadata))],
        )

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Mapping[str, Any] | None = None,
        namespace: str = "",
    ) -> List[VectorMatch]:
        self._check_dimension(vector, "query with")
        kwargs: Dict[str, Any] = {
            "namespace": namespace,
            "vector": list(vector),
            "top_k": top_k,
            "include_metadata": True,
        }
        pinecone_filter = coerce_filter(filter)
        if pinecone_filter:
            kwargs["filter"] = pinecone_filter

        query_response = self._index.query(**kwargs)
        matches = [
            VectorMatch(id=match.id, score=float(match.score or 0.0), metadata=dict(match.metadata or {}))
            for match in (query_response.matches or [])
        ]
        logger.info("Pinecone returned %d matches from namespace '%s'", len(matches), namespace)
        return _ranked(matches, top_k)

    def delete(self, record_id: str, namespace: str) -> None:
        # Pinecone treats unknown ids as a no-op
        self._index.delete(ids=[record_id], namespace=namespace)
        logger.info("Deleted Pinecone record %s from namespace '%s'", record_id, namespace)


class HttpVectorStore(VectorStore):
    """Backend proxying through the web app's embedding API routes."""

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        expected_dimension: int | None = None,
    ) -> None:
        super().__init__(expected_dimension)
        self.base_url = base_url.rstrip("/")
        self._session = session

    def _post(self, route: str, payload: Dict[str, Any], *, allow_missing: bool = False) -> Dict[str, Any]:
        session = self._session or get_session()
        response = session.post(f"{self.base_url}/api/embedding/{route}", json=payload)
        if allow_missing and response.status_code == 404:
            return {}
        if not 200 <= response.status_code < 300:
            logger.error("Error from vector API /%s: %s - %s", route, response.status_code, response.text)
            raise VectorStoreError(f"Vector API {route} error: {response.status_code}")
        return response.json() if response.content else {}

    def upsert(self, record_id: str, values: Sequence[float], metadata: Mapping[str, Any], namespace: str) -> None:
        self._check_dimension(values, "upsert")
        logger.info("Upserting record %s via vector API namespace '%s'", record_id, namespace)
        self._post(
            "upsert",
            {
                "id": record_id,
                "values": list(values),
                "metadata": coerce_metadata(metadata),
                "namespace": namespace,
            },
        )

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        filter: Mapping[str, Any] | None = None,
        namespace: str = "",
    ) -> List[VectorMatch]:
        self._check_dimension(vector, "query with")
        data = self._post(
            "query",
            {
                "vector": list(vector),
                "topK": top_k,
                "filter": coerce_filter(filter),
                "includeMetadata": True,
                "namespace": namespace,
            },
        )
        matches = [
            VectorMatch(id=m["id"], score=float(m.get("score") or 0.0), metadata=dict(m.get("metadata") or {}))
            for m in data.get("matches") or []
        ]
        logger.info("Vector API returned %d matches from namespace '%s'", len(matches), namespace)
        return _ranked(matches, top_k)

    def delete(self, record_id: str, namespace: str) -> None:
        self._post("delete", {"id": record_id, "namespace": namespace}, allow_missing=True)
        logger.info("Deleted record %s via vector API namespace '%s'", record_id, namespace)


def build_vector_store(settings: Settings) -> VectorStore:
    """Backend selected by ``settings.vector_backend`` (``pinecone`` or ``http``)."""
    backend = settings.vector_backend.lower()
    if backend == "pinecone":
        index = get_pinecone_index(settings.pinecone_index_name, settings.require("pinecone_api_key"))
        return PineconeVectorStore(index, expected_dimension=settings.embedding_dimensions)
    if backend == "http":
        return HttpVectorStore(
            settings.require("vector_api_base_url"), expected_dimension=settings.embedding_dimensions
        )
    raise ConfigurationError(f"Unknown VECTOR_BACKEND: {settings.vector_backend}")


__all__ = [
    "build_vector_store",
    "namespace_for",
    "coerce_metadata",
    "coerce_filter",
    "VectorStore",
    "PineconeVectorStore",
    "HttpVectorStore",
]
