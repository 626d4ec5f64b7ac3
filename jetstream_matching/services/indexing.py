"""Sync entities from the document store into their vector namespace."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Mapping

from ..models import CrewMember, EnrichedProfile, EntityKind, Flight, JetShareOffer
from ..utils import get_current_timestamp
from .embeddings import EmbeddingClient
from .storage import Repository
from .text_generator import generate_entity_text
from .vector_store import VectorStore, namespace_for

logger = logging.getLogger(__name__)


def _user_metadata(profile: EnrichedProfile) -> Dict[str, Any]:
    return {
        "user_id": profile.id,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "industry": profile.professional.industry or None,
        "job_title": profile.professional.job_title or None,
        "interests": profile.interests or None,
        "trip_types": profile.preferences.trip_types or None,
    }


def _flight_metadata(flight: Flight) -> Dict[str, Any]:
    return {
        "flight_id": flight.id,
        "origin": flight.origin_airport,
        "destination": flight.destination_airport,
        "departure_time": flight.departure_time,
        "arrival_time": flight.arrival_time,
        "price": flight.base_price,
        "seats": flight.available_seats,
        "jet_model": flight.jet.model if flight.jet and flight.jet.model else None,
        "status": flight.status,
    }


def _offer_metadata(offer: JetShareOffer) -> Dict[str, Any]:
    return {
        "offer_id": offer.id,
        "departure_location": offer.departure_location,
        "arrival_location": offer.arrival_location,
        "flight_date": offer.flight_date,
        "share_amount": offer.requested_share_amount,
        "total_flight_cost": offer.total_flight_cost,
        "aircraft_model": offer.aircraft_model,
        "status": offer.status,
        "user_id": offer.user_id or None,
    }


def _crew_metadata(crew: CrewMember) -> Dict[str, Any]:
    return {
        "crew_id": crew.id,
        "name": crew.name,
        "role": crew.role,
        "experience_years": crew.experience_years,
        "rating": f"{crew.average_rating:.1f}",
        "available": crew.is_available,
    }


def _simulation_metadata(log: Mapping[str, Any]) -> Dict[str, Any]:
    results = log.get("results_summary") or {}
    metrics = results.get("metrics") or {}
    return {
        "simulation_id": log.get("id"),
        "sim_type": log.get("sim_type"),
        "created_at": log.get("created_at"),
        "fill_rate": f"{float(metrics.get('offer_fill_rate') or 0):.2f}",
        "success_rate": metrics.get("success_percentage"),
        "virtual_users": log.get("virtual_users"),
        "ai_matching": "enabled" if log.get("ai_matching_enabled") else "disabled",
        "summary": results.get("summary_text"),
    }


_METADATA_BUILDERS = {
    EntityKind.USER: _user_metadata,
    EntityKind.FLIGHT: _flight_metadata,
    EntityKind.JETSHARE_OFFER: _offer_metadata,
    EntityKind.CREW: _crew_metadata,
    EntityKind.SIMULATION: _simulation_metadata,
}


def build_metadata(kind: EntityKind, entity: Any) -> Dict[str, Any]:
    """Denormalised metadata stored alongside an entity's vector."""
    kind = EntityKind(kind)
    try:
        builder = _METADATA_BUILDERS[kind]
    except KeyError:
        raise ValueError(f"No metadata builder for entity type: {kind.value}") from None
    metadata = builder(entity)
    metadata["type"] = kind.value
    metadata["updated_at"] = get_current_timestamp()
    return metadata


class EntityIndexer:
    """Embeds entities and keeps exactly one vector record per entity."""

    def __init__(self, repository: Repository, embedder: EmbeddingClient, vector_store: VectorStore) -> None:
        self.repository = repository
        self.embedder = embedder
        self.vector_store = vector_store

    def index_entity(self, kind: EntityKind, entity_id: str) -> bool:
        """Load, embed and upsert one entity; ``False`` when it does not exist."""
        kind = EntityKind(kind)
        entity = self.repository.get_entity(kind, entity_id)
        if entity is None:
            logger.warning("Cannot index %s %s - not found", kind.value, entity_id)
            return False

        text = generate_entity_text(kind, entity)
        metadata = build_metadata(kind, entity)
        self.index_document(kind, entity_id, text, metadata)
        return True

    def index_document(self, kind: EntityKind, entity_id: str, text: str, metadata: Dict[str, Any]) -> None:
        """Embed prepared *text* and upsert it with *metadata*, logging the attempt."""
        kind = EntityKind(kind)
        record_id = kind.record_id(entity_id)
        started = time.monotonic()
        provider = getattr(self.embedder.primary, "name", "unknown")

        try:
            vector, provider = self.embedder.encode_with_provider(text)
            self.vector_store.upsert(record_id, vector, metadata, namespace_for(kind))
        except Exception as exc:
            logger.error("Indexing %s %s failed: %s", kind.value, entity_id, exc)
            provider = getattr(exc, "provider", provider)
            self._log_operation(kind, entity_id, provider, text, started, error=exc)
            raise

        self._log_operation(kind, entity_id, provider, text, started)
        logger.info("Indexed %s %s as %s via %s", kind.value, entity_id, record_id, provider)

    def remove_entity(self, kind: EntityKind, entity_id: str) -> None:
        """Delete an entity's vector; a missing record is not an error."""
        kind = EntityKind(kind)
        self.vector_store.delete(kind.record_id(entity_id), namespace_for(kind))

    # Convenience wrappers ------------------------------------------------

    def sync_user(self, user_id: str) -> bool:
        return self.index_entity(EntityKind.USER, user_id)

    def sync_flight(self, flight_id: str) -> bool:
        return self.index_entity(EntityKind.FLIGHT, flight_id)

    def sync_offer(self, offer_id: str) -> bool:
        return self.index_entity(EntityKind.JETSHARE_OFFER, offer_id)

    def sync_crew(self, crew_id: str) -> bool:
        return self.index_entity(EntityKind.CREW, crew_id)

    def _log_operation(
        self,
        kind: EntityKind,
        entity_id: str,
        provider: str,
        text: str,
        started: float,
        error: Exception | None = None,
    ) -> None:
        document = {
            "provider": provider,
            "object_type": kind.value,
            "object_id": entity_id,
            "success": error is None,
            "error_message": str(error) if error else "",
            "character_count": len(text),
            "processing_time_ms": int((time.monotonic() - started) * 1000),
            "created_at": get_current_timestamp(),
        }
        try:
            self.repository.insert_embedding_log(document)
        except Exception as exc:  # pragma: no cover - log store outage
            logger.warning("Failed to log embedding operation for %s %s: %s", kind.value, entity_id, exc)


__all__ = ["EntityIndexer", "build_metadata"]
