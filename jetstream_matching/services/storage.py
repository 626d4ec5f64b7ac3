"""Persistence layer: MongoDB document access for entities and run logs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from pymongo import DESCENDING
from pymongo.database import Database

from ..models import (
    CrewMember,
    EnrichedProfile,
    EntityKind,
    Flight,
    JetShareOffer,
    TravelRecord,
)
from ..utils import parse_datetime

logger = logging.getLogger(__name__)

# Never return Mongo's internal ObjectId to callers
_NO_OBJECT_ID: Dict[str, int] = {"_id": 0}

_ENTITY_COLLECTIONS: Dict[EntityKind, str] = {
    EntityKind.USER: "profiles",
    EntityKind.FLIGHT: "flights",
    EntityKind.JETSHARE_OFFER: "jetshare_offers",
    EntityKind.CREW: "crews",
    EntityKind.SIMULATION: "simulation_logs",
}


class Repository:
    """Row selection and inserts over the application database."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[EnrichedProfile]:
        """Return the enriched profile for *user_id*, or ``None`` if absent."""
        row = self._db["profiles"].find_one({"id": user_id}, _NO_OBJECT_ID)
        if not row:
            logger.info("No profile found for user %s", user_id)
            return None
        return EnrichedProfile.from_row(row, self._travel_history(user_id))

    def _travel_history(self, user_id: str) -> List[TravelRecord]:
        bookings = list(
            self._db["bookings"]
            .find({"user_id": user_id}, _NO_OBJECT_ID)
            .sort("created_at", DESCENDING)
        )
        flight_ids = [b["flight_id"] for b in bookings if b.get("flight_id")]
        if not flight_ids:
            return []

        flights = {
            f["id"]: f
            for f in self._db["flights"].find({"id": {"$in": flight_ids}}, _NO_OBJECT_ID)
        }
        history: List[TravelRecord] = []
        for booking in bookings:
            flight = flights.get(booking.get("flight_id"))
            if not flight:
                continue
            history.append(
                TravelRecord(
                    origin=flight.get("origin_airport") or "",
                    destination=flight.get("destination_airport") or "",
                    departure_date=parse_datetime(flight.get("departure_time")),
                    flight_id=flight["id"],
                    booking_id=str(booking.get("id") or ""),
                )
            )
        return history

    def get_flight(self, flight_id: str) -> Optional[Flight]:
        """Return the flight joined with its jet and airports, or ``None``."""
        row = self._db["flights"].find_one({"id": flight_id}, _NO_OBJECT_ID)
        if not row:
            return None
        jet = self._db["jets"].find_one({"id": row["jet_id"]}, _NO_OBJECT_ID) if row.get("jet_id") else None
        airports = {
            a["code"]: a
            for a in self._db["airports"].find(
                {"code": {"$in": [row.get("origin_airport"), row.get("destination_airport")]}},
                _NO_OBJECT_ID,
            )
        }
        return Flight.from_row(
            row,
            jet=jet,
            origin=airports.get(row.get("origin_airport")),
            destination=airports.get(row.get("destination_airport")),
        )

    def get_offer(self, offer_id: str) -> Optional[JetShareOffer]:
        row = self._db["jetshare_offers"].find_one({"id": offer_id}, _NO_OBJECT_ID)
        return JetShareOffer.from_row(row) if row else None

    def get_crew(self, crew_id: str) -> Optional[CrewMember]:
        row = self._db["crews"].find_one({"id": crew_id}, _NO_OBJECT_ID)
        if not row:
            return None
        reviews = list(self._db["crew_reviews"].find({"crew_id": crew_id}, _NO_OBJECT_ID))
        return CrewMember.from_row(row, reviews)

    def get_entity(self, kind: EntityKind, entity_id: str) -> Any:
        """Load any embeddable entity by its tag; ``None`` when missing."""
        kind = EntityKind(kind)
        if kind is EntityKind.USER:
            return self.get_profile(entity_id)
        if kind is EntityKind.FLIGHT:
            return self.get_flight(entity_id)
        if kind is EntityKind.JETSHARE_OFFER:
            return self.get_offer(entity_id)
        if kind is EntityKind.CREW:
            return self.get_crew(entity_id)
        return self.get_simulation_log(entity_id)

    def list_entity_ids(self, kind: EntityKind, limit: int | None = None) -> List[str]:
        """Ids of every stored entity of *kind* (newest first for run logs)."""
        cursor = self._db[_ENTITY_COLLECTIONS[EntityKind(kind)]].find({}, {"_id": 0, "id": 1})
        if limit:
            cursor = cursor.limit(limit)
        return [str(row["id"]) for row in cursor if row.get("id")]

    # ------------------------------------------------------------------
    # Simulation logs
    # ------------------------------------------------------------------

    def insert_simulation_log(self, document: Mapping[str, Any]) -> None:
        """Insert one simulation run document."""
        # insert_one mutates its argument by adding _id
        result = self._db["simulation_logs"].insert_one(dict(document))
        logger.info("Stored simulation %s to MongoDB with _id=%s", document.get("id"), result.inserted_id)

    def find_simulation_logs(self, sim_type: str | None = None, limit: int | None = None) -> List[Dict[str, Any]]:
        """Simulation documents, newest first, optionally of one type."""
        query = {"sim_type": sim_type} if sim_type else {}
        cursor = self._db["simulation_logs"].find(query, _NO_OBJECT_ID).sort("created_at", DESCENDING)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def get_simulation_log(self, simulation_id: str) -> Optional[Dict[str, Any]]:
        return self._db["simulation_logs"].find_one({"id": simulation_id}, _NO_OBJECT_ID)

    # ------------------------------------------------------------------
    # Embedding operation log
    # ------------------------------------------------------------------

    def insert_embedding_log(self, document: Mapping[str, Any]) -> None:
        self._db["embedding_logs"].insert_one(dict(document))

    def insert_search_log(self, document: Mapping[str, Any]) -> None:
        self._db["vector_search_logs"].insert_one(dict(document))


__all__ = ["Repository"]
