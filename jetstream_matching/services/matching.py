"""Flight and travel-companion recommendations backed by vector search.

Both sub-flows share one shape: load the querying profile, embed a query
built from it, pull ``2 × limit`` candidates from the vector store,
re-hydrate them from the document store, post-filter, explain, rank.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, TypeVar

from ..config import FLIGHTS_NAMESPACE, USERS_NAMESPACE
from ..exceptions import MatchingError, ProfileNotFound
from ..models import (
    CompanionMatch,
    EnrichedProfile,
    EntityKind,
    Flight,
    FlightCriteria,
    FlightMatch,
    MatchEnvelope,
    MatchingResponse,
    MatchQuery,
    VectorMatch,
)
from ..utils import as_utc, format_date, get_current_timestamp
from .embeddings import EmbeddingClient
from .storage import Repository
from .text_generator import generate_user_profile_text
from .vector_store import VectorStore

# ---------------------------------------------------------------------------
# Local matching settings
# ---------------------------------------------------------------------------
CANDIDATE_MULTIPLIER: int = 2
# Companions scoring above this are offered the requested flight as well
COMPATIBLE_FLIGHT_THRESHOLD: float = 0.7
DEFAULT_LIMIT: int = 10

logger = logging.getLogger(__name__)

E = TypeVar("E")


# ---------------------------------------------------------------------------
# Query building and match reasons
# ---------------------------------------------------------------------------


def build_flight_query(profile: EnrichedProfile, criteria: FlightCriteria) -> str:
    """Compose the natural-language flight query for *profile* and *criteria*."""
    prefs = profile.preferences
    query = "Find flights"
    if prefs.preferred_destinations:
        query += f" to {' or '.join(prefs.preferred_destinations)}"
    if prefs.trip_types:
        query += f" for {' or '.join(prefs.trip_types)} travel"
    if prefs.amenity_preferences:
        query += f" with {', '.join(prefs.amenity_preferences)}"

    if criteria.origin:
        query += f" from {criteria.origin}"
    if criteria.destination:
        query += f" to {criteria.destination}"
    if criteria.departure_after:
        query += f" departing after {format_date(criteria.departure_after)}"
    if criteria.departure_before:
        query += f" departing before {format_date(criteria.departure_before)}"
    if criteria.min_seats:
        query += f" with at least {criteria.min_seats} seats"
    if criteria.trip_purpose:
        query += f" for a {criteria.trip_purpose} trip"
    return query


def _lowered(values: List[str]) -> Dict[str, str]:
    return {v.lower(): v for v in values if v}


def flight_match_reasons(profile: EnrichedProfile, flight: Flight) -> List[str]:
    """Explain why *flight* suits *profile*; never returns an empty list."""
    prefs = profile.preferences
    reasons: List[str] = []

    wanted = _lowered(prefs.preferred_destinations)
    for candidate in (flight.destination_airport, flight.destination_name):
        if candidate and candidate.lower() in wanted:
            reasons.append(f"Matches your preferred destination ({wanted[candidate.lower()]})")
            break

    if prefs.amenity_preferences and flight.amenities:
        offered = _lowered(flight.amenities)
        shared = [a for a in prefs.amenity_preferences if a.lower() in offered]
        if shared:
            reasons.append(f"Offers {len(shared)} amenities you prefer")

    if not reasons:
        reasons.append("Matches your general preferences")
    return reasons


def companion_match_reasons(profile: EnrichedProfile, other: EnrichedProfile) -> List[str]:
    """Explain why *other* is a good travel companion for *profile*."""
    reasons: List[str] = []

    industry = profile.professional.industry
    if industry and industry.lower() == other.professional.industry.lower():
        reasons.append(f"Works in the same industry ({other.professional.industry})")

    theirs = _lowered(other.interests)
    common_interests = [i for i in profile.interests if i.lower() in theirs]
    if common_interests:
        reasons.append(f"Shares {len(common_interests)} common interests with you")

    their_destinations = _lowered(other.preferences.preferred_destinations)
    if any(d.lower() in their_destinations for d in profile.preferences.preferred_destinations):
        reasons.append("Likes traveling to similar destinations")

    if not reasons:
        reasons.append("Similar travel profile")
    return reasons


def _passes_post_filters(flight: Flight, criteria: FlightCriteria) -> bool:
    departure = as_utc(flight.departure_time)
    if criteria.departure_after and departure < as_utc(criteria.departure_after):
        return False
    if criteria.departure_before and departure > as_utc(criteria.departure_before):
        return False
    if criteria.min_seats and flight.available_seats < criteria.min_seats:
        return False
    return True


def _flight_filter(criteria: FlightCriteria) -> Dict[str, str]:
    pinecone_filter = {"type": EntityKind.FLIGHT.value}
    if criteria.origin:
        pinecone_filter["origin"] = criteria.origin
    if criteria.destination:
        pinecone_filter["destination"] = criteria.destination
    return pinecone_filter


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class MatchingService:
    """Stateless orchestration of profile lookup, embedding and vector search."""

    def __init__(
        self,
        repository: Repository,
        embedder: EmbeddingClient,
        vector_store: VectorStore,
        *,
        max_workers: int = 2,
    ) -> None:
        self.repository = repository
        self.embedder = embedder
        self.vector_store = vector_store
        self.max_workers = max_workers

    def get_enriched_profile(self, user_id: str) -> Optional[EnrichedProfile]:
        """Return the user's enriched profile, or ``None`` if it does not exist."""
        return self.repository.get_profile(user_id)

    def _require_profile(self, user_id: str) -> EnrichedProfile:
        profile = self.get_enriched_profile(user_id)
        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    def _hydrate(self, loader: Callable[[str], Optional[E]], kind: EntityKind, entity_id: str) -> Optional[E]:
        try:
            entity = loader(entity_id)
        except Exception as exc:
            logger.warning("Dropping %s candidate %s - lookup failed: %s", kind.value, entity_id, exc)
            return None
        if entity is None:
            logger.warning("Dropping %s candidate %s - not found", kind.value, entity_id)
        return entity

    def _candidates(self, query_text: str, limit: int, pinecone_filter: Dict, namespace: str) -> List[VectorMatch]:
        vector = self.embedder.encode(query_text)
        return self.vector_store.query(
            vector, limit * CANDIDATE_MULTIPLIER, filter=pinecone_filter, namespace=namespace
        )

    def find_matching_flights(
        self,
        user_id: str,
        criteria: FlightCriteria | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> MatchEnvelope[FlightMatch]:
        """Rank flights for *user_id*, honouring *criteria*."""
        criteria = criteria or FlightCriteria()
        envelope: MatchEnvelope[FlightMatch] = MatchEnvelope()
        try:
            profile = self._require_profile(user_id)
            query_text = build_flight_query(profile, criteria)
            logger.info("Flight query for user %s: %s", user_id, query_text)

            candidates = self._candidates(query_text, limit, _flight_filter(criteria), FLIGHTS_NAMESPACE)
            for candidate in candidates:
                flight_id = candidate.metadata.get("flight_id") or EntityKind.FLIGHT.entity_id(candidate.id)
                flight = self._hydrate(self.repository.get_flight, EntityKind.FLIGHT, flight_id)
                if flight is None:
                    envelope.dropped_count += 1
                    continue
                if not _passes_post_filters(flight, criteria):
                    continue
                envelope.matches.append(
                    FlightMatch(
                        flight=flight,
                        match_score=candidate.score,
                        match_reasons=flight_match_reasons(profile, flight),
                    )
                )
        except MatchingError:
            raise
        except Exception as exc:
            logger.error("Error finding matching flights for user %s: %s", user_id, exc)
            raise MatchingError("Flight matching failed") from exc

        envelope.matches.sort(key=lambda m: m.match_score, reverse=True)
        del envelope.matches[limit:]
        logger.info(
            "Matched %d flights for user %s (%d candidates dropped)",
            len(envelope.matches), user_id, envelope.dropped_count,
        )
        return envelope

    def find_matching_companions(
        self,
        user_id: str,
        flight_id: str | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> MatchEnvelope[CompanionMatch]:
        """Rank other users whose profiles resemble *user_id*'s."""
        envelope: MatchEnvelope[CompanionMatch] = MatchEnvelope()
        try:
            profile = self._require_profile(user_id)
            pinecone_filter = {"type": EntityKind.USER.value, "user_id": {"$ne": user_id}}
            candidates = self._candidates(
                generate_user_profile_text(profile), limit, pinecone_filter, USERS_NAMESPACE
            )
            for candidate in candidates:
                other_id = candidate.metadata.get("user_id") or EntityKind.USER.entity_id(candidate.id)
                if other_id == user_id:
                    continue
                other = self._hydrate(self.repository.get_profile, EntityKind.USER, other_id)
                if other is None:
                    envelope.dropped_count += 1
                    continue
                compatible = [flight_id] if flight_id and candidate.score > COMPATIBLE_FLIGHT_THRESHOLD else None
                envelope.matches.append(
                    CompanionMatch(
                        user_id=other.id,
                        name=other.full_name,
                        avatar_url=other.avatar_url,
                        match_score=candidate.score,
                        match_reasons=companion_match_reasons(profile, other),
                        compatible_flights=compatible,
                    )
                )
        except MatchingError:
            raise
        except Exception as exc:
            logger.error("Error finding matching companions for user %s: %s", user_id, exc)
            raise MatchingError("Companion matching failed") from exc

        envelope.matches.sort(key=lambda m: m.match_score, reverse=True)
        del envelope.matches[limit:]
        logger.info(
            "Matched %d companions for user %s (%d candidates dropped)",
            len(envelope.matches), user_id, envelope.dropped_count,
        )
        return envelope

    def find_matches(self, query: MatchQuery) -> MatchingResponse:
        """Run flight and companion matching concurrently.

        A failure in one branch is logged and reported in
        ``MatchingResponse.errors``; the other branch's results are still
        returned.
        """
        start, end = query.date_range or (None, None)
        criteria = FlightCriteria(
            destination=query.destination_preference,
            departure_after=start,
            departure_before=end,
            trip_purpose=query.trip_purpose,
        )
        response = MatchingResponse(user_id=query.user_id, timestamp=get_current_timestamp())

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="matching") as pool:
            futures = {}
            if query.include_flights:
                futures["flights"] = pool.submit(
                    self.find_matching_flights, query.user_id, criteria, query.max_results
                )
            if query.include_companions:
                futures["companions"] = pool.submit(
                    self.find_matching_companions, query.user_id, None, query.max_results
                )

            for branch, future in futures.items():
                try:
                    result = future.result()
                except Exception as exc:
                    logger.error("%s matching failed for user %s: %s", branch.capitalize(), query.user_id, exc)
                    response.errors[branch] = str(exc)
                    continue
                if branch == "flights":
                    response.recommended_flights = result
                else:
                    response.recommended_companions = result

        return response


__all__ = [
    "MatchingService",
    "build_flight_query",
    "flight_match_reasons",
    "companion_match_reasons",
]
