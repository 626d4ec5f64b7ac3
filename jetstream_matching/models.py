"""Domain models used across the project."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar

from .exceptions import InvalidStatusTransition
from .utils.datetime_utils import parse_datetime

# Type alias for embedding vectors (fixed length per model)
Embedding = List[float]

T = TypeVar("T")


class EntityKind(str, Enum):
    """Explicit tag for every entity type that can be embedded."""

    USER = "user"
    FLIGHT = "flight"
    JETSHARE_OFFER = "jetshare_offer"
    CREW = "crew"
    SIMULATION = "simulation"

    @property
    def record_prefix(self) -> str:
        return "offer" if self is EntityKind.JETSHARE_OFFER else self.value

    def record_id(self, entity_id: str) -> str:
        """Vector record id for *entity_id*, e.g. ``flight-123``."""
        return f"{self.record_prefix}-{entity_id}"

    def entity_id(self, record_id: str) -> str:
        """Inverse of :meth:`record_id`; ids without the prefix pass through."""
        prefix = f"{self.record_prefix}-"
        return record_id[len(prefix):] if record_id.startswith(prefix) else record_id


class FlightStatus(str, Enum):
    SCHEDULED = "scheduled"
    BOARDING = "boarding"
    IN_AIR = "in_air"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OfferStatus(str, Enum):
    OPEN = "open"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# open -> accepted -> completed, with cancellation allowed until completion
OFFER_TRANSITIONS: Dict[OfferStatus, frozenset] = {
    OfferStatus.OPEN: frozenset({OfferStatus.ACCEPTED, OfferStatus.CANCELLED}),
    OfferStatus.ACCEPTED: frozenset({OfferStatus.COMPLETED, OfferStatus.CANCELLED}),
    OfferStatus.COMPLETED: frozenset(),
    OfferStatus.CANCELLED: frozenset(),
}


class SimType(str, Enum):
    JETSHARE = "jetshare"
    PULSE = "pulse"
    MARKETPLACE = "marketplace"


def _str_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Mapping):
        # amenity maps like {"wifi": true, "bar": false}
        return [str(k) for k, enabled in value.items() if enabled]
    return [str(v) for v in value if v]


def _float(value: Any) -> Optional[float]:
    return None if value is None or value == "" else float(value)


def _int(value: Any) -> Optional[int]:
    return None if value is None or value == "" else int(value)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Preferences:
    """Travel preferences a user stated on their profile."""

    preferred_destinations: List[str] = field(default_factory=list)
    trip_types: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    amenity_preferences: List[str] = field(default_factory=list)
    travel_interests: List[str] = field(default_factory=list)
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any] | None) -> "Preferences":
        row = row or {}
        budget = row.get("budget_range") or {}
        return cls(
            preferred_destinations=_str_list(row.get("preferred_destinations")),
            trip_types=_str_list(row.get("trip_types")),
            languages=_str_list(row.get("languages")),
            amenity_preferences=_str_list(row.get("amenity_preferences")),
            travel_interests=_str_list(row.get("travel_interests")),
            budget_min=_float(budget.get("min")),
            budget_max=_float(budget.get("max")),
        )


@dataclass(slots=True)
class ProfessionalDetails:
    industry: str = ""
    job_title: str = ""
    company: str = ""
    expertise: List[str] = field(default_factory=list)


@dataclass(slots=True)
class TravelRecord:
    """One past trip, derived from a booking joined to its flight."""

    origin: str
    destination: str
    departure_date: Optional[datetime] = None
    flight_id: str = ""
    booking_id: str = ""


@dataclass(slots=True)
class EnrichedProfile:
    """Read-time projection of a profile row plus its booking history."""

    id: str
    first_name: str = ""
    last_name: str = ""
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    preferences: Preferences = field(default_factory=Preferences)
    professional: ProfessionalDetails = field(default_factory=ProfessionalDetails)
    interests: List[str] = field(default_factory=list)
    travel_history: List[TravelRecord] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_row(
        cls, row: Mapping[str, Any], travel_history: List[TravelRecord] | None = None
    ) -> "EnrichedProfile":
        """Build a profile from a ``profiles`` document.

        Professional details and interests live inside the stored
        ``preferences`` sub-document, mirroring how the web app saves them.
        """
        prefs = row.get("preferences") or {}
        return cls(
            id=str(row["id"]),
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            avatar_url=row.get("avatar_url"),
            bio=row.get("bio"),
            preferences=Preferences.from_row(prefs),
            professional=ProfessionalDetails(
                industry=prefs.get("industry") or "",
                job_title=prefs.get("job_title") or "",
                company=prefs.get("company") or "",
                expertise=_str_list(prefs.get("expertise")),
            ),
            interests=_str_list(prefs.get("interests")),
            travel_history=list(travel_history or []),
        )


# ---------------------------------------------------------------------------
# Flights
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Jet:
    id: str = ""
    model: str = ""
    manufacturer: str = ""
    capacity: Optional[int] = None
    amenities: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Jet":
        return cls(
            id=str(row.get("id") or ""),
            model=row.get("model") or "",
            manufacturer=row.get("manufacturer") or "",
            capacity=_int(row.get("capacity")),
            amenities=_str_list(row.get("amenities")),
        )


@dataclass(slots=True)
class Flight:
    """A scheduled jet departure."""

    id: str
    origin_airport: str
    destination_airport: str
    departure_time: datetime
    arrival_time: Optional[datetime] = None
    available_seats: int = 0
    base_price: float = 0.0
    status: FlightStatus = FlightStatus.SCHEDULED
    jet: Optional[Jet] = None
    origin_name: Optional[str] = None
    destination_name: Optional[str] = None
    flight_number: Optional[str] = None

    @property
    def amenities(self) -> List[str]:
        return list(self.jet.amenities) if self.jet else []

    @classmethod
    def from_row(
        cls,
        row: Mapping[str, Any],
        jet: Mapping[str, Any] | None = None,
        origin: Mapping[str, Any] | None = None,
        destination: Mapping[str, Any] | None = None,
    ) -> "Flight":
        return cls(
            id=str(row["id"]),
            origin_airport=row.get("origin_airport") or "",
            destination_airport=row.get("destination_airport") or "",
            departure_time=parse_datetime(row["departure_time"]),
            arrival_time=parse_datetime(row.get("arrival_time")),
            available_seats=int(row.get("available_seats") or 0),
            base_price=float(row.get("base_price") or 0),
            status=FlightStatus(row.get("status") or FlightStatus.SCHEDULED.value),
            jet=Jet.from_row(jet) if jet else None,
            origin_name=(origin or {}).get("name"),
            destination_name=(destination or {}).get("name"),
            flight_number=row.get("flight_number"),
        )


# ---------------------------------------------------------------------------
# JetShare offers
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class JetShareOffer:
    """A peer-to-peer seat-cost-sharing listing."""

    id: str
    departure_location: str
    arrival_location: str
    flight_date: date
    total_flight_cost: float
    requested_share_amount: float
    departure_time: Optional[datetime] = None
    aircraft_model: Optional[str] = None
    total_seats: Optional[int] = None
    available_seats: Optional[int] = None
    status: OfferStatus = OfferStatus.OPEN
    user_id: str = ""
    matched_user_id: Optional[str] = None

    def transition(self, new_status: OfferStatus, matched_user_id: str | None = None) -> None:
        """Move the offer to *new_status*, enforcing the offer lifecycle."""
        new_status = OfferStatus(new_status)
        if new_status not in OFFER_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(
                f"Offer {self.id} cannot move from {self.status.value} to {new_status.value}"
            )
        if new_status is OfferStatus.ACCEPTED:
            if not matched_user_id:
                raise InvalidStatusTransition(f"Offer {self.id} needs a matched user to be accepted")
            if matched_user_id == self.user_id:
                raise InvalidStatusTransition(f"Offer {self.id} cannot be accepted by its creator")
            self.matched_user_id = matched_user_id
        self.status = new_status

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "JetShareOffer":
        flight_date = parse_datetime(row["flight_date"])
        return cls(
            id=str(row["id"]),
            departure_location=row.get("departure_location") or "",
            arrival_location=row.get("arrival_location") or "",
            flight_date=flight_date.date(),
            total_flight_cost=float(row.get("total_flight_cost") or 0),
            requested_share_amount=float(row.get("requested_share_amount") or 0),
            departure_time=parse_datetime(row.get("departure_time")),
            aircraft_model=row.get("aircraft_model"),
            total_seats=_int(row.get("total_seats")),
            available_seats=_int(row.get("available_seats")),
            status=OfferStatus(row.get("status") or OfferStatus.OPEN.value),
            user_id=str(row.get("user_id") or ""),
            matched_user_id=row.get("matched_user_id"),
        )


# ---------------------------------------------------------------------------
# Crew
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CrewMember:
    id: str
    name: str
    role: Optional[str] = None
    experience_years: Optional[int] = None
    bio: Optional[str] = None
    specialties: List[str] = field(default_factory=list)
    certifications: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    is_available: bool = True
    home_base: Optional[str] = None
    ratings: List[float] = field(default_factory=list)

    @property
    def average_rating(self) -> float:
        return sum(self.ratings) / len(self.ratings) if self.ratings else 0.0

    @classmethod
    def from_row(cls, row: Mapping[str, Any], reviews: List[Mapping[str, Any]] | None = None) -> "CrewMember":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            role=row.get("role"),
            experience_years=_int(row.get("experience_years")),
            bio=row.get("bio"),
            specialties=_str_list(row.get("specialties")),
            certifications=_str_list(row.get("certifications")),
            languages=_str_list(row.get("languages")),
            is_available=bool(row.get("is_available", True)),
            home_base=row.get("home_base"),
            ratings=[float(r["rating"]) for r in (reviews or []) if r.get("rating") is not None],
        )


# ---------------------------------------------------------------------------
# Vector search & matching results
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class VectorMatch:
    id: str
    score: float
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class FlightCriteria:
    """Caller-supplied constraints for flight matching."""

    origin: Optional[str] = None
    destination: Optional[str] = None
    departure_after: date | datetime | None = None
    departure_before: date | datetime | None = None
    min_seats: Optional[int] = None
    trip_purpose: Optional[str] = None


@dataclass(slots=True)
class FlightMatch:
    flight: Flight
    match_score: float
    match_reasons: List[str]


@dataclass(slots=True)
class CompanionMatch:
    user_id: str
    name: str
    match_score: float
    match_reasons: List[str]
    avatar_url: Optional[str] = None
    compatible_flights: Optional[List[str]] = None


@dataclass(slots=True)
class MatchEnvelope(Generic[T]):
    """Ranked matches plus the number of candidates that could not be hydrated."""

    matches: List[T] = field(default_factory=list)
    dropped_count: int = 0


@dataclass(slots=True)
class MatchQuery:
    user_id: str
    include_flights: bool = True
    include_companions: bool = True
    destination_preference: Optional[str] = None
    date_range: Optional[tuple] = None  # (start, end) datetimes
    trip_purpose: Optional[str] = None
    max_results: int = 10


@dataclass(slots=True)
class MatchingResponse:
    user_id: str
    timestamp: datetime
    recommended_flights: Optional[MatchEnvelope[FlightMatch]] = None
    recommended_companions: Optional[MatchEnvelope[CompanionMatch]] = None
    errors: Dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SimConfig:
    start_date: datetime
    end_date: datetime
    simulation_type: SimType
    virtual_users: int
    use_ai_matching: bool = True
    origin: Optional[str] = None
    destination: Optional[str] = None
    agent_instruction_summary: Optional[str] = None
    triggered_by_user_id: Optional[str] = None
    seed: Optional[int] = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days


@dataclass(slots=True)
class SimMetrics:
    offer_fill_rate: float
    success_percentage: int
    accepted_flights: int
    unfilled_flights: int
    revenue: int
    max_revenue: int
    fee_revenue: int
    creator_cost_recoupment_percentage: int


@dataclass(slots=True)
class SimLogEntry:
    timestamp: datetime
    event: str
    details: str


@dataclass(slots=True)
class SimResult:
    id: str
    timestamp: datetime
    simulation_type: SimType
    config: SimConfig
    metrics: SimMetrics
    log_entries: List[SimLogEntry]
    summary_text: str


__all__ = [
    "Embedding",
    "EntityKind",
    "FlightStatus",
    "OfferStatus",
    "OFFER_TRANSITIONS",
    "SimType",
    "Preferences",
    "ProfessionalDetails",
    "TravelRecord",
    "EnrichedProfile",
    "Jet",
    "Flight",
    "JetShareOffer",
    "CrewMember",
    "VectorMatch",
    "FlightCriteria",
    "FlightMatch",
    "CompanionMatch",
    "MatchEnvelope",
    "MatchQuery",
    "MatchingResponse",
    "SimConfig",
    "SimMetrics",
    "SimLogEntry",
    "SimResult",
]
