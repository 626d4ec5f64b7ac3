"""Natural-language summaries of domain entities, used as embedding input.

Every generator is pure: identical input yields identical output, and
optional fields that are missing are left out instead of rendered as
placeholders.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping

from ..models import (
    CrewMember,
    EnrichedProfile,
    EntityKind,
    Flight,
    JetShareOffer,
    SimResult,
)
from ..utils import (
    collapse_whitespace,
    format_currency,
    format_date,
    format_datetime,
    format_time,
    join_values,
    parse_datetime,
    unique_in_order,
)


def generate_user_profile_text(profile: EnrichedProfile) -> str:
    """Describe a user's identity, work, interests and travel habits."""
    prefs = profile.preferences
    work = profile.professional

    parts: List[str] = [f"User {profile.full_name or 'Anonymous'}."]

    if profile.bio:
        parts.append(f"Bio: {collapse_whitespace(profile.bio)}.")

    if work.industry:
        sentence = f"Works in {work.industry}"
        if work.job_title:
            sentence += f" as {work.job_title}"
        if work.company:
            sentence += f" at {work.company}"
        parts.append(sentence + ".")

    if work.expertise:
        parts.append(f"Has expertise in {join_values(work.expertise)}.")
    if profile.interests:
        parts.append(f"Interests include {join_values(profile.interests)}.")
    if prefs.preferred_destinations:
        parts.append(f"Prefers traveling to {join_values(prefs.preferred_destinations)}.")
    if prefs.travel_interests:
        parts.append(f"Interested in {join_values(prefs.travel_interests)} when traveling.")
    if prefs.trip_types:
        parts.append(f"Usually travels for {join_values(prefs.trip_types)}.")
    if prefs.languages:
        parts.append(f"Speaks {join_values(prefs.languages)}.")
    if prefs.budget_min is not None and prefs.budget_max is not None:
        parts.append(
            f"Budget between {format_currency(prefs.budget_min)} and {format_currency(prefs.budget_max)}."
        )

    if profile.travel_history:
        origins = unique_in_order(h.origin for h in profile.travel_history)
        destinations = unique_in_order(h.destination for h in profile.travel_history)
        if origins and destinations:
            parts.append(f"Has traveled from {join_values(origins)} to {join_values(destinations)}.")

    return " ".join(parts)


def _airport_label(code: str, name: str | None) -> str:
    if name and name != code:
        return f"{name} ({code})"
    return code


def generate_flight_text(flight: Flight) -> str:
    """Describe a scheduled flight, its jet and amenities."""
    origin = _airport_label(flight.origin_airport, flight.origin_name)
    destination = _airport_label(flight.destination_airport, flight.destination_name)

    parts: List[str] = [f"Flight from {origin} to {destination}."]
    if flight.flight_number:
        parts.append(f"Flight number: {flight.flight_number}.")
    parts.append(f"Departure: {format_datetime(flight.departure_time)}.")
    if flight.arrival_time:
        parts.append(f"Arrival: {format_datetime(flight.arrival_time)}.")
    parts.append(f"Available seats: {flight.available_seats}.")
    parts.append(f"Price: {format_currency(flight.base_price)}.")

    jet = flight.jet
    if jet:
        jet_name = join_values([jet.manufacturer, jet.model], sep=" ")
        if jet_name:
            sentence = f"Jet: {jet_name}"
            if jet.capacity:
                sentence += f", capacity: {jet.capacity}"
            parts.append(sentence + ".")
        if jet.amenities:
            parts.append(f"Amenities: {join_values(jet.amenities)}.")

    parts.append(f"Status: {flight.status.value}.")
    return " ".join(parts)


def generate_jetshare_offer_text(offer: JetShareOffer) -> str:
    """Describe a JetShare offer: route, date, cost split and seats."""
    parts: List[str] = [
        f"JetShare offer from {offer.departure_location} to {offer.arrival_location}.",
        f"Flight date: {format_date(offer.flight_date)}.",
    ]
    if offer.departure_time:
        parts.append(
            f"Departure time: {format_time(offer.departure_time)} {format_date(offer.departure_time)}."
        )
        parts.append(f"Readable departure: {offer.departure_time:%A}, {format_datetime(offer.departure_time)}.")

    parts.append(
        f"Total cost: {format_currency(offer.total_flight_cost)}."
        f" Share amount: {format_currency(offer.requested_share_amount)}."
    )
    if offer.aircraft_model:
        parts.append(f"Aircraft: {offer.aircraft_model}.")
    if offer.total_seats and offer.available_seats is not None:
        parts.append(f"{offer.available_seats} of {offer.total_seats} seats available.")
    parts.append(f"Status: {offer.status.value}.")
    return " ".join(parts)


def generate_crew_text(crew: CrewMember) -> str:
    """Describe a pilot or cabin crew member."""
    parts: List[str] = [f"Crew member {crew.name}."]
    if crew.role:
        parts.append(f"Role: {crew.role}.")
    if crew.experience_years is not None:
        parts.append(f"Experience: {crew.experience_years} years.")
    if crew.ratings:
        parts.append(f"Rating: {crew.average_rating:.1f} out of 5 ({len(crew.ratings)} reviews).")
    if crew.bio:
        parts.append(f"Bio: {collapse_whitespace(crew.bio)}.")
    if crew.specialties:
        parts.append(f"Specialties: {join_values(crew.specialties)}.")
    if crew.certifications:
        parts.append(f"Certifications: {join_values(crew.certifications)}.")
    if crew.languages:
        parts.append(f"Languages: {join_values(crew.languages)}.")
    if crew.home_base:
        parts.append(f"Home base: {crew.home_base}.")
    parts.append(f"Available: {'Yes' if crew.is_available else 'No'}.")
    return " ".join(parts)


# ---------------------------------------------------------------------------
# Simulation runs
# ---------------------------------------------------------------------------


def _percent(fraction: Any) -> int:
    return round(float(fraction) * 100) if fraction else 0


def _date_label(value: Any) -> str:
    parsed = parse_datetime(value) if value else None
    return format_date(parsed) if parsed else "Unknown"


def generate_embedding_input(log_or_result: SimResult | Mapping[str, Any]) -> str:
    """Embedding input for a simulation run.

    Accepts either a :class:`SimResult` or a stored ``simulation_logs``
    document. The output always carries the run's fill-rate and
    cost-recovery percentages.
    """
    if isinstance(log_or_result, SimResult):
        config = log_or_result.config
        metrics = log_or_result.metrics
        sim_type = log_or_result.simulation_type.value
        start, end = config.start_date, config.end_date
        users = str(config.virtual_users)
        fill_rate = _percent(metrics.offer_fill_rate)
        cost_recovery = metrics.creator_cost_recoupment_percentage
        origin = config.origin or "N/A"
        destination = config.destination or "N/A"
        ai_matching = config.use_ai_matching
        summary = log_or_result.summary_text or "No summary available"
    else:
        log = log_or_result
        params = log.get("input_parameters") or {}
        results = log.get("results_summary") or {}
        metrics_row = results.get("metrics") or {}
        sim_type = str(log.get("sim_type") or "")
        start, end = log.get("start_date"), log.get("end_date")
        users = str(log["virtual_users"]) if log.get("virtual_users") is not None else "Unknown"
        fill_rate = _percent(metrics_row.get("offer_fill_rate"))
        cost_recovery = int(metrics_row.get("creator_cost_recoupment_percentage") or 0)
        origin = params.get("origin") or "N/A"
        destination = params.get("destination") or "N/A"
        ai_matching = bool(log.get("ai_matching_enabled"))
        summary = (
            log.get("agent_instruction_summary")
            or results.get("summary_text")
            or "No summary available"
        )

    lines = [
        f"{sim_type.upper()} simulation",
        f"Date Range: {_date_label(start)} to {_date_label(end)}",
        f"Users: {users}",
        f"Fill Rate: {fill_rate}%",
        f"Cost Recovery: {cost_recovery}%",
        f"Origin: {origin}",
        f"Destination: {destination}",
        f"AI Matching: {'Enabled' if ai_matching else 'Disabled'}",
        f"Summary: {summary}",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Tagged dispatch
# ---------------------------------------------------------------------------

_GENERATORS: Dict[EntityKind, Callable[[Any], str]] = {
    EntityKind.USER: generate_user_profile_text,
    EntityKind.FLIGHT: generate_flight_text,
    EntityKind.JETSHARE_OFFER: generate_jetshare_offer_text,
    EntityKind.CREW: generate_crew_text,
    EntityKind.SIMULATION: generate_embedding_input,
}


def generate_entity_text(kind: EntityKind, entity: Any) -> str:
    """Summarise *entity* using the generator registered for *kind*."""
    try:
        generator = _GENERATORS[EntityKind(kind)]
    except (KeyError, ValueError):
        raise ValueError(f"Unsupported entity type: {kind}") from None
    return generator(entity)


__all__ = [
    "generate_user_profile_text",
    "generate_flight_text",
    "generate_jetshare_offer_text",
    "generate_crew_text",
    "generate_embedding_input",
    "generate_entity_text",
]
