"""Shared test doubles and sample entities."""

import math
from datetime import datetime, date
from types import SimpleNamespace

from jetstream_matching.models import (
    CrewMember,
    EnrichedProfile,
    Flight,
    Jet,
    JetShareOffer,
    Preferences,
    ProfessionalDetails,
)


def _cosine(a, b):
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def _matches_filter(metadata, pinecone_filter):
    for key, condition in (pinecone_filter or {}).items():
        value = metadata.get(key)
        if isinstance(condition, dict):
            for op, operand in condition.items():
                if op == "$eq" and value != operand:
                    return False
                if op == "$ne" and value == operand:
                    return False
                if op == "$in" and value not in operand:
                    return False
        elif value != condition:
            return False
    return True


class FakePineconeIndex:
    """In-memory stand-in for ``pinecone.Index`` (upsert/query/delete)."""

    def __init__(self):
        self.namespaces = {}

    def upsert(self, vectors, namespace=""):
        records = self.namespaces.setdefault(namespace, {})
        for record_id, values, metadata in vectors:
            records[record_id] = (list(values), dict(metadata))

    def query(self, vector, top_k, namespace="", include_metadata=False, filter=None):
        records = self.namespaces.get(namespace, {})
        matches = [
            SimpleNamespace(
                id=record_id,
                score=_cosine(vector, values),
                metadata=dict(metadata) if include_metadata else None,
            )
            for record_id, (values, metadata) in records.items()
            if _matches_filter(metadata, filter)
        ]
        matches.sort(key=lambda m: m.score, reverse=True)
        return SimpleNamespace(matches=matches[:top_k])

    def delete(self, ids, namespace=""):
        records = self.namespaces.get(namespace, {})
        for record_id in ids:
            records.pop(record_id, None)


def make_profile(user_id="user-a", **overrides):
    values = dict(
        id=user_id,
        first_name="Ada",
        last_name="Lovelace",
        avatar_url="https://example.com/ada.png",
        bio="Frequent flyer",
        preferences=Preferences(
            preferred_destinations=["Paris"],
            trip_types=["business"],
            amenity_preferences=["wifi", "bar"],
        ),
        professional=ProfessionalDetails(industry="Technology", job_title="CTO", company="Acme"),
        interests=["golf", "wine"],
    )
    values.update(overrides)
    return EnrichedProfile(**values)


def make_flight(flight_id="f1", **overrides):
    values = dict(
        id=flight_id,
        origin_airport="TEB",
        destination_airport="CDG",
        departure_time=datetime(2025, 6, 1, 9, 30),
        arrival_time=datetime(2025, 6, 1, 21, 0),
        available_seats=4,
        base_price=12000,
        jet=Jet(id="j1", model="G650", manufacturer="Gulfstream", capacity=14, amenities=["WiFi", "Bar"]),
        origin_name="Teterboro",
        destination_name="Paris",
    )
    values.update(overrides)
    return Flight(**values)


def make_offer(offer_id="o1", **overrides):
    values = dict(
        id=offer_id,
        departure_location="NYC",
        arrival_location="LAX",
        flight_date=date(2025, 6, 1),
        total_flight_cost=10000,
        requested_share_amount=2500,
        user_id="user-a",
    )
    values.update(overrides)
    return JetShareOffer(**values)


def make_crew(crew_id="c1", **overrides):
    values = dict(
        id=crew_id,
        name="Sam Pilot",
        role="Captain",
        experience_years=12,
        specialties=["long haul"],
        languages=["English", "French"],
        ratings=[5.0, 4.0],
    )
    values.update(overrides)
    return CrewMember(**values)
