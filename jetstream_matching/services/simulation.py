"""Synthetic marketplace simulations.

The numbers produced here are randomized demo figures, not predictions.
Every run is persisted to ``simulation_logs`` and then, best-effort and
off the caller's thread, embedded into the ``simulations`` namespace so
past runs can be found by semantic search.
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from dataclasses import asdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional

from ..models import EntityKind, SimConfig, SimLogEntry, SimMetrics, SimResult, SimType
from ..utils import format_currency, format_date, get_current_timestamp, parse_datetime, to_iso
from .background import BackgroundIndexer
from .indexing import EntityIndexer, build_metadata
from .storage import Repository
from .text_generator import generate_embedding_input

# ---------------------------------------------------------------------------
# Local simulation settings
# ---------------------------------------------------------------------------
BASE_FILL_RATE_RANGE = (0.50, 0.70)
AI_FILL_RATE_BOOST_RANGE = (0.20, 0.25)
MAX_FILL_RATE: float = 0.95
FLIGHTS_PER_USER_DAY_RANGE = (0.10, 0.15)
FLIGHT_COST_RANGE = (15_000.0, 25_000.0)
SHARER_PRICE_VARIATION = (0.95, 1.05)
AI_REVENUE_BOOST_RANGE = (1.05, 1.15)
FEE_RATE: float = 0.05
MAX_SUCCESS_PERCENTAGE: int = 95
RECENT_SUMMARY_COUNT: int = 5

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure generators
# ---------------------------------------------------------------------------


def generate_metrics(config: SimConfig, rng: random.Random) -> SimMetrics:
    """Randomized metrics for *config*; AI matching lifts the fill rate."""
    days = max(config.days, 1)

    fill_rate = rng.uniform(*BASE_FILL_RATE_RANGE)
    if config.use_ai_matching:
        fill_rate += rng.uniform(*AI_FILL_RATE_BOOST_RANGE)
    fill_rate = min(MAX_FILL_RATE, fill_rate)

    potential_flights = math.ceil(config.virtual_users * days * rng.uniform(*FLIGHTS_PER_USER_DAY_RANGE))
    accepted_flights = round(potential_flights * fill_rate)
    unfilled_flights = potential_flights - accepted_flights

    flight_cost = rng.uniform(*FLIGHT_COST_RANGE)
    max_revenue = potential_flights * flight_cost
    revenue = accepted_flights * flight_cost * rng.uniform(*SHARER_PRICE_VARIATION)
    if config.use_ai_matching:
        revenue *= rng.uniform(*AI_REVENUE_BOOST_RANGE)

    cost_of_accepted = accepted_flights * flight_cost
    recoupment = min(100, round(revenue / cost_of_accepted * 100)) if cost_of_accepted > 0 else 0
    success = min(MAX_SUCCESS_PERCENTAGE, round(fill_rate * 100 + rng.uniform(0, 10)))

    return SimMetrics(
        offer_fill_rate=fill_rate,
        success_percentage=success,
        accepted_flights=accepted_flights,
        unfilled_flights=unfilled_flights,
        revenue=round(revenue),
        max_revenue=round(max_revenue),
        fee_revenue=round(revenue * FEE_RATE),
        creator_cost_recoupment_percentage=recoupment,
    )


def generate_log_entries(
    config: SimConfig,
    metrics: SimMetrics,
    rng: random.Random,
    started_at: datetime | None = None,
) -> List[SimLogEntry]:
    """The fixed six-step narrative of a run, with increasing timestamps."""
    sim_type = config.simulation_type.value.upper()
    fill_percent = round(metrics.offer_fill_rate * 100)
    total_flights = metrics.accepted_flights + metrics.unfilled_flights
    if config.use_ai_matching:
        matching = f"AI matching enabled: fill rate improved to {fill_percent}%"
    else:
        matching = f"AI matching disabled: baseline fill rate {fill_percent}%"

    events = [
        ("Simulation Started",
         f"Starting {sim_type} simulation from {format_date(config.start_date)} to {format_date(config.end_date)}"),
        ("Virtual Users Generated", f"Generated {config.virtual_users} virtual users"),
        ("Preference Modeling", f"Modeled travel preferences for {config.virtual_users} users"),
        ("Booking Simulation",
         f"Simulated {total_flights} potential flights: "
         f"{metrics.accepted_flights} accepted, {metrics.unfilled_flights} unfilled"),
        ("AI Matching", matching),
        ("Simulation Completed",
         f"Simulation completed with {fill_percent}% fill rate and {format_currency(metrics.revenue)} revenue"),
    ]

    moment = started_at or get_current_timestamp()
    entries: List[SimLogEntry] = []
    for event, details in events:
        moment = moment + timedelta(milliseconds=rng.randint(200, 1500))
        entries.append(SimLogEntry(timestamp=moment, event=event, details=details))
    return entries


def generate_summary_text(config: SimConfig, metrics: SimMetrics) -> str:
    """One sentence quoting the run's fill-rate and cost-recovery percentages."""
    route = ""
    if config.origin and config.destination:
        route = f" from {config.origin} to {config.destination}"
    matching = "with AI matching enabled" if config.use_ai_matching else "without AI matching"
    return (
        f"{config.simulation_type.value.capitalize()} simulation for {config.virtual_users} users{route} "
        f"over {config.days} days achieved a {round(metrics.offer_fill_rate * 100)}% fill rate "
        f"and recovered {metrics.creator_cost_recoupment_percentage}% of costs {matching}."
    )


# ---------------------------------------------------------------------------
# Document conversion
# ---------------------------------------------------------------------------


def to_document(result: SimResult) -> Dict[str, Any]:
    """``simulation_logs`` document for *result*; nested values are JSON-compatible."""
    config = result.config
    return {
        "id": result.id,
        "sim_type": result.simulation_type.value,
        "start_date": config.start_date.date().isoformat(),
        "end_date": config.end_date.date().isoformat(),
        "virtual_users": config.virtual_users,
        "ai_matching_enabled": config.use_ai_matching,
        "input_parameters": {
            "start_date": to_iso(config.start_date),
            "end_date": to_iso(config.end_date),
            "simulation_type": config.simulation_type.value,
            "virtual_users": config.virtual_users,
            "use_ai_matching": config.use_ai_matching,
            "origin": config.origin,
            "destination": config.destination,
            "seed": config.seed,
        },
        "results_summary": {
            "metrics": asdict(result.metrics),
            "summary_text": result.summary_text,
            "log_entries": [
                {"timestamp": to_iso(entry.timestamp), "event": entry.event, "details": entry.details}
                for entry in result.log_entries
            ],
        },
        "agent_instruction_summary": config.agent_instruction_summary or result.summary_text,
        "triggered_by_user_id": config.triggered_by_user_id,
        "created_at": result.timestamp,
    }


def from_document(document: Mapping[str, Any]) -> SimResult:
    """Rebuild a :class:`SimResult` from a stored ``simulation_logs`` document."""
    params = document.get("input_parameters") or {}
    results = document.get("results_summary") or {}
    sim_type = SimType(document["sim_type"])
    summary_text = results.get("summary_text") or document.get("agent_instruction_summary") or ""

    agent_summary = document.get("agent_instruction_summary")
    config = SimConfig(
        start_date=parse_datetime(params.get("start_date") or document.get("start_date")),
        end_date=parse_datetime(params.get("end_date") or document.get("end_date")),
        simulation_type=sim_type,
        virtual_users=int(params.get("virtual_users", document.get("virtual_users") or 0)),
        use_ai_matching=bool(params.get("use_ai_matching", document.get("ai_matching_enabled"))),
        origin=params.get("origin"),
        destination=params.get("destination"),
        agent_instruction_summary=agent_summary if agent_summary != summary_text else None,
        triggered_by_user_id=document.get("triggered_by_user_id"),
        seed=params.get("seed"),
    )
    return SimResult(
        id=str(document["id"]),
        timestamp=parse_datetime(document.get("created_at")),
        simulation_type=sim_type,
        config=config,
        metrics=SimMetrics(**(results.get("metrics") or {})),
        log_entries=[
            SimLogEntry(
                timestamp=parse_datetime(entry.get("timestamp")),
                event=entry.get("event") or "",
                details=entry.get("details") or "",
            )
            for entry in results.get("log_entries") or []
        ],
        summary_text=summary_text,
    )


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class SimulationEngine:
    """Runs, stores and looks up simulations."""

    def __init__(
        self,
        repository: Repository,
        indexer: EntityIndexer | None = None,
        background: BackgroundIndexer | None = None,
    ) -> None:
        self.repository = repository
        self.indexer = indexer
        self.background = background or (BackgroundIndexer() if indexer is not None else None)

    def run_simulation(self, config: SimConfig) -> SimResult:
        """Generate, persist and (in the background) index one simulation run.

        A persistence failure propagates to the caller. Indexing failures
        are only logged.
        """
        rng = random.Random(config.seed)
        timestamp = get_current_timestamp()
        metrics = generate_metrics(config, rng)
        result = SimResult(
            id=str(uuid.uuid4()),
            timestamp=timestamp,
            simulation_type=config.simulation_type,
            config=config,
            metrics=metrics,
            log_entries=generate_log_entries(config, metrics, rng, started_at=timestamp),
            summary_text=generate_summary_text(config, metrics),
        )
        logger.info(
            "Simulation %s (%s, %d users, AI matching %s): fill rate %.2f",
            result.id, config.simulation_type.value, config.virtual_users,
            "on" if config.use_ai_matching else "off", metrics.offer_fill_rate,
        )

        self.repository.insert_simulation_log(to_document(result))

        if self.indexer is None:
            logger.debug("No indexer configured - simulation %s not indexed", result.id)
        else:
            try:
                self.background.submit(f"index simulation {result.id}", self.index_simulation, result)
            except RuntimeError as exc:
                logger.error("Could not schedule indexing for simulation %s: %s", result.id, exc)
        return result

    def prepare_for_embedding(self, result: SimResult) -> Dict[str, Any]:
        """Vector record id, embedding input and metadata for *result*."""
        return {
            "id": EntityKind.SIMULATION.record_id(result.id),
            "embed_input": generate_embedding_input(result),
            "metadata": build_metadata(EntityKind.SIMULATION, to_document(result)),
        }

    def index_simulation(self, result: SimResult) -> bool:
        """Embed *result* into the simulations namespace; ``False`` on failure."""
        if self.indexer is None:
            return False
        record = self.prepare_for_embedding(result)
        try:
            self.indexer.index_document(
                EntityKind.SIMULATION, result.id, record["embed_input"], record["metadata"]
            )
        except Exception as exc:
            logger.error("Failed to index simulation %s in vector database: %s", result.id, exc)
            return False
        return True

    def get_recent_simulations(self, limit: int = 10) -> List[SimResult]:
        return [from_document(doc) for doc in self.repository.find_simulation_logs(limit=limit)]

    def get_simulation_by_id(self, simulation_id: str) -> Optional[SimResult]:
        document = self.repository.get_simulation_log(simulation_id)
        return from_document(document) if document else None

    def get_stats_by_type(self, sim_type: SimType) -> Dict[str, Any]:
        """Aggregate statistics over every stored run of *sim_type*.

        ``ai_improvement_factor`` is the ratio of mean fill rates with and
        without AI matching (``1.0`` when there are no runs without it).
        """
        documents = self.repository.find_simulation_logs(SimType(sim_type).value)
        if not documents:
            return {
                "count": 0,
                "average_fill_rate": 0.0,
                "average_success_rate": 0.0,
                "ai_improvement_factor": 0.0,
                "recent_simulations": [],
            }

        def metrics(doc: Mapping[str, Any]) -> Mapping[str, Any]:
            return (doc.get("results_summary") or {}).get("metrics") or {}

        fill_rates = [float(metrics(d).get("offer_fill_rate") or 0) for d in documents]
        with_ai = [float(metrics(d).get("offer_fill_rate") or 0) for d in documents if d.get("ai_matching_enabled")]
        without_ai = [
            float(metrics(d).get("offer_fill_rate") or 0) for d in documents if not d.get("ai_matching_enabled")
        ]
        baseline = _mean(without_ai)

        return {
            "count": len(documents),
            "average_fill_rate": _mean(fill_rates) * 100,
            "average_success_rate": _mean([float(metrics(d).get("success_percentage") or 0) for d in documents]),
            "ai_improvement_factor": _mean(with_ai) / baseline if baseline > 0 else 1.0,
            "recent_simulations": [
                {
                    "id": d.get("id"),
                    "timestamp": d.get("created_at"),
                    "summary_text": (d.get("results_summary") or {}).get("summary_text")
                    or d.get("agent_instruction_summary"),
                }
                for d in documents[:RECENT_SUMMARY_COUNT]
            ],
        }

    def shutdown(self, wait: bool = True) -> None:
        if self.background is not None:
            self.background.shutdown(wait=wait)


__all__ = [
    "SimulationEngine",
    "generate_metrics",
    "generate_log_entries",
    "generate_summary_text",
    "to_document",
    "from_document",
]
