"""Request/response models shared by the CLI and the HTTP server."""

import random
from dataclasses import asdict
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from episteme.application.config import AppConfig
from episteme.application.factory import (
    get_queue_builder,
    get_seed_weights,
    get_simulation_session,
    get_update_function,
)
from episteme.application.scheduling.card_rules import CardClassifier
from episteme.application.scheduling.preview import scheduling_preview
from episteme.application.scheduling.quota import admission_kind_for
from episteme.application.simulation.projection import interval_table, metric_series
from episteme.domain.constants import DEFAULT_SEQUENCES
from episteme.domain.scheduling.models import GRADE_NAMES, Card, CardState
from episteme.domain.scheduling.weights import WeightVector
from episteme.domain.simulation.models import MetricType, SequenceSimulation


def _assume_local(v: datetime | None) -> datetime | None:
    # Naive timestamps are local wall-clock time.
    if v is not None and v.tzinfo is None:
        return v.astimezone()
    return v


class CardPayload(BaseModel):
    """A stored card record. `state` accepts 0-3 or a state name."""

    card_id: str | int | None = None
    state: CardState = CardState.NEW
    due: datetime | None = None
    stability: float | None = None
    difficulty: float | None = None
    lapses: int = Field(default=0, ge=0)
    reps: int = Field(default=0, ge=0)
    scheduled_days: float | None = None
    suspended: bool = False
    buried_until: datetime | None = None
    last_review: datetime | None = None
    learning_step: int | None = None
    created_at: datetime | None = None

    @field_validator("state", mode="before")
    @classmethod
    def parse_state_name(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.isdigit():
            try:
                return CardState[v.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown card state {v!r}") from None
        if isinstance(v, str):
            return int(v)
        return v

    @field_validator("due", "buried_until", "last_review", "created_at")
    @classmethod
    def assume_local_time(cls, v: datetime | None) -> datetime | None:
        return _assume_local(v)

    def to_card(self) -> Card:
        return Card(**self.model_dump())


class CardClassification(BaseModel):
    card_id: str | int | None
    state: str
    active: bool
    due: bool
    available: bool
    maturity: str | None
    admission: str


class MaturityCounts(BaseModel):
    new: int
    learning: int
    young: int
    mature: int
    suspended: int
    buried: int


class ClassifyRequest(BaseModel):
    cards: list[CardPayload]
    now: datetime | None = None

    @field_validator("now")
    @classmethod
    def assume_local_now(cls, v: datetime | None) -> datetime | None:
        return _assume_local(v)


class ClassifyResponse(BaseModel):
    today: str
    due_count: int
    cards: list[CardClassification]
    breakdown: MaturityCounts


def classify_cards(
    classifier: CardClassifier, cards: list[Card], now: datetime
) -> ClassifyResponse:
    results = []
    for card in cards:
        maturity = classifier.maturity(card)
        results.append(
            CardClassification(
                card_id=card.card_id,
                state=card.state.name.lower(),
                active=classifier.is_active(card, now),
                due=classifier.is_due(card, now),
                available=classifier.is_available(card, now),
                maturity=maturity.value if maturity else None,
                admission=admission_kind_for(card).value,
            )
        )

    breakdown = classifier.maturity_breakdown(cards, now)
    return ClassifyResponse(
        today=classifier.boundary.today_key(now),
        due_count=sum(1 for r in results if r.due),
        cards=results,
        breakdown=MaturityCounts(**asdict(breakdown)),
    )


class QueueRequest(BaseModel):
    cards: list[CardPayload]
    now: datetime | None = None
    reviewed_today: list[str | int] = Field(default_factory=list)
    new_studied_today: int = Field(default=0, ge=0)
    reviews_done_today: int = Field(default=0, ge=0)
    ignore_daily_limits: bool = False
    seed: int | None = None  # fixes the shuffle for random orders

    @field_validator("now")
    @classmethod
    def assume_local_now(cls, v: datetime | None) -> datetime | None:
        return _assume_local(v)


class QueueEntry(BaseModel):
    card_id: str | int | None
    state: str
    section: str  # learning, review, new or pending


class QueueResponse(BaseModel):
    today: str
    learning_count: int
    review_count: int
    new_count: int
    pending_count: int
    cards: list[QueueEntry]


def handle_queue(config: AppConfig, req: QueueRequest, now: datetime) -> QueueResponse:
    """Build today's queue, charging the studied-today counts to the budget first."""
    builder = get_queue_builder(config, rng=random.Random(req.seed))
    day = builder.classifier.boundary.day_index(now)
    builder.quota.restore_usage(day, new=req.new_studied_today, reviews=req.reviews_done_today)

    queue = builder.build(
        [c.to_card() for c in req.cards],
        now,
        reviewed_today=set(req.reviewed_today),
        ignore_daily_limits=req.ignore_daily_limits,
    )

    def entry(card: Card, section: str) -> QueueEntry:
        return QueueEntry(card_id=card.card_id, state=card.state.name.lower(), section=section)

    entries = [entry(c, "learning") for c in queue.due_learning]
    entries += [entry(c, admission_kind_for(c).value) for c in queue.main]
    entries += [entry(c, "pending") for c in queue.pending_learning]
    return QueueResponse(
        today=builder.classifier.boundary.today_key(now),
        learning_count=len(queue.due_learning),
        review_count=queue.review_count,
        new_count=queue.new_count,
        pending_count=len(queue.pending_learning),
        cards=entries,
    )


class PreviewRequest(BaseModel):
    card: CardPayload
    now: datetime | None = None
    weights: list[float] | None = None  # None = configured/default weights
    desired_retention: float | None = None

    @field_validator("now")
    @classmethod
    def assume_local_now(cls, v: datetime | None) -> datetime | None:
        return _assume_local(v)


class RatingPreviewOut(BaseModel):
    rating: int
    name: str
    state: str
    due: datetime
    interval_minutes: float
    label: str


class PreviewResponse(BaseModel):
    card_id: str | int | None
    desired_retention: float
    options: list[RatingPreviewOut]


def handle_preview(config: AppConfig, req: PreviewRequest, now: datetime) -> PreviewResponse:
    """Due date and interval label for each of the four ratings."""
    seed = get_seed_weights(config)
    weights = WeightVector(
        tuple(req.weights) if req.weights is not None else seed.weights,
        req.desired_retention if req.desired_retention is not None else seed.desired_retention,
    )
    card = req.card.to_card()
    previews = scheduling_preview(get_update_function(config), card, weights, now)
    return PreviewResponse(
        card_id=card.card_id,
        desired_retention=weights.desired_retention,
        options=[
            RatingPreviewOut(
                rating=int(p.rating),
                name=GRADE_NAMES[p.rating],
                state=p.state.name.lower(),
                due=p.due,
                interval_minutes=p.interval_minutes,
                label=p.label,
            )
            for p in previews
        ],
    )


class SimulateRequest(BaseModel):
    sequences: list[str] = Field(default_factory=lambda: list(DEFAULT_SEQUENCES))
    weights: list[float] | None = None  # None = configured/default weights
    desired_retention: float | None = None
    metric: MetricType = MetricType.INTERVAL


class ReviewOut(BaseModel):
    review_number: int
    grade: int
    interval: float
    stability: float
    difficulty: float
    cumulative_interval: float


class SimulationOut(BaseModel):
    sequence: str
    reviews: list[ReviewOut]
    series: list[float]


class IntervalTableOut(BaseModel):
    header: list[str]
    rows: list[list[str]]


class SimulateResponse(BaseModel):
    metric: MetricType
    weights: list[float]
    desired_retention: float
    simulations: list[SimulationOut]
    table: IntervalTableOut
    discarded: list[str] = Field(default_factory=list)


def build_simulate_response(
    simulations: list[SequenceSimulation],
    metric: MetricType,
    weights: list[float],
    desired_retention: float,
    discarded: list[str],
) -> SimulateResponse:
    table = interval_table(simulations)
    return SimulateResponse(
        metric=metric,
        weights=weights,
        desired_retention=desired_retention,
        simulations=[
            SimulationOut(
                sequence=sim.sequence,
                reviews=[ReviewOut(**asdict(r)) for r in sim.reviews],
                series=metric_series(sim.reviews, metric),
            )
            for sim in simulations
        ],
        table=IntervalTableOut(header=table.header(), rows=[row.cells() for row in table.rows]),
        discarded=discarded,
    )


def handle_simulate(config: AppConfig, req: SimulateRequest) -> SimulateResponse:
    """Run a one-shot simulation; malformed sequences are dropped and reported."""
    session = get_simulation_session(config)
    discarded = session.set_sequences(req.sequences)

    if req.weights is not None:
        session.set_all_weights(req.weights)
    if req.desired_retention is not None:
        session.set_retention(req.desired_retention, clamp=False)

    simulations = session.run()
    params = session.parameters
    return build_simulate_response(
        simulations,
        metric=req.metric,
        weights=list(params.weights),
        desired_retention=params.desired_retention,
        discarded=discarded,
    )
