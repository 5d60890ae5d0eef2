"""
UpdateFunction adapter backed by py-fsrs.

Wraps fsrs.Scheduler (FSRS v6, 21 weights) with fuzzing disabled, so the
same card, rating, weights and time always give the same result.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from fsrs import Card as FsrsCard
from fsrs import Rating as FsrsRating
from fsrs import Scheduler
from fsrs import State as FsrsState

from episteme.application.scheduling.card_rules import check_transition, validate_card
from episteme.domain.constants import (
    DEFAULT_LEARNING_STEPS_MINUTES,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_RELEARNING_STEPS_MINUTES,
)
from episteme.domain.errors import InvalidTransitionError
from episteme.domain.scheduling.models import Card, CardState, Rating
from episteme.domain.scheduling.ports import UpdateFunction
from episteme.domain.scheduling.weights import WeightVector

logger = logging.getLogger(__name__)

# fsrs only uses the id to seed fuzzing, which is always off here.
_SYNTHETIC_FSRS_ID = 0


def _to_utc(value: datetime) -> datetime:
    """fsrs requires timezone-aware UTC datetimes; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _like(value: datetime, reference: datetime) -> datetime:
    """Express a UTC datetime in the same flavour (naive or zone) as *reference*."""
    if reference.tzinfo is None:
        return value.replace(tzinfo=None)
    return value.astimezone(reference.tzinfo)


class FsrsUpdateFunction(UpdateFunction):
    """
    FSRS v6 scheduling via py-fsrs.

    One Scheduler is built and cached per distinct WeightVector.
    """

    def __init__(
        self,
        learning_steps_minutes: Sequence[float] = DEFAULT_LEARNING_STEPS_MINUTES,
        relearning_steps_minutes: Sequence[float] = DEFAULT_RELEARNING_STEPS_MINUTES,
        maximum_interval: int = DEFAULT_MAXIMUM_INTERVAL,
    ):
        self.learning_steps = tuple(timedelta(minutes=m) for m in learning_steps_minutes)
        self.relearning_steps = tuple(timedelta(minutes=m) for m in relearning_steps_minutes)
        self.maximum_interval = maximum_interval
        self._schedulers: dict[WeightVector, Scheduler] = {}

    def scheduler_for(self, weights: WeightVector) -> Scheduler:
        scheduler = self._schedulers.get(weights)
        if scheduler is None:
            scheduler = Scheduler(
                parameters=weights.weights,
                desired_retention=weights.desired_retention,
                learning_steps=self.learning_steps,
                relearning_steps=self.relearning_steps,
                maximum_interval=self.maximum_interval,
                enable_fuzzing=False,
            )
            self._schedulers[weights] = scheduler
        return scheduler

    def _to_fsrs(self, card: Card, now_utc: datetime) -> FsrsCard:
        if card.state == CardState.NEW:
            return FsrsCard(
                card_id=_SYNTHETIC_FSRS_ID,
                state=FsrsState.Learning,
                step=0,
                due=now_utc,
            )

        step = None
        if card.state in (CardState.LEARNING, CardState.RELEARNING):
            step = card.learning_step or 0

        return FsrsCard(
            card_id=_SYNTHETIC_FSRS_ID,
            state=FsrsState(int(card.state)),
            step=step,
            stability=card.stability,
            difficulty=card.difficulty,
            due=_to_utc(card.due),
            last_review=_to_utc(card.last_review) if card.last_review else None,
        )

    def update(self, card: Card, rating: Rating, weights: WeightVector, now: datetime) -> Card:
        validate_card(card)
        rating = Rating(rating)
        now_utc = _to_utc(now)

        scheduler = self.scheduler_for(weights)
        result, _ = scheduler.review_card(
            self._to_fsrs(card, now_utc), FsrsRating(int(rating)), review_datetime=now_utc
        )

        next_state = CardState(int(result.state))
        try:
            check_transition(card.state, rating, next_state)
        except InvalidTransitionError as e:
            logger.warning(f"Rejected update for card {card.card_id!r}: {e.reason}")
            raise InvalidTransitionError(card.card_id, e.reason) from e

        scheduled_days = 0.0
        if next_state == CardState.REVIEW:
            scheduled_days = float((result.due - now_utc).days)

        lapsed = card.state == CardState.REVIEW and rating == Rating.AGAIN

        return replace(
            card,
            state=next_state,
            due=_like(result.due, now),
            stability=result.stability,
            difficulty=result.difficulty,
            reps=card.reps + 1,
            lapses=card.lapses + (1 if lapsed else 0),
            scheduled_days=scheduled_days,
            last_review=now,
            learning_step=result.step,
        )

    def retrievability(self, card: Card, weights: WeightVector, now: datetime) -> float | None:
        """Predicted probability of recall at *now*; None for cards never reviewed."""
        if card.state == CardState.NEW or card.last_review is None or card.stability is None:
            return None
        now_utc = _to_utc(now)
        scheduler = self.scheduler_for(weights)
        return scheduler.get_card_retrievability(
            self._to_fsrs(card, now_utc), current_datetime=now_utc
        )
