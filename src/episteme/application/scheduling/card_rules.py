"""
Card lifecycle rules: due-ness, maturity and the state transition table.

Pure computations over Card values. Nothing here mutates a card; transitions
are proposed by an UpdateFunction and only checked against the table here.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from episteme.domain.constants import MATURE_THRESHOLD_DAYS
from episteme.domain.errors import CardIntegrityError, InvalidTransitionError
from episteme.domain.scheduling.models import Card, CardState, Maturity, Rating

from .day_boundary import DayBoundary

logger = logging.getLogger(__name__)

# New -> Review is the update function graduating a card on its first rating
# (e.g. Easy skips the learning steps): New -> Learning -> Review in one step.
_ALLOWED_TRANSITIONS: dict[CardState, frozenset[CardState]] = {
    CardState.NEW: frozenset({CardState.LEARNING, CardState.REVIEW}),
    CardState.LEARNING: frozenset({CardState.LEARNING, CardState.REVIEW}),
    CardState.REVIEW: frozenset({CardState.REVIEW}),
    CardState.RELEARNING: frozenset({CardState.RELEARNING, CardState.REVIEW}),
}


def allowed_next_states(before: CardState, rating: Rating) -> frozenset[CardState]:
    if before == CardState.REVIEW and rating == Rating.AGAIN:
        return frozenset({CardState.RELEARNING})
    return _ALLOWED_TRANSITIONS[before]


def check_transition(before: CardState, rating: Rating, after: CardState) -> None:
    """Raise InvalidTransitionError unless before --rating--> after is in the table."""
    if after not in allowed_next_states(before, rating):
        raise InvalidTransitionError(
            None,
            f"transition {before.name} --{Rating(rating).name}--> {after.name} is not allowed",
        )


def validate_card(card: Card) -> None:
    """
    Reject cards whose state and populated fields disagree.

    Never fills in a missing value: a Review card without scheduled_days would
    otherwise be silently classified as Young.
    """
    if card.reps < 0 or card.lapses < 0:
        raise CardIntegrityError(card.card_id, "reps and lapses must be non-negative")

    if card.state == CardState.NEW:
        if card.reps != 0:
            raise CardIntegrityError(card.card_id, f"New card with reps={card.reps}")
        return

    if card.due is None:
        raise CardIntegrityError(card.card_id, f"{card.state.name} card without due")

    if card.state == CardState.REVIEW:
        if card.scheduled_days is None:
            raise CardIntegrityError(card.card_id, "Review card without scheduled_days")
        if card.scheduled_days < 0:
            raise CardIntegrityError(
                card.card_id, f"negative scheduled_days {card.scheduled_days}"
            )

    if card.stability is None or card.difficulty is None:
        raise CardIntegrityError(
            card.card_id, f"{card.state.name} card without stability or difficulty"
        )
    if card.stability <= 0:
        raise CardIntegrityError(card.card_id, f"non-positive stability {card.stability}")


@dataclass
class MaturityBreakdown:
    """Counts for the card maturity pie chart. Only active cards are classified."""

    new: int = 0
    learning: int = 0  # Learning + Relearning
    young: int = 0
    mature: int = 0
    suspended: int = 0
    buried: int = 0


class CardClassifier:
    """
    Answers "is this card due / available / young / mature" queries.

    Stateless apart from its configuration and side-effect free.
    """

    def __init__(
        self,
        boundary: DayBoundary | None = None,
        mature_threshold_days: float = MATURE_THRESHOLD_DAYS,
    ):
        self.boundary = boundary or DayBoundary()
        self.mature_threshold_days = mature_threshold_days

    # ----- activity -----

    @staticmethod
    def is_active(card: Card, now: datetime) -> bool:
        if card.suspended:
            return False
        if card.buried_until is not None and card.buried_until > now:
            return False
        return True

    @staticmethod
    def is_buried(card: Card, now: datetime) -> bool:
        if card.suspended:
            return False  # Suspended takes precedence
        return card.buried_until is not None and card.buried_until > now

    # ----- due-ness -----

    @staticmethod
    def is_due_by_timestamp(card: Card, now: datetime) -> bool:
        """Learning/Relearning rule: exact timestamp comparison."""
        if card.due is None:
            raise CardIntegrityError(card.card_id, f"{card.state.name} card without due")
        return card.due <= now

    def is_due_by_day_boundary(self, card: Card, now: datetime) -> bool:
        """Review rule: due anywhere before tomorrow's rollover."""
        if card.due is None:
            raise CardIntegrityError(card.card_id, f"{card.state.name} card without due")
        return self.boundary.is_before_tomorrow_boundary(card.due, now)

    def is_due(self, card: Card, now: datetime) -> bool:
        if not self.is_active(card, now):
            return False

        match card.state:
            case CardState.NEW:
                return False
            case CardState.LEARNING | CardState.RELEARNING:
                return self.is_due_by_timestamp(card, now)
            case CardState.REVIEW:
                return self.is_due_by_day_boundary(card, now)
        raise CardIntegrityError(card.card_id, f"unknown state {card.state!r}")

    def is_available(self, card: Card, now: datetime) -> bool:
        """New cards are always available (subject to quota); others when due."""
        if card.state == CardState.NEW:
            return self.is_active(card, now)
        return self.is_due(card, now)

    # ----- maturity -----

    def maturity(self, card: Card) -> Maturity | None:
        """Young/Mature by scheduled_days alone; None for non-Review cards."""
        if card.state != CardState.REVIEW:
            return None
        if card.scheduled_days is None:
            raise CardIntegrityError(card.card_id, "Review card without scheduled_days")
        if card.scheduled_days >= self.mature_threshold_days:
            return Maturity.MATURE
        return Maturity.YOUNG

    # ----- collections -----

    def due_cards(self, cards: Iterable[Card], now: datetime) -> list[Card]:
        return [c for c in cards if self.is_due(c, now)]

    def count_due(self, cards: Iterable[Card], now: datetime) -> int:
        return sum(1 for c in cards if self.is_due(c, now))

    def available_cards(self, cards: Iterable[Card], now: datetime) -> list[Card]:
        return [c for c in cards if self.is_available(c, now)]

    def maturity_breakdown(self, cards: Iterable[Card], now: datetime) -> MaturityBreakdown:
        breakdown = MaturityBreakdown()

        for card in cards:
            if card.suspended:
                breakdown.suspended += 1
                continue
            if self.is_buried(card, now):
                breakdown.buried += 1
                continue

            match card.state:
                case CardState.NEW:
                    breakdown.new += 1
                case CardState.LEARNING | CardState.RELEARNING:
                    breakdown.learning += 1
                case CardState.REVIEW:
                    if self.maturity(card) == Maturity.MATURE:
                        breakdown.mature += 1
                    else:
                        breakdown.young += 1

        logger.debug(f"Maturity breakdown: {breakdown}")
        return breakdown
