"""
Today's review queue.

Combines the due rules from CardClassifier with the DailyQuota budgets:

    1. Learning/Relearning cards due within the learn-ahead window
    2. Review cards due today, capped by the review budget
    3. New cards, capped by the new-card budget
    4. Learning/Relearning cards due later today

Reviews and new cards are mixed according to NewReviewMix. Learning steps
never count against either budget.
"""

import itertools
import logging
import random
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TypeVar

from episteme.domain.constants import LEARN_AHEAD_LIMIT_MINUTES
from episteme.domain.scheduling.models import Card, CardState

from .card_rules import CardClassifier
from .quota import AdmissionKind, DailyQuota, admission_kind_for

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LEARNING_STATES = (CardState.LEARNING, CardState.RELEARNING)


class NewCardOrder(str, Enum):
    RANDOM = "random"
    OLDEST_FIRST = "oldest-first"
    NEWEST_FIRST = "newest-first"


class ReviewOrder(str, Enum):
    DUE_DATE = "due-date"
    RANDOM = "random"
    DUE_DATE_RANDOM = "due-date-random"  # shuffled within each due day


class NewReviewMix(str, Enum):
    MIX_WITH_REVIEWS = "mix-with-reviews"
    SHOW_AFTER_REVIEWS = "show-after-reviews"
    SHOW_BEFORE_REVIEWS = "show-before-reviews"


def interleave(primary: Sequence[T], secondary: Sequence[T]) -> list[T]:
    """
    Spread *secondary* evenly through *primary*.

    Each secondary item follows its proportional share of primary items;
    leftover primary items go last.
    """
    if not secondary:
        return list(primary)
    if not primary:
        return list(secondary)

    ratio = len(primary) / len(secondary)
    result: list[T] = []
    taken = 0
    for index, item in enumerate(secondary):
        target = int((index + 1) * ratio)
        result.extend(primary[taken:target])
        taken = max(taken, target)
        result.append(item)
    result.extend(primary[taken:])
    return result


@dataclass(frozen=True)
class ReviewQueue:
    due_learning: tuple[Card, ...]
    main: tuple[Card, ...]  # reviews and new cards, mixed
    pending_learning: tuple[Card, ...]
    review_count: int
    new_count: int

    @property
    def cards(self) -> list[Card]:
        return [*self.due_learning, *self.main, *self.pending_learning]

    def __len__(self) -> int:
        return len(self.due_learning) + len(self.main) + len(self.pending_learning)


def _cap(cards: list[Card], slots: int | None) -> list[Card]:
    return cards if slots is None else cards[:slots]


def _created_key(card: Card) -> tuple[float, str]:
    created = card.created_at.timestamp() if card.created_at is not None else 0.0
    return created, str(card.card_id)


class QueueBuilder:
    """
    Builds the ordered list of cards to study now.

    The quota is shared with whoever records answers, so a queue built after
    some answers reflects the budget already spent today.
    """

    def __init__(
        self,
        classifier: CardClassifier | None = None,
        quota: DailyQuota | None = None,
        learn_ahead_minutes: float = LEARN_AHEAD_LIMIT_MINUTES,
        new_card_order: NewCardOrder = NewCardOrder.RANDOM,
        review_order: ReviewOrder = ReviewOrder.DUE_DATE,
        new_review_mix: NewReviewMix = NewReviewMix.MIX_WITH_REVIEWS,
        rng: random.Random | None = None,
    ):
        if learn_ahead_minutes < 0:
            raise ValueError(f"learn_ahead_minutes must be >= 0, got {learn_ahead_minutes}")
        self.classifier = classifier or CardClassifier()
        self.quota = quota or DailyQuota()
        self.learn_ahead = timedelta(minutes=learn_ahead_minutes)
        self.new_card_order = NewCardOrder(new_card_order)
        self.review_order = ReviewOrder(review_order)
        self.new_review_mix = NewReviewMix(new_review_mix)
        self.rng = rng or random.Random()

    def build(
        self,
        cards: Iterable[Card],
        now: datetime,
        reviewed_today: Collection = frozenset(),
        ignore_daily_limits: bool = False,
    ) -> ReviewQueue:
        """
        Args:
            cards: Whole collection; suspended and buried cards are skipped.
            now: Current time.
            reviewed_today: Ids of cards already answered today. Learning and
                Relearning cards stay eligible for their next step.
            ignore_daily_limits: Take every due review and every new card.
        """
        day = self.classifier.boundary.day_index(now)
        candidates = [
            card
            for card in cards
            if self.classifier.is_active(card, now)
            and (card.state in _LEARNING_STATES or card.card_id not in reviewed_today)
        ]

        learn_ahead_until = now + self.learn_ahead
        due_learning: list[Card] = []
        pending_learning: list[Card] = []
        reviews: list[Card] = []
        new: list[Card] = []
        for card in candidates:
            match card.state:
                case CardState.LEARNING | CardState.RELEARNING:
                    if self.classifier.is_due_by_timestamp(card, learn_ahead_until):
                        due_learning.append(card)
                    else:
                        pending_learning.append(card)
                case CardState.REVIEW:
                    if self.classifier.is_due_by_day_boundary(card, now):
                        reviews.append(card)
                case CardState.NEW:
                    new.append(card)

        if ignore_daily_limits:
            review_slots = new_slots = None
        else:
            review_slots = self.quota.remaining(AdmissionKind.REVIEW, day)
            new_slots = self.quota.remaining(AdmissionKind.NEW, day)

        reviews = _cap(self._order_reviews(reviews), review_slots)
        new = _cap(self._order_new(new), new_slots)

        match self.new_review_mix:
            case NewReviewMix.SHOW_BEFORE_REVIEWS:
                main = new + reviews
            case NewReviewMix.SHOW_AFTER_REVIEWS:
                main = reviews + new
            case _:
                main = interleave(reviews, new)

        queue = ReviewQueue(
            due_learning=tuple(sorted(due_learning, key=lambda c: c.due)),
            main=tuple(main),
            pending_learning=tuple(sorted(pending_learning, key=lambda c: c.due)),
            review_count=len(reviews),
            new_count=len(new),
        )
        logger.debug(
            f"Queue for day {day}: {len(queue.due_learning)} learning, {queue.review_count} "
            f"review, {queue.new_count} new, {len(queue.pending_learning)} pending"
        )
        return queue

    def record_answer(self, card: Card, now: datetime) -> bool:
        """
        Count an answered card against today's budget.

        Returns:
            False when the card's budget was already spent. Learning steps are
            free and always return True.
        """
        if card.state in _LEARNING_STATES:
            return True
        day = self.classifier.boundary.day_index(now)
        return self.quota.record_admission(admission_kind_for(card), day)

    def _order_reviews(self, reviews: list[Card]) -> list[Card]:
        if self.review_order == ReviewOrder.RANDOM:
            shuffled = list(reviews)
            self.rng.shuffle(shuffled)
            return shuffled

        by_due = sorted(reviews, key=lambda c: c.due)
        if self.review_order == ReviewOrder.DUE_DATE:
            return by_due

        ordered: list[Card] = []
        for _, group in itertools.groupby(
            by_due, key=lambda c: self.classifier.boundary.day_index(c.due)
        ):
            day_cards = list(group)
            self.rng.shuffle(day_cards)
            ordered.extend(day_cards)
        return ordered

    def _order_new(self, new: list[Card]) -> list[Card]:
        if self.new_card_order == NewCardOrder.OLDEST_FIRST:
            return sorted(new, key=_created_key)
        if self.new_card_order == NewCardOrder.NEWEST_FIRST:
            return sorted(new, key=_created_key, reverse=True)
        shuffled = list(new)
        self.rng.shuffle(shuffled)
        return shuffled
