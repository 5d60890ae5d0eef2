"""
Daily admission budgets for new cards and reviews.

The two counters are independent: spending the new-card budget never touches
the review budget and vice versa. Counters reset lazily the first time a
later day index is seen; there is no background timer.
"""

import logging
from enum import Enum

from episteme.domain.constants import DEFAULT_NEW_CARDS_PER_DAY, DEFAULT_REVIEWS_PER_DAY
from episteme.domain.scheduling.models import Card, CardState

logger = logging.getLogger(__name__)

UNLIMITED = None


class AdmissionKind(str, Enum):
    NEW = "new"
    REVIEW = "review"


def admission_kind_for(card: Card) -> AdmissionKind:
    """New cards draw from the new budget, every other state from the review budget."""
    return AdmissionKind.NEW if card.state == CardState.NEW else AdmissionKind.REVIEW


class DailyQuota:
    """
    Per-day budget tracker.

    A limit of None (UNLIMITED) never runs out; a limit of 0 disables that
    category entirely.
    """

    def __init__(
        self,
        new_per_day: int | None = DEFAULT_NEW_CARDS_PER_DAY,
        reviews_per_day: int | None = DEFAULT_REVIEWS_PER_DAY,
    ):
        for name, value in (("new_per_day", new_per_day), ("reviews_per_day", reviews_per_day)):
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0 or None (unlimited), got {value}")

        self._limits: dict[AdmissionKind, int | None] = {
            AdmissionKind.NEW: new_per_day,
            AdmissionKind.REVIEW: reviews_per_day,
        }
        self._counts: dict[AdmissionKind, int] = {kind: 0 for kind in AdmissionKind}
        self._day: int | None = None

    @property
    def day_index(self) -> int | None:
        return self._day

    def _roll(self, day_index: int) -> None:
        if self._day is None or day_index > self._day:
            if self._day is not None:
                logger.debug(f"Quota reset: day {self._day} -> {day_index}")
            self._day = day_index
            self._counts = {kind: 0 for kind in AdmissionKind}
        elif day_index < self._day:
            raise ValueError(f"Day index moved backwards: {day_index} < {self._day}")

    def limit(self, kind: AdmissionKind) -> int | None:
        kind = AdmissionKind(kind)
        return self._limits[kind]

    def used(self, kind: AdmissionKind, day_index: int) -> int:
        kind = AdmissionKind(kind)
        self._roll(day_index)
        return self._counts[kind]

    def remaining(self, kind: AdmissionKind, day_index: int) -> int | None:
        """Admissions left today, or None when unlimited."""
        kind = AdmissionKind(kind)
        self._roll(day_index)
        limit = self._limits[kind]
        if limit is UNLIMITED:
            return None
        return max(0, limit - self._counts[kind])

    def can_admit(self, kind: AdmissionKind, day_index: int) -> bool:
        remaining = self.remaining(kind, day_index)
        return remaining is None or remaining > 0

    def can_admit_new(self, day_index: int) -> bool:
        return self.can_admit(AdmissionKind.NEW, day_index)

    def can_admit_review(self, day_index: int) -> bool:
        return self.can_admit(AdmissionKind.REVIEW, day_index)

    def record_admission(self, kind: AdmissionKind, day_index: int) -> bool:
        """
        Count one admission of *kind* on *day_index*.

        Returns:
            False (and counts nothing) when today's budget is already spent.
        """
        kind = AdmissionKind(kind)
        if not self.can_admit(kind, day_index):
            return False
        self._counts[kind] += 1
        return True

    def restore_usage(self, day_index: int, *, new: int = 0, reviews: int = 0) -> None:
        """Seed today's counters from a stored tally (e.g. a request's studied-today counts)."""
        if new < 0 or reviews < 0:
            raise ValueError(f"usage counts must be >= 0, got new={new} reviews={reviews}")
        self._roll(day_index)
        self._counts[AdmissionKind.NEW] = new
        self._counts[AdmissionKind.REVIEW] = reviews
