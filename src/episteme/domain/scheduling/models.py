"""
Domain models for card scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum


class Rating(IntEnum):
    """Review grade. Ordered: Again < Hard < Good < Easy."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class CardState(IntEnum):
    """Lifecycle state of a card (same numbering as the stored records)."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


class Maturity(str, Enum):
    YOUNG = "young"
    MATURE = "mature"


# Display names keyed by grade; 0 marks the synthetic initial state of a simulation.
GRADE_NAMES: dict[int, str] = {
    0: "Initial",
    Rating.AGAIN: "Again",
    Rating.HARD: "Hard",
    Rating.GOOD: "Good",
    Rating.EASY: "Easy",
}


@dataclass(frozen=True)
class Card:
    """
    Scheduling record for a single card.

    Attributes:
        card_id: Stable identity of the card.
        state: Lifecycle state.
        due: Next review time. Ignored for New cards.
        stability: Days until recall probability drops to 90% (None while New).
        difficulty: Intrinsic hardness on the 1-10 scale (None while New).
        lapses: Number of Again ratings given after graduation.
        reps: Total number of reviews.
        scheduled_days: Current interval length; only meaningful in Review.
        suspended: Excluded from every queue while set.
        buried_until: Excluded from every queue until this time.
        last_review: Time of the most recent review.
        learning_step: Current (re)learning step index.
        created_at: When the card was added; orders new cards in the queue.
    """

    card_id: str | int | None = None
    state: CardState = CardState.NEW
    due: datetime | None = None
    stability: float | None = None
    difficulty: float | None = None
    lapses: int = 0
    reps: int = 0
    scheduled_days: float | None = None
    suspended: bool = False
    buried_until: datetime | None = None
    last_review: datetime | None = None
    learning_step: int | None = None
    created_at: datetime | None = None

    @property
    def is_new(self) -> bool:
        return self.state == CardState.NEW
