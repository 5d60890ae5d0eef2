"""
Ports (interfaces) for the scheduling update.

The numeric FSRS update is an external, versioned algorithm. The core only
depends on this contract; infrastructure adapters provide the computation.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import Card, Rating
from .weights import WeightVector


class UpdateFunction(ABC):
    """
    Port for applying one rating to a card.

    Implementations:
        - FsrsUpdateFunction: py-fsrs Scheduler with fuzzing disabled.
    """

    @abstractmethod
    def update(self, card: Card, rating: Rating, weights: WeightVector, now: datetime) -> Card:
        """
        Compute the card that results from rating *card* at *now*.

        Must be pure: same inputs always give the same output, and the input
        card is never mutated.

        Args:
            card: Card before the review.
            rating: Grade given by the user.
            weights: Weight vector and desired retention to schedule with.
            now: Review time.

        Returns:
            The proposed next card (state, due, stability, difficulty, counters).
        """
        pass

    def preview(self, card: Card, weights: WeightVector, now: datetime) -> dict[Rating, Card]:
        """Outcome of each of the four ratings at *now*, keyed in rating order."""
        return {rating: self.update(card, rating, weights, now) for rating in Rating}
