"""
What-if simulation engine.

Replays hypothetical rating sequences through the update function on a
synthetic card and records the trajectory. No real card is ever touched and
no wall-clock time is read, so identical inputs give identical outputs.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from episteme.domain.errors import InvalidSequenceError
from episteme.domain.scheduling.models import Card, Rating
from episteme.domain.scheduling.ports import UpdateFunction
from episteme.domain.scheduling.weights import WeightVector
from episteme.domain.simulation.models import INITIAL_GRADE, SequenceReview, SequenceSimulation

logger = logging.getLogger(__name__)

SIMULATION_EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)
SECONDS_PER_DAY = 86400

RatingSequence = str | Sequence[int]


def parse_sequence(sequence: RatingSequence) -> list[Rating]:
    """
    Convert "3332" (or [3, 3, 3, 2]) into ratings.

    Raises:
        InvalidSequenceError: on any item outside 1-4. Nothing is skipped.
    """
    ratings: list[Rating] = []
    for position, item in enumerate(sequence):
        if isinstance(item, str):
            if len(item) != 1 or item not in "1234":
                raise InvalidSequenceError(sequence, position, item)
            ratings.append(Rating(int(item)))
        elif isinstance(item, int) and not isinstance(item, bool) and 1 <= item <= 4:
            ratings.append(Rating(item))
        else:
            raise InvalidSequenceError(sequence, position, item)
    return ratings


def sequence_label(sequence: RatingSequence) -> str:
    if isinstance(sequence, str):
        return sequence
    return "".join(str(int(r)) for r in sequence)


class SimulationEngine:
    """
    Produces one SequenceReview trajectory per rating sequence.

    Every sequence starts from its own fresh New card, so running sequences
    together or one at a time gives the same trajectories.
    """

    def __init__(self, update_function: UpdateFunction):
        self._update = update_function

    def simulate_sequence(
        self, sequence: RatingSequence, weights: WeightVector
    ) -> list[SequenceReview]:
        ratings = parse_sequence(sequence)
        if not ratings:
            return []

        card = Card(card_id=f"sim:{sequence_label(sequence)}")
        now = SIMULATION_EPOCH
        cumulative = 0.0

        reviews = [
            SequenceReview(
                review_number=0,
                grade=INITIAL_GRADE,
                interval=0.0,
                stability=0.0,
                difficulty=0.0,
                cumulative_interval=0.0,
            )
        ]

        for number, rating in enumerate(ratings, start=1):
            card = self._update.update(card, rating, weights, now)
            # Whole days, so same-day learning steps count as 0.
            interval = float((card.due - now).total_seconds() // SECONDS_PER_DAY)
            cumulative += interval

            reviews.append(
                SequenceReview(
                    review_number=number,
                    grade=int(rating),
                    interval=interval,
                    stability=card.stability or 0.0,
                    difficulty=card.difficulty or 0.0,
                    cumulative_interval=cumulative,
                )
            )
            now = card.due

        return reviews

    def simulate(
        self, sequences: Iterable[RatingSequence], weights: WeightVector
    ) -> list[SequenceSimulation]:
        simulations = []
        for seq in sequences:
            reviews = self.simulate_sequence(seq, weights)
            simulations.append(
                SequenceSimulation(sequence=sequence_label(seq), reviews=tuple(reviews))
            )
        logger.debug(
            f"Simulated {len(simulations)} sequences at retention {weights.desired_retention}"
        )
        return simulations
