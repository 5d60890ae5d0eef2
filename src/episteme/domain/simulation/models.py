"""
Domain models for what-if simulations.

Trajectories are produced in order and never modified afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum

INITIAL_GRADE = 0  # grade sentinel of the synthetic starting point


class MetricType(str, Enum):
    """Series a chart can plot from a trajectory."""

    INTERVAL = "interval"
    STABILITY = "stability"
    DIFFICULTY = "difficulty"
    CUMULATIVE = "cumulative"


@dataclass(frozen=True)
class SequenceReview:
    """
    One step of a simulated trajectory.

    Attributes:
        review_number: 0 for the initial state, then 1..n.
        grade: Rating applied (1-4), or INITIAL_GRADE for review 0.
        interval: Whole days until the next review.
        stability: Stability after this review (0 before the first one).
        difficulty: Difficulty after this review, 1-10 scale (0 before the first one).
        cumulative_interval: Running sum of intervals.
    """

    review_number: int
    grade: int
    interval: float
    stability: float
    difficulty: float
    cumulative_interval: float


@dataclass(frozen=True)
class SequenceSimulation:
    """Complete trajectory for one rating sequence."""

    sequence: str
    reviews: tuple[SequenceReview, ...] = field(default_factory=tuple)
