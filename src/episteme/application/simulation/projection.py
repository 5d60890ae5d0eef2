"""
Read-side projections of simulated trajectories.

Pure transforms into the series and tables a chart or results table renders.
"""

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from episteme.domain.errors import UnknownMetricError
from episteme.domain.scheduling.models import GRADE_NAMES
from episteme.domain.simulation.models import MetricType, SequenceReview, SequenceSimulation

_EXTRACTORS: dict[MetricType, Callable[[SequenceReview], float]] = {
    MetricType.INTERVAL: lambda r: r.interval,
    MetricType.STABILITY: lambda r: r.stability,
    MetricType.DIFFICULTY: lambda r: r.difficulty,
    MetricType.CUMULATIVE: lambda r: r.cumulative_interval,
}


def resolve_metric(metric: MetricType | str) -> MetricType:
    try:
        return MetricType(metric)
    except ValueError:
        raise UnknownMetricError(
            f"Unknown metric {metric!r}; expected one of {[m.value for m in MetricType]}"
        ) from None


def metric_series(reviews: Iterable[SequenceReview], metric: MetricType | str) -> list[float]:
    extract = _EXTRACTORS[resolve_metric(metric)]
    return [extract(r) for r in reviews]


def grade_name(grade: int) -> str:
    return GRADE_NAMES.get(grade, "N/A")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def describe_review(sequence: str, review: SequenceReview, metric: MetricType | str) -> str:
    """Tooltip text, e.g. "3333: 12 (Good, D: 53%)"."""
    value = metric_series([review], metric)[0]
    shown = f"{value:g}" if value == int(value) else f"{value:.2f}"
    difficulty_pct = _round_half_up(review.difficulty * 10)
    return f"{sequence}: {shown} ({grade_name(review.grade)}, D: {difficulty_pct}%)"


@dataclass(frozen=True)
class IntervalRow:
    sequence: str
    intervals: tuple[int | None, ...]  # None where the sequence has no such review

    def cells(self) -> list[str]:
        return [self.sequence] + ["-" if i is None else str(i) for i in self.intervals]


@dataclass(frozen=True)
class IntervalTable:
    """Interval progression per sequence; columns are review numbers 1..N."""

    review_numbers: tuple[int, ...]
    rows: tuple[IntervalRow, ...]

    def header(self) -> list[str]:
        return ["Sequence"] + [f"#{n}" for n in self.review_numbers]


def interval_table(simulations: Sequence[SequenceSimulation]) -> IntervalTable:
    longest = max((len(s.reviews) - 1 for s in simulations), default=0)
    review_numbers = tuple(range(1, max(longest, 0) + 1))

    rows = []
    for sim in simulations:
        by_number = {r.review_number: r for r in sim.reviews}
        intervals = tuple(
            _round_half_up(by_number[n].interval) if n in by_number else None
            for n in review_numbers
        )
        rows.append(IntervalRow(sequence=sim.sequence, intervals=intervals))

    return IntervalTable(review_numbers=review_numbers, rows=tuple(rows))
