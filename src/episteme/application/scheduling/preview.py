"""What each answer button would do to a card."""

import math
from dataclasses import dataclass
from datetime import datetime

from episteme.domain.scheduling.models import Card, CardState, Rating
from episteme.domain.scheduling.ports import UpdateFunction
from episteme.domain.scheduling.weights import WeightVector

# (upper bound in minutes, minutes per unit, suffix)
_INTERVAL_UNITS = (
    (60, 1, "m"),
    (1440, 60, "h"),
    (43200, 1440, "d"),
    (525600, 43200, "mo"),
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_interval(minutes: float) -> str:
    """Short button label: '<1m', '10m', '3h', '4d', '2mo', '1y'."""
    if minutes < 1:
        return "<1m"
    for bound, unit, suffix in _INTERVAL_UNITS:
        if minutes < bound:
            return f"{_round_half_up(minutes / unit)}{suffix}"
    return f"{_round_half_up(minutes / 525600)}y"


@dataclass(frozen=True)
class RatingPreview:
    rating: Rating
    state: CardState
    due: datetime
    interval_minutes: float
    label: str


def scheduling_preview(
    update_function: UpdateFunction, card: Card, weights: WeightVector, now: datetime
) -> list[RatingPreview]:
    """One entry per rating, Again first. The card itself is not changed."""
    previews = []
    for rating, outcome in update_function.preview(card, weights, now).items():
        minutes = (outcome.due - now).total_seconds() / 60
        previews.append(
            RatingPreview(
                rating=rating,
                state=outcome.state,
                due=outcome.due,
                interval_minutes=minutes,
                label=format_interval(minutes),
            )
        )
    return previews
