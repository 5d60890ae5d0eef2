from datetime import datetime, timedelta

import pytest

from episteme.domain.scheduling.models import Card, CardState
from episteme.domain.scheduling.ports import UpdateFunction
from episteme.domain.scheduling.weights import WeightVector


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "EPISTEME_DAY_START_HOUR",
        "EPISTEME_DESIRED_RETENTION",
        "EPISTEME_NEW_CARDS_PER_DAY",
        "EPISTEME_REVIEWS_PER_DAY",
        "EPISTEME_FSRS_WEIGHTS",
        "EPISTEME_TIMEZONE",
        "EPISTEME_LEARN_AHEAD_MINUTES",
        "EPISTEME_NEW_CARD_ORDER",
        "EPISTEME_REVIEW_ORDER",
        "EPISTEME_NEW_REVIEW_MIX",
    ):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def weights():
    return WeightVector.defaults()


@pytest.fixture
def day0():
    """A fixed evening, well away from the 04:00 rollover."""
    return datetime(2024, 3, 10, 20, 0)


@pytest.fixture
def review_card(day0):
    def _make(due=None, scheduled_days=10.0, **kwargs):
        return Card(
            card_id=kwargs.pop("card_id", 1),
            state=CardState.REVIEW,
            due=due or day0,
            stability=kwargs.pop("stability", 10.0),
            difficulty=kwargs.pop("difficulty", 5.0),
            reps=kwargs.pop("reps", 3),
            scheduled_days=scheduled_days,
            **kwargs,
        )

    return _make


class StepUpdateFunction(UpdateFunction):
    """
    Deterministic stand-in for FSRS.

    Interval in days equals the rating; stability grows by the rating and
    difficulty drops by it. Every call is recorded.
    """

    def __init__(self):
        self.calls = []

    def update(self, card, rating, weights, now):
        self.calls.append((card, int(rating), weights, now))
        stability = (card.stability or 0.0) + int(rating)
        difficulty = 10.0 - int(rating)
        return Card(
            card_id=card.card_id,
            state=CardState.REVIEW,
            due=now + timedelta(days=int(rating)),
            stability=stability,
            difficulty=difficulty,
            reps=card.reps + 1,
            scheduled_days=float(int(rating)),
        )


@pytest.fixture
def step_update():
    return StepUpdateFunction()
