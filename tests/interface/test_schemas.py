from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from episteme.application.config import AppConfig
from episteme.application.scheduling.card_rules import CardClassifier
from episteme.application.scheduling.day_boundary import DayBoundary
from episteme.domain.errors import InvalidRetentionError
from episteme.domain.scheduling.models import CardState
from episteme.domain.simulation.models import MetricType
from episteme.interface.schemas import (
    CardPayload,
    ClassifyRequest,
    QueueRequest,
    SimulateRequest,
    classify_cards,
    handle_simulate,
)


def test_card_payload_state_names():
    assert CardPayload(state="review").state == CardState.REVIEW
    assert CardPayload(state="2").state == CardState.REVIEW
    assert CardPayload(state=3).state == CardState.RELEARNING
    with pytest.raises(ValidationError):
        CardPayload(state="graduated")


def test_card_payload_naive_times_become_aware():
    payload = CardPayload(state="learning", due="2024-03-10T20:00:00", reps=1)
    assert payload.due.tzinfo is not None

    aware = CardPayload(state="learning", due="2024-03-10T20:00:00+00:00", reps=1)
    assert aware.due == datetime(2024, 3, 10, 20, 0, tzinfo=timezone.utc)


def test_card_payload_to_card():
    card = CardPayload(card_id=4, state="review", due="2024-03-10T20:00:00Z", scheduled_days=30).to_card()
    assert card.card_id == 4
    assert card.state == CardState.REVIEW
    assert card.scheduled_days == 30.0


def test_card_payload_created_at_carried():
    card = CardPayload(card_id=1, created_at="2024-01-05T10:00:00Z").to_card()
    assert card.created_at == datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)


def test_queue_request_rejects_negative_counts():
    with pytest.raises(ValidationError):
        QueueRequest(cards=[], new_studied_today=-1)


def test_classify_cards():
    now = datetime(2024, 3, 10, 20, 0, tzinfo=timezone.utc)
    request = ClassifyRequest(
        cards=[
            {"card_id": 1},
            {"card_id": 2, "state": "review", "due": "2024-03-10T08:00:00Z", "scheduled_days": 25},
            {"card_id": 3, "state": "review", "due": "2024-03-20T08:00:00Z", "scheduled_days": 3},
        ]
    )
    classifier = CardClassifier(boundary=DayBoundary(tz="UTC"))
    result = classify_cards(classifier, [c.to_card() for c in request.cards], now)

    assert result.today == "2024-03-10"
    assert result.due_count == 1
    assert [c.due for c in result.cards] == [False, True, False]
    assert [c.available for c in result.cards] == [True, True, False]
    assert [c.maturity for c in result.cards] == [None, "mature", "young"]
    assert [c.admission for c in result.cards] == ["new", "review", "review"]
    assert result.breakdown.new == 1
    assert result.breakdown.mature == 1
    assert result.breakdown.young == 1


def test_simulate_request_defaults():
    req = SimulateRequest()
    assert req.sequences == ["3333", "3332", "3331", "2333", "1333", "4331"]
    assert req.metric == MetricType.INTERVAL


def test_handle_simulate(mock_home):
    result = handle_simulate(
        AppConfig(), SimulateRequest(sequences=["3333", "bad", "4"], metric="stability")
    )
    assert result.discarded == ["bad"]
    assert [s.sequence for s in result.simulations] == ["3333", "4"]
    assert len(result.simulations[0].reviews) == 5
    assert result.simulations[0].series == [r.stability for r in result.simulations[0].reviews]
    assert result.table.header == ["Sequence", "#1", "#2", "#3", "#4"]
    assert result.table.rows[1][2:] == ["-", "-", "-"]
    assert result.desired_retention == 0.9


def test_handle_simulate_all_discarded_is_empty(mock_home):
    result = handle_simulate(AppConfig(), SimulateRequest(sequences=["", "0"]))
    assert result.simulations == []
    assert result.table.header == ["Sequence"]


def test_handle_simulate_rejects_bad_retention(mock_home):
    with pytest.raises(InvalidRetentionError):
        handle_simulate(AppConfig(), SimulateRequest(desired_retention=0.5))
