from unittest.mock import patch

from fastapi.testclient import TestClient

from episteme.consts import VERSION
from episteme.domain.errors import CardIntegrityError
from episteme.server import app

client = TestClient(app)


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version():
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_simulate_endpoint(mock_home):
    response = client.post("/simulate", json={"sequences": ["3333", "oops"], "metric": "difficulty"})

    assert response.status_code == 200
    data = response.json()
    assert data["discarded"] == ["oops"]
    assert data["simulations"][0]["sequence"] == "3333"
    assert data["simulations"][0]["reviews"][0]["grade"] == 0
    assert len(data["simulations"][0]["series"]) == 5
    assert len(data["weights"]) == 21


def test_simulate_defaults(mock_home):
    response = client.post("/simulate", json={})
    assert response.status_code == 200
    assert len(response.json()["simulations"]) == 6


def test_simulate_invalid_weights(mock_home):
    response = client.post("/simulate", json={"weights": [1.0, 2.0]})
    assert response.status_code == 422
    assert "Expected 21 weights" in response.json()["detail"]


def test_simulate_unknown_metric(mock_home):
    response = client.post("/simulate", json={"metric": "retrievability"})
    assert response.status_code == 422


@patch("episteme.interface.schemas.handle_simulate")
def test_simulate_fail(mock_handle, mock_home):
    mock_handle.side_effect = Exception("Boom")

    response = client.post("/simulate", json={})

    assert response.status_code == 500
    assert "Boom" in response.json()["detail"]


def test_classify_endpoint(mock_home, monkeypatch):
    monkeypatch.setenv("EPISTEME_TIMEZONE", "UTC")
    response = client.post(
        "/cards/classify",
        json={
            "now": "2024-03-10T20:00:00+00:00",
            "cards": [
                {"card_id": 1},
                {"card_id": 2, "state": "learning", "due": "2024-03-10T20:05:00+00:00", "reps": 1},
                {"card_id": 3, "state": "review", "due": "2024-03-11T03:00:00+00:00", "scheduled_days": 4},
            ],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["today"] == "2024-03-10"
    assert [c["due"] for c in data["cards"]] == [False, False, True]
    assert data["due_count"] == 1
    assert data["breakdown"]["learning"] == 1


def test_classify_integrity_error(mock_home):
    response = client.post(
        "/cards/classify",
        json={"cards": [{"card_id": 9, "state": "review", "due": "2024-03-10T08:00:00Z"}]},
    )
    assert response.status_code == 422
    assert "scheduled_days" in response.json()["detail"]


@patch("episteme.interface.schemas.classify_cards")
def test_classify_maps_domain_errors(mock_classify, mock_home):
    mock_classify.side_effect = CardIntegrityError(3, "bad")
    response = client.post("/cards/classify", json={"cards": []})
    assert response.status_code == 422


def test_classify_due_written_in_other_offsets(mock_home, monkeypatch):
    monkeypatch.setenv("EPISTEME_TIMEZONE", "America/New_York")
    # 21:00 in New York is 02:00Z the next calendar day; tomorrow's rollover is 09:00Z
    response = client.post(
        "/cards/classify",
        json={
            "now": "2024-01-10T21:00:00-05:00",
            "cards": [
                {"card_id": "z", "state": "review", "due": "2024-01-11T08:30:00Z", "scheduled_days": 3},
                {"card_id": "tokyo", "state": "review", "due": "2024-01-11T17:30:00+09:00", "scheduled_days": 3},
                {"card_id": "late", "state": "review", "due": "2024-01-11T09:30:00Z", "scheduled_days": 3},
            ],
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["today"] == "2024-01-10"
    assert [c["due"] for c in data["cards"]] == [True, True, False]


QUEUE_CARDS = [
    {"card_id": "n1", "created_at": "2024-01-01T00:00:00Z"},
    {"card_id": "n2", "created_at": "2024-02-01T00:00:00Z"},
    {"card_id": "r1", "state": "review", "due": "2024-03-10T08:00:00Z", "scheduled_days": 4, "reps": 3},
    {"card_id": "r2", "state": "review", "due": "2024-03-09T08:00:00Z", "scheduled_days": 4, "reps": 3},
    {"card_id": "r3", "state": "review", "due": "2024-03-12T08:00:00Z", "scheduled_days": 4, "reps": 3},
    {"card_id": "s", "state": "review", "due": "2024-03-01T08:00:00Z", "scheduled_days": 4, "reps": 3, "suspended": True},
    {"card_id": "l1", "state": "learning", "due": "2024-03-10T20:10:00Z", "reps": 1},
    {"card_id": "l2", "state": "learning", "due": "2024-03-10T22:00:00Z", "reps": 1},
]


def test_queue_endpoint_respects_budgets(mock_home, monkeypatch):
    monkeypatch.setenv("EPISTEME_TIMEZONE", "UTC")
    monkeypatch.setenv("EPISTEME_NEW_CARD_ORDER", "oldest-first")
    response = client.post(
        "/cards/queue",
        json={
            "now": "2024-03-10T20:00:00Z",
            "cards": QUEUE_CARDS,
            "reviewed_today": ["r2"],
            "new_studied_today": 19,
            "reviews_done_today": 199,
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["today"] == "2024-03-10"
    assert [c["card_id"] for c in data["cards"]] == ["l1", "r1", "n1", "l2"]
    assert [c["section"] for c in data["cards"]] == ["learning", "review", "new", "pending"]
    assert (data["review_count"], data["new_count"], data["pending_count"]) == (1, 1, 1)


def test_queue_endpoint_ignoring_limits(mock_home, monkeypatch):
    monkeypatch.setenv("EPISTEME_TIMEZONE", "UTC")
    monkeypatch.setenv("EPISTEME_NEW_CARD_ORDER", "oldest-first")
    monkeypatch.setenv("EPISTEME_NEW_CARDS_PER_DAY", "0")
    response = client.post(
        "/cards/queue",
        json={"now": "2024-03-10T20:00:00Z", "cards": QUEUE_CARDS, "ignore_daily_limits": True},
    )

    assert response.status_code == 200
    ids = [c["card_id"] for c in response.json()["cards"]]
    assert ids == ["l1", "r2", "n1", "r1", "n2", "l2"]


def test_queue_learning_card_without_due(mock_home):
    response = client.post(
        "/cards/queue", json={"cards": [{"card_id": 7, "state": "learning", "reps": 1}]}
    )
    assert response.status_code == 422
    assert "without due" in response.json()["detail"]


def test_preview_endpoint_new_card(mock_home):
    response = client.post(
        "/cards/preview", json={"now": "2024-05-01T09:00:00Z", "card": {"card_id": "p"}}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["card_id"] == "p"
    assert [o["name"] for o in data["options"]] == ["Again", "Hard", "Good", "Easy"]
    assert data["options"][0]["label"] == "1m"
    assert data["options"][2]["label"] == "10m"
    assert data["options"][3]["state"] == "review"
    assert data["options"][3]["label"].endswith("d")


def test_preview_endpoint_review_card(mock_home):
    card = {
        "card_id": "r",
        "state": "review",
        "due": "2024-05-01T09:00:00Z",
        "last_review": "2024-04-21T09:00:00Z",
        "stability": 10.0,
        "difficulty": 5.0,
        "reps": 3,
        "scheduled_days": 10,
    }
    response = client.post("/cards/preview", json={"now": "2024-05-01T09:00:00Z", "card": card})

    assert response.status_code == 200
    options = response.json()["options"]
    assert options[0]["state"] == "relearning"
    assert options[0]["label"] == "10m"
    minutes = [o["interval_minutes"] for o in options[1:]]
    assert minutes == sorted(minutes)
    assert minutes[0] < minutes[2]
    assert all(o["label"].endswith(("d", "mo")) for o in options[1:])


def test_preview_card_without_memory_state_is_rejected(mock_home):
    card = {"card_id": "m", "state": "review", "due": "2024-05-01T09:00:00Z", "reps": 2, "scheduled_days": 3}
    response = client.post("/cards/preview", json={"card": card})
    assert response.status_code == 422
    assert "stability or difficulty" in response.json()["detail"]


def test_preview_invalid_retention(mock_home):
    response = client.post("/cards/preview", json={"card": {}, "desired_retention": 0.5})
    assert response.status_code == 422
