import pytest

from episteme.application.simulation.projection import (
    describe_review,
    grade_name,
    interval_table,
    metric_series,
)
from episteme.domain.errors import UnknownMetricError
from episteme.domain.simulation.models import MetricType, SequenceReview, SequenceSimulation


def review(number, grade, interval, stability=1.0, difficulty=5.0, cumulative=0.0):
    return SequenceReview(number, grade, interval, stability, difficulty, cumulative)


@pytest.fixture
def trajectory():
    return (
        review(0, 0, 0.0, 0.0, 0.0, 0.0),
        review(1, 3, 0.0, 2.3, 5.3, 0.0),
        review(2, 3, 3.0, 3.1, 5.3, 3.0),
        review(3, 3, 12.0, 11.5, 5.31, 15.0),
    )


def test_metric_series(trajectory):
    assert metric_series(trajectory, MetricType.INTERVAL) == [0.0, 0.0, 3.0, 12.0]
    assert metric_series(trajectory, "cumulative") == [0.0, 0.0, 3.0, 15.0]
    assert metric_series(trajectory, "stability") == [0.0, 2.3, 3.1, 11.5]
    assert metric_series(trajectory, MetricType.DIFFICULTY)[1] == 5.3


def test_unknown_metric(trajectory):
    with pytest.raises(UnknownMetricError):
        metric_series(trajectory, "retrievability")


def test_grade_name():
    assert grade_name(0) == "Initial"
    assert grade_name(1) == "Again"
    assert grade_name(4) == "Easy"
    assert grade_name(7) == "N/A"


def test_describe_review(trajectory):
    assert describe_review("3333", trajectory[3], MetricType.INTERVAL) == "3333: 12 (Good, D: 53%)"
    assert (
        describe_review("3333", trajectory[1], MetricType.STABILITY) == "3333: 2.30 (Good, D: 53%)"
    )
    assert describe_review("3333", trajectory[0], "interval") == "3333: 0 (Initial, D: 0%)"


def test_interval_table_pads_shorter_sequences(trajectory):
    short = SequenceSimulation("31", trajectory[:3])
    long = SequenceSimulation("3333", trajectory)
    table = interval_table([long, short])

    assert table.header() == ["Sequence", "#1", "#2", "#3"]
    assert table.rows[0].cells() == ["3333", "0", "3", "12"]
    assert table.rows[1].cells() == ["31", "0", "3", "-"]


def test_interval_table_rounds_half_up():
    sim = SequenceSimulation("3", (review(0, 0, 0.0), review(1, 3, 2.5)))
    assert interval_table([sim]).rows[0].intervals == (3,)


def test_interval_table_empty():
    table = interval_table([])
    assert table.header() == ["Sequence"]
    assert table.rows == ()

    empty = interval_table([SequenceSimulation("", ())])
    assert empty.header() == ["Sequence"]
    assert empty.rows[0].cells() == [""]
