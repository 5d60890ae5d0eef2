import math

import pytest

from episteme.domain.constants import WEIGHT_COUNT
from episteme.domain.errors import InvalidRetentionError, InvalidWeightError, ValidationError
from episteme.domain.scheduling.weights import (
    ALL_SPECS,
    DEFAULT_WEIGHTS,
    RETENTION_INDEX,
    RETENTION_SPEC,
    WEIGHT_SPECS,
    WeightVector,
    spec_for,
)


def test_defaults_are_valid_and_within_ranges():
    vector = WeightVector.defaults()
    assert len(vector) == WEIGHT_COUNT
    assert vector.desired_retention == 0.9
    for spec, value in zip(WEIGHT_SPECS, vector.weights):
        assert spec.contains(value), spec.name


def test_specs_cover_every_weight_plus_retention():
    assert len(WEIGHT_SPECS) == WEIGHT_COUNT
    assert ALL_SPECS[0] is RETENTION_SPEC
    assert [s.index for s in WEIGHT_SPECS] == list(range(WEIGHT_COUNT))
    assert WEIGHT_SPECS[20].name.startswith("20. ")


def test_spec_for_bad_index():
    assert spec_for(RETENTION_INDEX) is RETENTION_SPEC
    with pytest.raises(InvalidWeightError):
        spec_for(21)
    with pytest.raises(InvalidWeightError):
        spec_for(-2)


def test_wrong_length_rejected():
    with pytest.raises(InvalidWeightError, match="Expected 21 weights, got 20"):
        WeightVector(DEFAULT_WEIGHTS[:-1])


def test_non_finite_rejected():
    values = list(DEFAULT_WEIGHTS)
    values[3] = math.nan
    with pytest.raises(InvalidWeightError, match="w3"):
        WeightVector(tuple(values))


def test_out_of_range_weight_rejected():
    values = list(DEFAULT_WEIGHTS)
    values[4] = 11.0  # initial difficulty is 1-10
    with pytest.raises(InvalidWeightError, match="w4"):
        WeightVector(tuple(values))


def test_non_numeric_rejected():
    values = list(DEFAULT_WEIGHTS)
    values[0] = "fast"
    with pytest.raises(InvalidWeightError):
        WeightVector(tuple(values))


@pytest.mark.parametrize("retention", [0.69, 0.995, 1.0, math.inf])
def test_out_of_range_retention_rejected(retention):
    with pytest.raises(InvalidRetentionError):
        WeightVector(DEFAULT_WEIGHTS, retention)


def test_validation_errors_share_a_base():
    assert issubclass(InvalidWeightError, ValidationError)
    assert issubclass(InvalidRetentionError, ValidationError)


def test_list_input_is_stored_as_tuple():
    vector = WeightVector(list(DEFAULT_WEIGHTS))
    assert isinstance(vector.weights, tuple)
    assert vector == WeightVector.defaults()
    assert hash(vector) == hash(WeightVector.defaults())


def test_with_weight_returns_copy():
    base = WeightVector.defaults()
    changed = base.with_weight(2, 3.5)
    assert changed[2] == 3.5
    assert base[2] == DEFAULT_WEIGHTS[2]
    assert changed.desired_retention == base.desired_retention


def test_with_weight_clamps_on_request_only():
    base = WeightVector.defaults()
    with pytest.raises(InvalidWeightError):
        base.with_weight(20, 5.0)
    assert base.with_weight(20, 5.0, clamp=True)[20] == 0.8
    assert base.with_weight(20, -1.0, clamp=True)[20] == 0.1


def test_with_retention():
    base = WeightVector.defaults()
    assert base.with_retention(0.85).desired_retention == 0.85
    assert base.with_weight(RETENTION_INDEX, 0.8).desired_retention == 0.8
    assert base.with_retention(0.5, clamp=True).desired_retention == 0.7
    with pytest.raises(InvalidRetentionError):
        base.with_retention(0.5)


def test_from_values():
    assert WeightVector.from_values(None) == WeightVector.defaults()
    custom = WeightVector.from_values(list(DEFAULT_WEIGHTS), 0.95)
    assert custom.desired_retention == 0.95


def test_format():
    text = WeightVector.defaults().format()
    parts = text.split(", ")
    assert len(parts) == WEIGHT_COUNT
    assert parts[0] == "0.2120"
    assert WeightVector.defaults().format(decimals=2).startswith("0.21, 1.29")
