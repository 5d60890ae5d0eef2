"""
FSRS v6 weight vector and the documented range of every parameter.

A WeightVector is immutable and always valid: construction rejects wrong
lengths, non-finite numbers and out-of-range values. Clamping is only done
on request (numeric entry fields), never implicitly.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass

from episteme.domain.constants import (
    DEFAULT_DESIRED_RETENTION,
    MAX_DESIRED_RETENTION,
    MIN_DESIRED_RETENTION,
    PARAMETER_DISPLAY_DECIMALS,
    WEIGHT_COUNT,
)
from episteme.domain.errors import InvalidRetentionError, InvalidWeightError

RETENTION_INDEX = -1


@dataclass(frozen=True)
class ParameterSpec:
    """Valid range and default of one tunable parameter (index -1 is retention)."""

    index: int
    name: str
    description: str
    min: float
    max: float
    step: float
    default: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def clamp(self, value: float) -> float:
        return min(self.max, max(self.min, value))


DEFAULT_WEIGHTS: tuple[float, ...] = (
    0.212,  # w0: initial stability for Again
    1.2931,  # w1: initial stability for Hard
    2.3065,  # w2: initial stability for Good
    8.2956,  # w3: initial stability for Easy
    6.4133,  # w4: initial difficulty
    0.8334,  # w5: initial difficulty multiplier
    3.0194,  # w6: difficulty change
    0.001,  # w7: mean reversion
    1.8722,  # w8: recall stability exponent
    0.1666,  # w9: recall stability negative power
    0.796,  # w10: recall retrievability exponent
    1.4835,  # w11: lapse stability multiplier
    0.0614,  # w12: lapse difficulty power
    0.2629,  # w13: lapse stability power
    1.6483,  # w14: lapse retrievability exponent
    0.6014,  # w15: hard penalty
    1.8729,  # w16: easy bonus
    0.5425,  # w17: short-term stability exponent
    0.0912,  # w18: short-term stability offset
    0.0658,  # w19: same-day stability exponent
    0.1542,  # w20: forgetting curve decay
)

_RANGES: tuple[tuple[str, str, float, float], ...] = (
    ("initial stability (Again)", "Initial stability when first rating is Again", 0.001, 100.0),
    ("initial stability (Hard)", "Initial stability when first rating is Hard", 0.001, 100.0),
    ("initial stability (Good)", "Initial stability when first rating is Good", 0.001, 100.0),
    ("initial stability (Easy)", "Initial stability when first rating is Easy", 0.001, 100.0),
    ("initial difficulty (Good)", "Initial difficulty when first rating is Good", 1.0, 10.0),
    ("initial difficulty (multiplier)", "Difficulty adjustment multiplier", 0.001, 4.0),
    ("difficulty (multiplier)", "Difficulty change multiplier", 0.001, 4.0),
    ("difficulty (mean reversion)", "Pull of difficulty towards its default", 0.001, 0.75),
    ("stability (exponent)", "Stability calculation exponent", 0.0, 4.5),
    ("stability (negative power)", "Stability negative power factor", 0.0, 0.8),
    ("stability (retrievability exponent)", "Recall stability exponent", 0.001, 3.5),
    ("fail stability (multiplier)", "Lapse stability multiplier", 0.001, 5.0),
    ("fail stability (negative power)", "Lapse stability negative power", 0.001, 0.25),
    ("fail stability (power)", "Lapse stability power", 0.001, 0.9),
    ("fail stability (exponent)", "Lapse retrievability exponent", 0.0, 4.0),
    ("stability (multiplier for Hard)", "Hard rating stability multiplier", 0.0, 1.0),
    ("stability (multiplier for Easy)", "Easy rating stability multiplier", 1.0, 6.0),
    ("short-term stability (exponent)", "Short-term stability exponent", 0.0, 2.0),
    ("short-term stability (offset)", "Short-term stability offset", 0.0, 2.0),
    ("short-term last-stability (exponent)", "Same-day stability exponent", 0.0, 0.8),
    ("decay", "Forgetting curve decay", 0.1, 0.8),
)

WEIGHT_SPECS: tuple[ParameterSpec, ...] = tuple(
    ParameterSpec(
        index=i,
        name=f"{i}. {name}",
        description=description,
        min=lo,
        max=hi,
        step=0.0001,
        default=DEFAULT_WEIGHTS[i],
    )
    for i, (name, description, lo, hi) in enumerate(_RANGES)
)

RETENTION_SPEC = ParameterSpec(
    index=RETENTION_INDEX,
    name="desired retention",
    description="Target probability of recall at review time",
    min=MIN_DESIRED_RETENTION,
    max=MAX_DESIRED_RETENTION,
    step=0.01,
    default=DEFAULT_DESIRED_RETENTION,
)

ALL_SPECS: tuple[ParameterSpec, ...] = (RETENTION_SPEC, *WEIGHT_SPECS)


def spec_for(index: int) -> ParameterSpec:
    """Return the spec for a weight index, or the retention spec for -1."""
    if index == RETENTION_INDEX:
        return RETENTION_SPEC
    if not 0 <= index < WEIGHT_COUNT:
        raise InvalidWeightError(f"Weight index {index} out of range 0..{WEIGHT_COUNT - 1}")
    return WEIGHT_SPECS[index]


@dataclass(frozen=True)
class WeightVector:
    """
    The 21 FSRS weights plus the desired retention, treated as one value.

    Hashable, so schedulers built from it can be cached.
    """

    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    desired_retention: float = DEFAULT_DESIRED_RETENTION

    def __post_init__(self):
        try:
            values = tuple(float(w) for w in self.weights)
            retention = float(self.desired_retention)
        except (TypeError, ValueError) as e:
            raise InvalidWeightError(f"Weights must be numbers: {e}") from e

        if len(values) != WEIGHT_COUNT:
            raise InvalidWeightError(f"Expected {WEIGHT_COUNT} weights, got {len(values)}")

        for spec, value in zip(WEIGHT_SPECS, values):
            if not math.isfinite(value):
                raise InvalidWeightError(f"w{spec.index} is not a finite number: {value}")
            if not spec.contains(value):
                raise InvalidWeightError(
                    f"w{spec.index} = {value} outside [{spec.min}, {spec.max}]"
                )

        if not math.isfinite(retention) or not RETENTION_SPEC.contains(retention):
            raise InvalidRetentionError(
                f"Desired retention {retention} outside "
                f"[{RETENTION_SPEC.min}, {RETENTION_SPEC.max}]"
            )

        object.__setattr__(self, "weights", values)
        object.__setattr__(self, "desired_retention", retention)

    @classmethod
    def defaults(cls) -> "WeightVector":
        return cls()

    @classmethod
    def from_values(
        cls,
        weights: Iterable[float] | None,
        desired_retention: float = DEFAULT_DESIRED_RETENTION,
    ) -> "WeightVector":
        """Build from persisted settings; None weights means algorithm defaults."""
        if weights is None:
            return cls(DEFAULT_WEIGHTS, desired_retention)
        return cls(tuple(weights), desired_retention)

    def with_weight(self, index: int, value: float, *, clamp: bool = False) -> "WeightVector":
        """Copy with one parameter replaced. Index -1 targets the retention."""
        spec = spec_for(index)
        if clamp:
            value = spec.clamp(value)
        if index == RETENTION_INDEX:
            return WeightVector(self.weights, value)
        values = list(self.weights)
        values[index] = value
        return WeightVector(tuple(values), self.desired_retention)

    def with_retention(self, value: float, *, clamp: bool = False) -> "WeightVector":
        return self.with_weight(RETENTION_INDEX, value, clamp=clamp)

    def format(self, decimals: int = PARAMETER_DISPLAY_DECIMALS) -> str:
        return ", ".join(f"{w:.{decimals}f}" for w in self.weights)

    def __len__(self) -> int:
        return len(self.weights)

    def __getitem__(self, index: int) -> float:
        return self.weights[index]
