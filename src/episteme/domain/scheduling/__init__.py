# Domain Scheduling Package
from .models import GRADE_NAMES, Card, CardState, Maturity, Rating
from .ports import UpdateFunction
from .weights import ALL_SPECS, DEFAULT_WEIGHTS, ParameterSpec, WeightVector

__all__ = [
    "Card",
    "CardState",
    "Maturity",
    "Rating",
    "GRADE_NAMES",
    "UpdateFunction",
    "WeightVector",
    "ParameterSpec",
    "ALL_SPECS",
    "DEFAULT_WEIGHTS",
]
