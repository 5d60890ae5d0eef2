# Application Simulation Package
from .engine import SIMULATION_EPOCH, SimulationEngine, parse_sequence
from .history import ParameterHistory
from .projection import (
    IntervalRow,
    IntervalTable,
    describe_review,
    grade_name,
    interval_table,
    metric_series,
)
from .session import SimulationSession, split_sequences

__all__ = [
    "SIMULATION_EPOCH",
    "SimulationEngine",
    "parse_sequence",
    "ParameterHistory",
    "IntervalRow",
    "IntervalTable",
    "describe_review",
    "grade_name",
    "interval_table",
    "metric_series",
    "SimulationSession",
    "split_sequences",
]
