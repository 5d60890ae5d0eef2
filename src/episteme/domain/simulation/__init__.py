# Domain Simulation Package
from .models import INITIAL_GRADE, MetricType, SequenceReview, SequenceSimulation

__all__ = ["INITIAL_GRADE", "MetricType", "SequenceReview", "SequenceSimulation"]
