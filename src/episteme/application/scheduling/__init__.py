# Application Scheduling Package
from .card_rules import (
    CardClassifier,
    MaturityBreakdown,
    allowed_next_states,
    check_transition,
    validate_card,
)
from .day_boundary import DayBoundary
from .preview import RatingPreview, format_interval, scheduling_preview
from .queue import (
    NewCardOrder,
    NewReviewMix,
    QueueBuilder,
    ReviewOrder,
    ReviewQueue,
    interleave,
)
from .quota import UNLIMITED, AdmissionKind, DailyQuota, admission_kind_for

__all__ = [
    "CardClassifier",
    "MaturityBreakdown",
    "allowed_next_states",
    "check_transition",
    "validate_card",
    "DayBoundary",
    "DailyQuota",
    "AdmissionKind",
    "admission_kind_for",
    "UNLIMITED",
    "RatingPreview",
    "format_interval",
    "scheduling_preview",
    "QueueBuilder",
    "ReviewQueue",
    "NewCardOrder",
    "ReviewOrder",
    "NewReviewMix",
    "interleave",
]
