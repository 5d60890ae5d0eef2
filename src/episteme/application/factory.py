"""
Component factory
Centralizes building the scheduling and simulation components from AppConfig.
"""

import random

from episteme.application.config import AppConfig
from episteme.application.scheduling.card_rules import CardClassifier
from episteme.application.scheduling.day_boundary import DayBoundary
from episteme.application.scheduling.queue import QueueBuilder
from episteme.application.scheduling.quota import DailyQuota
from episteme.application.simulation.engine import SimulationEngine
from episteme.application.simulation.session import SimulationSession
from episteme.domain.scheduling.ports import UpdateFunction
from episteme.domain.scheduling.weights import WeightVector
from episteme.infrastructure.adapters.fsrs_update import FsrsUpdateFunction


def get_seed_weights(config: AppConfig) -> WeightVector:
    """User-configured weights and retention, or the algorithm defaults."""
    return WeightVector.from_values(config.fsrs_weights, config.desired_retention)


def get_update_function(config: AppConfig) -> UpdateFunction:
    return FsrsUpdateFunction(
        learning_steps_minutes=config.learning_steps_minutes,
        relearning_steps_minutes=config.relearning_steps_minutes,
        maximum_interval=config.maximum_interval,
    )


def get_day_boundary(config: AppConfig) -> DayBoundary:
    return DayBoundary(day_start_hour=config.day_start_hour, tz=config.timezone)


def get_classifier(config: AppConfig) -> CardClassifier:
    return CardClassifier(
        boundary=get_day_boundary(config),
        mature_threshold_days=config.mature_threshold_days,
    )


def get_daily_quota(config: AppConfig) -> DailyQuota:
    return DailyQuota(
        new_per_day=config.new_cards_per_day,
        reviews_per_day=config.reviews_per_day,
    )


def get_queue_builder(
    config: AppConfig, quota: DailyQuota | None = None, rng: random.Random | None = None
) -> QueueBuilder:
    """Queue builder over the configured classifier, sharing *quota* when given."""
    return QueueBuilder(
        classifier=get_classifier(config),
        quota=quota or get_daily_quota(config),
        learn_ahead_minutes=config.learn_ahead_minutes,
        new_card_order=config.new_card_order,
        review_order=config.review_order,
        new_review_mix=config.new_review_mix,
        rng=rng,
    )


def get_simulation_engine(config: AppConfig) -> SimulationEngine:
    return SimulationEngine(get_update_function(config))


def get_simulation_session(config: AppConfig) -> SimulationSession:
    """A fresh session seeded from the user's settings."""
    return SimulationSession(
        engine=get_simulation_engine(config),
        seed=get_seed_weights(config),
        history_cap=config.history_cap,
    )
