"""
Error taxonomy for the scheduling and simulation core.

Input validation errors and data-integrity errors derive from EpistemeError
and are reported to callers. Programmer errors (unknown metric names) are
plain ValueErrors so they never get mistaken for user-facing failures.
"""


class EpistemeError(Exception):
    """Base class for all recoverable episteme errors."""


class ValidationError(EpistemeError):
    """Input rejected at the boundary."""


class InvalidSequenceError(ValidationError):
    def __init__(self, sequence: object, position: int | None = None, char: object = None):
        self.sequence = sequence
        self.position = position
        self.char = char
        if position is None:
            message = f"Invalid rating sequence: {sequence!r}"
        else:
            message = (
                f"Invalid rating sequence {sequence!r}: "
                f"{char!r} at position {position} is not a rating (1-4)"
            )
        super().__init__(message)


class InvalidWeightError(ValidationError):
    """A weight vector has the wrong length, a non-finite value, or a value out of range."""


class InvalidRetentionError(ValidationError):
    """Desired retention outside its allowed range."""


class CardIntegrityError(EpistemeError):
    """
    A card whose state and populated fields disagree.

    Raised instead of guessing a value, e.g. a Review card without scheduled_days.
    """

    def __init__(self, card_id: object, reason: str):
        self.card_id = card_id
        self.reason = reason
        super().__init__(f"Card {card_id!r}: {reason}")


class InvalidTransitionError(CardIntegrityError):
    """The update function proposed a state change the lifecycle does not allow."""


class UnknownMetricError(ValueError):
    """Requested metric series does not exist. Indicates a programming error."""
