"""
Simulation session: owned state of one open simulator.

Holds the rating sequences, the parameter history and the last results. A UI
keeps one instance per open simulator; nothing here is global.
"""

import logging
import re
from collections.abc import Iterable

from episteme.domain.constants import DEFAULT_SEQUENCES, HISTORY_CAP, SEQUENCE_PATTERN
from episteme.domain.scheduling.weights import WeightVector
from episteme.domain.simulation.models import SequenceSimulation

from .engine import SimulationEngine
from .history import ParameterHistory

logger = logging.getLogger(__name__)

_SEQUENCE_RE = re.compile(SEQUENCE_PATTERN)


def split_sequences(raw: Iterable[str]) -> tuple[list[str], list[str]]:
    """
    Partition raw input into well-formed sequences and discarded ones.

    Surrounding whitespace is stripped; blank entries are dropped silently.
    """
    kept: list[str] = []
    discarded: list[str] = []
    for item in raw:
        text = item.strip()
        if not text:
            continue
        if _SEQUENCE_RE.fullmatch(text):
            kept.append(text)
        else:
            discarded.append(item)
    return kept, discarded


class SimulationSession:
    """
    Interactive simulator state.

    Args:
        engine: Engine used by run().
        seed: Weights the session starts from and resets to (user settings or defaults).
        history_cap: Maximum number of parameter snapshots kept for undo.
        sequences: Initial sequences; the default set when omitted.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        seed: WeightVector | None = None,
        history_cap: int = HISTORY_CAP,
        sequences: Iterable[str] | None = None,
    ):
        self.engine = engine
        self.seed = seed or WeightVector.defaults()
        self.history = ParameterHistory(self.seed, cap=history_cap)
        self.sequences: list[str] = list(DEFAULT_SEQUENCES)
        self.simulations: list[SequenceSimulation] = []
        if sequences is not None:
            self.set_sequences(sequences)

    @property
    def parameters(self) -> WeightVector:
        return self.history.current

    # ----- sequences -----

    def set_sequences(self, raw: Iterable[str]) -> list[str]:
        """Replace the sequences; returns the entries that were discarded as malformed."""
        kept, discarded = split_sequences(raw)
        if discarded:
            logger.warning(f"Discarded malformed sequences: {discarded}")
        self.sequences = kept
        return discarded

    def reset_sequences(self) -> None:
        self.sequences = list(DEFAULT_SEQUENCES)

    # ----- parameters -----

    def set_weight(self, index: int, value: float) -> WeightVector:
        """Numeric entry: clamps to the parameter's range, then records a snapshot."""
        return self.history.push(self.parameters.with_weight(index, value, clamp=True))

    def set_retention(self, value: float, *, clamp: bool = True) -> WeightVector:
        return self.history.push(self.parameters.with_retention(value, clamp=clamp))

    def set_all_weights(self, weights: Iterable[float]) -> WeightVector:
        """Replace every weight at once. Validated, not clamped."""
        vector = WeightVector(tuple(weights), self.parameters.desired_retention)
        return self.history.push(vector)

    def undo(self) -> WeightVector:
        return self.history.undo()

    def redo(self) -> WeightVector:
        return self.history.redo()

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def reset_parameters(self) -> WeightVector:
        return self.history.reset(self.seed)

    def parameters_string(self) -> str:
        return self.parameters.format()

    # ----- results -----

    def run(self) -> list[SequenceSimulation]:
        self.simulations = self.engine.simulate(self.sequences, self.parameters)
        return self.simulations
