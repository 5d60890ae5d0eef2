"""
Bounded undo/redo history of weight-vector snapshots.

Linear history, Photoshop-style: a new edit after undoing discards the redo
branch. Snapshots are immutable WeightVectors, so a caller can keep reading
an old one while new edits are pushed.
"""

from episteme.domain.constants import HISTORY_CAP
from episteme.domain.scheduling.weights import WeightVector


class ParameterHistory:
    def __init__(self, seed: WeightVector, cap: int = HISTORY_CAP):
        if cap < 1:
            raise ValueError(f"History cap must be at least 1, got {cap}")
        self.cap = cap
        self._snapshots: list[WeightVector] = [seed]
        self._cursor = 0

    def _check(self) -> None:
        assert 0 <= self._cursor < len(self._snapshots), "history cursor out of range"
        assert len(self._snapshots) <= self.cap, "history exceeds its cap"

    @property
    def current(self) -> WeightVector:
        return self._snapshots[self._cursor]

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshots(self) -> tuple[WeightVector, ...]:
        return tuple(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._snapshots) - 1

    def push(self, vector: WeightVector) -> WeightVector:
        """Append *vector* after the cursor, dropping any redo branch and the oldest overflow."""
        del self._snapshots[self._cursor + 1 :]
        self._snapshots.append(vector)
        self._cursor = len(self._snapshots) - 1

        while len(self._snapshots) > self.cap:
            self._snapshots.pop(0)
            self._cursor -= 1

        self._check()
        return self.current

    def undo(self) -> WeightVector:
        if self.can_undo():
            self._cursor -= 1
        self._check()
        return self.current

    def redo(self) -> WeightVector:
        if self.can_redo():
            self._cursor += 1
        self._check()
        return self.current

    def reset(self, seed: WeightVector) -> WeightVector:
        """Replace the whole history with *seed*."""
        self._snapshots = [seed]
        self._cursor = 0
        return self.current
