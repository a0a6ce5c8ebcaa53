from __future__ import annotations

from typing import NamedTuple

import numpy as np


class Cell(NamedTuple):
    row: int
    col: int

    def index(self, m: int) -> int:
        """Flat index of this cell on a grid with `m` columns."""
        return self.row * m + self.col

    @staticmethod
    def from_index(i: int, m: int) -> "Cell":
        r, c = divmod(i, m)
        return Cell(r, c)


class BoxState:
    """Point-in-time copy of an n x m lock grid (True = locked)."""

    def __init__(self, n: int, m: int, state: np.ndarray | None = None):
        self.n = n
        self.m = m
        if state is None:
            self.state = np.zeros((n, m), dtype=bool)
        else:
            assert state.shape == (n, m)
            self.state = state.astype(bool, copy=True)

    def to_flat(self) -> np.ndarray:
        return self.state.reshape(-1)

    @staticmethod
    def from_flat(n: int, m: int, flat: np.ndarray) -> "BoxState":
        return BoxState(n, m, np.asarray(flat).reshape(n, m))

    def count_locked(self) -> int:
        return int(self.state.sum())

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoxState):
            return NotImplemented
        return (self.n, self.m) == (other.n, other.m) and bool(
            np.array_equal(self.state, other.state)
        )

    def __repr__(self):
        return f"BoxState(n={self.n}, m={self.m}, locked={self.count_locked()})"

    def __str__(self) -> str:
        return "\n".join(
            "".join("1" if cell else "0" for cell in row) for row in self.state
        )
