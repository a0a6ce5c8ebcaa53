from __future__ import annotations

import numpy as np

from .board import BoxState


class SecureBox:
    """Lock grid where toggling a cell flips its whole row and column.

    The initial configuration is produced by `shuffle`, which applies a
    random number of random toggles drawn from a generator owned by the box.
    Pass `seed` to make that configuration reproducible.
    """

    def __init__(
        self,
        n: int,
        m: int,
        seed: int | None = None,
        max_shuffle: int = 1000,
    ):
        if n < 1 or m < 1:
            raise ValueError(f"box dimensions must be positive, got {n}x{m}")
        self.n = int(n)
        self.m = int(m)
        self.max_shuffle = int(max_shuffle)
        self.rng = np.random.default_rng(seed)
        self._box = np.zeros((self.n, self.m), dtype=bool)
        self.shuffle()

    @classmethod
    def from_state(cls, state: np.ndarray) -> "SecureBox":
        """Build an unshuffled box holding a copy of `state`."""
        state = np.asarray(state, dtype=bool)
        box = cls(state.shape[0], state.shape[1], max_shuffle=0)
        box._box = state.copy()
        return box

    def toggle(self, row: int, col: int) -> None:
        """Flip (row, col) together with every cell in its row and column."""
        if not (0 <= row < self.n and 0 <= col < self.m):
            raise IndexError(
                f"cell ({row}, {col}) outside {self.n}x{self.m} box"
            )
        self._box[row, :] ^= True
        self._box[:, col] ^= True
        # the crossing cell was flipped twice above
        self._box[row, col] ^= True

    def is_locked(self) -> bool:
        return bool(self._box.any())

    def get_state(self) -> np.ndarray:
        return self._box.copy()

    def snapshot(self) -> BoxState:
        return BoxState(self.n, self.m, self._box)

    def shuffle(self) -> None:
        if self.max_shuffle <= 0:
            return
        for _ in range(int(self.rng.integers(0, self.max_shuffle))):
            self.toggle(
                int(self.rng.integers(self.n)), int(self.rng.integers(self.m))
            )

    def __repr__(self):
        return f"SecureBox(n={self.n}, m={self.m}, locked={self.is_locked()})"
