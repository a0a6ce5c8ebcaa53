from __future__ import annotations

from typing import Optional

import numpy as np

from ..algebra import DimensionMismatchError, build_A, gf2_solve_rref
from ..board import BoxState
from .base import NoPlanError, Strategy


class ReducedRowEchelon(Strategy):
    """Gauss-Jordan solve that tolerates singular effect matrices.

    Columns without a pivot become free variables fixed at 0, so boxes with
    an odd dimension can still be opened whenever their state is reachable.
    """

    def __init__(self):
        self.n: Optional[int] = None
        self.m: Optional[int] = None
        self.N: Optional[int] = None
        self.A: Optional[np.ndarray] = None

    def reset(self, n: int, m: int, params: dict | None = None) -> None:
        self.n = int(n)
        self.m = int(m)
        self.N = self.n * self.m
        self.A = build_A(self.n, self.m)

    def plan(self, state: BoxState) -> list[int]:
        assert (
            self.A is not None and self.N is not None
        ), "Strategy not initialized properly."
        if (state.n, state.m) != (self.n, self.m):
            raise DimensionMismatchError(
                f"state is {state.n}x{state.m}, strategy was reset for "
                f"{self.n}x{self.m}"
            )
        target_state = state.to_flat().astype(np.uint8)
        solution = gf2_solve_rref(self.A, target_state, self.N)
        if solution is None:
            raise NoPlanError("No valid reduced row echelon solution for this box.")
        return [i for i in range(self.N) if solution[i] == 1]
