from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from ..algebra import DimensionMismatchError, build_A, gf2_gaussian_elimination
from ..board import BoxState
from .base import NoPlanError, Strategy


class GaussianElimination(Strategy):
    """
    Solve the whole box upfront with forward elimination and back-substitution.
    Raises DegeneratePivotError on grids whose effect matrix is singular.
    """

    def __init__(self):
        self.n: Optional[int] = None
        self.m: Optional[int] = None
        self.N: Optional[int] = None
        self.A: Optional[NDArray] = None

    def reset(self, n: int, m: int, params: dict | None = None) -> None:
        self.n = int(n)
        self.m = int(m)
        self.N = self.n * self.m
        # Build the effect matrix once for this box size
        self.A = build_A(self.n, self.m)

    def _solve(self, state: BoxState) -> np.ndarray | None:
        assert (
            self.A is not None
        ), "GaussianElimination: A not built, call reset() first"
        if (state.n, state.m) != (self.n, self.m):
            raise DimensionMismatchError(
                f"state is {state.n}x{state.m}, strategy was reset for "
                f"{self.n}x{self.m}"
            )
        target_state = state.to_flat().astype(np.uint8)
        # elimination consumes its inputs
        return gf2_gaussian_elimination(self.A.copy(), target_state)

    def plan(self, state: BoxState) -> list[int]:
        solution = self._solve(state)
        if solution is None:
            raise NoPlanError(
                "GaussianElimination: system is inconsistent for this box."
            )
        return [int(i) for i in np.flatnonzero(solution)]
