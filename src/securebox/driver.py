from __future__ import annotations

from .board import Cell
from .box import SecureBox
from .strategies import GaussianElimination, ReducedRowEchelon
from .strategies.base import NoPlanError, Strategy

METHODS = ("elimination", "rref")


def make_strategy(method: str) -> Strategy:
    method = method.lower()
    if method == "elimination":
        return GaussianElimination()
    if method == "rref":
        return ReducedRowEchelon()
    raise ValueError(f"Unknown method: {method}")


def plan_box(box: SecureBox, strategy: Strategy | None = None) -> list[int] | None:
    """Snapshot `box` and return the flat indices to toggle, or None if unsolvable."""
    snapshot = box.snapshot()
    strategy = strategy or GaussianElimination()
    strategy.reset(box.n, box.m)
    try:
        return strategy.plan(snapshot)
    except NoPlanError:
        return None


def apply_plan(box: SecureBox, plan: list[int]) -> None:
    """Toggle every planned cell of `box` once, in row-major order."""
    # toggles commute, the order only fixes the intermediate states
    for i in sorted(plan):
        cell = Cell.from_index(i, box.m)
        box.toggle(cell.row, cell.col)


def solve_box(box: SecureBox, strategy: Strategy | None = None) -> bool:
    """Unlock `box` in place and return True if it is still locked afterwards.

    The state is read once up front, so nothing else may toggle the box until
    this returns. If no plan exists, no toggles are issued at all.
    """
    plan = plan_box(box, strategy)
    if plan is not None:
        apply_plan(box, plan)
    return box.is_locked()


def open_box(
    n: int, m: int, seed: int | None = None, method: str = "elimination"
) -> bool:
    """Create a shuffled n x m box and try to open it.

    Returns True if the box remains locked, False if it was opened.
    """
    strategy = make_strategy(method)
    box = SecureBox(n, m, seed=seed)
    return solve_box(box, strategy)
