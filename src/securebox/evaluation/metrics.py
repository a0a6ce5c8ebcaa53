from __future__ import annotations


def opened(locked: bool) -> int:
    return int(not locked)


def toggles_used(plan) -> int:
    # an unsolvable box issues no toggles
    return 0 if plan is None else len(plan)


def toggle_density(plan, n: int, m: int) -> float:
    """Fraction of cells toggled by a plan."""
    return toggles_used(plan) / float(n * m)


def run_status(plan, locked: bool) -> str:
    if plan is None:
        return "no_solution"
    return "locked" if locked else "opened"
