from __future__ import annotations
from typing import Protocol
from ..board import BoxState


class NoPlanError(Exception):
    """Raised by a strategy when no valid plan exists for the given state."""

    pass


class Strategy(Protocol):
    def reset(self, n: int, m: int, params: dict | None = None): ...
    def plan(self, state: BoxState) -> list[int]: ...
