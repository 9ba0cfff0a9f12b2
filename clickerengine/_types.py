from __future__ import annotations

import operator
import time
from typing import Callable

Clock = Callable[[], int]

_OPS: dict[str, Callable[[float, float], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
}


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def compare(left: float, op: str, right: float) -> bool:
    """Compare two values using a string operator."""
    fn = _OPS.get(op)
    if fn is None:
        raise ValueError(f"Unknown operator: {op!r}. Expected one of {list(_OPS)}")
    return fn(left, right)


class ManualClock:
    """Clock that only moves when told to. Used for headless runs and tests."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = start_ms

    def __call__(self) -> int:
        return self._now

    def set(self, value_ms: int) -> None:
        if value_ms < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = value_ms

    def advance(self, delta_ms: int) -> int:
        self.set(self._now + delta_ms)
        return self._now
