from __future__ import annotations

from typing import Callable


class CostScaling:
    """Maps an upgrade's current level to the price of the next level."""

    def __init__(self, fn: Callable[[int], int]) -> None:
        self._fn = fn

    def compute(self, level: int) -> int:
        if level < 0:
            raise ValueError(f"Level must be >= 0, got {level}")
        cost = self._fn(level)
        if cost <= 0:
            raise ValueError(f"Cost must be positive, got {cost} at level {level}")
        return cost

    @classmethod
    def fixed(cls, cost: int) -> CostScaling:
        """Cost never changes."""
        return cls(lambda _level: cost)

    @classmethod
    def linear(cls, base: int, growth: int) -> CostScaling:
        """Cost = base + growth * level."""
        return cls(lambda level: base + growth * level)

    @classmethod
    def segmented(
        cls,
        base: int,
        growth: int,
        threshold: int = 25,
        growth_pct: int = 15,
    ) -> CostScaling:
        """Linear below *threshold*, then compounding by *growth_pct* per level.

        The compounding part is evaluated as an exact integer floor so the
        formula stays defined for arbitrarily high levels.
        """

        def _compute(level: int) -> int:
            if level < threshold:
                return base + growth * level
            linear_part = base + growth * threshold
            steps = level - threshold
            return linear_part * (100 + growth_pct) ** steps // 100 ** steps

        return cls(_compute)

    @classmethod
    def polynomial(cls, base: int, exponent: int = 2) -> CostScaling:
        """Cost = base * (level + 1) ** exponent."""
        return cls(lambda level: base * (level + 1) ** exponent)

    @classmethod
    def custom(cls, fn: Callable[[int], int]) -> CostScaling:
        """Arbitrary cost function."""
        return cls(fn)
