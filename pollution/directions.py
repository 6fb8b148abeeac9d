"""
Spread directions: the 8 neighbor offsets with base weights, and the wind-adjusted
final weights that decide how a cell's outflow is shared. Final weights always sum to 1.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence

from pollution.constants import (
    CARDINAL_OFFSETS,
    CARDINAL_WEIGHT,
    DIAGONAL_OFFSETS,
    DIAGONAL_WEIGHT,
    WIND_SHARPNESS,
)


@dataclass(frozen=True)
class Wind:
    """2D wind vector; its length (0..1) is the directional bias strength."""

    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_direction(cls, direction: Sequence[float], strength: float) -> "Wind":
        """Scale direction to length clamp(strength, 0, 1). Zero strength or direction = calm."""
        dx, dy = float(direction[0]), float(direction[1])
        length = math.hypot(dx, dy)
        if strength == 0 or length == 0:
            return cls()
        s = max(0.0, min(1.0, float(strength))) / length
        return cls(dx * s, dy * s)

    @classmethod
    def from_angle(cls, degrees: float, strength: float) -> "Wind":
        rad = math.radians(degrees)
        return cls.from_direction((math.cos(rad), math.sin(rad)), strength)

    @property
    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)


CALM = Wind()


class SpreadDirection:
    __slots__ = ("dx", "dy", "base_weight", "final_weight")

    def __init__(self, dx: int, dy: int, base_weight: float) -> None:
        self.dx = dx
        self.dy = dy
        self.base_weight = base_weight
        self.final_weight = base_weight

    @property
    def offset(self) -> tuple[int, int]:
        return self.dx, self.dy

    def __repr__(self) -> str:
        return f"SpreadDirection(({self.dx}, {self.dy}), base={self.base_weight:.4f}, final={self.final_weight:.4f})"


class SpreadDirectionTable:
    """Fixed set of 8 directions; recompute_weights() re-biases them for a wind vector."""

    def __init__(self, diagonal_weight: float = DIAGONAL_WEIGHT, cardinal_weight: float = CARDINAL_WEIGHT) -> None:
        if diagonal_weight <= 0 or cardinal_weight <= 0:
            raise ValueError("Direction base weights must be positive")
        self.directions = [SpreadDirection(dx, dy, cardinal_weight) for dx, dy in CARDINAL_OFFSETS]
        self.directions += [SpreadDirection(dx, dy, diagonal_weight) for dx, dy in DIAGONAL_OFFSETS]
        self.wind = CALM
        self.recompute_weights(CALM)

    def __iter__(self) -> Iterator[SpreadDirection]:
        return iter(self.directions)

    def __len__(self) -> int:
        return len(self.directions)

    def recompute_weights(self, wind: Wind) -> None:
        """
        Cosine similarity to the wind, remapped to [0, 1] and sharpened by 10*|wind|,
        blended with 1 by |wind|, times base weight, then normalized to sum 1.
        """
        strength = wind.magnitude
        total = 0.0
        for d in self.directions:
            if strength == 0:
                w = 1.0
            else:
                c = (d.dx * wind.x + d.dy * wind.y) / (math.hypot(d.dx, d.dy) * strength)
                w = max(0.0, c * 0.5 + 0.5) ** (WIND_SHARPNESS * strength)
            w = 1.0 + (w - 1.0) * strength
            d.final_weight = w * d.base_weight
            total += d.final_weight
        for d in self.directions:
            d.final_weight /= total
        self.wind = wind

    def final_weights(self) -> list[float]:
        return [d.final_weight for d in self.directions]
