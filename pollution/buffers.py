"""Stable/scratch concentration arrays of shape (pollutants, size, size). Flat layout p*size*size + y*size + x."""

from __future__ import annotations

import numpy as np

from pollution.constants import EMPTY


class DoubleBuffer:
    """Two equal arrays; one is the stable (read) side, the other the scratch (write) side."""

    __slots__ = ("shape", "size", "_a", "_b", "_stable_is_a")

    def __init__(self, num_pollutants: int, size: int) -> None:
        self.shape = (num_pollutants, size, size)
        self.size = size
        self._a = np.full(self.shape, EMPTY, dtype=np.float64)
        self._b = np.full(self.shape, EMPTY, dtype=np.float64)
        self._stable_is_a = True

    def __len__(self) -> int:
        return self._a.size

    @property
    def stable(self) -> np.ndarray:
        return self._a if self._stable_is_a else self._b

    @property
    def scratch(self) -> np.ndarray:
        return self._b if self._stable_is_a else self._a

    def swap(self) -> None:
        """Scratch becomes stable. Flips the role flag; nothing is copied."""
        self._stable_is_a = not self._stable_is_a

    def prepare_scratch(self) -> None:
        """Start this tick's scratch from the stable state; diffusion then writes deltas into it."""
        np.copyto(self.scratch, self.stable)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def layer(self, pollutant_index: int) -> np.ndarray:
        """Stable size x size view of one pollutant (rows = y)."""
        return self.stable[pollutant_index]

    def snapshot(self) -> np.ndarray:
        return self.stable.reshape(-1).copy()

    def replace(self, flat: np.ndarray) -> None:
        """Overwrite both arrays. Caller guarantees len(flat) == len(self)."""
        data = np.asarray(flat, dtype=np.float64).reshape(self.shape)
        np.copyto(self._a, data)
        np.copyto(self._b, data)

    def totals(self) -> np.ndarray:
        """Per-pollutant sum over the stable grid."""
        return self.stable.sum(axis=(1, 2))
