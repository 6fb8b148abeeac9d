"""
Per-cell spread and decay. Reads only the stable buffer's pre-step values and writes
deltas into scratch (which starts as a copy of stable), so update order does not matter.
spill_over_borders=True = mass spread past the edge is lost; False = it stays in the source cell.

Cells are grouped into 9 phases by (x mod 3, y mod 3). Two cells of one phase are at least
3 apart, so their 3x3 write footprints never overlap and a phase can be written in parallel.
"""

from __future__ import annotations

from typing import Iterator

import numpy as np

from pollution.buffers import DoubleBuffer
from pollution.constants import PHASE_STRIDE
from pollution.directions import SpreadDirectionTable
from pollution.pollutant import PollutantTable


def phase_offsets() -> Iterator[tuple[int, int]]:
    """The 9 phases as (x offset, y offset)."""
    for oy in range(PHASE_STRIDE):
        for ox in range(PHASE_STRIDE):
            yield ox, oy


def phase_cells(size: int, phase: tuple[int, int]) -> tuple[np.ndarray, np.ndarray]:
    """Column and row indices of one phase; its cells are the cross product."""
    ox, oy = phase
    return np.arange(ox, size, PHASE_STRIDE), np.arange(oy, size, PHASE_STRIDE)


def write_footprint(x: int, y: int, size: int) -> set[tuple[int, int]]:
    """In-bounds cells a diffusion update of (x, y) may write to: itself and its 8 neighbors."""
    return {
        (x + dx, y + dy)
        for dy in (-1, 0, 1)
        for dx in (-1, 0, 1)
        if 0 <= x + dx < size and 0 <= y + dy < size
    }


class DiffusionEngine:
    """Outflow to the 8 neighbors and bounded decay for (pollutant, cell) pairs."""

    def __init__(
        self,
        buffers: DoubleBuffer,
        pollutants: PollutantTable,
        directions: SpreadDirectionTable,
        spill_over_borders: bool = True,
    ) -> None:
        self.buffers = buffers
        self.pollutants = pollutants
        self.directions = directions
        self.spill_over_borders = spill_over_borders

    def process_cell(self, p: int, x: int, y: int) -> None:
        buffers = self.buffers
        if not buffers.in_bounds(x, y):
            return
        pollutant = self.pollutants[p]
        stable = buffers.stable[p]
        scratch = buffers.scratch[p]
        value = float(stable[y, x])
        to_spread = value * pollutant.dispersion_rate
        not_spread = 0.0
        for d in self.directions:
            tx, ty = x + d.dx, y + d.dy
            if not buffers.in_bounds(tx, ty):
                if not self.spill_over_borders:
                    not_spread += to_spread * d.final_weight
                continue
            scratch[ty, tx] = max(0.0, scratch[ty, tx] + to_spread * d.final_weight)
        scratch[y, x] = max(0.0, scratch[y, x] - (to_spread - not_spread))
        decay = min(value * pollutant.decay_rate, pollutant.max_decay_per_tick)
        scratch[y, x] = max(0.0, scratch[y, x] - decay)

    def process_cells(self, p: int, xs: np.ndarray, ys: np.ndarray) -> None:
        """process_cell over the grid xs x ys. All cells must belong to one phase."""
        xs = np.asarray(xs, dtype=np.intp)
        ys = np.asarray(ys, dtype=np.intp)
        if xs.size == 0 or ys.size == 0:
            return
        size = self.buffers.size
        pollutant = self.pollutants[p]
        stable = self.buffers.stable[p]
        scratch = self.buffers.scratch[p]
        centers = np.ix_(ys, xs)
        values = stable[centers]
        to_spread = values * pollutant.dispersion_rate
        not_spread = np.zeros_like(to_spread)
        for d in self.directions:
            tx = xs + d.dx
            ty = ys + d.dy
            col_ok = (tx >= 0) & (tx < size)
            row_ok = (ty >= 0) & (ty < size)
            share = to_spread * d.final_weight
            if not self.spill_over_borders:
                inside = row_ok[:, np.newaxis] & col_ok[np.newaxis, :]
                not_spread += np.where(inside, 0.0, share)
            if not (col_ok.any() and row_ok.any()):
                continue
            targets = np.ix_(ty[row_ok], tx[col_ok])
            scratch[targets] = np.maximum(scratch[targets] + share[np.ix_(row_ok, col_ok)], 0.0)
        retained = np.maximum(scratch[centers] - (to_spread - not_spread), 0.0)
        decay = np.minimum(values * pollutant.decay_rate, pollutant.max_decay_per_tick)
        scratch[centers] = np.maximum(retained - decay, 0.0)
