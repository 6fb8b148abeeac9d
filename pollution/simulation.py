"""
Simulation facade: species, fixed-size double buffer, spread directions, edit inbox and the
tick scheduler wired together. Safe to call queue_edit/set_wind/load_buffer from any thread;
request_tick should come from a single driving thread.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Iterable, Optional, Sequence

import numpy as np

from pollution.buffers import DoubleBuffer
from pollution.constants import DEFAULT_TICK_INTERVAL, DIAGONAL_WEIGHT, EMPTY, UNKNOWN_POLLUTANT
from pollution.diffusion import DiffusionEngine
from pollution.directions import CALM, SpreadDirectionTable, Wind
from pollution.edits import EditQueue, PendingEdit
from pollution.mapping import GridMapping
from pollution.pollutant import Pollutant, PollutantTable
from pollution.scheduler import StepScheduler, TickState

logger = logging.getLogger(__name__)


class PollutionSimulation:
    def __init__(
        self,
        pollutants: Iterable[Pollutant],
        grid_size: int,
        *,
        spill_over_borders: bool = True,
        diagonal_weight: float = DIAGONAL_WEIGHT,
        tick_budget: float = DEFAULT_TICK_INTERVAL,
        workers: int | None = None,
        mapping: GridMapping | None = None,
    ) -> None:
        if isinstance(grid_size, bool) or not isinstance(grid_size, (int, np.integer)):
            raise ValueError(f"Grid size must be an integer, got {grid_size!r}")
        if grid_size <= 0:
            raise ValueError(f"Grid size must be positive, got {grid_size}")
        self.pollutants = PollutantTable(pollutants)
        self.grid_size = int(grid_size)
        self.buffers = DoubleBuffer(len(self.pollutants), self.grid_size)
        self.directions = SpreadDirectionTable(diagonal_weight=diagonal_weight)
        self.edits = EditQueue()
        self.engine = DiffusionEngine(self.buffers, self.pollutants, self.directions, spill_over_borders)
        self.mapping = mapping
        self._lock = threading.Lock()
        self._wind = CALM
        self._wind_dirty = False
        self._pending_load: np.ndarray | None = None
        self.scheduler = StepScheduler(
            self.buffers,
            self.pollutants,
            self.directions,
            self.edits,
            self.engine,
            wind_source=self._take_wind,
            load_source=self._take_load,
            tick_budget=tick_budget,
            workers=workers,
        )
        logger.info(
            "Pollution grid %dx%d with %d pollutant(s): %s",
            self.grid_size,
            self.grid_size,
            len(self.pollutants),
            ", ".join(self.pollutants.names),
        )

    @classmethod
    def from_config(cls, cfg: dict, mapping: GridMapping | None = None) -> "PollutionSimulation":
        return cls(
            [Pollutant.from_dict(p) for p in cfg.get("pollutants", [])],
            cfg["grid_size"],
            spill_over_borders=cfg.get("spill_over_borders", True),
            diagonal_weight=cfg.get("diagonal_weight", DIAGONAL_WEIGHT),
            tick_budget=cfg.get("tick_interval", DEFAULT_TICK_INTERVAL),
            workers=cfg.get("workers"),
            mapping=mapping,
        )

    def __enter__(self) -> "PollutionSimulation":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.scheduler.shutdown(wait=True)

    # --- stepping ---

    @property
    def state(self) -> TickState:
        return self.scheduler.state

    @property
    def tick_count(self) -> int:
        return self.scheduler.tick_count

    @property
    def dropped_ticks(self) -> int:
        return self.scheduler.dropped_ticks

    @property
    def spill_over_borders(self) -> bool:
        return self.engine.spill_over_borders

    @spill_over_borders.setter
    def spill_over_borders(self, value: bool) -> None:
        self.engine.spill_over_borders = bool(value)

    def request_tick(self) -> Future | None:
        return self.scheduler.request_tick()

    def step(self) -> bool:
        """Run one tick to completion. False if a tick was already in flight."""
        future = self.scheduler.request_tick()
        if future is None:
            return False
        future.result()
        return True

    def wait(self, timeout: float | None = None) -> None:
        self.scheduler.wait(timeout)

    # --- edits and queries ---

    def queue_edit(self, pollutant: str, position: Sequence[int], modifier: float) -> None:
        x, y = int(position[0]), int(position[1])
        self.edits.enqueue(PendingEdit(pollutant, x, y, float(modifier)))

    def query_value(self, pollutant: str, position: Sequence[int]) -> float:
        index = self.pollutants.index_of(pollutant)
        if index == -1:
            return UNKNOWN_POLLUTANT
        x, y = int(position[0]), int(position[1])
        if not self.buffers.in_bounds(x, y):
            return EMPTY
        return float(self.buffers.stable[index, y, x])

    def value_at_location(self, location: Sequence[float], pollutant: str) -> float:
        return self.query_value(pollutant, self._require_mapping().to_grid(location))

    def modify_at_location(self, location: Sequence[float], pollutant: str, modifier: float) -> None:
        self.queue_edit(pollutant, self._require_mapping().to_grid(location), modifier)

    def _require_mapping(self) -> GridMapping:
        if self.mapping is None:
            raise RuntimeError("No world mapping attached to this simulation")
        return self.mapping

    def pollutant_layer(self, pollutant: str) -> Optional[np.ndarray]:
        """Stable size x size view of one pollutant, or None for unknown names."""
        index = self.pollutants.index_of(pollutant)
        if index == -1:
            return None
        return self.buffers.layer(index)

    def total(self, pollutant: str) -> float:
        index = self.pollutants.index_of(pollutant)
        if index == -1:
            return UNKNOWN_POLLUTANT
        return float(self.buffers.totals()[index])

    # --- whole-buffer exchange ---

    def read_buffer(self) -> np.ndarray:
        return self.buffers.snapshot()

    def load_buffer(self, flat) -> bool:
        """Queue a full replacement for the next tick. False (no effect) on a size mismatch."""
        data = np.asarray(flat, dtype=np.float64).reshape(-1)
        if data.size != len(self.buffers):
            logger.warning("Rejected buffer load: got %d values, expected %d", data.size, len(self.buffers))
            return False
        with self._lock:
            self._pending_load = np.maximum(data, 0.0)
        return True

    def _take_load(self) -> np.ndarray | None:
        with self._lock:
            data, self._pending_load = self._pending_load, None
        return data

    # --- wind ---

    @property
    def wind(self) -> Wind:
        return self._wind

    def set_wind(self, direction: Sequence[float], strength: float) -> None:
        wind = Wind.from_direction(direction, strength)
        if strength > 0 and wind.magnitude == 0:
            logger.warning("Wind direction %r has zero length; wind cleared", tuple(direction))
        with self._lock:
            self._wind = wind
            self._wind_dirty = True

    def _take_wind(self) -> Wind | None:
        with self._lock:
            if not self._wind_dirty:
                return None
            self._wind_dirty = False
            return self._wind
