"""
Tick orchestration. The caller of request_tick() is the coordinator: it applies a pending
buffer load and queued edits into stable, resolves the wind and prepares scratch, then hands
spreading to a one-thread tick runner. Spreading fans each phase out to a worker pool and
joins it before the next phase. On completion scratch becomes stable and the state returns
to IDLE. Requests arriving while a tick is in flight are dropped, never queued.
"""

from __future__ import annotations

import enum
import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_all
from typing import Callable

import numpy as np

from pollution.buffers import DoubleBuffer
from pollution.diffusion import DiffusionEngine, phase_cells, phase_offsets
from pollution.directions import SpreadDirectionTable, Wind
from pollution.edits import EditQueue
from pollution.pollutant import PollutantTable

logger = logging.getLogger(__name__)


class TickState(enum.Enum):
    IDLE = "idle"
    EDITS_APPLIED = "edits_applied"
    WIND_RESOLVED = "wind_resolved"
    SPREADING = "spreading"
    COMPLETE = "complete"


def default_workers() -> int:
    return max(1, min(8, os.cpu_count() or 1))


class StepScheduler:
    def __init__(
        self,
        buffers: DoubleBuffer,
        pollutants: PollutantTable,
        directions: SpreadDirectionTable,
        edits: EditQueue,
        engine: DiffusionEngine,
        wind_source: Callable[[], Wind | None],
        load_source: Callable[[], np.ndarray | None],
        tick_budget: float = 1.0,
        workers: int | None = None,
    ) -> None:
        self.buffers = buffers
        self.pollutants = pollutants
        self.directions = directions
        self.edits = edits
        self.engine = engine
        # Return the new wind / pending load once, then None until changed again.
        self._wind_source = wind_source
        self._load_source = load_source
        self.tick_budget = tick_budget
        self.workers = workers or default_workers()
        self.state = TickState.IDLE
        self.tick_count = 0
        self.dropped_ticks = 0
        self.last_duration = 0.0
        self._started_at = 0.0
        self._lock = threading.Lock()
        self._current: Future | None = None
        self._runner = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pollution-tick")
        self._pool = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="pollution-spread")

    @property
    def busy(self) -> bool:
        return self.state is not TickState.IDLE

    def request_tick(self) -> Future | None:
        """Start one tick. Returns its future, or None when the previous tick is still running."""
        with self._lock:
            if self.state is not TickState.IDLE:
                self.dropped_ticks += 1
                elapsed_ms = (time.perf_counter() - self._started_at) * 1000.0
                logger.warning(
                    "Tick requested while the previous one is still running (%.1f ms so far); "
                    "step skipped (%d dropped in total)",
                    elapsed_ms,
                    self.dropped_ticks,
                )
                return None
            self._started_at = time.perf_counter()
            self.state = TickState.EDITS_APPLIED
        try:
            self._apply_load()
            self._apply_edits()
            self.state = TickState.WIND_RESOLVED
            wind = self._wind_source()
            if wind is not None:
                self.directions.recompute_weights(wind)
                logger.debug("Spread weights recomputed for wind (%.3f, %.3f)", wind.x, wind.y)
            self.buffers.prepare_scratch()
            self.state = TickState.SPREADING
            self._current = self._runner.submit(self._run)
        except BaseException:
            with self._lock:
                self.state = TickState.IDLE
            raise
        return self._current

    def wait(self, timeout: float | None = None) -> None:
        """Block until the in-flight tick (if any) has finished."""
        current = self._current
        if current is not None:
            current.result(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._runner.shutdown(wait=wait)
        self._pool.shutdown(wait=wait)

    def _apply_load(self) -> None:
        flat = self._load_source()
        if flat is not None:
            self.buffers.replace(flat)
            logger.info("Loaded external buffer (%d values)", flat.size)

    def _apply_edits(self) -> None:
        stable = self.buffers.stable
        for edit in self.edits.drain_for_step():
            index = self.pollutants.index_of(edit.pollutant)
            if index == -1:
                continue
            if not self.buffers.in_bounds(edit.x, edit.y):
                logger.debug("Ignoring edit outside the grid at (%d, %d)", edit.x, edit.y)
                continue
            stable[index, edit.y, edit.x] = max(0.0, stable[index, edit.y, edit.x] + edit.modifier)
        self.edits.working = []

    def _run(self) -> None:
        try:
            self._spread_all()
        except Exception:
            logger.exception("Pollution tick failed; keeping the previous state")
        else:
            self.buffers.swap()
            self.tick_count += 1
            self.state = TickState.COMPLETE
        finally:
            self.last_duration = time.perf_counter() - self._started_at
            if self.last_duration >= self.tick_budget:
                logger.warning(
                    "Finished processing pollution in %.1f ms. One or more steps were skipped. "
                    "Consider lowering the grid size.",
                    self.last_duration * 1000.0,
                )
            with self._lock:
                self.state = TickState.IDLE

    def _spread_all(self) -> None:
        size = self.buffers.size
        for p in range(len(self.pollutants)):
            for phase in phase_offsets():
                xs, ys = phase_cells(size, phase)
                chunks = [c for c in np.array_split(ys, min(self.workers, max(1, ys.size))) if c.size]
                if len(chunks) == 1:
                    self.engine.process_cells(p, xs, chunks[0])
                    continue
                futures = [self._pool.submit(self.engine.process_cells, p, xs, rows) for rows in chunks]
                wait_all(futures)
                for f in futures:
                    f.result()
