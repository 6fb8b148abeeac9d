"""
Unit tests for the per-cell diffusion engine and the 9-phase partition.
"""

import itertools
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pollution.buffers import DoubleBuffer
from pollution.diffusion import DiffusionEngine, phase_cells, phase_offsets, write_footprint
from pollution.directions import SpreadDirectionTable, Wind
from pollution.pollutant import Pollutant, PollutantTable


def make_engine(size, pollutants, spill=False, wind=None, diagonal_weight=1.0):
    table = PollutantTable(pollutants)
    buffers = DoubleBuffer(len(table), size)
    directions = SpreadDirectionTable(diagonal_weight=diagonal_weight)
    if wind is not None:
        directions.recompute_weights(wind)
    return DiffusionEngine(buffers, table, directions, spill_over_borders=spill)


def run_phases(engine, scalar=False):
    """One full spread over all pollutants; buffers are left unswapped (result in scratch)."""
    engine.buffers.prepare_scratch()
    size = engine.buffers.size
    for p in range(len(engine.pollutants)):
        for phase in phase_offsets():
            xs, ys = phase_cells(size, phase)
            if scalar:
                for y in ys:
                    for x in xs:
                        engine.process_cell(p, int(x), int(y))
            else:
                engine.process_cells(p, xs, ys)
    return engine.buffers.scratch


def test_phases_cover_every_cell_once():
    size = 10
    seen = []
    for phase in phase_offsets():
        xs, ys = phase_cells(size, phase)
        seen.extend((int(x), int(y)) for y in ys for x in xs)
    assert len(list(phase_offsets())) == 9
    assert len(seen) == size * size
    assert set(seen) == {(x, y) for x in range(size) for y in range(size)}


@pytest.mark.parametrize("size", [1, 2, 3, 7, 11])
def test_phase_write_footprints_disjoint(size):
    for phase in phase_offsets():
        xs, ys = phase_cells(size, phase)
        cells = [(int(x), int(y)) for y in ys for x in xs]
        for a, b in itertools.combinations(cells, 2):
            assert not (write_footprint(*a, size) & write_footprint(*b, size)), (phase, a, b)


def test_center_scenario_uniform_spread():
    """3x3 grid, 100 at the center, dispersion 0.5: center keeps 50, each neighbor gets 6.25."""
    engine = make_engine(3, [Pollutant("smoke", 0.5, 0.0, 0.0)])
    engine.buffers.stable[0, 1, 1] = 100.0
    out = run_phases(engine)
    expected = np.full((3, 3), 6.25)
    expected[1, 1] = 50.0
    np.testing.assert_allclose(out[0], expected)
    assert out.sum() == pytest.approx(100.0)


@pytest.mark.parametrize("spill, expected_center, expected_total", [(True, 40.0, 55.0), (False, 65.0, 80.0)])
def test_corner_border_policy(spill, expected_center, expected_total):
    engine = make_engine(3, [Pollutant("smoke", 0.5)], spill=spill)
    engine.buffers.stable[0, 0, 0] = 80.0
    out = run_phases(engine)[0]
    assert out[0, 0] == pytest.approx(expected_center)
    assert out[0, 1] == pytest.approx(5.0)
    assert out[1, 0] == pytest.approx(5.0)
    assert out[1, 1] == pytest.approx(5.0)
    assert out.sum() == pytest.approx(expected_total)


def test_decay_is_bounded_per_tick():
    engine = make_engine(3, [Pollutant("ozone", 0.0, 0.5, 1.0)])
    engine.buffers.stable[0, 1, 1] = 10.0
    engine.buffers.stable[0, 0, 0] = 1.0
    out = run_phases(engine)[0]
    assert out[1, 1] == pytest.approx(9.0)
    assert out[0, 0] == pytest.approx(0.5)


def test_decay_uses_pre_step_value():
    """Decay comes from the stable value, not from what is left after spreading."""
    engine = make_engine(1, [Pollutant("smoke", 1.0, 0.5, 100.0)], spill=False)
    engine.buffers.stable[0, 0, 0] = 8.0
    out = run_phases(engine)[0]
    assert out[0, 0] == pytest.approx(4.0)


def test_clamped_at_zero():
    """Full dispersion plus decay would go negative in the source cell; it is clamped to 0."""
    engine = make_engine(3, [Pollutant("smoke", 1.0, 1.0, 1000.0)], spill=True)
    engine.buffers.stable[0, 1, 1] = 8.0
    out = run_phases(engine)[0]
    assert out.min() >= 0.0
    assert out[1, 1] == 0.0


def test_out_of_bounds_cell_is_noop():
    engine = make_engine(3, [Pollutant("smoke", 0.5)])
    engine.buffers.stable[0, 1, 1] = 100.0
    engine.buffers.prepare_scratch()
    before = engine.buffers.scratch.copy()
    engine.process_cell(0, 3, 1)
    engine.process_cell(0, -1, 0)
    np.testing.assert_array_equal(engine.buffers.scratch, before)


@pytest.mark.parametrize("spill", [True, False])
@pytest.mark.parametrize("wind", [None, Wind(0.7, -0.4)])
def test_vectorized_matches_scalar(spill, wind):
    rng = np.random.default_rng(3)
    pollutants = [Pollutant("a", 0.6, 0.1, 0.05), Pollutant("b", 0.25, 0.0, 0.0)]
    grids = rng.uniform(0.0, 10.0, size=(2, 8, 8))
    results = []
    for scalar in (True, False):
        engine = make_engine(8, pollutants, spill=spill, wind=wind)
        engine.buffers.stable[:] = grids
        results.append(run_phases(engine, scalar=scalar).copy())
    np.testing.assert_allclose(results[0], results[1], rtol=1e-12, atol=1e-12)


def test_reads_only_stable():
    """Processing order does not matter: phases in reverse give the same result."""
    rng = np.random.default_rng(5)
    grid = rng.uniform(0.0, 5.0, size=(1, 9, 9))
    forward = make_engine(9, [Pollutant("a", 0.8, 0.2, 0.3)], wind=Wind(0.0, 0.9))
    forward.buffers.stable[:] = grid
    expected = run_phases(forward).copy()
    backward = make_engine(9, [Pollutant("a", 0.8, 0.2, 0.3)], wind=Wind(0.0, 0.9))
    backward.buffers.stable[:] = grid
    backward.buffers.prepare_scratch()
    for phase in reversed(list(phase_offsets())):
        xs, ys = phase_cells(9, phase)
        backward.process_cells(0, xs[::-1], ys[::-1])
    np.testing.assert_allclose(backward.buffers.scratch, expected, rtol=1e-12, atol=1e-12)


def test_mass_bound_and_non_negative_over_ticks():
    rng = np.random.default_rng(11)
    engine = make_engine(12, [Pollutant("a", 0.9, 0.05, 0.2), Pollutant("b", 0.3, 0.0, 0.0)],
                         spill=False, wind=Wind(-0.5, 0.5))
    engine.buffers.stable[:] = rng.uniform(0.0, 20.0, size=(2, 12, 12))
    for _ in range(10):
        before = engine.buffers.totals().copy()
        run_phases(engine)
        engine.buffers.swap()
        after = engine.buffers.totals()
        assert after[0] <= before[0] + 1e-9
        assert after[1] == pytest.approx(before[1], rel=1e-12)
        assert engine.buffers.stable.min() >= 0.0


def test_wind_moves_mass_downwind():
    engine = make_engine(5, [Pollutant("smoke", 0.5)], wind=Wind(1.0, 0.0))
    engine.buffers.stable[0, 2, 2] = 100.0
    out = run_phases(engine)[0]
    assert out[2, 3] > out[2, 1]
    assert out[2, 1] == pytest.approx(0.0, abs=1e-12)
