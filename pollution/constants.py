"""Simulation constants. Stored values are concentrations >= 0; layout is [pollutant, y, x]."""

import math

EMPTY = 0.0
# Returned by queries that name an unknown pollutant.
UNKNOWN_POLLUTANT = -1.0
# Neighbor offsets (dx, dy): cardinals first, then diagonals.
CARDINAL_OFFSETS = [(1, 0), (-1, 0), (0, 1), (0, -1)]
DIAGONAL_OFFSETS = [(1, 1), (1, -1), (-1, 1), (-1, -1)]
CARDINAL_WEIGHT = 1.0
# Uniform spread by default; DIAGONAL_FALLOFF gives the distance-scaled variant.
DIAGONAL_WEIGHT = 1.0
DIAGONAL_FALLOFF = math.sqrt(2.0) / 2.0
# Wind sharpening: exponent = WIND_SHARPNESS * |wind|.
WIND_SHARPNESS = 10.0
# Cells are split into PHASE_STRIDE x PHASE_STRIDE interleaved phases.
PHASE_STRIDE = 3
DEFAULT_GRID_SIZE = 64
DEFAULT_TICK_INTERVAL = 1.0
