"""Pollution: multi-species grid diffusion with wind bias, decay and queued point emissions."""

from pollution.pollutant import Pollutant, PollutantTable
from pollution.directions import SpreadDirectionTable, Wind
from pollution.mapping import GridMapping
from pollution.scheduler import TickState
from pollution.simulation import PollutionSimulation
from pollution.constants import DEFAULT_GRID_SIZE, DEFAULT_TICK_INTERVAL, UNKNOWN_POLLUTANT

__all__ = [
    "Pollutant",
    "PollutantTable",
    "SpreadDirectionTable",
    "Wind",
    "GridMapping",
    "TickState",
    "PollutionSimulation",
    "DEFAULT_GRID_SIZE",
    "DEFAULT_TICK_INTERVAL",
    "UNKNOWN_POLLUTANT",
]
