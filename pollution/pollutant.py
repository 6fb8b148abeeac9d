"""Species definitions. Index in the table is the species' identity for buffer addressing."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pollutant:
    name: str
    dispersion_rate: float
    decay_rate: float = 0.0
    max_decay_per_tick: float = 0.0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Pollutant name must not be empty")
        if not 0.0 <= self.dispersion_rate <= 1.0:
            raise ValueError(f"{self.name}: dispersion_rate must be in [0, 1], got {self.dispersion_rate}")
        if not 0.0 <= self.decay_rate <= 1.0:
            raise ValueError(f"{self.name}: decay_rate must be in [0, 1], got {self.decay_rate}")
        if self.max_decay_per_tick < 0.0:
            raise ValueError(f"{self.name}: max_decay_per_tick must be >= 0, got {self.max_decay_per_tick}")

    @classmethod
    def from_dict(cls, data: dict) -> "Pollutant":
        return cls(
            name=str(data["name"]),
            dispersion_rate=float(data.get("dispersion_rate", 0.5)),
            decay_rate=float(data.get("decay_rate", 0.0)),
            max_decay_per_tick=float(data.get("max_decay_per_tick", 0.0)),
        )

    def to_dict(self) -> dict:
        return asdict(self)


class PollutantTable:
    """Ordered, fixed list of species."""

    __slots__ = ("_pollutants", "_index")

    def __init__(self, pollutants: Iterable[Pollutant]) -> None:
        self._pollutants = tuple(pollutants)
        if not self._pollutants:
            raise ValueError("At least one pollutant is required")
        self._index = {}
        for i, p in enumerate(self._pollutants):
            if p.name in self._index:
                raise ValueError(f"Duplicate pollutant name: {p.name!r}")
            self._index[p.name] = i

    def __len__(self) -> int:
        return len(self._pollutants)

    def __iter__(self) -> Iterator[Pollutant]:
        return iter(self._pollutants)

    def __getitem__(self, index: int) -> Pollutant:
        return self._pollutants[index]

    @property
    def names(self) -> list[str]:
        return [p.name for p in self._pollutants]

    def index_of(self, name: str) -> int:
        """Index of the named pollutant, or -1 (logged) when unknown."""
        index = self._index.get(name, -1)
        if index == -1:
            logger.error("Invalid pollutant name was used: %r", name)
        return index
