"""World position <-> grid cell. The grid covers origin +/- extent on each axis; positions
outside are clamped to the border cells so a location always resolves to a valid cell."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


def _map_range(value: float, lo: float, hi: float, out_lo: float, out_hi: float) -> float:
    return out_lo + (value - lo) / (hi - lo) * (out_hi - out_lo)


class GridMapping:
    def __init__(
        self,
        grid_size: int,
        extent: Sequence[float] = (1.0, 1.0),
        origin: Sequence[float] = (0.0, 0.0),
    ) -> None:
        if extent[0] <= 0 or extent[1] <= 0:
            raise ValueError(f"World extent must be positive, got {tuple(extent)}")
        self.grid_size = grid_size
        self.extent = (float(extent[0]), float(extent[1]))
        self.origin = (float(origin[0]), float(origin[1]))

    def to_grid(self, location: Sequence[float]) -> Tuple[int, int]:
        n = self.grid_size
        ex, ey = self.extent
        lx = float(location[0]) - self.origin[0]
        ly = float(location[1]) - self.origin[1]
        x = _map_range(max(-ex, min(ex, lx)), -ex, ex, 0.0, n)
        y = _map_range(max(-ey, min(ey, ly)), -ey, ey, 0.0, n)
        # [0, n] rounds onto n at the far edge; keep it on the last cell.
        return min(int(round(x)), n - 1), min(int(round(y)), n - 1)

    def to_world(self, position: Sequence[int]) -> Optional[Tuple[float, float]]:
        """Inverse of to_grid (unclamped); None for positions outside the grid."""
        n = self.grid_size
        px, py = int(position[0]), int(position[1])
        if not (0 <= px < n and 0 <= py < n):
            return None
        ex, ey = self.extent
        return (
            self.origin[0] + _map_range(px, 0.0, n, -ex, ex),
            self.origin[1] + _map_range(py, 0.0, n, -ey, ey),
        )
