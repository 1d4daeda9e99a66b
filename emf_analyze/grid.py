"""Fixed-size geographic grid over the weighted point cloud.

Cells are square in raw degrees (no latitude correction). A cell is keyed by
(floor(lat / cell_size), floor(lon / cell_size)).
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from emf_analyze.classify import CELL_COLOURS, CellBand, cell_band
from emf_analyze.models import GRID_CELL_DEG, WeightedPoint

CellKey = tuple[int, int]


def cell_index(lat: float, lon: float, cell_size: float = GRID_CELL_DEG) -> CellKey:
    return (math.floor(lat / cell_size), math.floor(lon / cell_size))


@dataclass(frozen=True, slots=True)
class GridCell:
    """Accumulated weights of one cell."""

    row: int
    col: int
    cell_size: float
    sum_of_weights: float
    sample_count: int

    @property
    def min_lat(self) -> float:
        return self.row * self.cell_size

    @property
    def min_lon(self) -> float:
        return self.col * self.cell_size

    @property
    def rectangle(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """((min_lat, min_lon), (max_lat, max_lon))"""

        return (
            (self.min_lat, self.min_lon),
            (self.min_lat + self.cell_size, self.min_lon + self.cell_size),
        )

    @property
    def average_weight(self) -> float:
        return self.sum_of_weights / max(1, self.sample_count)

    @property
    def band(self) -> CellBand:
        return cell_band(self.average_weight)

    @property
    def colour(self) -> str:
        return CELL_COLOURS[self.band]


def _check_cell_size(cell_size: float) -> None:
    if not cell_size > 0:
        raise ValueError(f"cell_size 必须 > 0，实际为 {cell_size}")


def aggregate_grid(points: Iterable[WeightedPoint], cell_size: float = GRID_CELL_DEG) -> dict[CellKey, GridCell]:
    """Bin points into cells and accumulate weight sums and counts.

    Args:
        points: Weighted points (any order).
        cell_size: Cell edge in degrees on both axes.

    Returns:
        Non-empty cells keyed by (row, col). Empty input gives an empty dict.

    Raises:
        ValueError: If cell_size is not positive.
    """

    _check_cell_size(cell_size)
    sums: dict[CellKey, float] = {}
    counts: dict[CellKey, int] = {}
    for p in points:
        key = cell_index(p.latitude, p.longitude, cell_size)
        sums[key] = sums.get(key, 0.0) + p.weight
        counts[key] = counts.get(key, 0) + 1
    return {
        key: GridCell(row=key[0], col=key[1], cell_size=cell_size, sum_of_weights=sums[key], sample_count=counts[key])
        for key in sums
    }


def merge_grids(*grids: Mapping[CellKey, GridCell]) -> dict[CellKey, GridCell]:
    """Combine partial grids (same cell size) by summing per-cell accumulators."""

    out: dict[CellKey, GridCell] = {}
    for grid in grids:
        for key, cell in grid.items():
            prev = out.get(key)
            if prev is None:
                out[key] = cell
                continue
            if prev.cell_size != cell.cell_size:
                raise ValueError("不能合并不同 cell_size 的网格")
            out[key] = GridCell(
                row=cell.row,
                col=cell.col,
                cell_size=cell.cell_size,
                sum_of_weights=prev.sum_of_weights + cell.sum_of_weights,
                sample_count=prev.sample_count + cell.sample_count,
            )
    return out


def aggregate_grid_parallel(
    points: Sequence[WeightedPoint],
    cell_size: float = GRID_CELL_DEG,
    partitions: int = 4,
    workers: int = 4,
) -> dict[CellKey, GridCell]:
    """Partitioned version of aggregate_grid: each chunk gets its own accumulator,
    then the partial grids are merged. Counts match the serial pass exactly;
    weight sums may differ in the last floating-point bits.
    """

    _check_cell_size(cell_size)
    if partitions <= 1 or len(points) < 2:
        return aggregate_grid(points, cell_size)
    step = math.ceil(len(points) / partitions)
    chunks = [points[i : i + step] for i in range(0, len(points), step)]
    with ThreadPoolExecutor(max_workers=max(1, workers)) as ex:
        partial = list(ex.map(lambda c: aggregate_grid(c, cell_size), chunks))
    return merge_grids(*partial)


def sorted_cells(grid: Mapping[CellKey, GridCell]) -> list[GridCell]:
    """Cells in (row, col) order for stable output."""

    return [grid[k] for k in sorted(grid)]
