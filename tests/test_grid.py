"""Tests for the fixed-size geographic grid."""

from __future__ import annotations

import random

import pytest

from emf_analyze.geo import bounding_box
from emf_analyze.grid import (
    GridCell,
    aggregate_grid,
    aggregate_grid_parallel,
    cell_index,
    merge_grids,
    sorted_cells,
)
from emf_analyze.models import WeightedPoint


@pytest.mark.parametrize("lon_a", [-6.260, -6.255])
def test_points_crossing_longitude_boundary_use_different_cells(lon_a):
    # -6.260 / 0.01 is exactly -626.0, the floor boundary itself
    a = WeightedPoint(53.351, lon_a, 0.2)
    b = WeightedPoint(53.359, -6.269, 0.8)
    assert cell_index(a.latitude, a.longitude)[0] == cell_index(b.latitude, b.longitude)[0]
    assert cell_index(a.latitude, a.longitude) != cell_index(b.latitude, b.longitude)
    grid = aggregate_grid([a, b])
    assert len(grid) == 2
    assert all(c.sample_count == 1 for c in grid.values())


def test_average_is_arithmetic_mean_and_order_independent():
    pts = [WeightedPoint(53.3515, -6.2555, w) for w in (0.1, 0.4, 0.7)]
    g1 = aggregate_grid(pts)
    g2 = aggregate_grid(list(reversed(pts)))
    (cell,) = g1.values()
    assert cell.sample_count == 3
    assert cell.average_weight == pytest.approx(0.4)
    assert cell.band == "medium"
    assert g2[(cell.row, cell.col)].average_weight == pytest.approx(cell.average_weight)


def test_rectangle_from_min_corner():
    cell = GridCell(row=5335, col=-626, cell_size=0.01, sum_of_weights=0.8, sample_count=1)
    (lat0, lon0), (lat1, lon1) = cell.rectangle
    assert lat0 == pytest.approx(53.35)
    assert lon0 == pytest.approx(-6.26)
    assert lat1 - lat0 == pytest.approx(0.01)
    assert lon1 - lon0 == pytest.approx(0.01)
    assert cell.band == "high"
    assert cell.colour == "#FF0000"


def test_empty_input():
    assert aggregate_grid([]) == {}
    assert aggregate_grid_parallel([]) == {}
    assert bounding_box([]) is None


def test_invalid_cell_size():
    with pytest.raises(ValueError):
        aggregate_grid([WeightedPoint(1, 1, 1)], cell_size=0)


def test_custom_cell_size():
    pts = [WeightedPoint(53.31, -6.21, 0.1), WeightedPoint(53.39, -6.29, 0.3)]
    assert len(aggregate_grid(pts, cell_size=0.1)) == 1


def test_parallel_matches_serial():
    rng = random.Random(7)
    pts = [WeightedPoint(53.3 + rng.random() * 0.1, -6.3 + rng.random() * 0.1, rng.random()) for _ in range(500)]
    serial = aggregate_grid(pts)
    parallel = aggregate_grid_parallel(pts, partitions=4, workers=3)
    assert serial.keys() == parallel.keys()
    for key, cell in serial.items():
        assert parallel[key].sample_count == cell.sample_count
        assert parallel[key].average_weight == pytest.approx(cell.average_weight)


def test_merge_grids_sums_accumulators():
    a = aggregate_grid([WeightedPoint(53.3515, -6.2555, 0.2)])
    b = aggregate_grid([WeightedPoint(53.3515, -6.2555, 0.6), WeightedPoint(53.3615, -6.2555, 1.0)])
    merged = merge_grids(a, b)
    assert len(merged) == 2
    key = cell_index(53.3515, -6.2555)
    assert merged[key].sample_count == 2
    assert merged[key].average_weight == pytest.approx(0.4)


def test_sorted_cells_order():
    pts = [WeightedPoint(53.3615, -6.2555, 0.5), WeightedPoint(53.3515, -6.2555, 0.5)]
    rows = [c.row for c in sorted_cells(aggregate_grid(pts))]
    assert rows == sorted(rows)


def test_bounding_box():
    pts = [WeightedPoint(53.351, -6.255, 0.2), WeightedPoint(53.359, -6.269, 0.8), WeightedPoint(53.355, -6.26, 0)]
    box = bounding_box(pts)
    assert box.min_lat == 53.351
    assert box.max_lat == 53.359
    assert box.min_lon == -6.269
    assert box.max_lon == -6.255
    assert box.as_bounds() == [[53.351, -6.269], [53.359, -6.255]]


def test_point_on_cell_edge_belongs_to_cell_above():
    assert cell_index(53.351, -6.260) == (5335, -626)
    assert cell_index(53.359, -6.269) == (5335, -627)
