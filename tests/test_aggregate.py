"""Tests for the cross-session reducer."""

from __future__ import annotations

import random

from conftest import make_session
from emf_analyze.aggregate import reduce_session, reduce_sessions, reduce_tree
from emf_analyze.grid import aggregate_grid, cell_index
from emf_analyze.models import WeightedPoint


def test_matched_and_unmatched_sessions(two_session_tree):
    result = reduce_tree(two_session_tree)
    assert result.points == [WeightedPoint(53.35, -6.26, 0.5)]
    assert result.stats.sessions == 2
    assert result.stats.field_samples == 2
    assert result.stats.pairs == 1
    assert result.stats.unmatched == 1


def test_weight_is_clamped():
    s = make_session([(0, 53.0, -6.0)], [(1, 150, 200, 0)])
    assert reduce_session(s) == [WeightedPoint(53.0, -6.0, 1.0)]


def test_empty_inputs():
    result = reduce_sessions([])
    assert result.points == []
    assert result.stats.sessions == 0
    assert reduce_session(make_session([], [(0, 1, 1, 1)])) == []
    assert reduce_session(make_session([(0, 1.0, 1.0)], [])) == []
    assert reduce_tree({}).points == []


def _random_sessions(seed: int, n: int):
    rng = random.Random(seed)
    sessions = []
    for k in range(n):
        locs = [(float(t) + rng.random() * 0.3, 53.3 + rng.random() * 0.05, -6.3 + rng.random() * 0.05)
                for t in range(0, 200, 3)]
        fields = [(rng.uniform(-10, 220), rng.uniform(0, 80), rng.uniform(0, 80), 0.0) for _ in range(150)]
        sessions.append(make_session(locs, fields, session_id=f"s{k}"))
    return sessions


def test_same_matches_as_linear_scan():
    (session,) = _random_sessions(1, 1)
    loc_times = [p.seconds for p in session.locations]
    expected = sum(1 for f in session.field_samples if min(abs(t - f.seconds) for t in loc_times) <= 5.0)
    assert len(reduce_session(session)) == expected


def test_parallel_equals_serial():
    sessions = _random_sessions(2, 5)
    serial = reduce_sessions(sessions)
    parallel = reduce_sessions(sessions, workers=3)
    assert parallel.points == serial.points
    assert parallel.stats == serial.stats


def test_reduce_then_grid_covers_every_cell():
    result = reduce_sessions(_random_sessions(4, 3))
    assert result.points
    grid = aggregate_grid(result.points)
    assert set(grid) == {cell_index(p.latitude, p.longitude) for p in result.points}
    assert sum(c.sample_count for c in grid.values()) == len(result.points)
    for cell in grid.values():
        assert 0.0 <= cell.average_weight <= 1.0


def test_weights_in_unit_interval():
    for p in reduce_sessions(_random_sessions(5, 2)).points:
        assert 0.0 <= p.weight <= 1.0
