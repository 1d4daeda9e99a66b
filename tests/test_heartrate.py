"""Tests for the sorted heart-rate series."""

from __future__ import annotations

import pytest

from emf_analyze.heartrate import HeartRateSeries
from emf_analyze.models import HeartRateSample


def test_insertion_keeps_order():
    series = HeartRateSeries()
    for sec, bpm in [(5, 80), (1, 70), (3, 75)]:
        series.add(HeartRateSample(seconds=sec, bpm=bpm))
    assert [r.seconds for r in series.readings] == [1, 3, 5]
    assert series.latest.bpm == 80
    assert len(series) == 3


def test_equal_times_keep_arrival_order():
    series = HeartRateSeries([HeartRateSample(2, 60, reading_id="a"), HeartRateSample(2, 61, reading_id="b")])
    assert [r.reading_id for r in series.readings] == ["a", "b"]


def test_summary():
    series = HeartRateSeries([HeartRateSample(0, 60), HeartRateSample(1, 90), HeartRateSample(2, 75)])
    s = series.summary()
    assert s.count == 3
    assert s.min_bpm == 60
    assert s.max_bpm == 90
    assert s.mean_bpm == pytest.approx(75.0)


def test_empty():
    series = HeartRateSeries()
    assert series.latest is None
    assert series.summary() is None
