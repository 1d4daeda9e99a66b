"""Tests for magnitude bands, radius and weight normalization."""

from __future__ import annotations

import pytest

from emf_analyze.classify import (
    LEGEND_THRESHOLDS,
    ZONE_THRESHOLDS,
    cell_band,
    display_radius_m,
    field_magnitude,
    heat_colour,
    legend_band,
    legend_entries,
    magnitude_weight,
    zone_band,
    zone_colour,
)
from emf_analyze.models import FieldSample


def test_magnitude():
    assert field_magnitude(3, 4, 0) == pytest.approx(5.0)
    assert FieldSample(seconds=0, x=3, y=4, z=0).magnitude == pytest.approx(5.0)


def test_threshold_sets_are_distinct():
    assert ZONE_THRESHOLDS == (45.0, 70.0)
    assert LEGEND_THRESHOLDS == (30.0, 50.0)


@pytest.mark.parametrize(
    "magnitude, band",
    [(5, "low"), (45, "low"), (45.1, "medium"), (48, "medium"), (60, "medium"), (70, "medium"), (70.5, "high")],
)
def test_zone_band(magnitude, band):
    assert zone_band(magnitude) == band


@pytest.mark.parametrize(
    "magnitude, band",
    [(5, "low"), (30, "low"), (31, "medium"), (48, "medium"), (50, "medium"), (60, "high")],
)
def test_legend_band(magnitude, band):
    assert legend_band(magnitude) == band


def test_zone_colour():
    assert zone_colour(10) == "#1a9850"
    assert zone_colour(50) == "#fc8d59"
    assert zone_colour(90) == "#d73027"


@pytest.mark.parametrize("magnitude, radius", [(0, 15), (5, 15), (20, 30), (50, 75), (100, 80)])
def test_display_radius(magnitude, radius):
    assert display_radius_m(magnitude) == pytest.approx(radius)


@pytest.mark.parametrize("magnitude, weight", [(0, 0.0), (50, 0.5), (100, 1.0), (250, 1.0), (-1, 0.0)])
def test_weight_is_clamped(magnitude, weight):
    assert magnitude_weight(magnitude) == pytest.approx(weight)


def test_weight_is_monotonic():
    ws = [magnitude_weight(m) for m in range(0, 300, 7)]
    assert ws == sorted(ws)


@pytest.mark.parametrize(
    "avg, band",
    [(0.0, "low"), (0.35, "low"), (0.36, "medium"), (0.5, "medium"), (0.6, "elevated"), (0.7, "elevated"), (0.71, "high")],
)
def test_cell_band(avg, band):
    assert cell_band(avg) == band


def test_heat_colour_stops():
    assert heat_colour(0.0) == "#008000"
    assert heat_colour(0.6) == "#FFFF00"
    assert heat_colour(1.0) == "#8B0000"


def test_legend_entries_follow_legend_thresholds():
    texts = [t for _, t in legend_entries()]
    assert "30" in texts[0]
    assert "30-50" in texts[1]
    assert "50" in texts[2]
