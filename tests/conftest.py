"""Shared fixtures: small store snapshots built in memory."""

from __future__ import annotations

from typing import Any

import pytest

from emf_analyze.models import FieldSample, LocationSample, SessionData, SessionMeta


def make_session_node(
    locations: list[dict[str, Any]] | None = None,
    mags: list[dict[str, Any]] | None = None,
    weather: list[dict[str, Any]] | None = None,
    heart: list[dict[str, Any]] | None = None,
    timestamp: str = "2025-03-01T09:00:00Z",
    status: str = "completed",
) -> dict[str, Any]:
    """A session subtree in keyed (push id) form."""

    def keyed(records: list[dict[str, Any]] | None) -> dict[str, Any]:
        return {f"-N{i:04d}": r for i, r in enumerate(records or [])}

    return {
        "timestamp": timestamp,
        "status": status,
        "totalSamples": len(locations or []) + len(mags or []),
        "locationData": keyed(locations),
        "magnetometerData": keyed(mags),
        "openWeather": keyed(weather),
        "heartRateData": keyed(heart),
    }


def make_session(
    locations: list[tuple[float, float, float]],
    fields: list[tuple[float, float, float, float]],
    session_id: str = "s1",
) -> SessionData:
    """SessionData from (seconds, lat, lon) and (seconds, x, y, z) tuples."""

    return SessionData(
        meta=SessionMeta(user_id="u1", session_id=session_id),
        locations=tuple(LocationSample(seconds=t, latitude=lat, longitude=lon) for t, lat, lon in locations),
        field_samples=tuple(FieldSample(seconds=t, x=x, y=y, z=z) for t, x, y, z in fields),
    )


@pytest.fixture
def two_session_tree() -> dict[str, Any]:
    """One session with a pair inside the 5 s window and one without."""

    matched = make_session_node(
        locations=[{"seconds": 10, "latitude": 53.35, "longitude": -6.26, "horizAcc": 5}],
        mags=[{"seconds": 12, "x": 30, "y": 40, "z": 0}],
        timestamp="2025-03-02T09:00:00Z",
    )
    unmatched = make_session_node(
        locations=[{"seconds": 0, "latitude": 53.34, "longitude": -6.25}],
        mags=[{"seconds": 100, "x": 60, "y": 80, "z": 0}],
        timestamp="2025-03-01T09:00:00Z",
    )
    return {"users": {"u1": {"sessions": {"matched": matched}}, "u2": {"sessions": {"unmatched": unmatched}}}}
