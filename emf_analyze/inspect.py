"""Inspect a decoded session: stream sizes, time range, sampling intervals."""

from __future__ import annotations

from dataclasses import dataclass

from emf_analyze.geo import BoundingBox, bounding_box, path_length_m
from emf_analyze.models import SessionData
from emf_analyze.timeutils import DeltaStats, delta_stats


@dataclass(frozen=True, slots=True)
class SessionInspection:
    """High-level session inspection result."""

    session_id: str
    locations: int
    field_samples: int
    weather: int
    heart_rate: int
    min_seconds: float | None
    max_seconds: float | None
    location_delta: DeltaStats | None
    field_delta: DeltaStats | None
    duplicates_location_seconds: int
    bounds: BoundingBox | None
    path_length_m: float


def inspect_session(session: SessionData) -> SessionInspection:
    """Inspect already-decoded streams."""

    locs = sorted(session.locations, key=lambda p: p.seconds)
    loc_times = [p.seconds for p in locs]
    field_times = sorted(s.seconds for s in session.field_samples)

    dupe = 0
    for i in range(1, len(loc_times)):
        if loc_times[i] == loc_times[i - 1]:
            dupe += 1

    all_times = loc_times + field_times
    return SessionInspection(
        session_id=session.session_id,
        locations=len(locs),
        field_samples=len(field_times),
        weather=len(session.weather),
        heart_rate=len(session.heart_rate),
        min_seconds=min(all_times) if all_times else None,
        max_seconds=max(all_times) if all_times else None,
        location_delta=delta_stats(loc_times),
        field_delta=delta_stats(field_times),
        duplicates_location_seconds=dupe,
        bounds=bounding_box(locs),
        path_length_m=path_length_m(locs),
    )
