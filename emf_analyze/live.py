"""Per-session live view: path, intensity zones, weather markers.

A LiveSession is an accumulator bound to one (user_id, session_id) context.
New records are appended as they arrive and view() recomputes the derived
points. Pairings already computed are memoised and only the ones a new GPS fix
could affect are redone, so the result always equals a full recomputation.
Switching to another session means creating a new LiveSession.
"""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right, insort
from dataclasses import dataclass
from typing import Iterable

from emf_analyze.classify import Band, display_radius_m, zone_band, zone_colour
from emf_analyze.downsample import stride_indices
from emf_analyze.geo import BoundingBox, bounding_box
from emf_analyze.heartrate import HeartRateSeries, HeartRateSummary
from emf_analyze.models import (
    FieldSample,
    FusionParams,
    HeartRateSample,
    LocationSample,
    PairedPoint,
    SessionData,
    WeatherSample,
)
from emf_analyze.timejoin import NearestTimeIndex, pair_field_sample
from emf_analyze.timeutils import format_local

logger = logging.getLogger(__name__)

NA = "N/A"


@dataclass(frozen=True, slots=True)
class IntensityZone:
    """A classified circle drawn at a paired field reading."""

    latitude: float
    longitude: float
    radius_m: float
    magnitude: float
    band: Band
    colour: str
    seconds: float

    @classmethod
    def from_paired(cls, p: PairedPoint) -> IntensityZone:
        return cls(
            latitude=p.latitude,
            longitude=p.longitude,
            radius_m=display_radius_m(p.magnitude),
            magnitude=p.magnitude,
            band=zone_band(p.magnitude),
            colour=zone_colour(p.magnitude),
            seconds=p.seconds,
        )


@dataclass(frozen=True, slots=True)
class WeatherMarker:
    """Weather observation with display-ready fields."""

    latitude: float
    longitude: float
    time_local: str
    temperature: str
    pressure: str
    humidity: str
    wind: str
    clouds: str
    condition: str

    def popup_lines(self) -> list[str]:
        return [
            f"Time: {self.time_local}",
            f"Temp: {self.temperature}",
            f"Pressure: {self.pressure}",
            f"Humidity: {self.humidity}",
            f"Wind: {self.wind}",
            f"Clouds: {self.clouds}",
        ]


def _fmt(value: float | None, spec: str, unit: str) -> str:
    if value is None:
        return NA
    return f"{value:{spec}}{unit}"


def weather_marker(sample: WeatherSample, tz_name: str) -> WeatherMarker:
    return WeatherMarker(
        latitude=sample.latitude,
        longitude=sample.longitude,
        time_local=format_local(sample.timestamp, tz_name) if sample.timestamp else NA,
        temperature=_fmt(sample.temperature, ".1f", "°C"),
        pressure=_fmt(sample.pressure, "g", " hPa"),
        humidity=_fmt(sample.humidity, "g", "%"),
        wind=_fmt(sample.wind_speed, ".2f", " m/s"),
        clouds=_fmt(sample.clouds_percent, "g", "%"),
        condition=sample.condition or "",
    )


@dataclass(frozen=True, slots=True)
class LiveView:
    """Everything the map surface needs for one session."""

    session_id: str
    path: tuple[tuple[float, float], ...]
    zones: tuple[IntensityZone, ...]
    weather_markers: tuple[WeatherMarker, ...]
    heart_rate: tuple[HeartRateSample, ...]
    heart_rate_summary: HeartRateSummary | None
    location_count: int
    filtered_location_count: int
    field_total: int
    field_shown: int
    field_mapped: int
    bounds: BoundingBox | None

    @property
    def mapped_percent(self) -> float:
        """Share of displayed field readings that found a GPS fix (0-100)."""

        if self.field_shown == 0:
            return 0.0
        return 100.0 * self.field_mapped / self.field_shown

    @property
    def latest_heart_rate(self) -> HeartRateSample | None:
        return self.heart_rate[-1] if self.heart_rate else None


class LiveSession:
    """Incremental accumulator for one selected session."""

    def __init__(self, user_id: str, session_id: str, params: FusionParams | None = None) -> None:
        self.user_id = user_id
        self.session_id = session_id
        self.params = params or FusionParams()
        self._index = NearestTimeIndex((), tolerance_seconds=self.params.tolerance_seconds)
        self._fields: list[FieldSample] = []
        # (seconds, arrival index) sorted, to find pairings a new fix may change
        self._field_times: list[tuple[float, int]] = []
        self._pairs: dict[int, PairedPoint | None] = {}
        self._weather: list[WeatherSample] = []
        self._heart = HeartRateSeries()

    @classmethod
    def from_session(cls, session: SessionData, params: FusionParams | None = None) -> LiveSession:
        live = cls(session.meta.user_id, session.session_id, params)
        live.add_locations(session.locations)
        live.add_field_samples(session.field_samples)
        live.add_weather(session.weather)
        live.add_heart_rate(session.heart_rate)
        return live

    def add_locations(self, samples: Iterable[LocationSample]) -> None:
        tol = self.params.tolerance_seconds
        for s in samples:
            self._index.add(s)
            # only readings within the tolerance window of the new fix can change
            lo = bisect_left(self._field_times, (s.seconds - tol, -1))
            hi = bisect_right(self._field_times, (s.seconds + tol, len(self._fields)))
            # s.seconds +/- tol rounds differently from the |t - s| test in nearest()
            while lo > 0 and abs(self._field_times[lo - 1][0] - s.seconds) <= tol:
                lo -= 1
            while hi < len(self._field_times) and abs(self._field_times[hi][0] - s.seconds) <= tol:
                hi += 1
            for _, i in self._field_times[lo:hi]:
                self._pairs.pop(i, None)

    def add_field_samples(self, samples: Iterable[FieldSample]) -> None:
        for s in samples:
            i = len(self._fields)
            self._fields.append(s)
            insort(self._field_times, (s.seconds, i))

    def add_weather(self, samples: Iterable[WeatherSample]) -> None:
        self._weather.extend(samples)

    def add_heart_rate(self, samples: Iterable[HeartRateSample]) -> None:
        self._heart.extend(samples)

    def _paired(self, i: int) -> PairedPoint | None:
        if i not in self._pairs:
            self._pairs[i] = pair_field_sample(self._index, self._fields[i])
        return self._pairs[i]

    def view(self) -> LiveView:
        """Compute the current view from everything received so far."""

        params = self.params
        locations = self._index.locations
        good = [p for p in locations if p.has_good_accuracy(params.accuracy_threshold_m)]

        shown = stride_indices(len(self._fields), params.max_display_points)
        zones: list[IntensityZone] = []
        for i in shown:
            p = self._paired(i)
            if p is not None:
                zones.append(IntensityZone.from_paired(p))

        logger.debug(
            "会话 %s：磁场读数=%s，显示=%s，成功配对=%s，GPS点=%s，精度≤%sm的GPS点=%s",
            self.session_id,
            len(self._fields),
            len(shown),
            len(zones),
            len(locations),
            params.accuracy_threshold_m,
            len(good),
        )

        return LiveView(
            session_id=self.session_id,
            path=tuple((p.latitude, p.longitude) for p in good),
            zones=tuple(zones),
            weather_markers=tuple(weather_marker(w, params.tz_name) for w in self._weather),
            heart_rate=tuple(self._heart.readings),
            heart_rate_summary=self._heart.summary(),
            location_count=len(locations),
            filtered_location_count=len(good),
            field_total=len(self._fields),
            field_shown=len(shown),
            field_mapped=len(zones),
            bounds=bounding_box(good),
        )


def build_live_view(session: SessionData, params: FusionParams | None = None) -> LiveView:
    """One-shot live view of a decoded session."""

    return LiveSession.from_session(session, params).view()
