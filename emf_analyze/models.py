"""Data models for sensor samples and derived map points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from emf_analyze.classify import field_magnitude


DEFAULT_TZ: Final[str] = "Europe/Dublin"

# 磁力计与GPS配对时允许的最大时间差（秒）
TIME_TOLERANCE_SECONDS: Final[float] = 5.0
MAX_DISPLAY_POINTS: Final[int] = 200
GPS_ACCURACY_THRESHOLD_M: Final[float] = 50.0
# ~1km at city scale; not corrected for latitude
GRID_CELL_DEG: Final[float] = 0.01


@dataclass(frozen=True, slots=True)
class LocationSample:
    """A single GPS fix.

    Attributes:
        seconds: Session-relative elapsed time in seconds.
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        altitude: Altitude in meters, if reported.
        velocity: Speed in meters/second, if reported.
        direction: Course in degrees, if reported.
        horizontal_accuracy_m: Reported fix uncertainty in meters. None means unknown
            (absent or non-numeric in the source record).
    """

    seconds: float
    latitude: float
    longitude: float
    altitude: float | None = None
    velocity: float | None = None
    direction: float | None = None
    horizontal_accuracy_m: float | None = None

    def has_good_accuracy(self, threshold_m: float = GPS_ACCURACY_THRESHOLD_M) -> bool:
        """True if accuracy is unknown or within threshold_m."""

        return self.horizontal_accuracy_m is None or self.horizontal_accuracy_m <= threshold_m


@dataclass(frozen=True, slots=True)
class FieldSample:
    """A magnetometer reading (device units, roughly microtesla)."""

    seconds: float
    x: float
    y: float
    z: float

    @property
    def magnitude(self) -> float:
        """Euclidean norm of (x, y, z)."""

        return field_magnitude(self.x, self.y, self.z)


@dataclass(frozen=True, slots=True)
class WeatherSample:
    """An already geo-located weather observation.

    Only latitude/longitude are required; the other readings are None when the
    record did not carry a numeric value.
    """

    timestamp: str
    latitude: float
    longitude: float
    temperature: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    wind_speed: float | None = None
    wind_direction: float | None = None
    rain_1h: float | None = None
    clouds_percent: float | None = None
    condition: str | None = None


@dataclass(frozen=True, slots=True)
class HeartRateSample:
    seconds: float
    bpm: float
    timestamp: str = ""
    reading_id: str | None = None


@dataclass(frozen=True, slots=True)
class PairedPoint:
    """A field sample placed at its nearest-in-time GPS fix.

    Attributes:
        seconds_offset: Field sample time minus matched location time (seconds).
    """

    latitude: float
    longitude: float
    magnitude: float
    seconds: float
    seconds_offset: float


@dataclass(frozen=True, slots=True)
class WeightedPoint:
    """A point of the cross-session cloud; weight is normalized to [0, 1]."""

    latitude: float
    longitude: float
    weight: float


@dataclass(frozen=True, slots=True)
class SessionMeta:
    """Session listing entry (pass-through from the store)."""

    user_id: str
    session_id: str
    timestamp: str = ""
    status: str = ""
    total_samples: int | None = None


@dataclass(frozen=True, slots=True)
class SessionData:
    """All decoded streams of one recording session."""

    meta: SessionMeta
    locations: tuple[LocationSample, ...] = ()
    field_samples: tuple[FieldSample, ...] = ()
    weather: tuple[WeatherSample, ...] = ()
    heart_rate: tuple[HeartRateSample, ...] = ()

    @property
    def session_id(self) -> str:
        return self.meta.session_id


@dataclass(frozen=True, slots=True)
class FusionParams:
    """Parameters controlling pairing, display density and grid binning."""

    tolerance_seconds: float = TIME_TOLERANCE_SECONDS
    max_display_points: int = MAX_DISPLAY_POINTS
    accuracy_threshold_m: float = GPS_ACCURACY_THRESHOLD_M
    cell_size_deg: float = GRID_CELL_DEG
    tz_name: str = DEFAULT_TZ
