"""Decoding of store snapshots into typed samples.

The external store delivers every child collection either as a keyed object
(push keys, insertion ordered) or as a list that may contain null holes. A
whole-tree snapshot looks like::

    users/<userId>/sessions/<sessionId>/{locationData, magnetometerData, openWeather, heartRateData}
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, TypeVar

from emf_analyze.models import (
    FieldSample,
    HeartRateSample,
    LocationSample,
    SessionData,
    SessionMeta,
    WeatherSample,
)
from emf_analyze.timeutils import timestamp_sort_key

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOCATION_KEY = "locationData"
FIELD_KEY = "magnetometerData"
WEATHER_KEY = "openWeather"
HEART_RATE_KEY = "heartRateData"


@dataclass(frozen=True, slots=True)
class DecodeSummary:
    """Per-stream record counts for one decoded session."""

    records_total: int
    records_parsed: int

    @property
    def records_skipped(self) -> int:
        return self.records_total - self.records_parsed


def as_float(value: Any) -> float | None:
    """Coerce a store value to a finite float, or None if it is not numeric."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        out = float(value)
    elif isinstance(value, str):
        try:
            out = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return out if math.isfinite(out) else None


def _first_float(rec: Mapping[str, Any], *keys: str) -> float | None:
    for k in keys:
        if k in rec:
            v = as_float(rec[k])
            if v is not None:
                return v
    return None


def _first_str(rec: Mapping[str, Any], *keys: str) -> str | None:
    for k in keys:
        v = rec.get(k)
        if isinstance(v, str) and v:
            return v
    return None


def iter_children(collection: Any) -> Iterator[tuple[str | None, Mapping[str, Any]]]:
    """Yield (key, record) pairs of a keyed or list collection in insertion order.

    List collections yield their index as key. Null holes and non-object
    children are dropped.
    """

    if isinstance(collection, Mapping):
        items: Iterator[tuple[str | None, Any]] = ((str(k), v) for k, v in collection.items())
    elif isinstance(collection, list):
        items = ((str(i), v) for i, v in enumerate(collection))
    else:
        return
    for key, rec in items:
        if isinstance(rec, Mapping):
            yield key, rec


def parse_location(rec: Mapping[str, Any]) -> LocationSample | None:
    seconds = as_float(rec.get("seconds"))
    lat = as_float(rec.get("latitude"))
    lon = as_float(rec.get("longitude"))
    if seconds is None or lat is None or lon is None:
        return None
    return LocationSample(
        seconds=seconds,
        latitude=lat,
        longitude=lon,
        altitude=as_float(rec.get("altitude")),
        velocity=as_float(rec.get("velocity")),
        direction=as_float(rec.get("direction")),
        # 精度非数值时视为未知（不参与过滤）
        horizontal_accuracy_m=_first_float(rec, "horizAcc", "horizontalAccuracy"),
    )


def parse_field_sample(rec: Mapping[str, Any]) -> FieldSample | None:
    seconds = as_float(rec.get("seconds"))
    x = as_float(rec.get("x"))
    y = as_float(rec.get("y"))
    z = as_float(rec.get("z"))
    if seconds is None or x is None or y is None or z is None:
        return None
    return FieldSample(seconds=seconds, x=x, y=y, z=z)


def parse_weather(rec: Mapping[str, Any]) -> WeatherSample | None:
    lat = _first_float(rec, "lat", "latitude")
    lon = _first_float(rec, "lon", "longitude")
    if lat is None or lon is None:
        return None
    return WeatherSample(
        timestamp=_first_str(rec, "ts", "timestamp") or "",
        latitude=lat,
        longitude=lon,
        temperature=_first_float(rec, "temp", "temperature"),
        humidity=_first_float(rec, "humidity"),
        pressure=_first_float(rec, "pressure_hpa", "pressure"),
        wind_speed=_first_float(rec, "wind_ms", "windSpeed"),
        wind_direction=_first_float(rec, "wind_deg", "windDirection"),
        rain_1h=_first_float(rec, "rain_1h_mm", "rain1h"),
        clouds_percent=_first_float(rec, "clouds_pct", "cloudsPercent"),
        condition=_first_str(rec, "cond", "condition"),
    )


def parse_heart_rate(rec: Mapping[str, Any], reading_id: str | None = None) -> HeartRateSample | None:
    seconds = as_float(rec.get("seconds"))
    bpm = as_float(rec.get("bpm"))
    if seconds is None or bpm is None:
        return None
    ts = rec.get("timestamp")
    return HeartRateSample(
        seconds=seconds,
        bpm=bpm,
        timestamp=ts if isinstance(ts, str) else "",
        reading_id=reading_id,
    )


def decode_stream(collection: Any, parse: Callable[[Mapping[str, Any]], T | None]) -> tuple[list[T], DecodeSummary]:
    """Decode one child collection, skipping records that fail to parse."""

    total = 0
    parsed: list[T] = []
    for _, rec in iter_children(collection):
        total += 1
        sample = parse(rec)
        if sample is not None:
            parsed.append(sample)
    return parsed, DecodeSummary(records_total=total, records_parsed=len(parsed))


def decode_heart_rate(collection: Any) -> tuple[list[HeartRateSample], DecodeSummary]:
    total = 0
    parsed: list[HeartRateSample] = []
    for key, rec in iter_children(collection):
        total += 1
        sample = parse_heart_rate(rec, reading_id=key)
        if sample is not None:
            parsed.append(sample)
    return parsed, DecodeSummary(records_total=total, records_parsed=len(parsed))


def _meta_from_node(user_id: str, session_id: str, node: Mapping[str, Any]) -> SessionMeta:
    ts = node.get("timestamp")
    status = node.get("status")
    total = as_float(node.get("totalSamples"))
    return SessionMeta(
        user_id=user_id,
        session_id=session_id,
        timestamp=ts if isinstance(ts, str) else "",
        status=status if isinstance(status, str) else "",
        total_samples=int(total) if total is not None else None,
    )


def decode_session(
    user_id: str,
    session_id: str,
    node: Mapping[str, Any],
) -> tuple[SessionData, dict[str, DecodeSummary]]:
    """Decode one session node.

    Args:
        user_id: Opaque user id.
        session_id: Opaque session id.
        node: The session subtree.

    Returns:
        (session, summaries) where summaries maps the store key of each stream to
        its DecodeSummary.
    """

    locations, loc_sum = decode_stream(node.get(LOCATION_KEY), parse_location)
    fields, field_sum = decode_stream(node.get(FIELD_KEY), parse_field_sample)
    weather, weather_sum = decode_stream(node.get(WEATHER_KEY), parse_weather)
    heart, heart_sum = decode_heart_rate(node.get(HEART_RATE_KEY))

    summaries = {
        LOCATION_KEY: loc_sum,
        FIELD_KEY: field_sum,
        WEATHER_KEY: weather_sum,
        HEART_RATE_KEY: heart_sum,
    }
    skipped = {k: s.records_skipped for k, s in summaries.items() if s.records_skipped > 0}
    if skipped:
        logger.warning("会话 %s 中有记录解析失败已跳过：%s", session_id, skipped)

    session = SessionData(
        meta=_meta_from_node(user_id, session_id, node),
        locations=tuple(locations),
        field_samples=tuple(fields),
        weather=tuple(weather),
        heart_rate=tuple(heart),
    )
    return session, summaries


def iter_session_nodes(tree: Any) -> Iterator[tuple[str, str, Mapping[str, Any]]]:
    """Yield (user_id, session_id, node) for every session in a users tree.

    Accepts either the root snapshot ({"users": {...}}) or the users subtree.
    """

    if not isinstance(tree, Mapping):
        return
    users = tree["users"] if "users" in tree else tree
    if not isinstance(users, Mapping):
        return
    for user_id, user in users.items():
        sessions = user.get("sessions") if isinstance(user, Mapping) else None
        if not isinstance(sessions, Mapping):
            continue
        for session_id, node in sessions.items():
            if isinstance(node, Mapping):
                yield str(user_id), str(session_id), node


def iter_sessions(tree: Any) -> Iterator[SessionData]:
    """Decode every session of a snapshot."""

    for user_id, session_id, node in iter_session_nodes(tree):
        session, _ = decode_session(user_id, session_id, node)
        yield session


def list_sessions(tree: Any) -> list[SessionMeta]:
    """Session metadata, newest first. Unparseable timestamps sort last."""

    metas = [_meta_from_node(u, s, node) for u, s, node in iter_session_nodes(tree)]
    metas.sort(key=lambda m: timestamp_sort_key(m.timestamp), reverse=True)
    return metas


def find_session(tree: Any, session_id: str) -> SessionData:
    """Decode a single session by id, whichever user it belongs to.

    Raises:
        KeyError: If no user has this session.
    """

    for user_id, sid, node in iter_session_nodes(tree):
        if sid == session_id:
            session, _ = decode_session(user_id, sid, node)
            return session
    raise KeyError(f"找不到会话：{session_id!r}")


def load_snapshot(path: str | Path) -> Any:
    """Load a JSON snapshot exported from the store.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON.
    """

    p = Path(path)
    text = p.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"快照文件不是有效的JSON：{str(p)!r}") from exc
