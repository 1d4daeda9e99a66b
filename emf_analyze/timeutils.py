"""Time parsing and formatting utilities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from typing import Iterable

from zoneinfo import ZoneInfo


def tzinfo_from_name(tz_name: str) -> tzinfo:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "Europe/Dublin".

    Returns:
        tzinfo instance.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"无效时区：{tz_name!r}。例如可用：Europe/Dublin") from exc


def parse_timestamp(text: str) -> datetime | None:
    """Parse an ISO 8601 timestamp written by the recorder.

    A trailing "Z" is accepted. Naive values are treated as UTC.

    Returns:
        Timezone-aware datetime, or None if the text cannot be parsed.
    """

    s = text.strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def timestamp_sort_key(text: str) -> float:
    """Epoch seconds for sorting; unparseable timestamps sort before everything."""

    dt = parse_timestamp(text)
    return dt.timestamp() if dt is not None else float("-inf")


def format_local(text: str, tz_name: str) -> str:
    """Format a recorder timestamp in the local timezone.

    Returns the input unchanged if it cannot be parsed.
    """

    dt = parse_timestamp(text)
    if dt is None:
        return text
    return dt.astimezone(tzinfo_from_name(tz_name)).strftime("%Y-%m-%d %H:%M:%S")


@dataclass(frozen=True, slots=True)
class DeltaStats:
    """Sampling interval stats (seconds)."""

    count: int
    min_s: float
    median_s: float
    p95_s: float
    max_s: float


def delta_stats(seconds_sorted: Iterable[float]) -> DeltaStats | None:
    """Compute basic sampling-interval statistics.

    Args:
        seconds_sorted: Session-relative seconds sorted ascending.

    Returns:
        DeltaStats or None if less than 2 points.
    """

    ts = list(seconds_sorted)
    if len(ts) < 2:
        return None
    deltas = [ts[i] - ts[i - 1] for i in range(1, len(ts)) if ts[i] >= ts[i - 1]]
    if not deltas:
        return None
    deltas.sort()
    n = len(deltas)
    median = deltas[n // 2] if n % 2 == 1 else 0.5 * (deltas[n // 2 - 1] + deltas[n // 2])
    p95 = deltas[int(0.95 * (n - 1))]
    return DeltaStats(
        count=n,
        min_s=deltas[0],
        median_s=median,
        p95_s=p95,
        max_s=deltas[-1],
    )
