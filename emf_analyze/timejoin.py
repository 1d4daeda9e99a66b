"""Nearest-in-time pairing of magnetometer readings to GPS fixes.

Both the live session view and the cross-session reducer match field samples
through NearestTimeIndex, so they share one tolerance rule and one tie-break.
"""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from typing import Iterable, Sequence

from emf_analyze.models import TIME_TOLERANCE_SECONDS, FieldSample, LocationSample, PairedPoint

logger = logging.getLogger(__name__)


class NearestTimeIndex:
    """Sorted location samples searchable by time.

    Samples are sorted by ``seconds`` on construction (stable, so equal
    timestamps keep their arrival order).
    """

    def __init__(
        self,
        locations: Iterable[LocationSample],
        tolerance_seconds: float = TIME_TOLERANCE_SECONDS,
    ) -> None:
        self._locations: list[LocationSample] = sorted(locations, key=lambda p: p.seconds)
        self._times: list[float] = [p.seconds for p in self._locations]
        self.tolerance_seconds = tolerance_seconds

    def add(self, sample: LocationSample) -> None:
        """Insert a newly arrived sample, after any with the same time."""

        pos = bisect_right(self._times, sample.seconds)
        self._times.insert(pos, sample.seconds)
        self._locations.insert(pos, sample)

    def __len__(self) -> int:
        return len(self._locations)

    @property
    def locations(self) -> Sequence[LocationSample]:
        return self._locations

    def nearest(self, t: float) -> tuple[LocationSample, float] | None:
        """Find the location sample closest in time to t.

        Args:
            t: Query time (session-relative seconds).

        Returns:
            (sample, abs_delta_seconds), or None if the index is empty or the
            closest sample is more than tolerance_seconds away.
        """

        n = len(self._times)
        if n == 0:
            return None

        lo = bisect_left(self._times, t)
        after = min(lo, n - 1)
        before = max(0, lo - 1)
        d_after = abs(self._times[after] - t)
        d_before = abs(self._times[before] - t)
        # ties go to the predecessor
        idx, delta = (before, d_before) if d_before <= d_after else (after, d_after)

        if delta > self.tolerance_seconds:
            return None
        return self._locations[idx], delta


def pair_field_sample(index: NearestTimeIndex, sample: FieldSample) -> PairedPoint | None:
    """Place one field sample at its nearest GPS fix, or None if unmatched."""

    hit = index.nearest(sample.seconds)
    if hit is None:
        return None
    loc, _ = hit
    return PairedPoint(
        latitude=loc.latitude,
        longitude=loc.longitude,
        magnitude=sample.magnitude,
        seconds=sample.seconds,
        seconds_offset=sample.seconds - loc.seconds,
    )


def pair_field_samples(
    index: NearestTimeIndex,
    samples: Iterable[FieldSample],
) -> tuple[list[PairedPoint], int]:
    """Pair a sequence of field samples.

    Returns:
        (paired points in input order, number of unmatched samples)
    """

    paired: list[PairedPoint] = []
    unmatched = 0
    for s in samples:
        p = pair_field_sample(index, s)
        if p is None:
            unmatched += 1
        else:
            paired.append(p)
    if unmatched:
        logger.debug("%s 个磁场读数在 ±%ss 内没有匹配的GPS点", unmatched, index.tolerance_seconds)
    return paired, unmatched
