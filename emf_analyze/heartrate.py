"""Heart-rate readings kept sorted by session time as they arrive."""

from __future__ import annotations

from bisect import insort
from dataclasses import dataclass
from typing import Iterable, Sequence

from emf_analyze.models import HeartRateSample


@dataclass(frozen=True, slots=True)
class HeartRateSummary:
    count: int
    min_bpm: float
    max_bpm: float
    mean_bpm: float


class HeartRateSeries:
    """Readings ordered by ``seconds``; every insertion keeps the order."""

    def __init__(self, readings: Iterable[HeartRateSample] = ()) -> None:
        self._readings: list[HeartRateSample] = []
        self.extend(readings)

    def add(self, reading: HeartRateSample) -> None:
        # insort is stable for equal keys: later arrivals go after earlier ones
        insort(self._readings, reading, key=lambda r: r.seconds)

    def extend(self, readings: Iterable[HeartRateSample]) -> None:
        for r in readings:
            self.add(r)

    def __len__(self) -> int:
        return len(self._readings)

    @property
    def readings(self) -> Sequence[HeartRateSample]:
        return tuple(self._readings)

    @property
    def latest(self) -> HeartRateSample | None:
        """Reading with the largest session time."""

        return self._readings[-1] if self._readings else None

    def summary(self) -> HeartRateSummary | None:
        if not self._readings:
            return None
        bpms = [r.bpm for r in self._readings]
        return HeartRateSummary(
            count=len(bpms),
            min_bpm=min(bpms),
            max_bpm=max(bpms),
            mean_bpm=sum(bpms) / len(bpms),
        )
