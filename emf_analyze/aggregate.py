"""Cross-session reduction into a normalized weighted point cloud."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from emf_analyze.classify import magnitude_weight
from emf_analyze.models import FusionParams, SessionData, WeightedPoint
from emf_analyze.records import iter_sessions
from emf_analyze.timejoin import NearestTimeIndex, pair_field_samples

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReduceStats:
    """Counters of one aggregation pass."""

    sessions: int
    field_samples: int
    pairs: int

    @property
    def unmatched(self) -> int:
        return self.field_samples - self.pairs


@dataclass(frozen=True, slots=True)
class ReduceResult:
    points: list[WeightedPoint]
    stats: ReduceStats


def reduce_session(session: SessionData, params: FusionParams | None = None) -> list[WeightedPoint]:
    """Weighted points for every field sample of one session that finds a GPS fix.

    Args:
        session: Decoded session (streams in any order).
        params: Tolerance is taken from here.

    Returns:
        Points in field-sample time order.
    """

    params = params or FusionParams()
    if not session.locations or not session.field_samples:
        return []
    index = NearestTimeIndex(session.locations, tolerance_seconds=params.tolerance_seconds)
    fields = sorted(session.field_samples, key=lambda s: s.seconds)
    paired, _ = pair_field_samples(index, fields)
    return [WeightedPoint(p.latitude, p.longitude, magnitude_weight(p.magnitude)) for p in paired]


def reduce_sessions(
    sessions: Iterable[SessionData],
    params: FusionParams | None = None,
    workers: int = 1,
) -> ReduceResult:
    """Reduce many sessions into one point cloud.

    Sessions are independent, so with workers > 1 they are paired concurrently;
    results are concatenated in session order and equal the serial pass.
    """

    params = params or FusionParams()
    sess: Sequence[SessionData] = list(sessions)

    if workers > 1 and len(sess) > 1:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            per_session = list(ex.map(lambda s: reduce_session(s, params), sess))
    else:
        per_session = [reduce_session(s, params) for s in sess]

    points: list[WeightedPoint] = []
    for s, pts in zip(sess, per_session):
        logger.debug(
            "会话 %s：GPS点=%s，磁场读数=%s，配对=%s",
            s.session_id,
            len(s.locations),
            len(s.field_samples),
            len(pts),
        )
        points.extend(pts)

    stats = ReduceStats(
        sessions=len(sess),
        field_samples=sum(len(s.field_samples) for s in sess),
        pairs=len(points),
    )
    logger.info("聚合完成：会话=%s，配对点=%s，未匹配=%s", stats.sessions, stats.pairs, stats.unmatched)
    return ReduceResult(points=points, stats=stats)


def reduce_tree(tree: Any, params: FusionParams | None = None, workers: int = 1) -> ReduceResult:
    """Decode a whole store snapshot and reduce all of its sessions."""

    return reduce_sessions(iter_sessions(tree), params, workers=workers)
