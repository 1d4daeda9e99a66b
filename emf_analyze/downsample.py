"""Display-density control for dense sample streams."""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

from emf_analyze.models import MAX_DISPLAY_POINTS

T = TypeVar("T")


def stride_for(n: int, target: int = MAX_DISPLAY_POINTS) -> int:
    """Stride k = ceil(n / target), or 1 when n fits the target."""

    if target < 1:
        raise ValueError(f"target 必须 >= 1，实际为 {target}")
    if n <= target:
        return 1
    return math.ceil(n / target)


def stride_indices(n: int, target: int = MAX_DISPLAY_POINTS) -> range:
    """Indices kept by stride_downsample for a sequence of length n."""

    return range(0, n, stride_for(n, target))


def stride_downsample(samples: Sequence[T], target: int = MAX_DISPLAY_POINTS) -> list[T]:
    """Keep every k-th sample (starting with the first) so at most target remain.

    This is deterministic and order preserving; it is not a representative
    sample of the distribution.

    Args:
        samples: Samples in temporal order.
        target: Maximum number of samples to display.

    Returns:
        The samples unchanged if len(samples) <= target, otherwise the stride
        sub-sequence.
    """

    k = stride_for(len(samples), target)
    if k == 1:
        return list(samples)
    return list(samples[::k])
