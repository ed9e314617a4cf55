from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from sniffly.settings import ChartLimits

logger = logging.getLogger(__name__)


def infer_step(timestamps: Sequence[int]) -> Optional[int]:
    """Most frequent positive gap between consecutive sorted timestamps.

    The mode is used rather than the minimum: one odd sample close to its
    neighbour would otherwise shrink the step and blow up the timeline.
    Ties go to the gap seen first.
    """
    diffs = [b - a for a, b in zip(timestamps, timestamps[1:]) if b - a > 0]
    if not diffs:
        return None
    return Counter(diffs).most_common(1)[0][0]


@dataclass(frozen=True)
class TimelinePlan:
    """Output grid for one series build.

    ``slots`` are the output timestamps. Every raw timestamp maps to exactly
    one slot, so summing per slot keeps the totals of the raw data.
    """

    first: int
    last: int
    base_step: Optional[int]
    factor: int
    slots: List[int]

    @property
    def stride(self) -> Optional[int]:
        return None if self.base_step is None else self.base_step * self.factor

    @property
    def appended_last(self) -> bool:
        return self.base_step is not None and (self.last - self.first) % self.stride != 0

    def slot_indices(self, timestamps: Sequence[int]) -> np.ndarray:
        ts = np.asarray(timestamps, dtype=np.int64)
        if self.base_step is None:
            return np.searchsorted(np.asarray(self.slots, dtype=np.int64), ts)
        idx = (ts - self.first) // self.stride
        if self.appended_last:
            idx = np.where(ts >= self.last, len(self.slots) - 1, idx)
        return idx


def _grid(first: int, last: int, stride: int) -> List[int]:
    slots = list(range(first, last + 1, stride))
    if slots[-1] != last:
        slots.append(last)
    return slots


def plan_timeline(
    timestamps: Sequence[int],
    *,
    step: Optional[int] = None,
    limits: ChartLimits = ChartLimits(),
) -> Optional[TimelinePlan]:
    """Plan the downsampled output grid for sorted, distinct ``timestamps``.

    Returns ``None`` for an empty timeline. Without a usable step the observed
    timestamps are kept as they are.
    """
    if not timestamps:
        return None
    first, last = timestamps[0], timestamps[-1]
    base_step = step if step and step > 0 else infer_step(timestamps)
    if base_step is None:
        return TimelinePlan(first=first, last=last, base_step=None, factor=1, slots=list(timestamps))

    cap = max(1, limits.max_timeline_points)
    predicted = (last - first) // base_step + 1
    factor = math.ceil(predicted / cap) if predicted > cap else 1
    slots = _grid(first, last, base_step * factor)
    # The explicit trailing point can push the grid one over the cap.
    while len(slots) > cap and factor * base_step <= last - first:
        factor += 1
        slots = _grid(first, last, base_step * factor)

    if factor > 1:
        logger.debug("downsampling %d base slots by %d -> %d points", predicted, factor, len(slots))
    return TimelinePlan(first=first, last=last, base_step=base_step, factor=factor, slots=slots)
