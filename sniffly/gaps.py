from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from sniffly.models import Number, NumericBucket, Series
from sniffly.settings import ChartLimits
from sniffly.timeline import plan_timeline

Point = Tuple[int, Number]


def fill_gaps(
    points: Iterable[Point],
    step: Optional[int] = None,
    *,
    limits: ChartLimits = ChartLimits(),
) -> List[Point]:
    """Lay one numeric counter onto a regular grid.

    Empty slots between the first and last sample become explicit zeros
    (no traffic seen in that interval). Long ranges are downsampled by
    summing whole windows, so the total is unchanged. The last sample is
    always present in the output.
    """
    pts = sorted(points, key=lambda p: p[0])
    if len(pts) <= 1:
        return pts

    values = pd.Series([v for _, v in pts], index=[t for t, _ in pts]).groupby(level=0).sum()
    timestamps = values.index.tolist()
    plan = plan_timeline(timestamps, step=step, limits=limits)
    if plan is None or plan.base_step is None:
        return pts

    slots = plan.slot_indices(timestamps)
    summed = values.groupby(slots).sum().reindex(range(len(plan.slots)), fill_value=0)
    return list(zip(plan.slots, summed.tolist()))


def traffic_series(
    buckets: Sequence[NumericBucket],
    step: Optional[int] = None,
    *,
    limits: ChartLimits = ChartLimits(),
) -> List[Series]:
    """Up/Down byte series for one device, each gap-filled on its own."""
    up = fill_gaps([(b.timestamp_sec, b.up) for b in buckets], step, limits=limits)
    down = fill_gaps([(b.timestamp_sec, b.down) for b in buckets], step, limits=limits)
    return [
        Series(name="Up", points=[(t * 1000, v) for t, v in up]),
        Series(name="Down", points=[(t * 1000, v) for t, v in down]),
    ]
