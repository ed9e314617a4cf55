from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import pandas as pd

from sniffly.models import Bucket, Series
from sniffly.settings import ChartLimits
from sniffly.timeline import plan_timeline


def latest_bucket_keys(buckets: Sequence[Bucket]) -> List[str]:
    """Keys of the most recent bucket, largest count first."""
    if not buckets:
        return []
    latest = max(buckets, key=lambda b: b.timestamp_sec)
    return [k for k, _ in sorted(latest.counts.items(), key=lambda kv: kv[1], reverse=True)]


def select_keys(preferred_keys: Iterable[str], ranked_keys: Iterable[str], max_series: int) -> List[str]:
    keys: List[str] = []
    for key in [k for k in preferred_keys if k] + list(ranked_keys):
        if key not in keys:
            keys.append(key)
    return keys[: max(0, max_series)]


def build_series_from_buckets(
    buckets: Sequence[Bucket],
    top_n: int = 6,
    preferred_keys: Sequence[str] = (),
    max_series: Optional[int] = None,
    *,
    limits: ChartLimits = ChartLimits(),
) -> List[Series]:
    """Build bounded, downsampled series from categorical buckets.

    Keys are the preferred keys (legend stability) followed by the ``top_n``
    keys by total, capped at ``max_series`` and at the total point budget.
    Values inside one downsampling window are summed, so each series sums to
    the same total as its raw counts. Series that are zero everywhere are
    left out.
    """
    if max_series is None:
        max_series = top_n

    rows = [(b.timestamp_sec, key, value) for b in buckets for key, value in b.counts.items()]
    plan = plan_timeline(sorted({b.timestamp_sec for b in buckets}), limits=limits)
    if plan is None or not rows:
        return []

    df = pd.DataFrame(rows, columns=["ts", "key", "value"])
    totals = df.groupby("key", sort=False)["value"].sum()
    ranked = totals.sort_values(ascending=False, kind="stable").index[: max(0, top_n)].tolist()
    keys = select_keys(preferred_keys, ranked, max_series)

    budget = max(1, limits.max_total_points // max(1, len(plan.slots)))
    keys = keys[:budget]

    df = df[df["key"].isin(keys)].copy()
    if df.empty:
        return []
    df["slot"] = plan.slot_indices(df["ts"].to_numpy())
    grid = (
        df.groupby(["key", "slot"])["value"]
        .sum()
        .unstack("slot", fill_value=0)
        .reindex(index=keys, columns=range(len(plan.slots)), fill_value=0)
    )

    out: List[Series] = []
    for key in keys:
        values = grid.loc[key].tolist()
        if not any(v != 0 for v in values):
            continue
        out.append(Series(name=key, points=[(t * 1000, v) for t, v in zip(plan.slots, values)]))
    return out
