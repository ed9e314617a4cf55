from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from sniffly.models import Bucket, Number, TopRow, as_number
from sniffly.settings import DEFAULT_TABLE_LIMIT


def top_k(stats: Optional[Mapping[str, object]], limit: int = DEFAULT_TABLE_LIMIT) -> List[TopRow]:
    """Rank a flat key -> value map, largest first; ties keep the input order."""
    if not isinstance(stats, Mapping):
        return []
    rows = [TopRow(key=str(k), value=as_number(v)) for k, v in stats.items()]
    rows.sort(key=lambda r: r.value, reverse=True)
    return rows[: max(0, limit)]


def aggregate_counts(buckets: Sequence[Bucket]) -> Dict[str, Number]:
    """Sum every bucket into one map, keys in first-seen order."""
    agg: Dict[str, Number] = {}
    for bucket in buckets:
        for key, value in bucket.counts.items():
            agg[key] = agg.get(key, 0) + value
    return agg
