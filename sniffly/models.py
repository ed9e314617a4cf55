"""Canonical data shapes and the ingestion boundary.

Raw payloads from the capture backend come in a few shapes: category counts
as ``{name: count}`` maps or as plain lists of names, timestamps under
``bucket``, byte counters as ``up_bytes``/``down_bytes``. Everything is
normalized here, once, into the frozen dataclasses below. Missing or
malformed pieces degrade to empty containers instead of raising, so the
series builders never have to look at shapes again.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

Number = float


@dataclass(frozen=True)
class Device:
    mac: str
    ip: str = ""
    label: str = ""
    hostname: str = ""


@dataclass(frozen=True)
class Bucket:
    timestamp_sec: int
    counts: Dict[str, Number] = field(default_factory=dict)


@dataclass(frozen=True)
class NumericBucket:
    timestamp_sec: int
    up: Number = 0
    down: Number = 0


@dataclass(frozen=True)
class Series:
    name: str
    points: List[Tuple[int, Number]] = field(default_factory=list)

    @property
    def total(self) -> Number:
        return sum(v for _, v in self.points)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "data": [[t, v] for t, v in self.points]}


@dataclass(frozen=True)
class TopRow:
    key: str
    value: Number


def _get(raw: Any, name: str, default: Any = None) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name, default)
    return getattr(raw, name, default)


def as_number(value: object) -> Number:
    """Coerce a raw count to a finite number; anything else counts as zero."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if math.isnan(out) or math.isinf(out):
        return 0
    return int(out) if out.is_integer() else out


def as_timestamp(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(out) or math.isinf(out) or out < 0 or not out.is_integer():
        return None
    return int(out)


def normalize_counts(raw: object) -> Dict[str, Number]:
    if isinstance(raw, Mapping):
        return {str(k): as_number(v) for k, v in raw.items() if k is not None}
    if isinstance(raw, (list, tuple)):
        return dict(Counter(str(item) for item in raw if item is not None))
    return {}


def normalize_device(raw: object) -> Optional[Device]:
    if raw is None:
        return None
    if isinstance(raw, Device):
        return raw
    mac = _get(raw, "mac")
    if not mac:
        return None
    return Device(
        mac=str(mac),
        ip=str(_get(raw, "ip") or ""),
        label=str(_get(raw, "label") or ""),
        hostname=str(_get(raw, "hostname") or ""),
    )


def normalize_buckets(raw_stats: object, field_name: str) -> List[Bucket]:
    """Turn raw ``{bucket, <field_name>}`` entries into time-sorted ``Bucket``s.

    Entries without a usable timestamp are dropped; entries sharing a
    timestamp are merged by summing their counts.
    """
    if not isinstance(raw_stats, (list, tuple)):
        return []
    merged: Dict[int, Dict[str, Number]] = {}
    for raw in raw_stats:
        if isinstance(raw, Bucket):
            ts, counts = raw.timestamp_sec, normalize_counts(raw.counts)
        else:
            ts = as_timestamp(_get(raw, "bucket", _get(raw, "timestamp_sec")))
            counts = normalize_counts(_get(raw, field_name))
        if ts is None:
            continue
        target = merged.setdefault(ts, {})
        for key, value in counts.items():
            target[key] = target.get(key, 0) + value
    return [Bucket(timestamp_sec=ts, counts=merged[ts]) for ts in sorted(merged)]


def normalize_numeric_buckets(raw_stats: object) -> List[NumericBucket]:
    if not isinstance(raw_stats, (list, tuple)):
        return []
    merged: Dict[int, List[Number]] = {}
    for raw in raw_stats:
        if isinstance(raw, NumericBucket):
            ts, up, down = raw.timestamp_sec, as_number(raw.up), as_number(raw.down)
        else:
            ts = as_timestamp(_get(raw, "bucket", _get(raw, "timestamp_sec")))
            up = as_number(_get(raw, "up_bytes", _get(raw, "up")))
            down = as_number(_get(raw, "down_bytes", _get(raw, "down")))
        if ts is None:
            continue
        acc = merged.setdefault(ts, [0, 0])
        acc[0] += up
        acc[1] += down
    return [NumericBucket(timestamp_sec=ts, up=merged[ts][0], down=merged[ts][1]) for ts in sorted(merged)]


def find_device_stats(items: object, mac: Optional[str]) -> Any:
    """Return the raw ``stats`` of the payload item for ``mac`` (``None`` when absent)."""
    if mac is None or not isinstance(items, (list, tuple)):
        return None
    for item in items:
        device = normalize_device(_get(item, "device"))
        if device is not None and device.mac == mac:
            return _get(item, "stats")
    return None


def list_devices(items: Iterable[object]) -> List[Device]:
    seen: Dict[str, Device] = {}
    for item in items or []:
        device = normalize_device(_get(item, "device"))
        if device is not None and device.mac not in seen:
            seen[device.mac] = device
    return list(seen.values())
