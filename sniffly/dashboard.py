from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional

from sniffly.charts import timeline_chart, to_vega_spec, top_bar_chart
from sniffly.format import format_bytes, format_datetime, format_number
from sniffly.gaps import traffic_series
from sniffly.models import (
    Series,
    TopRow,
    as_number,
    find_device_stats,
    list_devices,
    normalize_buckets,
    normalize_numeric_buckets,
)
from sniffly.series import build_series_from_buckets, latest_bucket_keys
from sniffly.settings import CATEGORY_CHARTS, DEFAULT_TABLE_LIMIT, ChartLimits, series_cap
from sniffly.tables import aggregate_counts, top_k
from sniffly.timeexpr import ResolvedRange

CATEGORY_TITLES = {
    "domains": "Domain",
    "countries": "Country",
    "protos": "Protocol",
    "companies": "Company",
}


def _device_payload(items: Any, mac: Optional[str]) -> Optional[Dict[str, Any]]:
    if mac is None:
        return None
    for device in list_devices(items or []):
        if device.mac == mac:
            return asdict(device)
    return None


def _range_payload(range_: Optional[ResolvedRange]) -> Optional[Dict[str, int]]:
    return range_.to_dict() if range_ is not None else None


def _rows_payload(rows: List[TopRow]) -> List[Dict[str, Any]]:
    return [{"rank": i + 1, "key": r.key, "value": r.value, "display": format_number(r.value)} for i, r in enumerate(rows)]


def _series_payload(series: List[Series]) -> List[Dict[str, Any]]:
    return [s.to_dict() for s in series]


def devices_payload(items: Any) -> List[Dict[str, Any]]:
    return [asdict(d) for d in list_devices(items or [])]


def compute_category_chart(
    kind: str,
    items: Any,
    selected_mac: Optional[str],
    *,
    range_: Optional[ResolvedRange] = None,
    limits: ChartLimits = ChartLimits(),
) -> Dict[str, Any]:
    config = CATEGORY_CHARTS[kind]
    buckets = normalize_buckets(find_device_stats(items, selected_mac), config.field)
    payload: Dict[str, Any] = {
        "kind": kind,
        "device": _device_payload(items, selected_mac),
        "range": _range_payload(range_),
        "series": [],
        "top": [],
        "charts": {},
    }
    if not buckets:
        return payload

    preferred = latest_bucket_keys(buckets)
    cap = series_cap(config, len(preferred))
    series = build_series_from_buckets(buckets, cap, preferred, cap, limits=limits)
    top = top_k(aggregate_counts(buckets), config.top_chart_limit)

    title = CATEGORY_TITLES.get(kind, kind.capitalize())
    payload["series"] = _series_payload(series)
    payload["top"] = _rows_payload(top)
    if series:
        payload["charts"]["timeline"] = to_vega_spec(timeline_chart(series, title=title))
    if top:
        payload["charts"]["top"] = to_vega_spec(top_bar_chart(top, title=title))
    return payload


def compute_traffic_chart(
    items: Any,
    selected_mac: Optional[str],
    *,
    range_: Optional[ResolvedRange] = None,
    step: Optional[int] = None,
    limits: ChartLimits = ChartLimits(),
) -> Dict[str, Any]:
    buckets = normalize_numeric_buckets(find_device_stats(items, selected_mac))
    payload: Dict[str, Any] = {
        "kind": "traffic",
        "device": _device_payload(items, selected_mac),
        "range": _range_payload(range_),
        "series": [],
        "totals": {},
        "charts": {},
    }
    if not buckets:
        return payload

    series = traffic_series(buckets, step, limits=limits)
    up_total = sum(b.up for b in buckets)
    down_total = sum(b.down for b in buckets)
    payload["series"] = _series_payload(series)
    payload["totals"] = {
        "up_bytes": up_total,
        "down_bytes": down_total,
        "up_display": format_bytes(up_total),
        "down_display": format_bytes(down_total),
        "first_sample": format_datetime(buckets[0].timestamp_sec * 1000),
        "last_sample": format_datetime(buckets[-1].timestamp_sec * 1000),
    }
    payload["charts"]["timeline"] = to_vega_spec(timeline_chart(series, title="Bytes", value_format="~s"))
    return payload


def compute_table(
    kind: str,
    items: Any,
    selected_mac: Optional[str],
    *,
    limit: int = DEFAULT_TABLE_LIMIT,
) -> Dict[str, Any]:
    stats = find_device_stats(items, selected_mac)
    payload: Dict[str, Any] = {"kind": kind, "device": _device_payload(items, selected_mac)}
    if kind == "traffic":
        # Traffic tables carry two fixed counters rather than a ranking.
        counters = stats if isinstance(stats, Mapping) else {}
        payload["rows"] = [
            {"key": key, "value": as_number(counters.get(key)), "display": format_bytes(as_number(counters.get(key)))}
            for key in ("up_bytes", "down_bytes")
        ]
        return payload
    payload["rows"] = _rows_payload(top_k(stats, limit))
    return payload
