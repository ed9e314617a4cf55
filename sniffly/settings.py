from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

Clock = Callable[[], int]


@dataclass(frozen=True)
class ChartLimits:
    max_timeline_points: int = 1200
    max_total_points: int = 40_000


@dataclass(frozen=True)
class CategoryChartConfig:
    field: str
    top_chart_limit: int = 10
    min_series: int = 20
    max_series: int = 30


PRESETS: Dict[str, str] = {
    "1h": "now-1h",
    "6h": "now-6h",
    "24h": "now-24h",
    "7d": "now-7d",
}
DEFAULT_PRESET = "24h"
DEFAULT_TABLE_LIMIT = 30

CATEGORY_CHARTS: Dict[str, CategoryChartConfig] = {
    "domains": CategoryChartConfig(field="domains", top_chart_limit=12, min_series=12, max_series=12),
    "countries": CategoryChartConfig(field="countries", top_chart_limit=10, min_series=20, max_series=30),
    "protos": CategoryChartConfig(field="protos", top_chart_limit=10, min_series=16, max_series=24),
    # Companies ride on the countries payload.
    "companies": CategoryChartConfig(field="companies", top_chart_limit=10, min_series=20, max_series=30),
}
CATEGORY_SOURCES: Dict[str, str] = {
    "domains": "domains",
    "countries": "countries",
    "protos": "protos",
    "companies": "countries",
}
CHART_KINDS = ("traffic", "domains", "countries", "protos")


def series_cap(config: CategoryChartConfig, preferred_count: int) -> int:
    """Series count for a category chart, widened by the legend of the latest bucket."""
    return min(config.max_series, max(config.min_series, preferred_count))


def _as_positive_int(value: object, default: int) -> int:
    try:
        out = int(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return out if out > 0 else default


def normalize_limits(raw: Optional[dict]) -> ChartLimits:
    raw = raw or {}
    defaults = ChartLimits()
    return ChartLimits(
        max_timeline_points=_as_positive_int(raw.get("max_timeline_points"), defaults.max_timeline_points),
        max_total_points=_as_positive_int(raw.get("max_total_points"), defaults.max_total_points),
    )
