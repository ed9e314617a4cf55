from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChartLimitsModel(BaseModel):
    max_timeline_points: int = 1200
    max_total_points: int = 40_000


class DeviceModel(BaseModel):
    mac: str
    ip: str = ""
    label: str = ""
    hostname: str = ""


class DeviceItemModel(BaseModel):
    device: Optional[DeviceModel] = None
    # Raw bucket lists (charts) or flat maps (tables); normalized in sniffly.models.
    stats: Any = None


class RangeRequest(BaseModel):
    from_expr: str = "now-24h"
    to_expr: str = "now"
    now_ms: Optional[int] = None


class RangeResponse(BaseModel):
    from_ms: int
    to_ms: int
    from_seconds: int
    to_seconds: int


class ChartRequest(BaseModel):
    items: List[DeviceItemModel] = Field(default_factory=list)
    selected_mac: Optional[str] = None
    range: Optional[RangeRequest] = None
    step: Optional[int] = None
    limits: ChartLimitsModel = Field(default_factory=ChartLimitsModel)


class TableRequest(BaseModel):
    items: List[DeviceItemModel] = Field(default_factory=list)
    selected_mac: Optional[str] = None
    limit: int = 30


class PresetsResponse(BaseModel):
    presets: Dict[str, str]
