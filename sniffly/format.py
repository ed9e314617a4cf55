from __future__ import annotations

import math
from datetime import datetime, timezone

MISSING = "—"
_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


def _finite(value: object) -> bool:
    try:
        return math.isfinite(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False


def format_bytes(value: object) -> str:
    if not _finite(value):
        return MISSING
    v = max(0.0, float(value))  # type: ignore[arg-type]
    idx = 0
    while v >= 1024 and idx < len(_BYTE_UNITS) - 1:
        v /= 1024
        idx += 1
    digits = 0 if idx == 0 else 2 if v < 10 else 1 if v < 100 else 0
    return f"{v:.{digits}f} {_BYTE_UNITS[idx]}"


def format_number(value: object) -> str:
    if not _finite(value):
        return MISSING
    v = float(value)  # type: ignore[arg-type]
    return f"{int(v):,}" if v.is_integer() else f"{v:,.3f}".rstrip("0").rstrip(".")


def format_datetime(ts_ms: object) -> str:
    if not _finite(ts_ms):
        return MISSING
    dt = datetime.fromtimestamp(float(ts_ms) / 1000, tz=timezone.utc)  # type: ignore[arg-type]
    return dt.strftime("%Y-%m-%d %H:%M")
