"""Time expression resolution.

Accepted forms, tried in order:

- ``1700000000`` (10 digits): unix seconds
- ``1700000000000`` (13 digits): unix milliseconds
- ``2024-01-15T00:00...``: ISO-8601 date-time, naive values read as UTC
- ``now``, ``now-24h``, ``now-1y+6m``, ``now-2min``: relative to a base instant

Relative units: ``y`` years and ``m`` months use calendar arithmetic (UTC),
``w``, ``d``, ``h``, ``min`` and ``s`` are fixed durations. ``m`` is months;
minutes are ``min``.

Results must fall within calendar years 1 to 9999 (UTC); anything outside
raises ``InvalidExpression``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_UNIX_SECONDS = re.compile(r"^\d{10}$")
_UNIX_MILLIS = re.compile(r"^\d{13}$")
_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")
# "min" must be tried before "m", otherwise "now-2min" reads as "-2m" + "in".
_TERM = re.compile(r"\s*([+-])(\d+)(y|min|m|w|d|h|s)")

_FIXED_UNITS_MS = {
    "w": 7 * 24 * 3600_000,
    "d": 24 * 3600_000,
    "h": 3600_000,
    "min": 60_000,
    "s": 1000,
}


class RangeError(ValueError):
    pass


class InvalidExpression(RangeError):
    pass


class InvalidRange(RangeError):
    pass


@dataclass(frozen=True)
class ResolvedRange:
    from_ms: int
    to_ms: int

    @property
    def from_seconds(self) -> int:
        return self.from_ms // 1000

    @property
    def to_seconds(self) -> int:
        return self.to_ms // 1000

    def to_dict(self) -> dict:
        return {
            "from_ms": self.from_ms,
            "to_ms": self.to_ms,
            "from_seconds": self.from_seconds,
            "to_seconds": self.to_seconds,
        }


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _to_ms(dt: datetime) -> int:
    delta = dt - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def _from_ms(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=ms)


# Calendar years 1 through 9999, UTC.
MIN_MS = _to_ms(datetime.min.replace(tzinfo=timezone.utc))
MAX_MS = _to_ms(datetime.max.replace(tzinfo=timezone.utc))


def _check_bounds(ms: int, expr: str) -> int:
    if not MIN_MS <= ms <= MAX_MS:
        raise InvalidExpression(f"Out of range: {expr}")
    return ms


def _parse_iso(expr: str) -> int:
    try:
        dt = date_parser.isoparse(expr)
    except (ValueError, OverflowError) as exc:
        raise InvalidExpression(f"Invalid date: {expr}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return _check_bounds(_to_ms(dt), expr)


def _apply_calendar(base_ms: int, *, years: int = 0, months: int = 0) -> int:
    return _to_ms(_from_ms(base_ms) + relativedelta(years=years, months=months))


def parse_time_expression(expr: Optional[str], base_ms: int) -> int:
    """Resolve ``expr`` to epoch milliseconds, relative terms anchored at ``base_ms``."""
    expr = (expr or "").strip()
    if not expr:
        raise InvalidExpression("Empty time expression")

    if _UNIX_SECONDS.match(expr):
        return int(expr) * 1000
    if _UNIX_MILLIS.match(expr):
        return int(expr)
    if _ISO_PREFIX.match(expr):
        return _parse_iso(expr)

    if not expr.startswith("now"):
        raise InvalidExpression(f'Expression must start with "now" (got: {expr})')

    rest = expr[3:]
    result = int(base_ms)
    pos = 0
    while True:
        match = _TERM.match(rest, pos)
        if match is None:
            break
        pos = match.end()
        sign = -1 if match.group(1) == "-" else 1
        amount = int(match.group(2))
        unit = match.group(3)
        try:
            if unit == "y":
                result = _apply_calendar(result, years=sign * amount)
            elif unit == "m":
                result = _apply_calendar(result, months=sign * amount)
            else:
                result += sign * amount * _FIXED_UNITS_MS[unit]
        except (ValueError, OverflowError) as exc:
            raise InvalidExpression(f"Out of range: {expr}") from exc
        _check_bounds(result, expr)

    if rest[pos:].strip():
        raise InvalidExpression(f"Invalid expression tail: {rest[pos:].strip()}")
    return result


def make_range(from_ms: float, to_ms: float) -> ResolvedRange:
    try:
        finite = math.isfinite(from_ms) and math.isfinite(to_ms)
    except (TypeError, OverflowError):
        finite = False
    if not finite:
        raise InvalidRange("Invalid range")
    if from_ms >= to_ms:
        raise InvalidRange("from must be < to")
    return ResolvedRange(from_ms=int(from_ms), to_ms=int(to_ms))


def resolve_range(from_expr: str, to_expr: str, base_ms: int) -> ResolvedRange:
    from_ms = parse_time_expression(from_expr, base_ms)
    to_ms = parse_time_expression(to_expr, base_ms)
    return make_range(from_ms, to_ms)
