from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Literal, Optional

from sniffly.settings import DEFAULT_PRESET, PRESETS, Clock
from sniffly.timeexpr import RangeError, ResolvedRange, make_range, resolve_range

logger = logging.getLogger(__name__)

RangeMode = Literal["preset", "expr", "absolute"]
RangeListener = Callable[[ResolvedRange, Optional[ResolvedRange]], None]

SNAPSHOT_VERSION = 1
_MODES = ("preset", "expr", "absolute")


def system_clock() -> int:
    return int(time.time() * 1000)


class RangeController:
    """Owns the dashboard's active time range.

    Three selection modes share one controller. ``preset`` maps a short
    name to a ``now``-relative expression and is re-resolved against the
    clock every time it is applied. ``expr`` resolves the stored
    expressions. ``absolute`` uses the stored millisecond bounds as is.
    Switching mode keeps the other modes' inputs so the UI can go back.

    Only a fully valid range is ever adopted. A failed resolution keeps the
    previous range and leaves the message in ``error``.
    """

    def __init__(
        self,
        *,
        clock: Clock = system_clock,
        preset: str = DEFAULT_PRESET,
        mode: RangeMode = "preset",
        from_expr: Optional[str] = None,
        to_expr: str = "now",
        absolute_from_ms: Optional[int] = None,
        absolute_to_ms: Optional[int] = None,
    ) -> None:
        self._clock = clock
        self.preset = preset if preset in PRESETS else DEFAULT_PRESET
        self.mode: RangeMode = mode if mode in _MODES else "preset"
        self.from_expr = from_expr if from_expr is not None else PRESETS[self.preset]
        self.to_expr = to_expr
        self.absolute_from_ms = absolute_from_ms
        self.absolute_to_ms = absolute_to_ms
        self.error: Optional[str] = None
        self._listeners: List[RangeListener] = []

        now = self._clock()
        self._range = ResolvedRange(from_ms=now - 24 * 3600_000, to_ms=now)
        self.refresh()

    # ---------------- Observers ----------------
    def subscribe(self, listener: RangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------------- Range ----------------
    @property
    def range(self) -> ResolvedRange:
        return self._range

    @property
    def from_seconds(self) -> int:
        return self._range.from_seconds

    @property
    def to_seconds(self) -> int:
        return self._range.to_seconds

    def set_range(self, from_ms: float, to_ms: float) -> ResolvedRange:
        """Adopt ``[from_ms, to_ms)``; raises ``InvalidRange`` and keeps the old range on bad bounds."""
        new = make_range(from_ms, to_ms)
        old = self._range
        self._range = new
        if new != old:
            logger.debug("range changed %s -> %s", old, new)
            for listener in list(self._listeners):
                listener(new, old)
        return new

    def _attempt(self, resolve: Callable[[], ResolvedRange]) -> bool:
        try:
            new = resolve()
        except RangeError as exc:
            self.error = str(exc)
            logger.warning("range rejected: %s", exc)
            return False
        self.error = None
        self.set_range(new.from_ms, new.to_ms)
        return True

    # ---------------- Modes ----------------
    def select_preset(self, preset: str) -> bool:
        if preset not in PRESETS:
            self.error = f"Unknown preset: {preset}"
            logger.warning("range rejected: unknown preset %r", preset)
            return False
        self.preset = preset
        self.mode = "preset"
        return self._attempt(lambda: resolve_range(PRESETS[preset], "now", self._clock()))

    def apply_expressions(self, from_expr: Optional[str] = None, to_expr: Optional[str] = None) -> bool:
        if from_expr is not None:
            self.from_expr = from_expr
        if to_expr is not None:
            self.to_expr = to_expr
        self.mode = "expr"
        return self._attempt(lambda: resolve_range(self.from_expr, self.to_expr, self._clock()))

    def apply_absolute(self, from_ms: float, to_ms: float) -> bool:
        self.absolute_from_ms = from_ms
        self.absolute_to_ms = to_ms
        self.mode = "absolute"
        return self._attempt(lambda: make_range(from_ms, to_ms))

    def set_mode(self, mode: RangeMode) -> bool:
        if mode not in _MODES:
            self.error = f"Unknown range mode: {mode}"
            return False
        self.mode = mode
        return self.refresh()

    def refresh(self) -> bool:
        """Re-resolve the active mode against the clock."""
        if self.mode == "absolute":
            if self.absolute_from_ms is None or self.absolute_to_ms is None:
                self.error = "Absolute range is not set"
                return False
            return self._attempt(lambda: make_range(self.absolute_from_ms, self.absolute_to_ms))
        if self.mode == "preset":
            return self.select_preset(self.preset)
        return self._attempt(lambda: resolve_range(self.from_expr, self.to_expr, self._clock()))

    # ---------------- Snapshot ----------------
    def snapshot(self) -> Dict[str, Any]:
        return {
            "v": SNAPSHOT_VERSION,
            "preset": self.preset,
            "range_mode": self.mode,
            "from_expr": self.from_expr,
            "to_expr": self.to_expr,
            "absolute_from_ms": self.absolute_from_ms,
            "absolute_to_ms": self.absolute_to_ms,
        }

    @classmethod
    def from_snapshot(cls, data: Optional[dict], *, clock: Clock = system_clock) -> "RangeController":
        if not isinstance(data, dict) or data.get("v") != SNAPSHOT_VERSION:
            return cls(clock=clock)
        mode = data.get("range_mode")
        abs_from = data.get("absolute_from_ms")
        abs_to = data.get("absolute_to_ms")
        if mode == "absolute" and (abs_from is None or abs_to is None):
            mode = "preset"
        from_expr = data.get("from_expr")
        to_expr = data.get("to_expr")
        return cls(
            clock=clock,
            preset=str(data.get("preset") or DEFAULT_PRESET),
            mode=mode if mode in _MODES else "preset",
            from_expr=str(from_expr) if from_expr is not None else None,
            to_expr=str(to_expr) if to_expr is not None else "now",
            absolute_from_ms=abs_from,
            absolute_to_ms=abs_to,
        )
