from __future__ import annotations

import pytest

from sniffly.range_state import RangeController
from sniffly.timeexpr import InvalidRange, ResolvedRange

HOUR = 3600_000


def test_defaults_to_last_24h(clock):
    ctl = RangeController(clock=clock)
    assert ctl.mode == "preset"
    assert ctl.preset == "24h"
    assert ctl.range == ResolvedRange(clock() - 24 * HOUR, clock())
    assert ctl.error is None


def test_preset_is_re_resolved_on_each_activation(clock):
    ctl = RangeController(clock=clock)
    events = []
    ctl.subscribe(lambda new, old: events.append((new, old)))

    assert ctl.select_preset("1h")
    first = ctl.range
    assert first == ResolvedRange(clock() - HOUR, clock())

    clock.advance(5 * 60_000)
    assert ctl.select_preset("1h")
    assert ctl.range == ResolvedRange(clock() - HOUR, clock())
    assert ctl.range != first
    assert len(events) == 2
    assert events[1] == (ctl.range, first)


def test_refresh_moves_preset_window(clock):
    ctl = RangeController(clock=clock)
    clock.advance(HOUR)
    assert ctl.refresh()
    assert ctl.range.to_ms == clock()


def test_invalid_expression_keeps_previous_range(clock):
    ctl = RangeController(clock=clock)
    before = ctl.range
    assert not ctl.apply_expressions("now-3q", "now")
    assert ctl.range == before
    assert ctl.error == "Invalid expression tail: -3q"
    assert ctl.mode == "expr"

    assert ctl.apply_expressions("now-2h")
    assert ctl.error is None
    assert ctl.range == ResolvedRange(clock() - 2 * HOUR, clock())


def test_inverted_expressions_are_rejected(clock):
    ctl = RangeController(clock=clock)
    before = ctl.range
    assert not ctl.apply_expressions("now", "now-1h")
    assert ctl.range == before
    assert ctl.error == "from must be < to"


def test_set_range_raises_and_leaves_range_untouched(clock):
    ctl = RangeController(clock=clock)
    before = ctl.range
    with pytest.raises(InvalidRange):
        ctl.set_range(2000, 1000)
    with pytest.raises(InvalidRange):
        ctl.set_range(1000, 1000)
    assert ctl.range == before


def test_absolute_mode_and_switching_keep_other_state(clock):
    ctl = RangeController(clock=clock)
    assert ctl.apply_expressions("now-6h", "now-1h")
    assert ctl.apply_absolute(1_000_000, 2_000_000)
    assert ctl.range == ResolvedRange(1_000_000, 2_000_000)
    assert (ctl.from_seconds, ctl.to_seconds) == (1000, 2000)
    assert ctl.from_expr == "now-6h"

    assert ctl.set_mode("expr")
    assert ctl.range == ResolvedRange(clock() - 6 * HOUR, clock() - HOUR)
    assert ctl.absolute_from_ms == 1_000_000

    assert ctl.set_mode("absolute")
    assert ctl.range == ResolvedRange(1_000_000, 2_000_000)


def test_listeners_only_fire_on_actual_change(clock):
    ctl = RangeController(clock=clock)
    events = []
    unsubscribe = ctl.subscribe(lambda new, old: events.append(new))
    ctl.apply_absolute(0, 10_000)
    ctl.apply_absolute(0, 10_000)
    assert len(events) == 1
    unsubscribe()
    ctl.apply_absolute(0, 20_000)
    assert len(events) == 1


def test_unknown_preset_and_mode(clock):
    ctl = RangeController(clock=clock)
    before = ctl.range
    assert not ctl.select_preset("90d")
    assert not ctl.set_mode("relative")  # type: ignore[arg-type]
    assert ctl.range == before
    assert ctl.preset == "24h"


def test_snapshot_round_trip(clock):
    ctl = RangeController(clock=clock)
    ctl.apply_expressions("now-7d", "now-1d")
    restored = RangeController.from_snapshot(ctl.snapshot(), clock=clock)
    assert restored.mode == "expr"
    assert restored.range == ctl.range

    ctl.apply_absolute(5_000, 9_000)
    restored = RangeController.from_snapshot(ctl.snapshot(), clock=clock)
    assert restored.mode == "absolute"
    assert restored.range == ResolvedRange(5_000, 9_000)
    assert restored.from_expr == "now-7d"


def test_snapshot_with_unknown_version_falls_back_to_defaults(clock):
    restored = RangeController.from_snapshot({"v": 99, "range_mode": "absolute"}, clock=clock)
    assert restored.mode == "preset"
    assert restored.range == ResolvedRange(clock() - 24 * HOUR, clock())
    restored = RangeController.from_snapshot({"v": 1, "range_mode": "absolute", "preset": "6h"}, clock=clock)
    assert restored.mode == "preset"
    assert restored.range == ResolvedRange(clock() - 6 * HOUR, clock())


def test_switching_through_preset_keeps_expressions(clock):
    ctl = RangeController(clock=clock)
    assert ctl.apply_expressions("now-3d", "now-1d")
    assert ctl.set_mode("preset")
    assert ctl.range == ResolvedRange(clock() - 24 * HOUR, clock())
    assert ctl.select_preset("6h")
    assert (ctl.from_expr, ctl.to_expr) == ("now-3d", "now-1d")

    assert ctl.set_mode("expr")
    assert ctl.range == ResolvedRange(clock() - 72 * HOUR, clock() - 24 * HOUR)


def test_out_of_range_expression_is_a_recoverable_error(clock):
    ctl = RangeController(clock=clock)
    before = ctl.range
    assert not ctl.apply_expressions("now-" + "9" * 400 + "s", "now")
    assert ctl.error == "Out of range: now-" + "9" * 400 + "s"
    assert ctl.range == before

    assert not ctl.apply_absolute(0, 10**400)
    assert ctl.error == "Invalid range"
    assert ctl.range == before
