"""Dashboard session: range, fetched payloads and table caches in one place.

The session listens to its ``RangeController``. A range change clears the
table caches, since they only hold totals for the old range, bumps a
generation counter and, when called from a running event loop, schedules a
chart refetch. Fetches remember the generation they started under and
their results are dropped if it has moved on by the time they complete.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Set

from sniffly.dashboard import compute_category_chart, compute_table, compute_traffic_chart, devices_payload
from sniffly.range_state import RangeController
from sniffly.settings import CATEGORY_SOURCES, CHART_KINDS, DEFAULT_TABLE_LIMIT, ChartLimits
from sniffly.timeexpr import ResolvedRange

logger = logging.getLogger(__name__)


class DataSource(Protocol):
    async def charts(self, kind: str, from_seconds: int, to_seconds: int) -> List[Dict[str, Any]]:
        ...

    async def tables(self, kind: str, from_seconds: int, to_seconds: int) -> List[Dict[str, Any]]:
        ...


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class DashboardSession:
    def __init__(
        self,
        controller: RangeController,
        source: DataSource,
        *,
        limits: ChartLimits = ChartLimits(),
    ) -> None:
        self.controller = controller
        self.source = source
        self.limits = limits
        self.charts: Dict[str, List[Dict[str, Any]]] = {}
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.error: Optional[str] = None
        self.loading_charts = False
        self.charts_stale = True
        self._generation = 0
        self._refetches: Set[asyncio.Task] = set()
        self._unsubscribe = controller.subscribe(self._on_range_change)

    def close(self) -> None:
        self._unsubscribe()
        for task in self._refetches:
            task.cancel()

    @property
    def generation(self) -> int:
        return self._generation

    def _on_range_change(self, new: ResolvedRange, old: Optional[ResolvedRange]) -> None:
        self._generation += 1
        self.tables.clear()
        self.charts_stale = True
        logger.debug("range %s -> %s, table caches cleared (generation %d)", old, new, self._generation)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to refetch on; the owner calls load_charts() when it sees charts_stale.
            return
        task = loop.create_task(self.load_charts())
        self._refetches.add(task)
        task.add_done_callback(self._refetches.discard)

    async def wait_for_refetch(self) -> None:
        """Wait for chart refetches scheduled by range changes."""
        while self._refetches:
            await asyncio.gather(*list(self._refetches), return_exceptions=True)

    # ---------------- Fetching ----------------
    async def load_charts(self) -> bool:
        generation = self._generation
        from_s, to_s = self.controller.from_seconds, self.controller.to_seconds
        self.loading_charts = True
        self.error = None
        try:
            results = await asyncio.gather(*(self.source.charts(kind, from_s, to_s) for kind in CHART_KINDS))
        except Exception as exc:
            if generation == self._generation:
                self.error = _error_message(exc)
            logger.exception("loading charts failed")
            return False
        finally:
            self.loading_charts = False

        if generation != self._generation:
            logger.debug("dropping chart results for stale generation %d", generation)
            return False
        self.charts = {kind: list(result or []) for kind, result in zip(CHART_KINDS, results)}
        self.charts_stale = False
        return True

    async def ensure_table(self, kind: str) -> List[Dict[str, Any]]:
        if kind in self.tables:
            return self.tables[kind]
        generation = self._generation
        self.error = None
        try:
            result = await self.source.tables(kind, self.controller.from_seconds, self.controller.to_seconds)
        except Exception as exc:
            if generation == self._generation:
                self.error = _error_message(exc)
            raise
        items = list(result or [])
        if generation == self._generation:
            self.tables[kind] = items
        else:
            logger.debug("dropping %s table for stale generation %d", kind, generation)
        return items

    # ---------------- Derived views ----------------
    def devices(self) -> List[Dict[str, Any]]:
        items: List[Any] = []
        for kind in CHART_KINDS:
            items.extend(self.charts.get(kind, []))
        return devices_payload(items)

    def category_chart(self, kind: str, mac: Optional[str]) -> Dict[str, Any]:
        items = self.charts.get(CATEGORY_SOURCES[kind], [])
        return compute_category_chart(kind, items, mac, range_=self.controller.range, limits=self.limits)

    def traffic_chart(self, mac: Optional[str], *, step: Optional[int] = None) -> Dict[str, Any]:
        items = self.charts.get("traffic", [])
        return compute_traffic_chart(items, mac, range_=self.controller.range, step=step, limits=self.limits)

    def table(self, kind: str, mac: Optional[str], *, limit: int = DEFAULT_TABLE_LIMIT) -> Dict[str, Any]:
        return compute_table(kind, self.tables.get(kind), mac, limit=limit)
