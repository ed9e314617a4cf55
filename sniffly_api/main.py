from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sniffly.dashboard import compute_category_chart, compute_table, compute_traffic_chart
from sniffly.range_state import system_clock
from sniffly.settings import CATEGORY_CHARTS, PRESETS, ChartLimits, normalize_limits
from sniffly.timeexpr import RangeError, ResolvedRange, resolve_range
from sniffly_api.schemas import ChartRequest, PresetsResponse, RangeRequest, RangeResponse, TableRequest

app = FastAPI(title="Sniffly Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

TABLE_KINDS = ("traffic", "domains", "countries", "protos")


def _finite_float(value: object) -> Optional[float]:
    # NaN and inf are not valid JSON.
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None
    return out if math.isfinite(out) else None


_ENCODERS = {
    float: _finite_float,
    np.floating: _finite_float,
    np.integer: int,
    np.bool_: bool,
    np.ndarray: lambda arr: arr.tolist(),
    pd.Timestamp: lambda ts: ts.isoformat(),
    type(pd.NA): lambda _: None,
}


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Encode a dashboard payload, including numpy scalars left over from pandas."""
    return JSONResponse(status_code=status_code, content=jsonable_encoder(data, custom_encoder=_ENCODERS))


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return _json({"error": str(exc), "type": type(exc).__name__}, status_code)


def _resolve(req: Optional[RangeRequest]) -> Optional[ResolvedRange]:
    if req is None:
        return None
    base = req.now_ms if req.now_ms is not None else system_clock()
    return resolve_range(req.from_expr, req.to_expr, base)


def _limits(req: ChartRequest) -> ChartLimits:
    return normalize_limits(req.limits.model_dump())


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.get("/range/presets", response_model=PresetsResponse)
def range_presets():
    return {"presets": dict(PRESETS)}


@app.post("/range/resolve", response_model=RangeResponse)
def range_resolve(req: RangeRequest):
    try:
        return _json(_resolve(req).to_dict())
    except RangeError as exc:
        return _error(400, exc)
    except Exception as exc:
        logger.exception("range_resolve failed")
        return _error(500, exc)


@app.post("/charts/traffic")
def traffic_chart(req: ChartRequest):
    try:
        items = [item.model_dump() for item in req.items]
        return _json(compute_traffic_chart(items, req.selected_mac, range_=_resolve(req.range), step=req.step, limits=_limits(req)))
    except RangeError as exc:
        return _error(400, exc)
    except Exception as exc:
        logger.exception("traffic_chart failed")
        return _error(500, exc)


@app.post("/charts/{kind}")
def category_chart(kind: str, req: ChartRequest):
    if kind not in CATEGORY_CHARTS:
        return JSONResponse(status_code=404, content={"error": f"Unknown chart kind: {kind}", "type": "NotFound"})
    try:
        items = [item.model_dump() for item in req.items]
        return _json(compute_category_chart(kind, items, req.selected_mac, range_=_resolve(req.range), limits=_limits(req)))
    except RangeError as exc:
        return _error(400, exc)
    except Exception as exc:
        logger.exception("category_chart failed")
        return _error(500, exc)


@app.post("/tables/{kind}")
def table(kind: str, req: TableRequest):
    if kind not in TABLE_KINDS:
        return JSONResponse(status_code=404, content={"error": f"Unknown table kind: {kind}", "type": "NotFound"})
    try:
        items = [item.model_dump() for item in req.items]
        return _json(compute_table(kind, items, req.selected_mac, limit=req.limit))
    except Exception as exc:
        logger.exception("table failed")
        return _error(500, exc)
