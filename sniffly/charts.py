from __future__ import annotations

from typing import Any, Dict, Sequence

import altair as alt
import pandas as pd

from sniffly.models import Series, TopRow

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Vega-Lite dict for a chart, with its data inlined as datasets."""
    return chart.to_dict()


def series_frame(series: Sequence[Series]) -> pd.DataFrame:
    rows = [{"name": s.name, "ts": t, "value": v} for s in series for t, v in s.points]
    df = pd.DataFrame(rows, columns=["name", "ts", "value"])
    df["time"] = pd.to_datetime(df["ts"], unit="ms", utc=True)
    return df


def timeline_chart(series: Sequence[Series], *, title: str, value_format: str = "~s") -> alt.Chart:
    df = series_frame(series)
    hover = alt.selection_point(fields=["name"], on="mouseover", empty=True)
    return (
        alt.Chart(df)
        .mark_line(point={"filled": True, "size": 30})
        .encode(
            x=alt.X("time:T", title="Time", axis=alt.Axis(grid=False)),
            y=alt.Y("value:Q", title=title, axis=alt.Axis(format=value_format, gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("name:N", title=None, sort=[s.name for s in series]),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=[
                alt.Tooltip("time:T", title="Time", format="%Y-%m-%d %H:%M"),
                alt.Tooltip("name:N", title=title),
                alt.Tooltip("value:Q", title="Value", format=","),
            ],
        )
        .add_params(hover)
    )


def top_bar_chart(rows: Sequence[TopRow], *, title: str) -> alt.Chart:
    df = pd.DataFrame([{"key": r.key, "value": r.value} for r in rows], columns=["key", "value"])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("value:Q", title="Count", axis=alt.Axis(format="~s")),
            y=alt.Y("key:N", title=title, sort="-x"),
            tooltip=[alt.Tooltip("key:N", title=title), alt.Tooltip("value:Q", title="Count", format=",")],
        )
    )
