from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

from eventlog.analysis import SeriesResult

alt.data_transformers.disable_max_rows()

WEEKDAY_SHORT = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def timeline_frame(results: List[SeriesResult]) -> pd.DataFrame:
    """Long frame (series, display_name, position, key, weekday, count), one row per bucket."""
    rows = []
    for result in results:
        for position, bucket in enumerate(result.buckets):
            day = pd.to_datetime(bucket.key.split(" ")[0], format="%d.%m.%Y")
            rows.append(
                {
                    "series": result.series,
                    "display_name": result.display_name,
                    "position": position,
                    "key": bucket.key,
                    "weekday": WEEKDAY_SHORT[day.dayofweek],
                    "count": bucket.count,
                }
            )
    return pd.DataFrame(rows, columns=["series", "display_name", "position", "key", "weekday", "count"])


def _y_axis(y_max: Optional[int]) -> alt.Y:
    scale = alt.Scale(domain=[0, max(int(y_max), 1)]) if y_max is not None else alt.Undefined
    return alt.Y("count:Q", title="Events", stack=None, scale=scale, axis=alt.Axis(tickMinStep=1, gridDash=[4, 4]))


def _x_axis(keys: List[str]) -> alt.X:
    return alt.X("key:O", title=None, sort=keys, axis=alt.Axis(labelAngle=-90, grid=False))


def bar_chart(result: SeriesResult, *, y_max: Optional[int] = None, height: int = 260) -> alt.Chart:
    df = timeline_frame([result])
    keys = [b.key for b in result.buckets]
    return (
        alt.Chart(df, title=result.display_name or result.series)
        .mark_bar()
        .encode(
            x=_x_axis(keys),
            y=_y_axis(y_max),
            tooltip=[
                alt.Tooltip("key:N", title="Period"),
                alt.Tooltip("weekday:N", title="Day"),
                alt.Tooltip("count:Q", title="Events"),
            ],
        )
        .properties(height=height)
    )


def overlay_chart(results: List[SeriesResult], *, y_max: Optional[int] = None, height: int = 320) -> alt.Chart:
    df = timeline_frame(results)
    keys = [b.key for b in results[0].buckets] if results else []
    hover = alt.selection_point(fields=["display_name"], bind="legend", on="mouseover", empty="all")
    return (
        alt.Chart(df)
        .mark_bar(opacity=0.55)
        .encode(
            x=_x_axis(keys),
            y=_y_axis(y_max),
            color=alt.Color("display_name:N", title="Series"),
            opacity=alt.condition(hover, alt.value(0.8), alt.value(0.15)),
            tooltip=[
                alt.Tooltip("display_name:N", title="Series"),
                alt.Tooltip("key:N", title="Period"),
                alt.Tooltip("weekday:N", title="Day"),
                alt.Tooltip("count:Q", title="Events"),
            ],
        )
        .add_params(hover)
        .properties(height=height)
    )
