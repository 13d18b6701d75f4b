from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from eventlog.analysis import AnalysisSession
from eventlog.charts import bar_chart, overlay_chart, to_vega_spec
from eventlog.layout import TimelineRequest


def compute_timeline(request: TimelineRequest, session: AnalysisSession, *, with_charts: bool = True) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "request": asdict(request),
        "mode": session.mode,
        "series": [],
        "totals": {},
        "global_max": 0,
        "charts": {},
    }
    if not session.is_loaded or not request.series:
        return payload

    results = session.analyze_many(request.series, request.window)
    global_max = max((r.max_count for r in results), default=0)
    payload["series"] = [r.to_dict() for r in results]
    payload["totals"] = {r.series: r.total for r in results}
    payload["global_max"] = global_max

    if with_charts:
        if request.overlay:
            payload["charts"]["overlay"] = to_vega_spec(overlay_chart(results, y_max=global_max))
        else:
            for result in results:
                payload["charts"][result.series] = to_vega_spec(bar_chart(result, y_max=global_max))
    return payload
