import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Optional

from eventlog.analysis import AnalysisSession
from eventlog.charts import bar_chart, overlay_chart, timeline_frame
from eventlog.layout import DEFAULT_RANGE_DAYS, GRANULARITIES, TimelineRequest, normalize_layout, normalize_timeline_request
from eventlog.workbook import WorkbookLoadError, workbook_fingerprint

alt.data_transformers.disable_max_rows()

PAGE_CSS = """
<style>
.timeline-head {border-bottom: 1px solid #e5e7eb;padding-bottom: 4px;margin-bottom: 8px;}
.timeline-head .source {color: #6b7280;font-size: 0.85rem;}
.timeline-head .headline {font-size: 1.35rem;font-weight: 700;color: #111827;}
.chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin: 4px 0 12px;}
.chip {background: #f3f4f6;border-radius: 14px;padding: 3px 10px;font-size: 0.85rem;color: #374151;}
</style>
"""


# ---------- page pieces ----------
def request_chips(request: TimelineRequest) -> str:
    labels = [
        f"{len(request.series)} series" if request.series else "no series",
        f"{request.start:%d.%m.%Y} – {request.end:%d.%m.%Y}",
        f"per {request.granularity}",
    ]
    if request.overlay:
        labels.append("overlay")
    return "".join(f"<span class='chip'>{label}</span>" for label in labels)


def render_header(source_name: str, request: TimelineRequest, export_df: Optional[pd.DataFrame]):
    st.markdown(PAGE_CSS, unsafe_allow_html=True)
    left, right = st.columns([8, 2])
    left.markdown(
        f"<div class='timeline-head'><div class='source'>{source_name}</div><div class='headline'>Event counts</div></div>",
        unsafe_allow_html=True,
    )
    if export_df is not None and not export_df.empty:
        right.download_button(
            "Export CSV",
            data=export_df.to_csv(index=False).encode("utf-8"),
            file_name="timeline.csv",
            mime="text/csv",
        )
    st.markdown(f"<div class='chip-row'>{request_chips(request)}</div>", unsafe_allow_html=True)


@contextmanager
def chart_panel(title: str, note: str = ""):
    with st.container(border=True):
        head, aside = st.columns([4, 1])
        head.markdown(f"**{title}**")
        if note:
            aside.caption(note)
        yield


def get_session(upload, mode: str) -> Optional[AnalysisSession]:
    """Keep one session per uploaded file content and layout mode."""
    if upload is None:
        st.session_state.pop("analysis_session", None)
        st.session_state.pop("analysis_key", None)
        return None
    data = upload.getvalue()
    cache_key = (workbook_fingerprint(data), mode)
    if st.session_state.get("analysis_key") != cache_key:
        session = AnalysisSession(layout=normalize_layout({"mode": mode}))
        session.load(data, source_name=upload.name)
        st.session_state["analysis_session"] = session
        st.session_state["analysis_key"] = cache_key
    return st.session_state["analysis_session"]


# ---------- UI setup ----------
st.set_page_config(page_title="Event Timeline", layout="wide")
st.title("Event Timeline")
st.caption("Upload a workbook, pick series and a date range, compare event counts per day or hour.")

with st.sidebar:
    st.markdown("### Workbook")
    upload = st.file_uploader("Workbook (.xlsx)", type=["xlsx", "xlsm"])
    with st.expander("Advanced settings", expanded=False):
        mode = st.radio("Layout", ["auto", "sheet", "lookup"], index=0, help="sheet: one sheet per series; lookup: names resolved via the lookup sheet.")

try:
    session = get_session(upload, mode)
except WorkbookLoadError as exc:
    st.error(f"Could not read workbook: {exc}")
    st.stop()

if session is None:
    st.info("Choose a workbook to start.")
    st.stop()

series_options = session.series_names
if not series_options:
    st.warning("No data sheets found in this workbook.")
    st.stop()

with st.sidebar:
    st.markdown("---")
    st.markdown("### Quick filters")
    selected_series = st.multiselect("Series", options=series_options, default=[], format_func=session.display_name)
    today = date.today()
    picked = st.date_input("Date range", value=(today - timedelta(days=DEFAULT_RANGE_DAYS), today), format="DD.MM.YYYY")
    granularity = st.radio("Granularity", list(GRANULARITIES), index=0, horizontal=True)
    overlay = st.checkbox("Overlay series", value=False)

if not isinstance(picked, (tuple, list)) or len(picked) != 2:
    st.info("Pick both ends of the date range.")
    st.stop()
start, end = picked

request = normalize_timeline_request(
    {"series": selected_series, "start": start, "end": end, "granularity": granularity, "overlay": overlay}
)
results = session.analyze_many(request.series, request.window)
global_max = max((r.max_count for r in results), default=0)

export_df = timeline_frame(results)
render_header(
    session.workbook.source_name or session.workbook.fingerprint[:12],
    request,
    export_df[["display_name", "key", "count"]] if not export_df.empty else None,
)

if not results:
    st.info("Select one or more series.")
elif end < start:
    st.info("The end of the range is before its start.")
elif overlay:
    with chart_panel("Overlay", note=f"{len(results)} series"):
        st.altair_chart(overlay_chart(results, y_max=global_max), use_container_width=True)
else:
    for result in results:
        with chart_panel(result.display_name, note=f"Total: {result.total:,}"):
            st.altair_chart(bar_chart(result, y_max=global_max), use_container_width=True)
