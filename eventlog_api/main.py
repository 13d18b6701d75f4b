from __future__ import annotations

import logging
import math
from collections import OrderedDict
from typing import Optional
from uuid import uuid4

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, Form, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from eventlog.analysis import AnalysisSession
from eventlog.charts import timeline_frame
from eventlog.layout import normalize_layout, normalize_timeline_request
from eventlog.timeline import compute_timeline
from eventlog.workbook import WorkbookLoadError
from eventlog_api.schemas import SeriesListResponse, TimelineRequestModel, WorkbookResponse


app = FastAPI(title="Event Timeline API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

MAX_UPLOAD_BYTES = 50 * 1024 * 1024

# workbook_id -> session, least recently used first; process memory only
MAX_SESSIONS = 16
_sessions: "OrderedDict[str, AnalysisSession]" = OrderedDict()


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _not_found(workbook_id: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": f"Unknown workbook id {workbook_id}", "type": "NotFound"})


def _session(workbook_id: str) -> Optional[AnalysisSession]:
    session = _sessions.get(workbook_id)
    if session is not None:
        _sessions.move_to_end(workbook_id)
    return session


def _store(session: AnalysisSession) -> str:
    workbook_id = uuid4().hex
    _sessions[workbook_id] = session
    while len(_sessions) > MAX_SESSIONS:
        evicted, _ = _sessions.popitem(last=False)
        logger.info("Evicted workbook session %s (limit %d)", evicted, MAX_SESSIONS)
    return workbook_id


@app.post("/workbooks")
async def upload_workbook(file: UploadFile = File(...), mode: str = Form(default="auto")):
    try:
        data = await file.read()
        if len(data) > MAX_UPLOAD_BYTES:
            raise WorkbookLoadError(f"Upload exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)} MB")
        session = AnalysisSession(layout=normalize_layout({"mode": mode}))
        workbook = session.load(data, source_name=file.filename)
    except (WorkbookLoadError, ValueError) as exc:
        logger.warning("upload_workbook rejected %s: %s", file.filename, exc)
        return _error(400, exc)
    except Exception as exc:
        logger.exception("upload_workbook failed")
        return _error(500, exc)

    workbook_id = _store(session)
    body = WorkbookResponse(
        workbook_id=workbook_id,
        source_name=workbook.source_name,
        mode=session.mode,
        sheet_names=workbook.sheet_names,
        series=session.series_names,
    )
    return _json(body.model_dump())


@app.get("/workbooks/{workbook_id}/series")
def list_series(workbook_id: str):
    session = _session(workbook_id)
    if session is None:
        return _not_found(workbook_id)
    return _json(SeriesListResponse(mode=session.mode, series=session.series_names).model_dump())


@app.post("/workbooks/{workbook_id}/timeline")
def timeline(workbook_id: str, request: TimelineRequestModel):
    session = _session(workbook_id)
    if session is None:
        return _not_found(workbook_id)
    try:
        req = normalize_timeline_request(request.model_dump())
    except ValueError as exc:
        return _error(400, exc)
    try:
        return _json(compute_timeline(req, session))
    except Exception as exc:
        logger.exception("timeline failed")
        return _error(500, exc)


@app.post("/workbooks/{workbook_id}/export")
def export_timeline(workbook_id: str, request: TimelineRequestModel):
    session = _session(workbook_id)
    if session is None:
        return _not_found(workbook_id)
    try:
        req = normalize_timeline_request(request.model_dump())
    except ValueError as exc:
        return _error(400, exc)

    try:
        export_df = timeline_frame(session.analyze_many(req.series, req.window))
        csv_bytes = export_df[["display_name", "key", "count"]].to_csv(index=False).encode("utf-8")
    except Exception as exc:
        logger.exception("export_timeline failed")
        return _error(500, exc)
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=timeline.csv"},
    )


@app.delete("/workbooks/{workbook_id}")
def drop_workbook(workbook_id: str):
    if _sessions.pop(workbook_id, None) is None:
        return _not_found(workbook_id)
    return _json({"deleted": workbook_id})
