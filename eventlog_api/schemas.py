from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class TimelineRequestModel(BaseModel):
    series: List[str] = Field(default_factory=list)
    start: Optional[str] = None
    end: Optional[str] = None
    granularity: Literal["day", "hour"] = "day"
    overlay: bool = False


class WorkbookResponse(BaseModel):
    workbook_id: str
    source_name: Optional[str] = None
    mode: str
    sheet_names: List[str]
    series: List[str]


class SeriesListResponse(BaseModel):
    mode: str
    series: List[str]
