from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from eventlog.buckets import BucketCount, bucketize
from eventlog.cells import cell_text
from eventlog.layout import (
    AUTO_MODE,
    DEFAULT_GRANULARITY,
    DEFAULT_LAYOUT,
    LOOKUP_MODE,
    SHEET_MODE,
    AnalysisWindow,
    WorkbookLayout,
    make_window,
)
from eventlog.names import NameIndex, resolve_names
from eventlog.scanner import scan_sheet
from eventlog.workbook import SheetGrid, Workbook, load_workbook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesResult:
    series: str = ""
    display_name: str = ""
    buckets: List[BucketCount] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(b.count for b in self.buckets)

    @property
    def max_count(self) -> int:
        return max((b.count for b in self.buckets), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AnalysisSession:
    """Holds one loaded workbook and answers per-series bucketed count queries.

    Loading a new workbook replaces the previous one and drops the cached
    name index. Queries never mutate session state.
    """

    def __init__(self, layout: WorkbookLayout = DEFAULT_LAYOUT, workbook: Optional[Workbook] = None):
        self.layout = layout
        self._workbook: Optional[Workbook] = None
        self._name_index: Optional[NameIndex] = None
        if workbook is not None:
            self.attach(workbook)

    # ---- workbook lifecycle ----
    def load(self, data: bytes, source_name: Optional[str] = None) -> Workbook:
        workbook = load_workbook(data, source_name=source_name)
        self.attach(workbook)
        return workbook

    def attach(self, workbook: Workbook) -> None:
        self._workbook = workbook
        self._name_index = None
        logger.info("Session using workbook %s in %s mode", workbook.source_name or workbook.fingerprint[:12], self.mode)

    @property
    def workbook(self) -> Optional[Workbook]:
        return self._workbook

    @property
    def is_loaded(self) -> bool:
        return self._workbook is not None

    @property
    def mode(self) -> str:
        if self.layout.mode != AUTO_MODE:
            return self.layout.mode
        if self._workbook is not None and self._workbook.find_sheet(self.layout.lookup_sheet) is not None:
            return LOOKUP_MODE
        return SHEET_MODE

    # ---- series discovery ----
    def name_index(self) -> NameIndex:
        if self._name_index is None:
            lookup = self._workbook.find_sheet(self.layout.lookup_sheet) if self._workbook else None
            self._name_index = resolve_names(lookup, self.layout) if lookup is not None else NameIndex()
        return self._name_index

    def data_sheet(self) -> Optional[SheetGrid]:
        if self._workbook is None:
            return None
        if self.layout.data_sheet:
            return self._workbook.find_sheet(self.layout.data_sheet)
        for name in self._workbook.sheet_names:
            if not self.layout.is_service_sheet(name):
                return self._workbook.sheets[name]
        return None

    @property
    def series_names(self) -> List[str]:
        if self._workbook is None:
            return []
        if self.mode == LOOKUP_MODE:
            return list(self.name_index().names)
        return [n for n in self._workbook.sheet_names if not self.layout.is_service_sheet(n)]

    def display_name(self, series: str) -> str:
        if self.mode == SHEET_MODE and self._workbook is not None:
            sheet = self._workbook.find_sheet(series)
            if sheet is not None:
                return cell_text(sheet.value_at(self.layout.title_cell)) or sheet.name
        return series

    # ---- analysis ----
    def analyze(
        self,
        series: str,
        start: date | datetime,
        end: date | datetime,
        granularity: str = DEFAULT_GRANULARITY,
    ) -> SeriesResult:
        return self.analyze_window(series, make_window(start, end, granularity))

    def analyze_window(self, series: str, window: AnalysisWindow) -> SeriesResult:
        if self._workbook is None:
            return SeriesResult()

        if self.mode == LOOKUP_MODE:
            sheet = self.data_sheet()
            allowed = self.name_index().codes_for(series)
        else:
            sheet = self._workbook.find_sheet(series)
            allowed = None

        if sheet is None:
            timestamps = []
        else:
            events = scan_sheet(
                sheet,
                window,
                layout=self.layout,
                allowed_frequencies=allowed,
                epoch=self._workbook.epoch,
            )
            timestamps = events["timestamp"].tolist()

        buckets = bucketize(timestamps, window)
        logger.debug("Series %r: %d event(s) in %d bucket(s)", series, len(timestamps), len(buckets))
        return SeriesResult(series=series, display_name=self.display_name(series), buckets=buckets)

    def analyze_many(self, series: List[str], window: AnalysisWindow) -> List[SeriesResult]:
        return [self.analyze_window(name, window) for name in series]
