from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

SHEET_MODE = "sheet"
LOOKUP_MODE = "lookup"
AUTO_MODE = "auto"
LAYOUT_MODES = (AUTO_MODE, SHEET_MODE, LOOKUP_MODE)

DEFAULT_RANGE_DAYS = 3
DEFAULT_GRANULARITY = "day"


@dataclass(frozen=True)
class Granularity:
    name: str
    key_format: str
    freq: str


GRANULARITIES: Dict[str, Granularity] = {
    "day": Granularity(name="day", key_format="%d.%m.%Y", freq="D"),
    "hour": Granularity(name="hour", key_format="%d.%m.%Y %H:%M", freq="h"),
}


def get_granularity(name: str) -> Granularity:
    try:
        return GRANULARITIES[name]
    except KeyError:
        raise ValueError(f"Unknown granularity {name!r}; expected one of {sorted(GRANULARITIES)}") from None


@dataclass(frozen=True)
class WorkbookLayout:
    """Fixed cell positions of the event workbook (1-based rows, column letters)."""

    data_start_row: int = 4
    date_column: str = "A"
    time_column: str = "B"
    frequency_column: str = "C"
    title_cell: str = "A1"
    lookup_sheet: str = "Посилання"
    lookup_name_column: str = "A"
    lookup_frequency_column: str = "B"
    lookup_start_row: int = 2
    data_sheet: Optional[str] = None
    service_sheets: Tuple[str, ...] = ("Посилання", "Пошук")
    mode: str = AUTO_MODE

    def is_service_sheet(self, sheet_name: str) -> bool:
        lowered = {s.lower() for s in self.service_sheets} | {self.lookup_sheet.lower()}
        return sheet_name.strip().lower() in lowered


DEFAULT_LAYOUT = WorkbookLayout()


def normalize_layout(raw: Optional[dict], *, base: WorkbookLayout = DEFAULT_LAYOUT) -> WorkbookLayout:
    if not raw:
        return base
    overrides = {k: v for k, v in raw.items() if v is not None and k in WorkbookLayout.__dataclass_fields__}
    for key in ("data_start_row", "lookup_start_row"):
        if key in overrides:
            overrides[key] = max(1, int(overrides[key]))
    for key in ("date_column", "time_column", "frequency_column", "lookup_name_column", "lookup_frequency_column", "title_cell"):
        if key in overrides:
            overrides[key] = str(overrides[key]).strip().upper()
    if "service_sheets" in overrides:
        overrides["service_sheets"] = tuple(str(s) for s in overrides["service_sheets"])
    mode = str(overrides.get("mode", base.mode)).strip().lower()
    if mode not in LAYOUT_MODES:
        raise ValueError(f"Unknown layout mode {mode!r}; expected one of {list(LAYOUT_MODES)}")
    overrides["mode"] = mode
    return replace(base, **overrides)


@dataclass(frozen=True)
class AnalysisWindow:
    """Inclusive [start, end] range plus bucket width, passed through scan and bucketize."""

    start: datetime
    end: datetime
    granularity: str = DEFAULT_GRANULARITY

    @property
    def is_inverted(self) -> bool:
        return self.end < self.start

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts <= self.end


def _as_start(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _as_end(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def make_window(start: date | datetime, end: date | datetime, granularity: str = DEFAULT_GRANULARITY) -> AnalysisWindow:
    get_granularity(granularity)
    return AnalysisWindow(start=_as_start(start), end=_as_end(end), granularity=granularity)


@dataclass(frozen=True)
class TimelineRequest:
    series: List[str] = field(default_factory=list)
    start: date = field(default_factory=lambda: date.today() - timedelta(days=DEFAULT_RANGE_DAYS))
    end: date = field(default_factory=date.today)
    granularity: str = DEFAULT_GRANULARITY
    overlay: bool = False

    @property
    def window(self) -> AnalysisWindow:
        return make_window(self.start, self.end, self.granularity)


def _as_date(value: object, default: date) -> date | datetime:
    if value is None or value == "":
        return default
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    # bucket key formats first, then ISO
    for fmt, has_time in (("%d.%m.%Y %H:%M", True), ("%d.%m.%Y", False)):
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed if has_time else parsed.date()
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        raise ValueError(f"Timestamp {text!r} carries a UTC offset; send local time without one")
    return parsed.date() if len(text) <= 10 else parsed


def normalize_timeline_request(raw: dict) -> TimelineRequest:
    today = date.today()
    series = [str(x) for x in (raw.get("series") or []) if x is not None and str(x).strip()]
    start = _as_date(raw.get("start"), today - timedelta(days=DEFAULT_RANGE_DAYS))
    end = _as_date(raw.get("end"), today)
    granularity = str(raw.get("granularity") or DEFAULT_GRANULARITY).strip().lower()
    get_granularity(granularity)
    return TimelineRequest(
        series=series,
        start=start,
        end=end,
        granularity=granularity,
        overlay=bool(raw.get("overlay", False)),
    )
