from __future__ import annotations

import logging
from datetime import datetime
from typing import AbstractSet, Optional

import pandas as pd
from openpyxl.utils.datetime import CALENDAR_WINDOWS_1900

from eventlog.cells import max_serial, serial_to_datetime
from eventlog.layout import DEFAULT_LAYOUT, AnalysisWindow, WorkbookLayout
from eventlog.workbook import SheetGrid

logger = logging.getLogger(__name__)

EVENT_COLUMNS = ["row", "timestamp", "frequency"]


def empty_events() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "row": pd.Series(dtype="int64"),
            "timestamp": pd.Series(dtype="datetime64[ns]"),
            "frequency": pd.Series(dtype="float64"),
        }
    )


def scan_sheet(
    sheet: SheetGrid,
    window: AnalysisWindow,
    *,
    layout: WorkbookLayout = DEFAULT_LAYOUT,
    allowed_frequencies: Optional[AbstractSet[float]] = None,
    epoch: datetime = CALENDAR_WINDOWS_1900,
) -> pd.DataFrame:
    """Extract in-range events from ``layout.data_start_row`` to the sheet's last row.

    Rows with a missing, non-numeric or negative date or time cell are skipped,
    as are rows whose frequency code is not in ``allowed_frequencies`` (when
    given). The whole row range is always scanned, so row order does not matter.
    Returns one row per kept event in sheet row order (columns ``EVENT_COLUMNS``).
    """
    start_row = layout.data_start_row
    dates = sheet.numeric_column(layout.date_column, start_row)
    times = sheet.numeric_column(layout.time_column, start_row)
    if dates.empty:
        return empty_events()

    valid = dates.notna() & times.notna() & (dates >= 0) & (times >= 0)
    frequencies = pd.Series(float("nan"), index=dates.index)
    if allowed_frequencies is not None:
        frequencies = sheet.numeric_column(layout.frequency_column, start_row)
        valid &= frequencies.isin(list(allowed_frequencies))

    serials = dates[valid] + times[valid]
    serials = serials[serials <= max_serial(epoch)]
    stamps = serials.map(lambda s: serial_to_datetime(float(s), epoch=epoch))
    if not stamps.empty:
        stamps = stamps[stamps.map(window.contains).astype(bool)]

    logger.debug(
        "Scanned sheet %r rows %d-%d: %d valid, %d in range",
        sheet.name,
        start_row,
        sheet.max_row,
        int(valid.sum()),
        len(stamps),
    )
    if stamps.empty:
        return empty_events()

    return pd.DataFrame(
        {
            "row": stamps.index.astype("int64"),
            "timestamp": pd.to_datetime(stamps.tolist()),
            "frequency": frequencies.loc[stamps.index].to_numpy(dtype=float),
        }
    ).reset_index(drop=True)
