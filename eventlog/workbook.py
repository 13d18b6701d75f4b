"""Workbook loading (xlsx bytes -> positional pandas grids)."""

from __future__ import annotations

import hashlib
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional
from zipfile import BadZipFile

import openpyxl
import pandas as pd
from openpyxl.utils.datetime import CALENDAR_WINDOWS_1900
from openpyxl.utils.exceptions import InvalidFileException

from eventlog.cells import cell_position, column_index, is_numeric_cell, normalize_cell_value

logger = logging.getLogger(__name__)


class WorkbookLoadError(ValueError):
    """Raised when uploaded bytes are not a readable workbook."""


@dataclass(frozen=True)
class SheetGrid:
    """One sheet as a 0-based positional grid; grid row 0 is spreadsheet row 1."""

    name: str
    cells: pd.DataFrame
    max_row: int

    def value(self, row: int, col: int) -> object:
        if row < 0 or col < 0 or row >= self.cells.shape[0] or col >= self.cells.shape[1]:
            return None
        value = self.cells.iat[row, col]
        return None if value is None or (isinstance(value, float) and pd.isna(value)) else value

    def value_at(self, coordinate: str) -> object:
        row, col = cell_position(coordinate)
        return self.value(row, col)

    def column(self, letter: str, start_row: int) -> pd.Series:
        """Raw values of one column from ``start_row`` (1-based) to ``max_row``, indexed by row number."""
        col = column_index(letter)
        rows = range(max(start_row, 1), self.max_row + 1)
        if col >= self.cells.shape[1] or not rows:
            return pd.Series([None] * len(rows), index=list(rows), dtype=object)
        values = self.cells.iloc[rows.start - 1 : rows.stop - 1, col].tolist()
        values += [None] * (len(rows) - len(values))
        return pd.Series(values, index=list(rows), dtype=object)

    def numeric_column(self, letter: str, start_row: int) -> pd.Series:
        """Like ``column`` but non-numeric cells (text, blank, bool) become NaN."""
        raw = self.column(letter, start_row)
        return pd.to_numeric(raw.where(raw.map(is_numeric_cell)), errors="coerce").astype(float)


@dataclass(frozen=True)
class Workbook:
    sheet_names: List[str]
    sheets: Dict[str, SheetGrid]
    epoch: datetime = CALENDAR_WINDOWS_1900
    fingerprint: str = ""
    source_name: Optional[str] = None

    def sheet(self, name: str) -> Optional[SheetGrid]:
        return self.sheets.get(name)

    def find_sheet(self, name: str) -> Optional[SheetGrid]:
        """Case-insensitive sheet lookup."""
        if name in self.sheets:
            return self.sheets[name]
        lowered = name.strip().lower()
        for sheet_name, grid in self.sheets.items():
            if sheet_name.strip().lower() == lowered:
                return grid
        return None


def _sheet_to_grid(ws, epoch: datetime) -> SheetGrid:
    rows = [[normalize_cell_value(v, epoch) for v in row] for row in ws.iter_rows(values_only=True)]
    cells = pd.DataFrame(rows, dtype=object) if rows else pd.DataFrame(dtype=object)
    return SheetGrid(name=ws.title, cells=cells, max_row=int(ws.max_row or 0))


def workbook_fingerprint(data: bytes) -> str:
    """Content hash of the raw upload; same bytes, same fingerprint regardless of file name."""
    return hashlib.sha256(data).hexdigest()


def load_workbook(data: bytes, source_name: Optional[str] = None) -> Workbook:
    if not data:
        raise WorkbookLoadError("Empty upload: no workbook bytes received.")
    try:
        wb = openpyxl.load_workbook(io.BytesIO(data), data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as exc:
        raise WorkbookLoadError(f"Not a readable xlsx workbook: {exc}") from exc

    try:
        epoch = wb.epoch
        sheets: Dict[str, SheetGrid] = {}
        for ws in wb.worksheets:
            sheets[ws.title] = _sheet_to_grid(ws, epoch)
    finally:
        wb.close()

    workbook = Workbook(
        sheet_names=list(sheets),
        sheets=sheets,
        epoch=epoch,
        fingerprint=workbook_fingerprint(data),
        source_name=source_name,
    )
    logger.info(
        "Loaded workbook %s: %d sheet(s), epoch %s",
        source_name or workbook.fingerprint[:12],
        len(workbook.sheet_names),
        epoch.date(),
    )
    return workbook
