"""
Pytest configuration and fixtures for event timeline tests.

Workbooks are built in memory with openpyxl so no sample files are needed.
"""

import io
from datetime import datetime, time

import openpyxl
import pytest

from eventlog.analysis import AnalysisSession
from eventlog.workbook import load_workbook

# Spreadsheet serials (1900 date system)
JAN_1_2024 = 45292
JAN_2_2024 = 45293
JAN_3_2024 = 45294


def make_workbook(sheets):
    """Build xlsx bytes from {sheet name: {coordinate: value}}."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, cells in sheets.items():
        ws = wb.create_sheet(name)
        for coordinate, value in cells.items():
            ws[coordinate] = value
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def event_cells(rows, start_row=4, title=None, columns="ABC"):
    """Lay out (date, time[, frequency]) tuples from ``start_row`` down."""
    cells = {}
    if title is not None:
        cells["A1"] = title
    for offset, row in enumerate(rows):
        for letter, value in zip(columns, row):
            if value is not None:
                cells[f"{letter}{start_row + offset}"] = value
    return cells


@pytest.fixture
def three_event_bytes():
    """Two events on 02.01.2024 and one on 03.01.2024."""
    return make_workbook(
        {
            "Network A": event_cells(
                [(JAN_2_2024, 0.25), (JAN_2_2024, 0.75), (JAN_3_2024, 0.5)],
                title="Network A title",
            ),
            "Network B": event_cells([(JAN_1_2024, 0.5)]),
            "Посилання": {"A1": "links"},
            "Пошук": {"A1": "search"},
        }
    )


@pytest.fixture
def messy_sheet_bytes():
    """Valid rows mixed with text, blank, negative and boolean cells."""
    return make_workbook(
        {
            "Log": event_cells(
                [
                    (JAN_2_2024, 0.5),
                    ("02.01.2024", 0.5),
                    (JAN_2_2024, None),
                    (None, 0.5),
                    (-1, 0.5),
                    (JAN_2_2024, -0.1),
                    (True, 0.5),
                    (datetime(2024, 1, 3), time(10, 30)),
                    (JAN_3_2024 + 30, 0.5),
                ]
            )
        }
    )


@pytest.fixture
def lookup_bytes():
    """Shared data sheet with frequency codes plus a lookup sheet mapping names to codes."""
    return make_workbook(
        {
            "Дані": event_cells(
                [
                    (JAN_1_2024, 0.1, 101),
                    (JAN_2_2024, 0.2, 102),
                    (JAN_2_2024, 0.3, 201),
                    (JAN_2_2024, 0.4, 101),
                    (JAN_3_2024, 0.5, 202),
                    (JAN_3_2024, 0.6, 999),
                    (JAN_3_2024, 0.7, None),
                ]
            ),
            "Посилання": {
                "A1": "Name",
                "B1": "Code",
                "A2": "North",
                "B2": 101,
                "A3": "South",
                "B3": 201,
                "A4": "North",
                "B4": 102,
                "A5": "South",
                "B5": 202,
                "A6": "North",
                "B6": 101,
                "A7": "Broken",
                "B7": "n/a",
                "A9": "West",
                "B9": 301,
            },
        }
    )


@pytest.fixture
def three_event_session(three_event_bytes):
    return AnalysisSession(workbook=load_workbook(three_event_bytes, source_name="three.xlsx"))


@pytest.fixture
def lookup_session(lookup_bytes):
    return AnalysisSession(workbook=load_workbook(lookup_bytes, source_name="lookup.xlsx"))
