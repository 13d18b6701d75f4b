"""Spreadsheet cell helpers: kind checks, column addressing, serial date decoding."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from numbers import Real
from typing import Optional, Tuple

from openpyxl.utils import column_index_from_string, coordinate_to_tuple
from openpyxl.utils.datetime import CALENDAR_MAC_1904, CALENDAR_WINDOWS_1900, to_excel

SECONDS_PER_DAY = 86400
# 9999-12-31, the last day a spreadsheet can address
MAX_SERIAL = 2958465
MAX_SERIAL_1904 = MAX_SERIAL - 1462
# serials below this count from 1899-12-31 (1900 system keeps a phantom 29 Feb 1900)
FIRST_SERIAL_AFTER_LEAP_BUG = 61


def is_numeric_cell(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return not math.isnan(float(value))


def is_text_cell(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def column_index(letter: str) -> int:
    """0-based grid column for a column letter ("A" -> 0)."""
    return column_index_from_string(letter.strip().upper()) - 1


def cell_position(coordinate: str) -> Tuple[int, int]:
    """0-based (row, column) grid position for an A1-style coordinate."""
    row, col = coordinate_to_tuple(coordinate.strip().upper())
    return row - 1, col - 1


def normalize_cell_value(value: object, epoch: datetime = CALENDAR_WINDOWS_1900) -> object:
    """Undo openpyxl's date conversion so date-formatted numeric cells stay serial numbers."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, timedelta):
        return value.total_seconds() / SECONDS_PER_DAY
    if isinstance(value, (datetime, date, time)):
        return float(to_excel(value, epoch=epoch))
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, str):
        return value if value.strip() else None
    return str(value)


def max_serial(epoch: datetime = CALENDAR_WINDOWS_1900) -> int:
    return MAX_SERIAL_1904 if epoch == CALENDAR_MAC_1904 else MAX_SERIAL


def serial_to_datetime(serial: float, epoch: datetime = CALENDAR_WINDOWS_1900) -> datetime:
    """Decode a combined date+time serial into a naive timestamp with minute resolution.

    The caller guarantees ``0 <= serial <= max_serial(epoch)``. Time-of-day is the
    floor of the day fraction in seconds, rounded up when the remainder is
    within 1e-4 s of the next second; seconds are then dropped.
    """
    day = int(serial)
    exact = (serial - day) * SECONDS_PER_DAY
    seconds = int(math.floor(exact))
    if exact - seconds > 0.9999:
        seconds += 1
        if seconds == SECONDS_PER_DAY:
            seconds = 0
            day += 1

    if epoch == CALENDAR_MAC_1904:
        base = CALENDAR_MAC_1904
    elif day < FIRST_SERIAL_AFTER_LEAP_BUG:
        base = datetime(1899, 12, 31)
    else:
        base = CALENDAR_WINDOWS_1900
    return (base + timedelta(days=day, seconds=seconds)).replace(second=0)


def decode_date_time(date_serial: float, time_serial: float, epoch: datetime = CALENDAR_WINDOWS_1900) -> datetime:
    return serial_to_datetime(date_serial + time_serial, epoch=epoch)


def cell_text(value: object) -> Optional[str]:
    if is_text_cell(value):
        return str(value).strip()
    if is_numeric_cell(value):
        number = float(value)
        return str(int(number)) if number.is_integer() else str(number)
    return None
