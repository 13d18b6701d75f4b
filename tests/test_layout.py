"""
Tests for layout configuration and request normalization.
"""

from datetime import date, datetime, time, timedelta

import pytest

from eventlog.layout import (
    DEFAULT_LAYOUT,
    LOOKUP_MODE,
    TimelineRequest,
    make_window,
    normalize_layout,
    normalize_timeline_request,
)


class TestWindow:
    """Test analysis window construction."""

    def test_dates_cover_whole_days(self):
        window = make_window(date(2024, 1, 1), date(2024, 1, 3), "day")

        assert window.start == datetime(2024, 1, 1, 0, 0)
        assert window.end == datetime.combine(date(2024, 1, 3), time.max)
        assert window.contains(datetime(2024, 1, 3, 23, 59))

    def test_datetimes_kept_as_given(self):
        window = make_window(datetime(2024, 1, 1, 8), datetime(2024, 1, 1, 9), "hour")
        assert window.end == datetime(2024, 1, 1, 9)
        assert not window.contains(datetime(2024, 1, 1, 9, 1))

    def test_inverted(self):
        assert make_window(date(2024, 1, 2), date(2024, 1, 1)).is_inverted

    def test_unknown_granularity(self):
        with pytest.raises(ValueError):
            make_window(date(2024, 1, 1), date(2024, 1, 2), "minute")


class TestTimelineRequest:
    """Test raw request normalization."""

    def test_defaults(self):
        req = normalize_timeline_request({})

        assert req.series == []
        assert req.granularity == "day"
        assert req.end == date.today()
        assert req.start == date.today() - timedelta(days=3)
        assert req.overlay is False

    def test_parses_key_and_iso_formats(self):
        req = normalize_timeline_request(
            {"series": ["A", "", None, "B"], "start": "01.01.2024", "end": "2024-01-03", "granularity": "HOUR", "overlay": 1}
        )

        assert req.series == ["A", "B"]
        assert req.start == date(2024, 1, 1)
        assert req.end == date(2024, 1, 3)
        assert req.granularity == "hour"
        assert req.overlay is True

    def test_parses_datetimes(self):
        req = normalize_timeline_request({"start": "01.01.2024 10:00", "end": "2024-01-01T12:30:00"})

        assert req.start == datetime(2024, 1, 1, 10, 0)
        assert req.end == datetime(2024, 1, 1, 12, 30)

    def test_bad_values_raise(self):
        with pytest.raises(ValueError):
            normalize_timeline_request({"granularity": "week"})
        with pytest.raises(ValueError):
            normalize_timeline_request({"start": "yesterday"})

    def test_utc_offsets_rejected(self):
        """Timestamps with an offset cannot be compared to naive sheet times."""
        with pytest.raises(ValueError, match="UTC offset"):
            normalize_timeline_request({"start": "2024-01-01T00:00:00+00:00"})
        with pytest.raises(ValueError, match="UTC offset"):
            normalize_timeline_request({"end": "2024-01-03T12:00:00+02:00"})

    def test_window_property(self):
        req = TimelineRequest(series=["A"], start=date(2024, 1, 1), end=date(2024, 1, 2), granularity="hour")
        assert req.window.granularity == "hour"
        assert req.window.start == datetime(2024, 1, 1)


class TestLayout:
    """Test layout overrides."""

    def test_empty_overrides_return_default(self):
        assert normalize_layout(None) is DEFAULT_LAYOUT

    def test_overrides(self):
        layout = normalize_layout({"mode": " Lookup ", "date_column": "c", "data_start_row": "0", "unknown": 1})

        assert layout.mode == LOOKUP_MODE
        assert layout.date_column == "C"
        assert layout.data_start_row == 1

    def test_bad_mode(self):
        with pytest.raises(ValueError):
            normalize_layout({"mode": "columns"})

    def test_service_sheets_case_insensitive(self):
        assert DEFAULT_LAYOUT.is_service_sheet("посилання")
        assert DEFAULT_LAYOUT.is_service_sheet(" ПОШУК ")
        assert not DEFAULT_LAYOUT.is_service_sheet("Network A")
