"""
Tests for multi-series timeline payloads and chart specs.
"""

from datetime import date

from eventlog.analysis import AnalysisSession
from eventlog.charts import bar_chart, overlay_chart, timeline_frame, to_vega_spec
from eventlog.layout import TimelineRequest
from eventlog.timeline import compute_timeline


def request(series, overlay=False, granularity="day"):
    return TimelineRequest(series=series, start=date(2024, 1, 1), end=date(2024, 1, 3), granularity=granularity, overlay=overlay)


class TestComputeTimeline:
    """Test the JSON payload."""

    def test_per_series_charts(self, three_event_session):
        payload = compute_timeline(request(["Network A", "Network B"]), three_event_session)

        assert payload["mode"] == "sheet"
        assert [s["series"] for s in payload["series"]] == ["Network A", "Network B"]
        assert payload["series"][0]["buckets"][1] == {"key": "02.01.2024", "count": 2}
        assert payload["totals"] == {"Network A": 3, "Network B": 1}
        assert payload["global_max"] == 2
        assert set(payload["charts"]) == {"Network A", "Network B"}
        assert payload["charts"]["Network A"]["mark"]["type"] == "bar"

    def test_overlay_chart(self, three_event_session):
        payload = compute_timeline(request(["Network A", "Network B"], overlay=True), three_event_session)
        assert list(payload["charts"]) == ["overlay"]

    def test_without_charts(self, lookup_session):
        payload = compute_timeline(request(["North", "South"]), lookup_session, with_charts=False)

        assert payload["charts"] == {}
        assert payload["totals"] == {"North": 3, "South": 2}

    def test_no_workbook(self):
        payload = compute_timeline(request(["Network A"]), AnalysisSession())

        assert payload["series"] == []
        assert payload["global_max"] == 0

    def test_no_series_selected(self, three_event_session):
        assert compute_timeline(request([]), three_event_session)["series"] == []


class TestCharts:
    """Test chart helpers."""

    def test_timeline_frame(self, three_event_session):
        results = three_event_session.analyze_many(["Network A"], request(["Network A"]).window)
        df = timeline_frame(results)

        assert list(df["key"]) == ["01.01.2024", "02.01.2024", "03.01.2024"]
        assert list(df["count"]) == [0, 2, 1]
        assert list(df["weekday"]) == ["Mon", "Tue", "Wed"]
        assert set(df["display_name"]) == {"Network A title"}

    def test_hour_keys_in_frame(self, three_event_session):
        results = three_event_session.analyze_many(["Network A"], request(["Network A"], granularity="hour").window)
        df = timeline_frame(results)

        assert len(df) == 72
        assert df["count"].sum() == 3

    def test_empty_frame(self):
        assert timeline_frame([]).empty

    def test_specs_serialize(self, three_event_session):
        results = three_event_session.analyze_many(["Network A", "Network B"], request([]).window)

        assert to_vega_spec(bar_chart(results[0], y_max=5))["encoding"]["y"]["scale"]["domain"] == [0, 5]
        assert "color" in to_vega_spec(overlay_chart(results))["encoding"]
