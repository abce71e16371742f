"""
test_dashboard.py - Tests for the HTML dashboard rendering.
"""

import sys
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from energy_dashboard.aggregator import summarize_records
from energy_dashboard.alerts import (
    CRITICAL_BANNER_MESSAGE,
    AlertState,
    evaluate_alerts,
)
from energy_dashboard.dashboard import (
    _chart_power_factor,
    _chart_process_efficiency,
    format_stats,
    generate_dashboard,
    render_dashboard_html,
)
from energy_dashboard.data_generator import RECORD_COLUMNS, generate_records


@pytest.fixture
def records(midpoint_rng):
    return generate_records(1, rng=midpoint_rng, end_date=date(2024, 1, 10))


class TestFormatStats:

    def test_formatting(self, records):
        display = format_stats(summarize_records(records))
        assert display == {
            "avg_power_factor": "0.900",
            "total_energy": "18.75 kWh",
            "active_departments": "5",
        }

    def test_empty_selection_shows_blanks(self):
        display = format_stats(summarize_records(pd.DataFrame(columns=RECORD_COLUMNS)))
        assert display["avg_power_factor"] == "-"
        assert display["total_energy"] == "-"
        assert display["active_departments"] == "0"


class TestCharts:

    def test_power_factor_axis_range(self, records):
        fig = _chart_power_factor(records)
        assert list(fig.layout.yaxis.range) == [0.8, 1.0]
        assert fig.data[0].line.color == "#ff7300"

    def test_efficiency_axis_range(self, records):
        fig = _chart_process_efficiency(records)
        assert list(fig.layout.yaxis.range) == [70, 100]
        assert len(fig.data[0].x) == 15


class TestRenderDashboard:

    def test_stats_and_placeholder(self, records):
        result = evaluate_alerts(records)
        page = render_dashboard_html(records, result, AlertState(), "2024-01-09")
        assert "0.900" in page
        assert "18.75 kWh" in page
        assert "No alerts" in page
        assert CRITICAL_BANNER_MESSAGE not in page

    def test_notifications_and_banner(self, records):
        result = evaluate_alerts(records, low_power_factor=0.95)
        page = render_dashboard_html(records, result, AlertState(active=True), "2024-01-09")
        assert "Low power factor detected in Assembly (Main Line) on 2024-01-09" in page
        assert CRITICAL_BANNER_MESSAGE in page
        assert "No alerts" not in page

    def test_held_banner_without_new_alerts(self, records):
        result = evaluate_alerts(records)
        page = render_dashboard_html(records, result, AlertState(active=True), "2024-01-09")
        assert CRITICAL_BANNER_MESSAGE in page
        assert "No alerts" in page

    def test_empty_selection_renders(self):
        empty = pd.DataFrame(columns=RECORD_COLUMNS)
        page = render_dashboard_html(empty, evaluate_alerts(empty), AlertState(), "1999-01-01")
        assert "<!DOCTYPE html>" in page
        assert "No alerts" in page

    def test_selection_label_escaped(self, records):
        page = render_dashboard_html(records, evaluate_alerts(records), AlertState(), "x & y")
        assert "x &amp; y" in page


class TestGenerateDashboard:

    def test_writes_file(self, records, tmp_config):
        path = generate_dashboard(
            records,
            evaluate_alerts(records),
            AlertState(),
            "2024-01-09",
            config_path=tmp_config,
            run_date="2024-01-10",
        )
        assert path.exists()
        assert path.name == "dashboard_2024-01-10.html"
        assert "Test Plant" in path.read_text(encoding="utf-8")
