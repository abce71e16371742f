"""
dashboard.py - Interactive Plotly HTML Dashboard.

Generates a self-contained HTML file for one date selection with:
    - KPI header        Avg power factor, total energy, active departments
    - Alert panel       Notification list, critical banner with dismiss button
    - Four charts:
        1. Energy Trend              Line, mean energy per unit by date
        2. Department Consumption    Bar, mean energy per unit by department
        3. Power Factor              Line, mean power factor by date
        4. Process Efficiency        Bar, mean efficiency by process

The output opens directly in any browser; plotly.js loads from the CDN.
"""

import html
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd
import plotly.graph_objects as go

from energy_dashboard.aggregator import (
    aggregate_by_date,
    aggregate_by_department,
    aggregate_by_process,
    summarize_records,
)
from energy_dashboard.alerts import (
    CRITICAL_BANNER_MESSAGE,
    NO_ALERTS_PLACEHOLDER,
    AlertResult,
    AlertState,
)
from energy_dashboard.data_generator import load_config

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Chart palette (matches Excel report)
# ---------------------------------------------------------------------------
CHART_COLOURS = {
    "energy_trend":       "#8884d8",
    "department_energy":  "#82ca9d",
    "power_factor":       "#ff7300",
    "process_efficiency": "#8884d8",
}

HEADER_COLOUR = "#2C3E50"
BANNER_COLOUR = "#C00000"

POWER_FACTOR_RANGE = [0.8, 1.0]
EFFICIENCY_RANGE = [70, 100]

DASHBOARD_TEMPLATE = "plotly_white"


def _style_figure(fig: go.Figure, title: str, x_title: str, y_title: str) -> go.Figure:
    fig.update_layout(
        title={"text": title, "font": {"size": 16, "color": HEADER_COLOUR}},
        xaxis_title=x_title,
        yaxis_title=y_title,
        template=DASHBOARD_TEMPLATE,
        height=360,
        margin={"l": 60, "r": 30, "t": 60, "b": 60},
        showlegend=False,
    )
    return fig


def _chart_energy_trend(records: pd.DataFrame) -> go.Figure:
    """Line chart of mean energy per unit for each date in the selection."""
    daily = aggregate_by_date(records, "energy_per_unit")
    fig = go.Figure(
        go.Scatter(
            x=daily["date"],
            y=daily["value"],
            name="Energy per Unit",
            mode="lines+markers",
            line={"color": CHART_COLOURS["energy_trend"], "width": 2},
            hovertemplate="Date: %{x}<br>Energy per Unit: %{y:.2f} kWh<extra></extra>",
        )
    )
    return _style_figure(fig, "Energy Consumption Trend", "Date", "Energy per Unit (kWh)")


def _chart_department_consumption(records: pd.DataFrame) -> go.Figure:
    """Bar chart of mean energy per unit by department."""
    by_department = aggregate_by_department(records, "energy_per_unit")
    fig = go.Figure(
        go.Bar(
            x=by_department["department"],
            y=by_department["value"],
            name="Energy per Unit",
            marker_color=CHART_COLOURS["department_energy"],
            hovertemplate="<b>%{x}</b><br>Energy per Unit: %{y:.2f} kWh<extra></extra>",
        )
    )
    return _style_figure(
        fig, "Department Energy Consumption", "Department", "Energy per Unit (kWh)"
    )


def _chart_power_factor(records: pd.DataFrame) -> go.Figure:
    """Line chart of mean power factor by date, y-axis pinned to 0.8-1.0."""
    daily = aggregate_by_date(records, "power_factor")
    fig = go.Figure(
        go.Scatter(
            x=daily["date"],
            y=daily["value"],
            name="Power Factor",
            mode="lines+markers",
            line={"color": CHART_COLOURS["power_factor"], "width": 2},
            hovertemplate="Date: %{x}<br>Power Factor: %{y:.2f}<extra></extra>",
        )
    )
    fig = _style_figure(fig, "Power Factor Analysis", "Date", "Power Factor")
    fig.update_yaxes(range=POWER_FACTOR_RANGE)
    return fig


def _chart_process_efficiency(records: pd.DataFrame) -> go.Figure:
    """Bar chart of mean efficiency by process, y-axis pinned to 70-100%."""
    by_process = aggregate_by_process(records, "efficiency")
    fig = go.Figure(
        go.Bar(
            x=by_process["process_name"],
            y=by_process["value"],
            name="Efficiency (%)",
            marker_color=CHART_COLOURS["process_efficiency"],
            hovertemplate="<b>%{x}</b><br>Efficiency: %{y:.2f}%<extra></extra>",
        )
    )
    fig = _style_figure(fig, "Process Efficiency", "Process", "Efficiency (%)")
    fig.update_yaxes(range=EFFICIENCY_RANGE)
    fig.update_xaxes(tickangle=-35)
    return fig


def format_stats(stats: dict[str, Any]) -> dict[str, str]:
    """Render headline stats as display strings.

    An empty selection shows blanks instead of a mean over nothing.
    """
    avg_pf = stats["avg_power_factor"]
    if avg_pf is None:
        return {"avg_power_factor": "-", "total_energy": "-", "active_departments": "0"}
    return {
        "avg_power_factor": f"{avg_pf:.3f}",
        "total_energy": f"{stats['total_energy_kwh']:.2f} kWh",
        "active_departments": str(stats["active_departments"]),
    }


def _build_kpi_header(
    stats: dict[str, Any],
    selection_label: str,
    project_name: str,
) -> str:
    """Generate the HTML title bar and KPI tile row.

    Args:
        stats: Output of summarize_records().
        selection_label: Human-readable description of the date selection.
        project_name: Dashboard title.

    Returns:
        HTML string containing the header.
    """
    display = format_stats(stats)
    tiles = [
        ("Average Power Factor", display["avg_power_factor"],   "#FF7300"),
        ("Total Energy",         display["total_energy"],       "#2E7D32"),
        ("Active Departments",   display["active_departments"], "#5C6BC0"),
    ]
    tile_html = ""
    for label, value, colour in tiles:
        tile_html += f"""
        <div class="kpi-tile" style="background:{colour};">
            <div class="kpi-label">{label.upper()}</div>
            <div class="kpi-value">{html.escape(value)}</div>
        </div>"""

    return f"""
    <div class="header">
        <h1>{html.escape(project_name)}</h1>
        <p>Selection: {html.escape(selection_label)} &nbsp;|&nbsp; Generated: {datetime.today().strftime('%Y-%m-%d %H:%M')}</p>
        <div class="kpi-row">{tile_html}
        </div>
    </div>
    """


def _build_alert_panel(result: AlertResult, alert_state: AlertState) -> str:
    """Notification list plus the critical banner while the alert is held.

    Args:
        result: Evaluation for the current selection.
        alert_state: Banner state after folding in the evaluation.

    Returns:
        HTML string for the alerts section.
    """
    if result.notifications:
        items = "".join(
            f'<li class="alert-item">{html.escape(message)}</li>'
            for message in result.notifications
        )
    else:
        items = f'<li class="alert-none">{NO_ALERTS_PLACEHOLDER}</li>'

    banner = ""
    if alert_state.active:
        banner = f"""
        <div id="critical-banner" class="critical-banner" role="alert">
            <span>{CRITICAL_BANNER_MESSAGE}</span>
            <button type="button" onclick="document.getElementById('critical-banner').remove();">Dismiss</button>
        </div>"""

    return f"""
    {banner}
    <div class="alerts-card">
        <h2>Alerts</h2>
        <ul id="alerts-list">{items}</ul>
    </div>
    """


def render_dashboard_html(
    records: pd.DataFrame,
    alert_result: AlertResult,
    alert_state: AlertState,
    selection_label: str,
    project_name: str = "Factory Energy Dashboard",
) -> str:
    """Assemble the full dashboard page for a record selection.

    Args:
        records: Records for the current selection; may be empty.
        alert_result: Alert evaluation of the same records.
        alert_state: Banner state to render.
        selection_label: Shown in the header, e.g. the selected date.
        project_name: Page and header title.

    Returns:
        Complete HTML document as a string.
    """
    stats = summarize_records(records)

    chart_args = {"include_plotlyjs": False, "full_html": False}
    div_trend      = _chart_energy_trend(records).to_html(**chart_args)
    div_department = _chart_department_consumption(records).to_html(**chart_args)
    div_pf         = _chart_power_factor(records).to_html(**chart_args)
    div_efficiency = _chart_process_efficiency(records).to_html(**chart_args)

    kpi_header = _build_kpi_header(stats, selection_label, project_name)
    alert_panel = _build_alert_panel(alert_result, alert_state)
    title = html.escape(f"{project_name} | {selection_label}")

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <script src="https://cdn.plot.ly/plotly-latest.min.js"></script>
    <style>
        * {{ box-sizing: border-box; margin: 0; padding: 0; }}
        body {{ font-family: 'Segoe UI', Arial, sans-serif; background: #F5F5F5; }}
        .header {{ background: {HEADER_COLOUR}; padding: 20px 30px; color: white; }}
        .header h1 {{ font-size: 22px; margin-bottom: 4px; }}
        .header p {{ font-size: 13px; opacity: 0.75; margin-bottom: 16px; }}
        .kpi-row {{ display: flex; gap: 12px; flex-wrap: wrap; }}
        .kpi-tile {{
            color: white; border-radius: 8px; padding: 12px 18px;
            min-width: 160px; text-align: center;
            box-shadow: 2px 2px 6px rgba(0,0,0,0.2);
        }}
        .kpi-label {{ font-size: 11px; font-weight: 600; letter-spacing: 1px; opacity: 0.85; }}
        .kpi-value {{ font-size: 22px; font-weight: 700; margin-top: 4px; }}
        .critical-banner {{
            display: flex; justify-content: space-between; align-items: center;
            background: {BANNER_COLOUR}; color: white; font-weight: 700;
            padding: 14px 30px;
        }}
        .critical-banner button {{
            background: white; color: {BANNER_COLOUR}; border: none;
            border-radius: 4px; padding: 6px 14px; font-weight: 700; cursor: pointer;
        }}
        .alerts-card {{
            background: white; margin: 20px 20px 0 20px; padding: 12px 18px;
            border-radius: 8px; box-shadow: 0 2px 8px rgba(0,0,0,0.08);
            max-height: 220px; overflow-y: auto;
        }}
        .alerts-card h2 {{ font-size: 15px; color: {HEADER_COLOUR}; margin-bottom: 8px; }}
        .alerts-card ul {{ list-style: none; font-size: 13px; }}
        .alert-item {{ color: {BANNER_COLOUR}; padding: 3px 0; }}
        .alert-none {{ color: #888; }}
        .charts-grid {{
            display: grid;
            grid-template-columns: 1fr 1fr;
            gap: 16px;
            padding: 20px;
        }}
        .chart-card {{
            background: white;
            border-radius: 8px;
            padding: 8px;
            box-shadow: 0 2px 8px rgba(0,0,0,0.08);
        }}
        .footer {{ text-align: center; padding: 16px; color: #888; font-size: 12px; }}
        @media (max-width: 900px) {{
            .charts-grid {{ grid-template-columns: 1fr; }}
        }}
    </style>
</head>
<body>
    {kpi_header}
    {alert_panel}
    <div class="charts-grid">
        <div class="chart-card">{div_trend}</div>
        <div class="chart-card">{div_department}</div>
        <div class="chart-card">{div_pf}</div>
        <div class="chart-card">{div_efficiency}</div>
    </div>
    <div class="footer">
        {html.escape(project_name)} &nbsp;|&nbsp; {stats['record_count']} records
    </div>
</body>
</html>"""


def generate_dashboard(
    records: pd.DataFrame,
    alert_result: AlertResult,
    alert_state: AlertState,
    selection_label: str,
    config_path: str = "config.yaml",
    run_date: Optional[str] = None,
) -> Path:
    """Render the dashboard and write it to the configured output directory.

    Args:
        records: Records for the current selection.
        alert_result: Alert evaluation of the same records.
        alert_state: Banner state to render.
        selection_label: Shown in the header.
        config_path: Path to configuration YAML.
        run_date: Date stamp for the filename; today when omitted.

    Returns:
        Path to the generated .html file.
    """
    cfg = load_config(config_path)
    run_date = run_date or datetime.today().strftime("%Y-%m-%d")
    output_dir = Path(cfg["paths"]["output_dir"])
    output_dir.mkdir(parents=True, exist_ok=True)
    filename = cfg["paths"]["dashboard_filename"].format(date=run_date)
    output_path = output_dir / filename

    project_name = cfg.get("project", {}).get("name", "Factory Energy Dashboard")
    logger.info("Building interactive dashboard: %d records to visualise", len(records))

    page = render_dashboard_html(
        records, alert_result, alert_state, selection_label, project_name=project_name
    )
    output_path.write_text(page, encoding="utf-8")
    logger.info("Dashboard saved to %s", output_path)
    return output_path
