"""
reporter.py - Excel Report Generator.

Produces a multi-sheet workbook for the plant energy team, styled to match
the HTML dashboard: frozen headers, auto-fitted columns and a cover sheet
with KPI tiles.

Sheets:
    1. Summary      - KPI tiles and alert status for the selection
    2. Aggregates   - Daily, department and process mean tables + trend chart
    3. Alerts       - Every notification raised, in scan order
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.chart import LineChart, Reference
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

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
from energy_dashboard.dashboard import format_stats
from energy_dashboard.data_generator import load_config

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Colour palette (consistent with the HTML dashboard)
# ---------------------------------------------------------------------------
COLOURS = {
    "slate":        "2C3E50",
    "dark_red":     "C00000",
    "orange":       "FF7300",
    "green":        "2E7D32",
    "indigo":       "5C6BC0",
    "light_grey":   "F2F2F2",
    "alert_row":    "FFCCCC",
    "ok_row":       "E2EFDA",
    "white":        "FFFFFF",
    "header_font":  "FFFFFF",
}

THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

METRIC_LABELS = {
    "energy_per_unit": "Energy per Unit (kWh)",
    "power_factor":    "Power Factor",
    "efficiency":      "Efficiency (%)",
    "current":         "Current (A)",
}


def _make_fill(hex_colour: str) -> PatternFill:
    return PatternFill(fill_type="solid", fgColor=hex_colour)


def _make_header_font(bold: bool = True) -> Font:
    return Font(name="Calibri", bold=bold, color=COLOURS["header_font"], size=11)


def _make_title_font(size: int = 14) -> Font:
    return Font(name="Calibri", bold=True, color=COLOURS["slate"], size=size)


def _auto_fit_columns(ws, min_width: int = 10, max_width: int = 70) -> None:
    """Set each column's width from its longest rendered value.

    Args:
        ws: openpyxl Worksheet object.
        min_width: Minimum column width in character units.
        max_width: Maximum column width to prevent overly wide columns.
    """
    for col in ws.columns:
        col_letter = get_column_letter(col[0].column)
        max_len = max(
            (len(str(cell.value)) for cell in col if cell.value is not None),
            default=0,
        )
        ws.column_dimensions[col_letter].width = min(max(max_len + 4, min_width), max_width)


def _write_kpi_tile(ws, row: int, col: int, label: str, value: str, colour: str) -> None:
    """Write a two-cell KPI tile (label above, value below) with styling.

    Args:
        ws: openpyxl Worksheet.
        row: Starting row for the label cell.
        col: Column for the tile.
        label: KPI name string.
        value: KPI value string.
        colour: Hex colour for the label background.
    """
    label_cell = ws.cell(row=row, column=col, value=label)
    label_cell.fill = _make_fill(colour)
    label_cell.font = _make_header_font()
    label_cell.alignment = Alignment(horizontal="center", vertical="center")
    label_cell.border = THIN_BORDER

    value_cell = ws.cell(row=row + 1, column=col, value=value)
    value_cell.font = Font(name="Calibri", bold=True, size=16, color=colour)
    value_cell.alignment = Alignment(horizontal="center", vertical="center")
    value_cell.fill = _make_fill(COLOURS["light_grey"])
    value_cell.border = THIN_BORDER


def _write_header_row(ws, row: int, start_col: int, headers: list[str], colour: str) -> None:
    for col_i, header in enumerate(headers, start=start_col):
        cell = ws.cell(row=row, column=col_i, value=header)
        cell.fill = _make_fill(colour)
        cell.font = _make_header_font()
        cell.alignment = Alignment(horizontal="center")
        cell.border = THIN_BORDER


def _write_table(
    ws,
    row: int,
    col: int,
    title: str,
    table: pd.DataFrame,
    headers: list[str],
    colour: str,
) -> int:
    """Write a titled two-column table and return the last row used.

    Args:
        ws: openpyxl Worksheet.
        row: Row for the title; headers go on the next row.
        col: First column of the table.
        title: Table caption.
        table: Aggregation frame with [key, "value"] columns.
        headers: Display names for the two columns.
        colour: Header fill colour.

    Returns:
        Index of the last row written.
    """
    ws.cell(row=row, column=col, value=title).font = _make_title_font(12)
    _write_header_row(ws, row + 1, col, headers, colour)

    last_row = row + 1
    for offset, (key, value) in enumerate(table.itertuples(index=False), start=row + 2):
        key_cell = ws.cell(row=offset, column=col, value=key)
        key_cell.border = THIN_BORDER
        value_cell = ws.cell(row=offset, column=col + 1, value=float(value))
        value_cell.number_format = "0.00"
        value_cell.border = THIN_BORDER
        value_cell.alignment = Alignment(horizontal="right")
        last_row = offset
    return last_row


def _build_summary_sheet(
    ws,
    stats: dict[str, Any],
    alert_result: AlertResult,
    alert_state: AlertState,
    selection_label: str,
    run_date: str,
    cfg: dict[str, Any],
) -> None:
    """Populate the Summary sheet with KPI tiles and alert status.

    Args:
        ws: openpyxl Worksheet (Summary tab).
        stats: Output of summarize_records().
        alert_result: Alert evaluation of the selection.
        alert_state: Banner state after folding in the evaluation.
        selection_label: Description of the date selection.
        run_date: ISO date string for report header.
        cfg: Full configuration dictionary.
    """
    project = cfg.get("project", {})
    ws.sheet_properties.tabColor = COLOURS["slate"]
    ws.row_dimensions[1].height = 30

    ws.merge_cells("A1:F1")
    title = ws["A1"]
    title.value = f"{project.get('name', 'Factory Energy Dashboard').upper()}: ENERGY SUMMARY"
    title.font = Font(name="Calibri", bold=True, size=16, color=COLOURS["white"])
    title.fill = _make_fill(COLOURS["slate"])
    title.alignment = Alignment(horizontal="center", vertical="center")

    ws.merge_cells("A2:F2")
    sub = ws["A2"]
    sub.value = (
        f"Report Date: {run_date}  |  Selection: {selection_label}  |  "
        f"Organisation: {project.get('organisation', '')}"
    )
    sub.font = Font(name="Calibri", italic=True, size=10, color=COLOURS["slate"])
    sub.alignment = Alignment(horizontal="center", vertical="center")

    display = format_stats(stats)
    kpi_tiles = [
        ("AVG POWER FACTOR",   display["avg_power_factor"],       COLOURS["orange"]),
        ("TOTAL ENERGY",       display["total_energy"],           COLOURS["green"]),
        ("ACTIVE DEPARTMENTS", display["active_departments"],     COLOURS["indigo"]),
        ("RECORDS",            str(stats["record_count"]),        COLOURS["slate"]),
        ("NOTIFICATIONS",      str(len(alert_result.notifications)), COLOURS["dark_red"]),
    ]
    for i, (label, value, colour) in enumerate(kpi_tiles, start=1):
        _write_kpi_tile(ws, row=4, col=i, label=label, value=value, colour=colour)
    ws.row_dimensions[4].height = 22
    ws.row_dimensions[5].height = 30

    status = ws.cell(row=7, column=1)
    ws.merge_cells("A7:F7")
    if alert_state.active:
        status.value = CRITICAL_BANNER_MESSAGE
        status.fill = _make_fill(COLOURS["dark_red"])
        status.font = _make_header_font()
    else:
        status.value = "No critical alert active"
        status.fill = _make_fill(COLOURS["ok_row"])
        status.font = Font(name="Calibri", bold=True, color=COLOURS["green"])
    status.alignment = Alignment(horizontal="center", vertical="center")

    _auto_fit_columns(ws)


def _build_aggregates_sheet(ws, records: pd.DataFrame) -> None:
    """Write the daily, department and process tables side by side.

    Args:
        ws: openpyxl Worksheet (Aggregates tab).
        records: Records for the selection.
    """
    ws.sheet_properties.tabColor = COLOURS["green"]

    daily_energy = aggregate_by_date(records, "energy_per_unit")
    daily_pf = aggregate_by_date(records, "power_factor")
    by_department = aggregate_by_department(records, "energy_per_unit")
    by_process = aggregate_by_process(records, "efficiency")

    energy_end = _write_table(
        ws, 1, 1, "ENERGY PER UNIT BY DATE", daily_energy,
        ["Date", METRIC_LABELS["energy_per_unit"]], COLOURS["slate"],
    )
    _write_table(
        ws, 1, 4, "POWER FACTOR BY DATE", daily_pf,
        ["Date", METRIC_LABELS["power_factor"]], COLOURS["orange"],
    )
    _write_table(
        ws, 1, 7, "ENERGY PER UNIT BY DEPARTMENT", by_department,
        ["Department", METRIC_LABELS["energy_per_unit"]], COLOURS["green"],
    )
    _write_table(
        ws, 1, 10, "EFFICIENCY BY PROCESS", by_process,
        ["Process", METRIC_LABELS["efficiency"]], COLOURS["indigo"],
    )
    ws.freeze_panes = "A3"

    if len(daily_energy) > 1:
        chart = LineChart()
        chart.title = "Energy per Unit Trend"
        chart.y_axis.title = "kWh"
        chart.x_axis.title = "Date"
        chart.height = 10
        chart.width = 22

        data_ref = Reference(ws, min_col=2, min_row=2, max_row=energy_end)
        dates_ref = Reference(ws, min_col=1, min_row=3, max_row=energy_end)
        chart.add_data(data_ref, titles_from_data=True)
        chart.set_categories(dates_ref)
        ws.add_chart(chart, f"A{energy_end + 3}")

    _auto_fit_columns(ws)


def _build_alerts_sheet(ws, alert_result: AlertResult) -> None:
    """List every notification, or the placeholder when there are none.

    Args:
        ws: openpyxl Worksheet (Alerts tab).
        alert_result: Alert evaluation of the selection.
    """
    ws.sheet_properties.tabColor = COLOURS["dark_red"]
    _write_header_row(ws, 1, 1, ["#", "Notification"], COLOURS["dark_red"])
    ws.freeze_panes = "A2"

    if not alert_result.notifications:
        cell = ws.cell(row=2, column=2, value=NO_ALERTS_PLACEHOLDER)
        cell.fill = _make_fill(COLOURS["ok_row"])
        cell.border = THIN_BORDER
    for row_i, message in enumerate(alert_result.notifications, start=2):
        ws.cell(row=row_i, column=1, value=row_i - 1).border = THIN_BORDER
        cell = ws.cell(row=row_i, column=2, value=message)
        cell.fill = _make_fill(COLOURS["alert_row"])
        cell.border = THIN_BORDER

    _auto_fit_columns(ws)


def generate_report(
    records: pd.DataFrame,
    alert_result: AlertResult,
    alert_state: AlertState,
    selection_label: str,
    config_path: str = "config.yaml",
    run_date: Optional[str] = None,
) -> Path:
    """Generate the full Excel workbook and write it to the output directory.

    Args:
        records: Records for the current selection.
        alert_result: Alert evaluation of the same records.
        alert_state: Banner state after folding in the evaluation.
        selection_label: Description of the date selection.
        config_path: Path to configuration YAML.
        run_date: Date stamp for the filename; today when omitted.

    Returns:
        Path to the generated .xlsx file.

    Raises:
        OSError: If output directory cannot be created.
    """
    cfg = load_config(config_path)
    run_date = run_date or datetime.today().strftime("%Y-%m-%d")
    output_dir = Path(cfg["paths"]["output_dir"])
    output_dir.mkdir(parents=True, exist_ok=True)

    filename = cfg["paths"]["report_filename"].format(date=run_date)
    output_path = output_dir / filename

    wb = Workbook()
    wb.remove(wb.active)

    ws_summary = wb.create_sheet("Summary")
    _build_summary_sheet(
        ws_summary,
        summarize_records(records),
        alert_result,
        alert_state,
        selection_label,
        run_date,
        cfg,
    )
    logger.info("Built Summary sheet")

    ws_aggregates = wb.create_sheet("Aggregates")
    _build_aggregates_sheet(ws_aggregates, records)
    logger.info("Built Aggregates sheet (%d records)", len(records))

    ws_alerts = wb.create_sheet("Alerts")
    _build_alerts_sheet(ws_alerts, alert_result)
    logger.info("Built Alerts sheet (%d notifications)", len(alert_result.notifications))

    wb.save(output_path)
    logger.info("Excel report saved to %s", output_path)
    return output_path
