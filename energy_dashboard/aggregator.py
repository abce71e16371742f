"""
aggregator.py - Mean-per-group reductions over telemetry records.

Each entry point groups the records by one key (date, department or
process) and reports sum / count of the chosen metric, rounded to two
decimals half-away-from-zero. Groups keep first-seen order. Input frames
are never modified.
"""

import logging
from typing import Any

import pandas as pd

from energy_dashboard.exceptions import ValidationError
from energy_dashboard.random_utils import round_half_away

logger = logging.getLogger(__name__)

METRICS = ("energy_per_unit", "power_factor", "efficiency", "current")

VALUE_DECIMALS = 2


def _aggregate(records: pd.DataFrame, key: str, metric: str) -> pd.DataFrame:
    """Group records by key and reduce metric to its rounded mean.

    Args:
        records: Record set; may be empty.
        key: Grouping column.
        metric: One of METRICS.

    Returns:
        DataFrame with columns [key, "value"], one row per distinct key.

    Raises:
        ValidationError: If the metric is unknown or a needed column is missing.
    """
    if metric not in METRICS:
        raise ValidationError(
            f"Unknown metric {metric!r}; expected one of {', '.join(METRICS)}"
        )
    if records.empty:
        return pd.DataFrame(columns=[key, "value"])
    missing = {key, metric} - set(records.columns)
    if missing:
        raise ValidationError(f"Records are missing column(s): {sorted(missing)}")

    grouped = (
        records.groupby(key, sort=False)[metric]
        .agg(["sum", "count"])
        .reset_index()
    )
    grouped["value"] = [
        round_half_away(float(total) / int(count), VALUE_DECIMALS)
        for total, count in zip(grouped["sum"], grouped["count"])
    ]
    logger.debug("Aggregated %s by %s into %d groups", metric, key, len(grouped))
    return grouped[[key, "value"]]


def aggregate_by_date(records: pd.DataFrame, metric: str) -> pd.DataFrame:
    """Mean of metric per date."""
    return _aggregate(records, "date", metric)


def aggregate_by_department(records: pd.DataFrame, metric: str) -> pd.DataFrame:
    """Mean of metric per department."""
    return _aggregate(records, "department", metric)


def aggregate_by_process(records: pd.DataFrame, metric: str) -> pd.DataFrame:
    """Mean of metric per process name."""
    return _aggregate(records, "process_name", metric)


def summarize_records(records: pd.DataFrame) -> dict[str, Any]:
    """Headline stats for the dashboard header.

    The mean power factor of an empty selection is None rather than a
    division by zero.

    Args:
        records: Record set; may be empty.

    Returns:
        Dict with avg_power_factor (3 dp or None), total_energy_kwh (2 dp),
        active_departments and record_count.
    """
    if records.empty:
        return {
            "avg_power_factor": None,
            "total_energy_kwh": 0.0,
            "active_departments": 0,
            "record_count": 0,
        }

    return {
        "avg_power_factor": round_half_away(
            float(records["power_factor"].sum()) / len(records), 3
        ),
        "total_energy_kwh": round_half_away(float(records["energy_per_unit"].sum()), 2),
        "active_departments": int(records["department"].nunique()),
        "record_count": int(len(records)),
    }
