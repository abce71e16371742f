"""
data_generator.py - Synthetic Factory Energy Telemetry Generator.

Builds one record per (day, department, process) for a trailing window of
days ending yesterday. Each value combines a per-department baseline with
a linear trend, weekly / 3-day / 5-day / 30-day sine cycles, a weekend
slowdown, a shared daily weather factor and per-department daily noise.

Nothing is written to disk: the dataset lives in memory for one run.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd
import yaml

from energy_dashboard.exceptions import ValidationError
from energy_dashboard.patterns import sine_pattern
from energy_dashboard.random_utils import RandomSource, random_between, round_half_away

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Static plant layout
# ---------------------------------------------------------------------------
DEPARTMENT_PROCESSES: dict[str, tuple[str, ...]] = {
    "Assembly":        ("Main Line", "Sub-Assembly", "Final Testing"),
    "Welding":         ("Spot Welding", "Arc Welding", "Laser Welding"),
    "Machining":       ("CNC Milling", "Lathe Operations", "Grinding"),
    "Paint Shop":      ("Surface Prep", "Base Coat", "Clear Coat"),
    "Quality Control": ("Visual Inspection", "Dimensional Check", "Performance Test"),
}

DEPARTMENTS: tuple[str, ...] = tuple(DEPARTMENT_PROCESSES)

RECORD_COLUMNS = [
    "date",
    "department",
    "process_name",
    "energy_per_unit",
    "power_factor",
    "voltage",
    "current",
    "efficiency",
]

WEEKEND_FACTOR = 0.6
POWER_FACTOR_CAP = 0.98


@dataclass(frozen=True)
class DepartmentPattern:
    """Per-department baseline drawn once per build."""

    base_energy: float
    power_factor_base: float
    voltage_base: float
    current_base: float
    trend_factor: float
    volatility: float


def load_config(config_path: str = "config.yaml") -> dict[str, Any]:
    """Load YAML configuration file.

    Args:
        config_path: Path to config.yaml relative to project root.

    Returns:
        Parsed configuration dictionary.

    Raises:
        FileNotFoundError: If config file does not exist.
        yaml.YAMLError: If config file is malformed.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    with open(config_path, "r") as fh:
        config = yaml.safe_load(fh)
    logger.debug("Configuration loaded from %s", config_path)
    return config


def _validate_days(days: Any) -> None:
    if isinstance(days, bool) or not isinstance(days, (int, np.integer)):
        raise ValidationError(f"days must be a positive integer, got {days!r}")
    if days <= 0:
        raise ValidationError(f"days must be a positive integer, got {days}")


def _draw_department_patterns(rng: Optional[RandomSource]) -> dict[str, DepartmentPattern]:
    """Draw one DepartmentPattern per department, in plant-layout order.

    Args:
        rng: Random source shared with the rest of the build.

    Returns:
        Mapping of department name to its pattern.
    """
    patterns = {}
    for department in DEPARTMENTS:
        patterns[department] = DepartmentPattern(
            base_energy=random_between(0.5, 2.0, rng=rng),
            power_factor_base=random_between(0.85, 0.95, rng=rng),
            voltage_base=random_between(220, 240, rng=rng),
            current_base=random_between(10, 30, rng=rng),
            trend_factor=random_between(-0.02, 0.02, rng=rng),
            volatility=random_between(0.05, 0.15, rng=rng),
        )
    return patterns


def _build_process_record(
    day_index: int,
    date_string: str,
    department: str,
    process_name: str,
    pattern: DepartmentPattern,
    total_factor: float,
    rng: Optional[RandomSource],
) -> dict[str, Any]:
    """Compute one record. Rounding happens here and nowhere else."""
    power_factor = (
        pattern.power_factor_base
        * (1 + sine_pattern(day_index, 0.05, 3))
        * (1 + random_between(-0.02, 0.02, rng=rng))
    )
    voltage = pattern.voltage_base * (1 + random_between(-0.02, 0.02, rng=rng))
    efficiency = 85 + sine_pattern(day_index, 7, 5) + random_between(-2, 2, rng=rng)
    energy = pattern.base_energy * (1 + sine_pattern(day_index, 0.2, 7)) * total_factor

    return {
        "date": date_string,
        "department": department,
        "process_name": process_name,
        "energy_per_unit": round_half_away(energy, 2),
        "power_factor": round_half_away(min(POWER_FACTOR_CAP, power_factor), 3),
        "voltage": round_half_away(voltage, 1),
        "current": round_half_away(pattern.current_base * total_factor, 1),
        "efficiency": round_half_away(efficiency, 1),
    }


def generate_records(
    days: int,
    rng: Optional[RandomSource] = None,
    end_date: Optional[date] = None,
) -> pd.DataFrame:
    """Synthesize the full telemetry dataset.

    The window starts `days` days before `end_date` and covers `days`
    consecutive dates, so the end date itself is excluded.

    Args:
        days: Number of days to generate; must be a positive integer.
        rng: Random source. The module-level generator when omitted.
        end_date: Anchor date; defaults to today.

    Returns:
        DataFrame with RECORD_COLUMNS and exactly days x 15 rows, ordered
        day-major, then department, then process.

    Raises:
        ValidationError: If days is not a positive integer.
    """
    _validate_days(days)
    end_date = end_date or date.today()
    start_date = end_date - timedelta(days=int(days))

    patterns = _draw_department_patterns(rng)

    records = []
    for day_index in range(int(days)):
        current_date = start_date + timedelta(days=day_index)
        date_string = current_date.strftime("%Y-%m-%d")

        day_factor = WEEKEND_FACTOR if current_date.weekday() >= 5 else 1.0
        seasonal_factor = 1 + sine_pattern(day_index, 0.15, 30)
        weather_impact = random_between(0.9, 1.1, rng=rng)

        for department, processes in DEPARTMENT_PROCESSES.items():
            pattern = patterns[department]
            trend_impact = 1 + day_index * pattern.trend_factor
            daily_volatility = 1 + random_between(
                -pattern.volatility, pattern.volatility, rng=rng
            )
            total_factor = (
                day_factor * seasonal_factor * weather_impact * trend_impact * daily_volatility
            )

            for process_name in processes:
                records.append(
                    _build_process_record(
                        day_index,
                        date_string,
                        department,
                        process_name,
                        pattern,
                        total_factor,
                        rng,
                    )
                )

    df = pd.DataFrame(records, columns=RECORD_COLUMNS)
    logger.info(
        "Generated %d telemetry records across %d days (%s to %s)",
        len(df),
        days,
        start_date.strftime("%Y-%m-%d"),
        (start_date + timedelta(days=int(days) - 1)).strftime("%Y-%m-%d"),
    )
    return df
