"""
dataset.py - In-memory dataset handle and date filtering.

The dataset is generated once per run and then treated as read-only.
Callers hold an EnergyDataset and derive per-date views from it; the
handle itself is never mutated after construction.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from energy_dashboard.data_generator import RECORD_COLUMNS, generate_records, load_config
from energy_dashboard.exceptions import ValidationError
from energy_dashboard.random_utils import RandomSource, make_rng

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class EnergyDataset:
    """Generated records plus the parameters they were built with."""

    records: pd.DataFrame
    days: int
    generated_at: datetime = field(default_factory=datetime.now)

    def available_dates(self) -> list[str]:
        """Distinct record dates, ascending."""
        return sorted(self.records["date"].unique().tolist())

    def latest_date(self) -> Optional[str]:
        """Most recent date in the dataset, or None when it is empty."""
        dates = self.available_dates()
        return dates[-1] if dates else None

    def for_date(self, selected_date: str) -> pd.DataFrame:
        return filter_by_date(self.records, selected_date)


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string.

    Raises:
        ValidationError: If the string is not a real calendar date in that format.
    """
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValidationError(f"Date must be a YYYY-MM-DD string, got {value!r}")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise ValidationError(f"Malformed date {value!r}: expected YYYY-MM-DD") from exc


def filter_by_date(records: pd.DataFrame, selected_date: str) -> pd.DataFrame:
    """Return the records whose date equals selected_date.

    An unmatched date yields an empty frame with the record columns.

    Args:
        records: Full record set.
        selected_date: Date string in YYYY-MM-DD form.

    Returns:
        Filtered copy of the matching rows, re-indexed from zero.

    Raises:
        ValidationError: If selected_date is malformed.
    """
    parse_date(selected_date)
    if records.empty:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    filtered = records.loc[records["date"] == selected_date].reset_index(drop=True)
    logger.debug("Filtered %d records for %s", len(filtered), selected_date)
    return filtered


def initialize_dataset(
    days: int,
    rng: Optional[RandomSource] = None,
    end_date: Optional[date] = None,
) -> EnergyDataset:
    """Generate the dataset once and wrap it in a handle.

    Raises:
        ValidationError: If days is not a positive integer.
    """
    records = generate_records(days, rng=rng, end_date=end_date)
    return EnergyDataset(records=records, days=int(days))


def generate_dataset(
    config_path: str = "config.yaml",
    days: Optional[int] = None,
    seed: Optional[int] = None,
) -> EnergyDataset:
    """Build the dataset from the data_generation section of the config.

    Args:
        config_path: Path to configuration YAML file.
        days: Overrides data_generation.days when given.
        seed: Overrides data_generation.seed when given.

    Returns:
        Freshly generated EnergyDataset.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValidationError: If the resolved day count is not a positive integer.
    """
    return dataset_from_config(load_config(config_path), days=days, seed=seed)


def dataset_from_config(
    cfg: dict[str, Any],
    days: Optional[int] = None,
    seed: Optional[int] = None,
) -> EnergyDataset:
    """Build the dataset from an already-loaded configuration dictionary.

    Raises:
        ValidationError: If the resolved day count is not a positive integer.
    """
    gen_cfg = cfg.get("data_generation", {}) or {}
    days = days if days is not None else gen_cfg.get("days", 30)
    seed = seed if seed is not None else gen_cfg.get("seed")

    logger.info("Starting dataset generation (days=%s, seed=%s)", days, seed)
    dataset = initialize_dataset(days, rng=make_rng(seed))
    logger.info(
        "Dataset ready: %d records | %d dates | generated at %s",
        len(dataset.records),
        len(dataset.available_dates()),
        dataset.generated_at.strftime("%Y-%m-%d %H:%M:%S"),
    )
    return dataset
