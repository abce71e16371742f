"""
test_dataset.py - Unit tests for the dataset handle and date filtering.
"""

import logging
import sys
from datetime import date, datetime
from pathlib import Path

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from energy_dashboard.data_generator import RECORD_COLUMNS
from energy_dashboard.dataset import (
    EnergyDataset,
    dataset_from_config,
    filter_by_date,
    generate_dataset,
    initialize_dataset,
    parse_date,
)
from energy_dashboard.exceptions import ValidationError
from energy_dashboard.random_utils import make_rng

ANCHOR = date(2024, 3, 1)


@pytest.fixture
def dataset():
    return initialize_dataset(4, rng=make_rng(21), end_date=ANCHOR)


class TestEnergyDataset:

    def test_available_dates_sorted(self, dataset):
        assert dataset.available_dates() == [
            "2024-02-26", "2024-02-27", "2024-02-28", "2024-02-29",
        ]

    def test_latest_date(self, dataset):
        assert dataset.latest_date() == "2024-02-29"

    def test_latest_date_empty(self):
        empty = EnergyDataset(records=pd.DataFrame(columns=RECORD_COLUMNS), days=0)
        assert empty.latest_date() is None

    def test_days_recorded(self, dataset):
        assert dataset.days == 4
        assert len(dataset.records) == 60

    def test_for_date_delegates(self, dataset):
        subset = dataset.for_date("2024-02-27")
        assert len(subset) == 15
        assert (subset["date"] == "2024-02-27").all()


class TestFilterByDate:

    def test_matching_date(self, dataset):
        subset = filter_by_date(dataset.records, "2024-02-28")
        assert len(subset) == 15
        assert list(subset.index) == list(range(15))

    def test_unmatched_date_returns_empty(self, dataset):
        subset = filter_by_date(dataset.records, "2023-12-25")
        assert subset.empty
        assert list(subset.columns) == RECORD_COLUMNS

    def test_empty_records(self):
        subset = filter_by_date(pd.DataFrame(columns=RECORD_COLUMNS), "2024-01-01")
        assert subset.empty

    def test_input_not_mutated(self, dataset):
        before = dataset.records.copy()
        filter_by_date(dataset.records, "2024-02-28")
        pd.testing.assert_frame_equal(dataset.records, before)

    @pytest.mark.parametrize(
        "bad_date",
        ["2024/02/28", "28-02-2024", "2024-13-01", "2023-02-29", "2024-2-8", "", "latest"],
    )
    def test_malformed_date_raises(self, dataset, bad_date):
        with pytest.raises(ValidationError):
            filter_by_date(dataset.records, bad_date)

    def test_non_string_raises(self, dataset):
        with pytest.raises(ValidationError):
            filter_by_date(dataset.records, date(2024, 2, 28))


class TestParseDate:

    def test_valid(self):
        assert parse_date("2024-02-29") == date(2024, 2, 29)


class TestGenerateDataset:

    def test_reads_days_from_config(self, tmp_config):
        ds = generate_dataset(tmp_config)
        assert ds.days == 5
        assert len(ds.records) == 75

    def test_days_override(self, tmp_config):
        ds = generate_dataset(tmp_config, days=2)
        assert len(ds.records) == 30

    def test_config_seed_reproducible(self, tmp_config):
        first = generate_dataset(tmp_config)
        second = generate_dataset(tmp_config)
        pd.testing.assert_frame_equal(first.records, second.records)

    def test_invalid_days_in_config(self, config_factory):
        path = config_factory(data_generation={"days": 0})
        with pytest.raises(ValidationError):
            generate_dataset(path)

    def test_missing_config(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            generate_dataset(str(tmp_path / "nope.yaml"))

    def test_generated_at_logged(self, tmp_config, caplog):
        before = datetime.now()
        with caplog.at_level(logging.INFO, logger="energy_dashboard.dataset"):
            ds = generate_dataset(tmp_config)
        after = datetime.now()
        assert before <= ds.generated_at <= after
        stamp = ds.generated_at.strftime("%Y-%m-%d %H:%M:%S")
        assert f"generated at {stamp}" in caplog.text


class TestDatasetFromConfig:

    def test_uses_loaded_config(self):
        cfg = {"data_generation": {"days": 2, "seed": 1}}
        first = dataset_from_config(cfg)
        second = dataset_from_config(cfg)
        assert first.days == 2
        assert len(first.records) == 30
        pd.testing.assert_frame_equal(first.records, second.records)

    def test_overrides_win(self):
        ds = dataset_from_config({"data_generation": {"days": 2, "seed": 1}}, days=3)
        assert len(ds.records) == 45

    def test_missing_section_uses_defaults(self):
        ds = dataset_from_config({}, days=1, seed=5)
        assert len(ds.records) == 15
