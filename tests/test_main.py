"""
test_main.py - Integration tests for the CLI pipeline and scheduled refresh.
"""

import argparse
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from energy_dashboard import data_generator, dataset
from energy_dashboard.alerts import AlertState
from main import _build_parser, run_pipeline
from scheduler import DashboardRefreshJob

logger = logging.getLogger("test_main")


def _args(config_path: str, **overrides) -> argparse.Namespace:
    base = {
        "config": config_path,
        "log_level": "INFO",
        "days": None,
        "seed": None,
        "date": None,
        "all_dates": False,
        "alerts": False,
        "dashboard": False,
        "report": False,
        "full_run": False,
    }
    base.update(overrides)
    return argparse.Namespace(**base)


class TestParser:

    def test_full_run_flags(self):
        args = _build_parser().parse_args(["--full-run", "--days", "7", "--seed", "3"])
        assert args.full_run is True
        assert args.days == 7
        assert args.seed == 3
        assert args.date is None

    def test_date_and_all_dates_exclusive(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--date", "2024-01-01", "--all-dates"])


class TestRunPipeline:

    def test_full_run_writes_outputs(self, tmp_config, tmp_path):
        exit_code, state = run_pipeline(_args(tmp_config, full_run=True), logger)
        assert exit_code == 0
        assert isinstance(state, AlertState)
        outputs = sorted(p.suffix for p in (tmp_path / "outputs").iterdir())
        assert outputs == [".html", ".xlsx"]

    def test_alerts_only_writes_nothing(self, tmp_config, tmp_path):
        exit_code, _ = run_pipeline(_args(tmp_config, alerts=True, all_dates=True), logger)
        assert exit_code == 0
        assert not (tmp_path / "outputs").exists()

    def test_malformed_date_fails(self, tmp_config):
        exit_code, _ = run_pipeline(_args(tmp_config, alerts=True, date="01/02/2024"), logger)
        assert exit_code == 1

    def test_unmatched_date_succeeds_with_empty_selection(self, tmp_config):
        exit_code, _ = run_pipeline(_args(tmp_config, alerts=True, date="1999-01-01"), logger)
        assert exit_code == 0

    def test_invalid_days_fails(self, tmp_config):
        exit_code, _ = run_pipeline(_args(tmp_config, alerts=True, days=0), logger)
        assert exit_code == 1

    def test_missing_config_fails(self, tmp_path):
        exit_code, _ = run_pipeline(
            _args(str(tmp_path / "missing.yaml"), alerts=True), logger
        )
        assert exit_code == 1

    def test_alert_state_threaded_between_runs(self, config_factory):
        path = config_factory(alerts={"low_power_factor": 1.0})
        _, state = run_pipeline(_args(path, alerts=True), logger)
        assert state.active is True
        _, state = run_pipeline(_args(path, alerts=True), logger, state)
        assert state.active is True

    def test_quiet_run_leaves_state_inactive(self, config_factory):
        path = config_factory(alerts={"low_power_factor": 0.0, "high_current": 1000.0})
        _, state = run_pipeline(_args(path, alerts=True), logger)
        assert state.active is False

    def test_config_loaded_once_per_run(self, tmp_config, monkeypatch):
        calls = []
        real_load = data_generator.load_config

        def counting_load(path):
            calls.append(path)
            return real_load(path)

        monkeypatch.setattr(data_generator, "load_config", counting_load)
        monkeypatch.setattr(dataset, "load_config", counting_load)
        exit_code, _ = run_pipeline(_args(tmp_config, alerts=True), logger)
        assert exit_code == 0
        assert calls == [tmp_config]


class TestDashboardRefreshJob:

    def test_run_keeps_alert_state(self, config_factory):
        path = config_factory(alerts={"low_power_factor": 1.0})
        job = DashboardRefreshJob(path, max_retries=1, retry_delay=0)
        assert job.run() is True
        assert job.alert_state.active is True
        job.dismiss()
        assert job.alert_state.active is False

    def test_failed_run_reports_false(self, tmp_path):
        job = DashboardRefreshJob(str(tmp_path / "missing.yaml"), max_retries=2, retry_delay=0)
        assert job.run() is False

    def test_dismiss_during_run_survives_returned_state(self, config_factory, monkeypatch):
        path = config_factory(alerts={"low_power_factor": 1.0})
        job = DashboardRefreshJob(path, max_retries=1, retry_delay=0)
        job.alert_state = AlertState(active=True)
        real_run = main.run_pipeline

        def run_then_dismiss(args, log, state=None):
            result = real_run(args, log, state)
            assert result[1].active is True
            job.dismiss()
            return result

        monkeypatch.setattr(main, "run_pipeline", run_then_dismiss)
        assert job.run() is True
        assert job.alert_state.active is False

    def test_dismiss_before_run_lets_next_run_raise(self, config_factory):
        path = config_factory(alerts={"low_power_factor": 1.0})
        job = DashboardRefreshJob(path, max_retries=1, retry_delay=0)
        job.alert_state = AlertState(active=True)
        job.dismiss()
        assert job.run() is True
        assert job.alert_state.active is True
