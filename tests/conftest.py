"""Shared fixtures: deterministic random sources and a throwaway config."""

import sys
from pathlib import Path

import pytest
import yaml

# Ensure the project root is importable
sys.path.insert(0, str(Path(__file__).parent.parent))


class MidpointSource:
    """Returns the centre of every requested interval."""

    def uniform(self, low, high):
        return (low + high) / 2


class UpperBoundSource:
    """Returns the top of every requested interval."""

    def uniform(self, low, high):
        return high


class RecordingSource(MidpointSource):
    """Midpoint source that also logs each (low, high) request."""

    def __init__(self):
        self.calls = []

    def uniform(self, low, high):
        self.calls.append((low, high))
        return super().uniform(low, high)


@pytest.fixture
def midpoint_rng():
    return MidpointSource()


@pytest.fixture
def upper_rng():
    return UpperBoundSource()


@pytest.fixture
def recording_rng():
    return RecordingSource()


@pytest.fixture
def config_factory(tmp_path):
    """Write a config.yaml under tmp_path, with optional section overrides."""

    def _write(**sections) -> str:
        cfg = {
            "project": {"name": "Test Plant", "organisation": "Test Org"},
            "data_generation": {"days": 5, "seed": 123},
            "alerts": {"low_power_factor": 0.85, "high_current": 30.0},
            "paths": {
                "output_dir": str(tmp_path / "outputs"),
                "dashboard_filename": "dashboard_{date}.html",
                "report_filename": "report_{date}.xlsx",
                "log_dir": str(tmp_path / "logs"),
            },
            "scheduler": {
                "run_time": "06:00",
                "timezone": "Europe/London",
                "max_retries": 1,
                "retry_delay_seconds": 0,
            },
        }
        for name, overrides in sections.items():
            cfg.setdefault(name, {}).update(overrides)
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
        return str(config_path)

    return _write


@pytest.fixture
def tmp_config(config_factory) -> str:
    return config_factory()
