"""
test_random_utils.py - Unit tests for bounded random draws and rounding.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from energy_dashboard.exceptions import ValidationError
from energy_dashboard.random_utils import make_rng, random_between, round_half_away


class _FixedSource:
    def __init__(self, value):
        self.value = value

    def uniform(self, low, high):
        return self.value


class TestRoundHalfAway:

    def test_half_rounds_up_on_decimal_representation(self):
        """2.675 is 2.67499... in binary; the decimal form still rounds up."""
        assert round_half_away(2.675, 2) == 2.68
        assert round(2.675, 2) == 2.67

    def test_negative_half_rounds_away_from_zero(self):
        assert round_half_away(-2.5, 0) == -3.0
        assert round_half_away(-0.125, 2) == -0.13

    def test_positive_half_at_zero_decimals(self):
        assert round_half_away(0.5, 0) == 1.0

    def test_below_half_rounds_down(self):
        assert round_half_away(1.2344, 3) == 1.234

    def test_returns_float(self):
        assert isinstance(round_half_away(3, 1), float)


class TestRandomBetween:

    def test_draw_rounded_to_two_decimals_by_default(self):
        assert random_between(0, 10, rng=_FixedSource(1.23456)) == 1.23

    def test_custom_decimals(self):
        assert random_between(0, 10, decimals=3, rng=_FixedSource(1.23456)) == 1.235

    def test_equal_bounds_returns_bound(self):
        assert random_between(5, 5, rng=np.random.default_rng(0)) == 5.0

    def test_inverted_bounds_raise(self):
        with pytest.raises(ValidationError, match="inverted"):
            random_between(2, 1)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            random_between(1.0, -1.0)

    def test_seeded_draws_stay_within_bounds(self):
        rng = make_rng(42)
        draws = [random_between(0.9, 1.1, rng=rng) for _ in range(500)]
        assert all(0.9 <= value <= 1.1 for value in draws)
        assert len(set(draws)) > 1

    def test_same_seed_same_sequence(self):
        first = [random_between(-2, 2, rng=make_rng(7)) for _ in range(3)]
        second = [random_between(-2, 2, rng=make_rng(7)) for _ in range(3)]
        assert first == second

    def test_module_level_source_used_when_omitted(self):
        value = random_between(10, 30)
        assert 10 <= value <= 30
