"""
random_utils.py - Bounded random draws with fixed-point rounding.

All stochastic content in the generated dataset flows through
random_between(). The random source is injectable so a build can be
reproduced from a seed, or pinned exactly in tests with a stub source.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol

import numpy as np

from energy_dashboard.exceptions import ValidationError

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything exposing a uniform draw over [low, high)."""

    def uniform(self, low: float, high: float) -> float:
        ...


_default_rng: np.random.Generator = np.random.default_rng()


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Build the production random source.

    Args:
        seed: Integer seed for a reproducible build, or None for fresh entropy.

    Returns:
        Seeded NumPy random generator.
    """
    rng = np.random.default_rng(seed)
    logger.debug("Random source initialised (seed=%s)", seed)
    return rng


def round_half_away(value: float, decimals: int) -> float:
    """Round on the decimal string form, ties away from zero.

    round() on a float is banker's rounding on the binary value, so
    round(2.675, 2) gives 2.67. This matches fixed-point display rounding
    instead: round_half_away(2.675, 2) gives 2.68.

    Args:
        value: Number to round.
        decimals: Fractional digits to keep.

    Returns:
        Rounded value as a float.
    """
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def random_between(
    min_value: float,
    max_value: float,
    decimals: int = 2,
    rng: Optional[RandomSource] = None,
) -> float:
    """Draw uniformly from [min_value, max_value) and round.

    Args:
        min_value: Inclusive lower bound.
        max_value: Exclusive upper bound.
        decimals: Fractional digits kept after rounding.
        rng: Random source; the module-level generator when omitted.

    Returns:
        The rounded draw.

    Raises:
        ValidationError: If min_value is greater than max_value.
    """
    if min_value > max_value:
        raise ValidationError(
            f"random_between bounds are inverted: min={min_value} > max={max_value}"
        )
    source = rng if rng is not None else _default_rng
    return round_half_away(float(source.uniform(min_value, max_value)), decimals)
