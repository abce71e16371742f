"""Sine cycles used to give the synthetic series repeatable structure."""

import math

from energy_dashboard.exceptions import ValidationError


def sine_pattern(day: int, amplitude: float, period: float) -> float:
    """Return amplitude * sin(2*pi*day / period).

    Raises:
        ValidationError: If period is zero.
    """
    if period == 0:
        raise ValidationError("sine_pattern period must be non-zero")
    return amplitude * math.sin(2 * math.pi * day / period)
