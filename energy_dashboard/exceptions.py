"""Exception types raised by the energy dashboard core."""


class EnergyDashboardError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(EnergyDashboardError, ValueError):
    """Raised when a caller passes an argument the core cannot act on.

    Covers a non-positive day count, an unknown metric selector, a malformed
    date string, inverted random bounds and a zero sine period.
    """
