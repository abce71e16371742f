"""
alerts.py - Threshold alerts over telemetry records.

Two rules, evaluated per record in scan order:
    Low power factor   power_factor < low_power_factor  (default 0.85)
    High current       current > high_current           (default 30 A)

Either rule firing marks the result critical. Whether a critical result
raises the on-screen banner depends on AlertState, which the caller
carries from one evaluation to the next: once raised, the banner stays up
until dismissed, and later critical results do not raise it again.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_LOW_POWER_FACTOR = 0.85
DEFAULT_HIGH_CURRENT = 30.0

CRITICAL_BANNER_MESSAGE = "Critical Alert: Check for equipment malfunction!"
NO_ALERTS_PLACEHOLDER = "No alerts"


@dataclass(frozen=True)
class AlertResult:
    notifications: list[str] = field(default_factory=list)
    critical_alert: bool = False


@dataclass(frozen=True)
class AlertState:
    """Whether the critical banner is currently on screen."""

    active: bool = False


def _describe(row: Any) -> str:
    return f"{row.department} ({row.process_name}) on {row.date}"


def evaluate_alerts(
    records: pd.DataFrame,
    low_power_factor: float = DEFAULT_LOW_POWER_FACTOR,
    high_current: float = DEFAULT_HIGH_CURRENT,
) -> AlertResult:
    """Scan records against both thresholds.

    A single record can emit both notifications, low power factor first.

    Args:
        records: Record set; may be empty.
        low_power_factor: Values strictly below this are flagged.
        high_current: Values strictly above this are flagged.

    Returns:
        AlertResult with notifications in scan order.
    """
    if records.empty:
        return AlertResult()

    notifications = []
    for row in records.itertuples(index=False):
        if row.power_factor < low_power_factor:
            notifications.append(f"Low power factor detected in {_describe(row)}")
        if row.current > high_current:
            notifications.append(f"High current detected in {_describe(row)}")

    result = AlertResult(notifications=notifications, critical_alert=bool(notifications))
    logger.info(
        "Alert evaluation: %d records scanned | %d notifications | critical=%s",
        len(records),
        len(notifications),
        result.critical_alert,
    )
    return result


def update_alert_state(state: AlertState, result: AlertResult) -> tuple[AlertState, bool]:
    """Fold an evaluation into the banner state.

    Returns:
        (new_state, raise_banner). raise_banner is True only on the
        transition from inactive to active.
    """
    if result.critical_alert and not state.active:
        return replace(state, active=True), True
    return state, False


def dismiss_alert(state: AlertState) -> AlertState:
    """Clear the banner so the next critical result raises it again."""
    if state.active:
        logger.info("Critical alert dismissed")
    return replace(state, active=False)
