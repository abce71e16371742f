"""
factory-energy-dashboard: Source package.

Modules:
    random_utils    - Bounded random draws with fixed-point rounding
    patterns        - Sine cycles layered on top of the random noise
    data_generator  - Synthetic per-day, per-process telemetry records
    dataset         - Dataset handle built once per run, date filtering
    aggregator      - Mean-per-group reductions and headline stats
    alerts          - Threshold alerts and the sticky critical-alert state
    dashboard       - Interactive Plotly HTML dashboard
    reporter        - Excel workbook export
"""

__version__ = "1.0.0"
