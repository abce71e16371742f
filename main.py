"""
main.py - Factory Energy Dashboard - CLI Entry Point.

Generates the synthetic telemetry dataset once per run, selects a date
(the latest one by default) and runs any combination of stages over that
selection:
  1. alerts      - Evaluate power factor / current thresholds
  2. dashboard   - Build interactive HTML dashboard
  3. report      - Generate Excel workbook
  4. full-run    - All of the above

Usage examples:
    python main.py --full-run
    python main.py --alerts --date 2024-03-14
    python main.py --dashboard --all-dates --days 14 --seed 7
    python main.py --full-run --config custom_config.yaml

Environment:
    LOG_LEVEL           Override log verbosity (default: INFO)
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from energy_dashboard.alerts import AlertState


def _configure_logging(log_dir: str = "logs", level: str = "INFO") -> None:
    """Set up rotating file handler and stream handler for the pipeline.

    Creates a dated log file in `log_dir` and mirrors output to stdout.
    Log level is read from the LOG_LEVEL environment variable or the `level`
    parameter.

    Args:
        log_dir: Directory to write log files into.
        level: Default log level string (DEBUG, INFO, WARNING, ERROR).
    """
    import logging.handlers

    effective_level = os.environ.get("LOG_LEVEL", level).upper()
    numeric_level = getattr(logging, effective_level, logging.INFO)

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_filename = Path(log_dir) / f"dashboard_{datetime.today().strftime('%Y%m%d')}.log"

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # 10 MB per file, keep 7
    file_handler = logging.handlers.RotatingFileHandler(
        log_filename, maxBytes=10 * 1024 * 1024, backupCount=7, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)


def _build_parser() -> argparse.ArgumentParser:
    """Define command-line arguments.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="energy-dashboard",
        description=(
            "Factory Energy Dashboard: "
            "synthetic energy telemetry, threshold alerts and reporting.\n\n"
            "Run --full-run to execute all stages for the latest date."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --full-run
  python main.py --alerts --date 2024-03-14
  python main.py --dashboard --all-dates --days 14
  python main.py --full-run --seed 42 --log-level DEBUG
        """,
    )

    parser.add_argument(
        "--config",
        default="config.yaml",
        metavar="PATH",
        help="Path to configuration YAML file (default: config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity level (default: INFO)",
    )

    data = parser.add_argument_group("Dataset")
    data.add_argument(
        "--days",
        type=int,
        default=None,
        help="Days of history to generate (default: data_generation.days)",
    )
    data.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible dataset (default: data_generation.seed)",
    )
    selection = data.add_mutually_exclusive_group()
    selection.add_argument(
        "--date",
        default=None,
        metavar="YYYY-MM-DD",
        help="Date to display (default: latest generated date)",
    )
    selection.add_argument(
        "--all-dates",
        action="store_true",
        help="Use every generated date instead of a single day",
    )

    stages = parser.add_argument_group("Pipeline Stages")
    stages.add_argument(
        "--alerts",
        action="store_true",
        help="Evaluate power factor and current thresholds",
    )
    stages.add_argument(
        "--dashboard",
        action="store_true",
        help="Build interactive Plotly HTML dashboard",
    )
    stages.add_argument(
        "--report",
        action="store_true",
        help="Generate Excel workbook",
    )
    stages.add_argument(
        "--full-run",
        action="store_true",
        help="Execute all stages: alerts, dashboard, report",
    )
    return parser


def _log_stage(logger: logging.Logger, title: str) -> None:
    logger.info("=" * 60)
    logger.info(title)
    logger.info("=" * 60)


def run_pipeline(
    args: argparse.Namespace,
    logger: logging.Logger,
    alert_state: Optional[AlertState] = None,
) -> tuple[int, AlertState]:
    """Execute the requested stages and return an exit code.

    The dataset is built once and shared in memory by every stage. The
    alert state passed in is folded with this run's evaluation and handed
    back so a long-lived caller can keep the banner sticky across runs.

    Args:
        args: Parsed CLI arguments.
        logger: Configured logger.
        alert_state: Banner state carried over from a previous run.

    Returns:
        (exit_code, alert_state): 0 on success, 1 on any error.
    """
    from energy_dashboard.alerts import (
        CRITICAL_BANNER_MESSAGE,
        evaluate_alerts,
        update_alert_state,
    )
    from energy_dashboard.aggregator import summarize_records
    from energy_dashboard.dashboard import format_stats, generate_dashboard
    from energy_dashboard.data_generator import load_config
    from energy_dashboard.dataset import dataset_from_config
    from energy_dashboard.exceptions import ValidationError
    from energy_dashboard.reporter import generate_report

    state = alert_state if alert_state is not None else AlertState()
    config_path = args.config
    do_all = args.full_run

    # -------------------------------------------------------------------------
    # Stage 1: Dataset initialisation
    # -------------------------------------------------------------------------
    _log_stage(logger, "STAGE 1: Dataset Initialisation")
    try:
        cfg = load_config(config_path)
        dataset = dataset_from_config(cfg, days=args.days, seed=args.seed)
    except FileNotFoundError as exc:
        logger.error("Configuration not found: %s", exc)
        return 1, state
    except ValidationError as exc:
        logger.error("Invalid dataset parameters: %s", exc)
        return 1, state

    if args.all_dates:
        records = dataset.records
        dates = dataset.available_dates()
        selection_label = f"{dates[0]} to {dates[-1]}"
    else:
        selected_date = args.date or dataset.latest_date()
        try:
            records = dataset.for_date(selected_date)
        except ValidationError as exc:
            logger.error("Invalid --date: %s", exc)
            return 1, state
        selection_label = selected_date
        if records.empty:
            logger.warning(
                "No records for %s (available: %s to %s)",
                selected_date,
                dataset.available_dates()[0],
                dataset.latest_date(),
            )
    logger.info("Selection %s: %d records", selection_label, len(records))

    # -------------------------------------------------------------------------
    # Stage 2: Alert evaluation (feeds dashboard and report)
    # -------------------------------------------------------------------------
    alert_cfg = cfg.get("alerts", {}) or {}
    _log_stage(logger, "STAGE 2: Alert Evaluation")
    result = evaluate_alerts(
        records,
        low_power_factor=alert_cfg.get("low_power_factor", 0.85),
        high_current=alert_cfg.get("high_current", 30.0),
    )
    state, raise_banner = update_alert_state(state, result)
    if do_all or args.alerts:
        for message in result.notifications:
            logger.warning(message)
        if not result.notifications:
            logger.info("No alerts")
    if raise_banner:
        logger.critical(CRITICAL_BANNER_MESSAGE)
    elif state.active and result.critical_alert:
        logger.info("Critical alert already active; banner not re-raised")

    # -------------------------------------------------------------------------
    # Stage 3: Interactive Dashboard
    # -------------------------------------------------------------------------
    if do_all or args.dashboard:
        _log_stage(logger, "STAGE 3: Interactive Dashboard")
        try:
            dash_path = generate_dashboard(
                records, result, state, selection_label, config_path
            )
            logger.info("Dashboard generated: %s", dash_path)
        except OSError as exc:
            logger.error("Dashboard generation failed: %s", exc, exc_info=True)
            return 1, state

    # -------------------------------------------------------------------------
    # Stage 4: Excel Report
    # -------------------------------------------------------------------------
    if do_all or args.report:
        _log_stage(logger, "STAGE 4: Excel Report Generation")
        try:
            report_path = generate_report(
                records, result, state, selection_label, config_path
            )
            logger.info("Report generated: %s", report_path)
        except OSError as exc:
            logger.error("Report generation failed: %s", exc, exc_info=True)
            return 1, state

    # -------------------------------------------------------------------------
    # Final summary
    # -------------------------------------------------------------------------
    display = format_stats(summarize_records(records))
    logger.info("=" * 60)
    logger.info("PIPELINE COMPLETE")
    logger.info("  %-30s %s", "Selection:", selection_label)
    logger.info("  %-30s %s", "Average power factor:", display["avg_power_factor"])
    logger.info("  %-30s %s", "Total energy:", display["total_energy"])
    logger.info("  %-30s %s", "Active departments:", display["active_departments"])
    logger.info("  %-30s %d", "Notifications:", len(result.notifications))
    logger.info("=" * 60)
    return 0, state


def main(argv: Optional[list[str]] = None) -> None:
    """Parse arguments, configure logging, and run the pipeline."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # Log directory comes from config when it can be read
    log_dir = "logs"
    if Path(args.config).exists():
        with open(args.config, "r") as fh:
            cfg = yaml.safe_load(fh) or {}
        log_dir = cfg.get("paths", {}).get("log_dir", "logs")

    _configure_logging(log_dir=log_dir, level=args.log_level)
    logger = logging.getLogger(__name__)

    no_stage_selected = not any([args.full_run, args.alerts, args.dashboard, args.report])
    if no_stage_selected:
        parser.print_help()
        sys.exit(0)

    logger.info(
        "Factory Energy Dashboard v1.0 | %s",
        datetime.today().strftime("%Y-%m-%d %H:%M:%S"),
    )
    logger.info("Config: %s | Log level: %s", args.config, args.log_level)

    exit_code, _ = run_pipeline(args, logger)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
