"""
scheduler.py - Daily Dashboard Refresh Scheduler.

Wraps the full pipeline run in APScheduler so the dashboard and report are
regenerated every day at a configured time (default 06:00 London), each run
on a freshly synthesized dataset.

Features:
    - Timezone-aware scheduling (Europe/London, handles BST/GMT automatically)
    - Critical-alert state carried between runs: once raised, the banner is
      not re-raised until an operator dismisses it
    - SIGUSR1 dismisses the held alert (where the platform supports it)
    - Graceful shutdown on SIGINT / SIGTERM
    - Retry on failure with configurable delay

Usage:
    python scheduler.py                  # Run daemon (blocks)
    python scheduler.py --run-now        # Trigger one immediate run then exit
    python scheduler.py --config custom.yaml
"""

import argparse
import logging
import logging.handlers
import signal
import sys
import threading
import time
from datetime import datetime
from pathlib import Path

import yaml

# APScheduler v3.x
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from energy_dashboard.alerts import AlertState, dismiss_alert


logger = logging.getLogger(__name__)


def _configure_scheduler_logging(log_dir: str) -> None:
    """Set up dedicated rotating log for the scheduler process.

    Args:
        log_dir: Directory for log files.
    """
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_file = Path(log_dir) / "scheduler.log"

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=14, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.addHandler(file_handler)
    root.addHandler(stream_handler)

    logging.getLogger("apscheduler").setLevel(logging.WARNING)


class DashboardRefreshJob:
    """Scheduled job holding the alert state between runs."""

    def __init__(self, config_path: str, max_retries: int, retry_delay: int):
        self.config_path = config_path
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.alert_state = AlertState()
        # Re-entrant: dismiss() may run in a signal handler on the thread holding it
        self._state_lock = threading.RLock()
        self._dismiss_requested = threading.Event()

    def dismiss(self) -> None:
        """Clear the held alert, including one raised by a run in progress."""
        with self._state_lock:
            self._dismiss_requested.set()
            self.alert_state = dismiss_alert(self.alert_state)

    def _begin_run(self) -> AlertState:
        with self._state_lock:
            self._dismiss_requested.clear()
            return self.alert_state

    def _finish_run(self, state: AlertState) -> None:
        with self._state_lock:
            if self._dismiss_requested.is_set():
                state = dismiss_alert(state)
                self._dismiss_requested.clear()
            self.alert_state = state

    def _build_args(self) -> argparse.Namespace:
        """Namespace mirroring `main.py --full-run` on the latest date."""
        return argparse.Namespace(
            config=self.config_path,
            log_level="INFO",
            days=None,
            seed=None,
            date=None,
            all_dates=False,
            alerts=False,
            dashboard=False,
            report=False,
            full_run=True,
        )

    def run(self) -> bool:
        """Execute the full pipeline with retry logic.

        Returns:
            True when a run succeeded within max_retries attempts.
        """
        from main import run_pipeline

        run_time = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        logger.info("=" * 70)
        logger.info("SCHEDULED DASHBOARD REFRESH - %s", run_time)
        logger.info("=" * 70)

        args = self._build_args()
        for attempt in range(1, self.max_retries + 1):
            try:
                exit_code, state = run_pipeline(args, logger, self._begin_run())
                self._finish_run(state)
                if exit_code == 0:
                    logger.info(
                        "Scheduled run completed successfully (attempt %d) | alert active=%s",
                        attempt,
                        self.alert_state.active,
                    )
                    return True
                logger.error(
                    "Pipeline returned non-zero exit code %d (attempt %d)",
                    exit_code,
                    attempt,
                )
            except Exception as exc:
                logger.error(
                    "Pipeline raised exception (attempt %d): %s",
                    attempt,
                    exc,
                    exc_info=True,
                )

            if attempt < self.max_retries:
                logger.info("Retrying in %d seconds...", self.retry_delay)
                time.sleep(self.retry_delay)

        logger.error(
            "Pipeline failed after %d attempt(s); will retry at next scheduled time",
            self.max_retries,
        )
        return False


def _parse_args() -> argparse.Namespace:
    """Parse scheduler-specific CLI arguments.

    Returns:
        Parsed Namespace.
    """
    parser = argparse.ArgumentParser(
        prog="energy-dashboard-scheduler",
        description="Daily APScheduler daemon that refreshes the energy dashboard.",
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to configuration YAML (default: config.yaml)",
    )
    parser.add_argument(
        "--run-now",
        action="store_true",
        help="Execute one refresh immediately then exit",
    )
    return parser.parse_args()


def main() -> None:
    """Entry point: configure scheduler and start the blocking daemon."""
    args = _parse_args()

    config_path = args.config
    try:
        with open(config_path, "r") as fh:
            cfg = yaml.safe_load(fh)
    except FileNotFoundError:
        print(f"ERROR: Configuration file not found: {config_path}", file=sys.stderr)
        sys.exit(1)

    log_dir = cfg.get("paths", {}).get("log_dir", "logs")
    _configure_scheduler_logging(log_dir)

    sched_cfg = cfg.get("scheduler", {})
    run_time = sched_cfg.get("run_time", "06:00")
    timezone = sched_cfg.get("timezone", "Europe/London")
    max_retries = sched_cfg.get("max_retries", 3)
    retry_delay = sched_cfg.get("retry_delay_seconds", 300)

    run_hour, run_minute = map(int, run_time.split(":"))
    job = DashboardRefreshJob(config_path, max_retries, retry_delay)

    if args.run_now:
        logger.info("--run-now flag set; executing refresh immediately")
        succeeded = job.run()
        logger.info("Immediate run complete; exiting")
        sys.exit(0 if succeeded else 1)

    scheduler = BlockingScheduler(timezone=timezone)
    scheduler.add_job(
        func=job.run,
        trigger=CronTrigger(
            hour=run_hour,
            minute=run_minute,
            timezone=timezone,
        ),
        id="daily_energy_dashboard_refresh",
        name="Daily Energy Dashboard Refresh",
        replace_existing=True,
        misfire_grace_time=600,
    )

    def _handle_shutdown(signum, frame):
        logger.info("Shutdown signal received; stopping scheduler gracefully")
        scheduler.shutdown(wait=False)
        sys.exit(0)

    def _handle_dismiss(signum, frame):
        job.dismiss()

    signal.signal(signal.SIGINT, _handle_shutdown)
    signal.signal(signal.SIGTERM, _handle_shutdown)
    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, _handle_dismiss)

    logger.info("Scheduler started: daily run at %s | timezone: %s", run_time, timezone)
    logger.info("Press Ctrl+C or send SIGTERM to stop. Send SIGUSR1 to dismiss a held alert.")

    scheduler.start()


if __name__ == "__main__":
    main()
