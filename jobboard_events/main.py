"""Command-line entry point: database setup and notification maintenance."""

import argparse
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from jobboard_events.config.environment import EnvironmentConfig
from jobboard_events.config.exceptions import ConfigurationError
from jobboard_events.config.loader import load_config
from jobboard_events.config.models import AppConfig
from jobboard_events.logging import get_logger
from jobboard_events.logging.config import configure_logging
from jobboard_events.notifications import NotificationService
from jobboard_events.persistence import close_database, init_database
from jobboard_events.scheduler import MaintenanceScheduler

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Priority for the log level: CLI flag, then LOG_LEVEL, then the config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override.upper()
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job board event services - notification retention and maintenance"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml if present)",
    )
    parser.add_argument(
        "--purge-now",
        action="store_true",
        help="Run one retention purge immediately and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the maintenance service.

    Returns:
        Exit code (0 for success, 1 for configuration or fatal errors)
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)
    load_dotenv()

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )
        logger.info(
            "Job board event services starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "purge_now": args.purge_now,
            },
        )
        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "fanout_max_workers": app_config.fanout.max_workers,
                "retention_seconds": app_config.notifications.retention_seconds,
                "purge_interval_seconds": app_config.notifications.purge_interval_seconds,
            },
        )

        init_database(env_config.database_url)
        notification_service = NotificationService(config=app_config.notifications)

        if args.purge_now:
            deleted = notification_service.purge_expired()
            close_database()
            logger.info(
                f"Manual purge completed: {deleted} notifications removed",
                extra={
                    "event": "service.manual_purge.completed",
                    "deleted": deleted,
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )
            return 0

        shutdown_event = threading.Event()
        scheduler = MaintenanceScheduler(
            purge_callable=notification_service.purge_expired,
            interval_seconds=app_config.notifications.purge_interval_seconds,
            shutdown_event=shutdown_event,
        )

        def signal_handler(signum, frame):
            logger.info(
                f"Received signal {signum}, shutting down",
                extra={"event": "service.signal_received", "signal": signum},
            )
            scheduler.shutdown(wait=False)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        scheduler.start()
        logger.info(
            "Scheduler started. Press Ctrl+C to stop",
            extra={"event": "service.daemon_mode.started"},
        )

        try:
            shutdown_event.wait()
        except KeyboardInterrupt:
            logger.info(
                "Keyboard interrupt received, shutting down",
                extra={"event": "service.keyboard_interrupt"},
            )
            scheduler.shutdown(wait=False)

        close_database()
        logger.info(
            "Job board event services stopped",
            extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            exc_info=True,
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
        )
        close_database()
        return 1


if __name__ == "__main__":
    sys.exit(main())
