"""Main entry point for the notification delivery worker."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import os
import signal
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

from app.config.environment import EnvironmentConfig
from app.config.exceptions import ConfigurationError
from app.config.loader import load_config, validate_config_file
from app.config.models import AppConfig
from app.logging import get_logger
from app.logging.config import configure_logging
from app.messaging import ConnectionManager, MessageHandler, NotificationConsumer, PayloadDecoder
from app.notifications import EmailNotifier, SMTPClient, TemplateRenderer
from app.worker import WorkerService

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and prepare runtime configuration.

    Args:
        config_path: Path to configuration file (None searches the defaults)
        log_level_override: Log level from CLI (takes precedence)

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with the effective log level
        stored on the environment config

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    # Apply log level priority: CLI > Environment > Config
    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    elif app_config.logging and app_config.logging.level:
        env_config.log_level = app_config.logging.level
    else:
        env_config.log_level = "INFO"

    return app_config, env_config


def build_worker(app_config: AppConfig, env_config: EnvironmentConfig) -> WorkerService:
    """Wire the consumer pipeline from configuration."""
    template_renderer = TemplateRenderer()
    smtp_client = SMTPClient(env_config, app_config.email)

    def notifier_factory() -> EmailNotifier:
        return EmailNotifier(
            app_config,
            env_config,
            template_renderer=template_renderer,
            smtp_client=smtp_client,
        )

    message_handler = MessageHandler(
        notifier_factory=notifier_factory,
        decoder=PayloadDecoder(app_config.notifications.default_recipient_name),
    )
    connection_manager = ConnectionManager(env_config, app_config.broker)
    consumer = NotificationConsumer(connection_manager, message_handler)

    return WorkerService(consumer)


def main() -> int:
    """
    Main entry point for the notification delivery worker.

    Returns:
        Exit code (0 after a requested shutdown, 1 on configuration or
        broker failure).
    """
    start_time = time.time()
    parser = argparse.ArgumentParser(
        description="Notification Delivery Worker - consumes notification requests from RabbitMQ and sends emails"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present, else built-in defaults)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )

    args = parser.parse_args()

    if args.check_config:
        return 0 if validate_config_file(args.config or Path("config.yaml")) else 1

    try:
        # Step 1: Load configuration early (before logging for format detection)
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        # Step 2: Configure logging
        log_format = app_config.logging.format if app_config.logging else "key-value"
        environment = os.environ.get("ENVIRONMENT", "local")
        configure_logging(level=env_config.log_level, format_type=log_format, environment=environment)

        logger.info(
            "Notification delivery worker starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "broker_address": env_config.broker_address,
                "queue": env_config.rabbitmq_queue,
                "smtp_host": env_config.smtp_host,
            },
        )

        # Step 3: Build and start the worker
        worker = build_worker(app_config, env_config)

        def signal_handler(signum, frame):
            logger.info(
                f"Received signal {signum}, shutting down",
                extra={"event": "service.signal_received", "signal": signum},
            )
            worker.shutdown(wait=False)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        worker.start()

        # Step 4: Block until the consumer thread exits. Joining with a
        # timeout keeps the main thread responsive to signals.
        try:
            while not worker.wait(timeout=1.0):
                pass
        except KeyboardInterrupt:
            logger.info(
                "Keyboard interrupt received, shutting down",
                extra={"event": "service.keyboard_interrupt"},
            )
            worker.shutdown(wait=True, timeout=30)

        uptime_seconds = time.time() - start_time
        logger.info(
            "Notification delivery worker stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(uptime_seconds, 2),
                "failed": worker.fatal_error is not None,
            },
        )

        if worker.fatal_error is not None:
            print(f"Fatal error: {worker.fatal_error}", file=sys.stderr)
            return 1
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
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
