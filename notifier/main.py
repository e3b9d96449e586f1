"""Main entry point for the notifier service."""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import uvicorn
from dotenv import load_dotenv

from notifier.api import create_app
from notifier.bootstrap import build_services
from notifier.config.environment import EnvironmentConfig
from notifier.config.exceptions import ConfigurationError
from notifier.config.loader import load_config
from notifier.config.models import AppConfig
from notifier.logging import get_logger
from notifier.logging.config import configure_logging
from notifier.persistence import DatabaseConnectionError, redact_url

logger = get_logger(__name__, component="cli")

LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file > INFO.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    elif app_config.logging and app_config.logging.level:
        env_config.log_level = app_config.logging.level
    else:
        env_config.log_level = "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job Push Notifier - Web Push fan-out and billing entitlement webhooks"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument("--host", default=None, help="Interface to bind (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (overrides config)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=LOG_LEVEL_CHOICES,
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate configuration and environment, then exit",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the notifier HTTP service.

    Returns:
        Exit code (0 for success, 1 for configuration or fatal errors).
    """
    args = build_parser().parse_args(argv)
    load_dotenv()
    start_time = time.time()

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        host = args.host or app_config.server.host
        port = args.port or app_config.server.port

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "database_url": redact_url(env_config.database_url),
                "checkout_enabled": env_config.checkout_enabled,
            },
        )

        if args.check_config:
            print("Configuration is valid")
            return 0

        services = build_services(app_config, env_config)
        app = create_app(services)

        logger.info(
            f"Notifier listening on http://{host}:{port}",
            extra={"event": "service.starting", "host": host, "port": port},
        )
        try:
            uvicorn.run(app, host=host, port=port, log_config=None)
        finally:
            services.close()
            logger.info(
                "Notifier stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except DatabaseConnectionError as e:
        print(f"Database Error: {e}", file=sys.stderr)
        logger.error(
            f"Database unavailable: {e}",
            extra={"event": "service.startup.failed", "error_type": type(e).__name__},
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
        return 1


if __name__ == "__main__":
    sys.exit(main())
