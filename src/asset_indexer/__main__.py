"""CLI entry point for the asset indexer.

This module provides the main entry point for running the indexer
from the command line.

Usage:
    python -m asset_indexer [options]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.config
import sys
from pathlib import Path
from typing import NoReturn

from pydantic import ValidationError

from asset_indexer import __version__
from asset_indexer.config import Settings, clear_settings_cache, get_settings
from asset_indexer.engine.errors import IndexerError
from asset_indexer.health import HealthMonitor
from asset_indexer.pipeline import Pipeline
from asset_indexer.shutdown import GracefulShutdown

# Application info
APP_NAME = "Asset Indexer"
APP_VERSION = __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="asset-indexer",
        description="Index tokenization platform contract events into derived state.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m asset_indexer                         Consume the Redis event stream
  python -m asset_indexer --config-check          Validate config and exit
  python -m asset_indexer --replay events.jsonl   Apply a JSON-lines file and exit
  python -m asset_indexer --log-level DEBUG       Enable debug logging
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )

    parser.add_argument(
        "--config-check",
        action="store_true",
        help="Validate configuration and exit without running the pipeline",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level (default: from settings)",
    )

    parser.add_argument(
        "--health-port",
        type=int,
        default=None,
        help="Override health check port (default: from settings)",
    )

    parser.add_argument(
        "--replay",
        type=Path,
        default=None,
        metavar="FILE",
        help="Apply the events of a JSON-lines file instead of reading Redis",
    )

    return parser


def configure_logging(level: str) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        # Quieter logging for noisy libraries
        "loggers": {
            "sqlalchemy.engine": {"level": "WARNING"},
            "aiosqlite": {"level": "WARNING"},
            "asyncio": {"level": "WARNING"},
            "aiohttp.access": {"level": "WARNING"},
            "web3": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)


def print_banner() -> None:
    """Print the application startup banner."""
    banner = f"""
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║   {APP_NAME:^56}   ║
║   {"v" + APP_VERSION:^56}   ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
"""
    print(banner)


def print_config_summary(settings: Settings) -> None:
    """Print a summary of the configuration.

    Args:
        settings: Application settings.
    """
    summary = settings.redacted_summary()
    stream = summary["stream"]
    indexer = summary["indexer"]
    assert isinstance(stream, dict) and isinstance(indexer, dict)

    print("Configuration:")
    print(f"  Database: {summary['database_url']}")
    print(f"  Redis: {summary['redis_url']}")
    print(f"  Stream: {stream['name']} (group {stream['group']}, consumer {stream['consumer']})")
    print(f"  Batch Size: {stream['batch_size']}")
    print(f"  Max Retries: {stream['max_retries']}")
    print(f"  Default Decimals: {indexer['default_decimals']}")
    print(f"  Configured Assets: {indexer['asset_decimals']}")
    print(f"  Log Level: {summary['log_level']}")
    print(f"  Health Port: {summary['health_port']}")
    print()


def validate_config() -> Settings | None:
    """Validate and load configuration.

    Returns:
        Settings instance if valid, None if invalid.
    """
    try:
        # Clear cache to force reload
        clear_settings_cache()
        return get_settings()
    except ValidationError as e:
        print("Configuration validation failed:", file=sys.stderr)
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            msg = error["msg"]
            print(f"  {field}: {msg}", file=sys.stderr)
        return None


def run_config_check(settings: Settings) -> int:
    """Run configuration check and exit.

    Args:
        settings: Validated settings.

    Returns:
        Exit code (0 for success).
    """
    print("Configuration is valid!")
    print()
    print_config_summary(settings)
    print("All checks passed. Ready to run.")
    return EXIT_SUCCESS


async def run_replay(settings: Settings, path: Path) -> int:
    """Apply a replay file to the configured database.

    Args:
        settings: Application settings.
        path: JSON-lines file to apply.

    Returns:
        Exit code.
    """
    logger = logging.getLogger(__name__)

    if not path.is_file():
        logger.error("Replay file not found: %s", path)
        return EXIT_ERROR

    pipeline = Pipeline(settings)
    try:
        stats = await pipeline.replay(path)
    except IndexerError as e:
        logger.error("Replay failed: %s", e)
        return EXIT_ERROR

    print(f"Replayed {stats.entries_read} events: {stats.applied} applied, "
          f"{stats.duplicates} duplicates, {stats.unhandled} unhandled")
    return EXIT_SUCCESS


async def run_pipeline(
    settings: Settings,
    shutdown_timeout: float = 30.0,
) -> int:
    """Run the main pipeline with graceful shutdown handling.

    Args:
        settings: Application settings.
        shutdown_timeout: Maximum time to wait for graceful shutdown.

    Returns:
        Exit code.
    """
    logger = logging.getLogger(__name__)
    shutdown = GracefulShutdown(timeout=shutdown_timeout)
    monitor = HealthMonitor()

    try:
        async with shutdown:
            pipeline = Pipeline(settings, monitor=monitor)

            # Cleanups run in order: stop consuming first, then the health server
            shutdown.register_cleanup(pipeline.stop)
            shutdown.register_cleanup(monitor.stop_http_server)

            await monitor.start_http_server(port=settings.health_port)

            logger.info("Starting pipeline...")
            await pipeline.start()

            logger.info("Pipeline running. Press Ctrl+C to stop.")

            # Wait for a shutdown signal or the pipeline halting
            requested = await shutdown.wait_for(pipeline.wait())
            if requested:
                logger.info("Shutdown signal received, stopping pipeline...")

        if pipeline.error is not None:
            logger.error("Pipeline halted: %s", pipeline.error)
            return EXIT_ERROR
        return EXIT_SUCCESS
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.exception("Pipeline failed: %s", e)
        return EXIT_ERROR


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Validate configuration first
    settings = validate_config()
    if settings is None:
        sys.exit(EXIT_CONFIG_ERROR)

    # Apply command line overrides
    if args.health_port is not None:
        settings = settings.model_copy(update={"health_port": args.health_port})

    # Determine effective log level
    log_level = args.log_level or settings.log_level
    configure_logging(log_level)

    # Print banner
    print_banner()

    # Config check mode
    if args.config_check:
        sys.exit(run_config_check(settings))

    # Print config summary
    print_config_summary(settings)

    if args.replay is not None:
        sys.exit(asyncio.run(run_replay(settings, args.replay)))

    # Run pipeline
    exit_code = asyncio.run(run_pipeline(settings))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
