"""
dbcompare command line entry point.

Loads the run configuration, runs every enabled backend, and hands the suite
to each configured reporter.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional, Sequence

from dbcompare.config import load_config, settings
from dbcompare.core.errors import (
    BackendConstructionError,
    ConfigurationError,
    NoBackendsEnabledError,
)
from dbcompare.core.runner import BenchmarkRunner
from dbcompare.models.result import BenchmarkSuite
from dbcompare.reporters import create_reporters

logger = logging.getLogger(__name__)

NOISY_LOGGERS = (
    "snowflake.connector.connection",
    "snowflake.connector.network",
    "snowflake.connector.cursor",
    "asyncpg",
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Benchmark several databases with the same workload and compare them."
    )
    parser.add_argument(
        "--config",
        default=settings.DBCOMPARE_CONFIG,
        help="Path to the YAML run configuration.",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Run a single database (key or name, e.g. 'postgres').",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override LOG_LEVEL.",
    )
    return parser


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(settings.LOG_FILE)
            if settings.LOG_FILE
            else logging.NullHandler(),
        ],
    )
    # Connector internals log every handshake at INFO.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _install_signal_handlers(runner: BenchmarkRunner) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, runner.request_stop)
        except (NotImplementedError, RuntimeError):
            # add_signal_handler is unavailable on Windows event loops.
            logger.debug(f"Signal handler for {sig.name} not installed")


async def _run(runner: BenchmarkRunner, db_filter: Optional[str]) -> BenchmarkSuite:
    _install_signal_handlers(runner)
    return await runner.run(db_filter)


def generate_reports(suite: BenchmarkSuite, reporters) -> None:
    for reporter in reporters:
        try:
            reporter.generate(suite)
        except Exception as e:
            logger.error(f"Failed to generate {reporter.name} report: {e}")


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = load_config(args.config)
        runner = BenchmarkRunner.from_config(config)
    except (ConfigurationError, NoBackendsEnabledError, BackendConstructionError) as e:
        logger.error(str(e))
        return 1

    logger.info(
        f"Starting benchmarks for: {', '.join(b.name for b in runner.benchmarks)}"
    )
    suite = asyncio.run(_run(runner, args.db))
    generate_reports(suite, create_reporters(config.output))
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
