"""GNSS relay entry point.

    python -m gnss_relay --config config.txt
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Optional

from gnss_relay import __version__
from gnss_relay.app import RelayRuntime
from gnss_relay.app import config as relay_config
from gnss_relay.cli.common import (
    add_common_cli_arguments,
    install_exception_handlers,
    install_signal_handlers,
)
from gnss_relay.core.errors import ConfigurationError
from gnss_relay.core.logging_config import configure_logging
from gnss_relay.core.logging_utils import get_module_logger

logger = get_module_logger("Main")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="gnss-relay",
        description="Relay GNSS fixes from a serial NMEA receiver to Traccar servers",
    )
    add_common_cli_arguments(parser)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


async def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the relay process."""
    args = parse_args(argv)

    try:
        config = relay_config.load(args.config, args)
    except ConfigurationError as exc:
        configure_logging(args.log_level or "info")
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        configure_logging(config.log_level, force=True, log_file=config.log_file)
    except ValueError as exc:
        configure_logging("info", force=True, log_file=config.log_file)
        logger.warning("%s; logging at info level", exc)

    loop = asyncio.get_running_loop()
    install_exception_handlers(logger, loop)

    runtime = RelayRuntime(config)
    install_signal_handlers(runtime, loop)

    logger.info("GNSS relay %s starting (port %s)", __version__, config.gps.serial.port)
    await runtime.run()
    if runtime.acquisition_error:
        logger.error("Exiting after acquisition failure: %s", runtime.acquisition_error)
        return 1
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
