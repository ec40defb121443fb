# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Main entry point for the syslog forwarder

# Standard library imports
import argparse
import asyncio
import logging
import signal
import sys

from typing import List, Optional

# Local/package imports
from ziggiz_courier_syslog_forwarder.config import (
    DEFAULT_CONFIG_PATH,
    Config,
    ConfigError,
    configure_logging,
    load_config,
)
from ziggiz_courier_syslog_forwarder.daemon import DaemonizeError, daemonize
from ziggiz_courier_syslog_forwarder.server import SyslogForwarderServer
from ziggiz_courier_syslog_forwarder.telemetry import configure_tracing


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ziggiz-courier-syslog-forwarder",
        description="Forward received syslog events to a Loggly input using HTTPS",
    )
    parser.add_argument(
        "-D",
        "--daemon",
        action="store_true",
        help="Run as a daemon",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Increase verbosity",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        help="Bind to port (overrides config file, default 5140)",
    )
    parser.add_argument(
        "-f",
        "--config",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    return parser


def run_server(config: Config) -> None:
    """
    Run the forwarder until it is stopped by a signal or a fatal error.

    Args:
        config: The validated configuration

    Exits with status 1 if the listener cannot be bound or fails fatally.
    """
    logger = logging.getLogger("ziggiz_courier_syslog_forwarder.main")

    try:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        server = SyslogForwarderServer(config)

        try:
            loop.run_until_complete(server.start(loop))

            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, server.request_stop)

            # Run the event loop until a stop is requested
            loop.run_until_complete(server.wait_stopped())
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt, shutting down...")
        finally:
            # Clean shutdown of server
            loop.run_until_complete(server.stop())

            # Close the event loop
            loop.close()

    except Exception as e:
        logger.exception(f"Failed to run forwarder: {e}")
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point for the syslog forwarder.
    Parses command-line arguments, loads the configuration, optionally
    detaches from the terminal and starts the forwarder.
    """
    args = build_parser().parse_args(argv)

    # Basic logging until the configuration is known
    configure_logging()
    logger = logging.getLogger("ziggiz_courier_syslog_forwarder.main")

    try:
        config = load_config(args.config, overrides={"port": args.port})
    except ConfigError as e:
        logger.error(f"ERROR: {e}")
        sys.exit(1)

    if args.daemon and args.verbose:
        logger.error("ERROR: -D and -v options are mutually exclusive.")
        sys.exit(1)

    configure_logging(config, verbose=args.verbose)
    configure_tracing(config.tracing)
    logger.info(f"Loaded configuration from {args.config}")

    if args.daemon:
        try:
            daemonize()
        except DaemonizeError as e:
            logger.error(f"ERROR: {e}")
            sys.exit(1)

    logger.info("Starting Ziggiz Courier Syslog Forwarder")
    run_server(config)


if __name__ == "__main__":
    main()
