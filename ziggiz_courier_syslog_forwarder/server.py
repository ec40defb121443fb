# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Server implementation for the syslog forwarder

# Standard library imports
import asyncio
import logging

from typing import Optional, Tuple

# Local/package imports
from ziggiz_courier_syslog_forwarder.config import Config
from ziggiz_courier_syslog_forwarder.dispatcher import Dispatcher
from ziggiz_courier_syslog_forwarder.forwarder import LogglyForwarder
from ziggiz_courier_syslog_forwarder.protocol.udp import SyslogUDPProtocol


class SyslogForwarderServer:
    """
    AsyncIO server implementation for the syslog forwarder.

    This class owns the UDP listener, the dispatcher and the forwarder and
    manages their lifecycle.
    """

    def __init__(self, config: Config, forwarder: Optional[LogglyForwarder] = None):
        """
        Initialize the forwarder server.

        Args:
            config: The configuration object
            forwarder: Optional forwarder (built from the configuration if omitted)
        """
        self.logger = logging.getLogger("ziggiz_courier_syslog_forwarder.server")
        self.config = config
        self.forwarder = forwarder or LogglyForwarder(
            api_token=config.api_key,
            base_url=config.loggly_url,
            max_attempts=config.max_attempts,
            retry_delay=config.retry_delay,
            timeout=config.http_timeout,
        )
        self.dispatcher = Dispatcher(
            self.forwarder, max_concurrency=self.config.max_concurrency
        )
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.udp_transport: Optional[asyncio.DatagramTransport] = None
        self.udp_protocol: Optional[SyslogUDPProtocol] = None
        self.stopped: Optional[asyncio.Future] = None

    async def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Bind the UDP listener.

        Args:
            loop: Optional event loop to use

        Raises:
            RuntimeError: If the socket cannot be bound
        """
        self.loop = loop or asyncio.get_running_loop()
        self.stopped = self.loop.create_future()

        host = self.config.host
        port = self.config.port
        self.logger.info(f"Binding to port {port} on {host}")

        try:
            self.udp_transport, self.udp_protocol = await self.start_udp_server(
                host, port
            )
        except Exception as e:
            self.logger.error(f"Failed to start syslog forwarder: {e}")
            raise RuntimeError(f"Failed to start syslog forwarder: {e}")

    async def start_udp_server(
        self, host: str, port: int
    ) -> Tuple[asyncio.DatagramTransport, SyslogUDPProtocol]:
        """
        Start the UDP listener.

        Args:
            host: The host address to bind to
            port: The port to listen on

        Returns:
            A tuple of (transport, protocol)
        """

        # Create a factory function to pass the dispatcher to the protocol
        def protocol_factory():
            return SyslogUDPProtocol(self.dispatcher, on_fatal=self.fail)

        transport, protocol = await self.loop.create_datagram_endpoint(
            protocol_factory, local_addr=(host, port)
        )
        self.logger.info(f"UDP listener on {host}:{port}")
        return transport, protocol

    def request_stop(self) -> None:
        """Ask the server to shut down gracefully."""
        if self.stopped and not self.stopped.done():
            self.logger.info("Shutdown requested")
            self.stopped.set_result(None)

    def fail(self, exc: Exception) -> None:
        """Stop the server because the listener hit a fatal error."""
        if self.stopped and not self.stopped.done():
            self.stopped.set_exception(exc)

    async def wait_stopped(self) -> None:
        """
        Wait until a stop is requested.

        Raises:
            Exception: The fatal error reported by the listener, if any.
        """
        if self.stopped is None:
            raise RuntimeError("Server has not been started")
        await self.stopped

    async def stop(self) -> None:
        """
        Stop the forwarder, draining or cancelling in-flight deliveries.
        """
        self.logger.info("Stopping syslog forwarder")

        if self.udp_transport:
            self.logger.debug("Closing UDP transport")
            self.udp_transport.close()
            self.udp_transport = None
            self.udp_protocol = None

        await self.dispatcher.shutdown(self.config.drain_timeout)
        await self.forwarder.aclose()
