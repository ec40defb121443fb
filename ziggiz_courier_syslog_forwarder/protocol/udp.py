# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# UDP Protocol implementation for the syslog forwarder


# Standard library imports
import asyncio
import logging

from typing import Callable, Optional, Tuple

# Local/package imports
from ziggiz_courier_syslog_forwarder.dispatcher import Dispatcher, DispatchError

MAX_DATAGRAM_SIZE = 1524


class SyslogUDPProtocol(asyncio.DatagramProtocol):
    """
    UDP Protocol implementation for receiving syslog datagrams.

    This protocol is the only reader of the bound socket. Each datagram is
    truncated to MAX_DATAGRAM_SIZE bytes and handed to the dispatcher, which
    processes it in an independent task.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        on_fatal: Optional[Callable[[Exception], None]] = None,
        max_datagram_size: int = MAX_DATAGRAM_SIZE,
    ):
        """
        Initialize the UDP protocol.

        Args:
            dispatcher: Dispatcher that schedules per-message processing
            on_fatal: Callback invoked when a datagram cannot be dispatched
            max_datagram_size: Payloads beyond this many bytes are truncated
        """
        self.logger = logging.getLogger(
            "ziggiz_courier_syslog_forwarder.protocol.udp"
        )
        self.transport: Optional[asyncio.DatagramTransport] = None
        self.dispatcher = dispatcher
        self.on_fatal = on_fatal
        self.max_datagram_size = max_datagram_size

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        """
        Called when the socket is bound.

        Args:
            transport: The transport for the endpoint
        """
        self.transport = transport
        socket_info = transport.get_extra_info("socket")
        if socket_info:
            # Handle both IPv4 (host, port) and IPv6 (host, port, flowinfo, scopeid)
            sockname = socket_info.getsockname()
            host, port = sockname[0], sockname[1]
            self.logger.info(
                f"UDP listener bound to {host}:{port}",
                extra={
                    "net.transport": "ip_udp",
                    "net.host.ip": host,
                    "net.host.port": port,
                },
            )
        else:
            self.logger.info("UDP listener started", extra={"net.transport": "ip_udp"})
        self.logger.info("Ready to accept events")

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        """
        Called when a UDP datagram is received.

        Args:
            data: The datagram data
            addr: The address (host, port) of the sender
        """
        host, port = addr[0], addr[1]
        if len(data) > self.max_datagram_size:
            self.logger.debug(
                "Truncating oversized UDP datagram",
                extra={"host": host, "port": port, "length": len(data)},
            )
            data = data[: self.max_datagram_size]

        self.logger.debug("Received UDP datagram", extra={"host": host, "port": port})

        try:
            self.dispatcher.dispatch(data, (host, port))
        except DispatchError as exc:
            self.logger.critical(
                "Cannot dispatch syslog message, stopping listener",
                extra={"host": host, "port": port, "error": str(exc)},
            )
            if self.transport:
                self.transport.close()
            if self.on_fatal:
                self.on_fatal(exc)

    def error_received(self, exc: Exception) -> None:
        """
        Called when a previous send or receive operation raises an OSError.

        Args:
            exc: The exception that was raised
        """
        self.logger.error(f"Error in UDP listener: {exc}", extra={"error": exc})

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """
        Called when the endpoint is closed.

        Args:
            exc: The exception that caused the close, or None
        """
        if exc:
            self.logger.debug(
                f"UDP listener closed with error: {exc}",
                extra={"net.transport": "ip_udp", "error": exc},
            )
        else:
            self.logger.debug(
                "UDP listener closed",
                extra={"net.transport": "ip_udp"},
            )
