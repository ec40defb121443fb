# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Tests for the syslog forwarder server implementation

# Standard library imports
import asyncio

from unittest.mock import AsyncMock, MagicMock

# Third-party imports
import httpx
import pytest

# Local/package imports
from ziggiz_courier_syslog_forwarder.config import Config
from ziggiz_courier_syslog_forwarder.dispatcher import DispatchError
from ziggiz_courier_syslog_forwarder.forwarder import LogglyForwarder
from ziggiz_courier_syslog_forwarder.server import SyslogForwarderServer


@pytest.mark.asyncio
class TestSyslogForwarderServer:
    """Tests for the SyslogForwarderServer class."""

    async def test_init(self, api_key):
        config = Config(api_key=api_key, host="127.0.0.1", port=1514)
        server = SyslogForwarderServer(config)

        assert server.logger.name == "ziggiz_courier_syslog_forwarder.server"
        assert server.config == config
        assert server.loop is None
        assert server.udp_transport is None
        assert server.udp_protocol is None
        assert isinstance(server.forwarder, LogglyForwarder)
        assert server.forwarder.endpoint == f"https://logs.loggly.com/inputs/{api_key}"
        assert server.dispatcher.forwarder is server.forwarder
        await server.forwarder.aclose()

    async def test_start_udp_server(self, api_key):
        config = Config(api_key=api_key, host="127.0.0.1", port=1514)
        server = SyslogForwarderServer(config, forwarder=MagicMock())

        mock_loop = AsyncMock()
        mock_transport = MagicMock()
        mock_protocol = MagicMock()
        mock_loop.create_datagram_endpoint.return_value = (
            mock_transport,
            mock_protocol,
        )

        server.loop = mock_loop
        transport, protocol = await server.start_udp_server("127.0.0.1", 1514)

        assert transport == mock_transport
        assert protocol == mock_protocol
        args, kwargs = mock_loop.create_datagram_endpoint.call_args
        assert kwargs["local_addr"] == ("127.0.0.1", 1514)
        # The factory wires the dispatcher into the listener
        built = args[0]()
        assert built.dispatcher is server.dispatcher

    async def test_start_failure_raises_runtime_error(self, api_key, mocker):
        config = Config(api_key=api_key, host="127.0.0.1", port=1514)
        server = SyslogForwarderServer(config, forwarder=MagicMock())
        mocker.patch.object(
            server,
            "start_udp_server",
            AsyncMock(side_effect=OSError("Address already in use")),
        )

        with pytest.raises(RuntimeError, match="Address already in use"):
            await server.start()

    async def test_request_stop(self, api_key):
        config = Config(api_key=api_key, host="127.0.0.1", port=1514)
        server = SyslogForwarderServer(config, forwarder=MagicMock())
        server.start_udp_server = AsyncMock(return_value=(MagicMock(), MagicMock()))

        await server.start()
        server.request_stop()
        server.request_stop()
        await asyncio.wait_for(server.wait_stopped(), timeout=1)

    async def test_fatal_error_propagates(self, api_key):
        config = Config(api_key=api_key, host="127.0.0.1", port=1514)
        server = SyslogForwarderServer(config, forwarder=MagicMock())
        server.start_udp_server = AsyncMock(return_value=(MagicMock(), MagicMock()))

        await server.start()
        server.fail(DispatchError("cannot schedule"))
        with pytest.raises(DispatchError):
            await server.wait_stopped()

    async def test_wait_stopped_before_start(self, api_key):
        server = SyslogForwarderServer(Config(api_key=api_key), forwarder=MagicMock())
        with pytest.raises(RuntimeError):
            await server.wait_stopped()

    async def test_stop(self, api_key):
        config = Config(api_key=api_key, drain_timeout=2)
        forwarder = MagicMock()
        forwarder.aclose = AsyncMock()
        server = SyslogForwarderServer(config, forwarder=forwarder)
        server.dispatcher.shutdown = AsyncMock()
        transport = MagicMock()
        server.udp_transport = transport

        await server.stop()

        transport.close.assert_called_once()
        assert server.udp_transport is None
        server.dispatcher.shutdown.assert_awaited_once_with(2)
        forwarder.aclose.assert_awaited_once()


@pytest.mark.integration
@pytest.mark.asyncio
class TestSyslogForwarderServerIntegration:
    """End-to-end tests over a real UDP socket with a simulated collector."""

    async def test_receive_and_forward(self, api_key):
        received = asyncio.Queue()
        release = asyncio.Event()

        async def handler(request):
            body = request.content.decode()
            if "stuck" in body:
                await release.wait()
            await received.put(body)
            return httpx.Response(200, json={"response": "ok"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        forwarder = LogglyForwarder(api_key, client=client, sleep=AsyncMock())
        config = Config(api_key=api_key, host="127.0.0.1", port=5140)
        server = SyslogForwarderServer(config, forwarder=forwarder)

        loop = asyncio.get_running_loop()
        server.loop = loop
        server.udp_transport, server.udp_protocol = await server.start_udp_server(
            "127.0.0.1", 0
        )
        port = server.udp_transport.get_extra_info("sockname")[1]

        sender, _ = await loop.create_datagram_endpoint(
            asyncio.DatagramProtocol, remote_addr=("127.0.0.1", port)
        )
        try:
            sender.sendto(b"<34>stuck collector")
            sender.sendto(b"not a syslog line")
            sender.sendto(b"<34>host message text")

            body = await asyncio.wait_for(received.get(), timeout=2)
            assert "facility=auth,severity=critical host message text\n" in body
            assert body.split(" ")[1] == "127.0.0.1"
            assert server.dispatcher.pending >= 1
        finally:
            sender.close()
            await server.stop()

        assert server.dispatcher.pending == 0

    async def test_bind_failure(self, api_key):
        loop = asyncio.get_running_loop()
        holder, _ = await loop.create_datagram_endpoint(
            asyncio.DatagramProtocol, local_addr=("127.0.0.1", 0)
        )
        port = holder.get_extra_info("sockname")[1]
        try:
            config = Config(api_key=api_key, host="127.0.0.1", port=port)
            server = SyslogForwarderServer(config, forwarder=MagicMock())
            with pytest.raises(RuntimeError, match="Failed to start syslog forwarder"):
                await server.start()
        finally:
            holder.close()
