# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Per-datagram dispatcher
#
# Every received datagram is processed by its own asyncio task that runs
# parse -> format -> deliver. The listener only schedules the task and goes
# straight back to receiving; a task's failure or retry delay never reaches it.

# Standard library imports
import asyncio
import logging

from typing import Any, Optional, Set, Tuple

# Local/package imports
from ziggiz_courier_syslog_forwarder.formatter import format_line
from ziggiz_courier_syslog_forwarder.forwarder import DeliveryOutcome, LogglyForwarder
from ziggiz_courier_syslog_forwarder.parser import ParseError, parse
from ziggiz_courier_syslog_forwarder.telemetry import get_tracer


class DispatchError(RuntimeError):
    """Raised when a processing task cannot be created for a datagram."""


class Dispatcher:
    """
    Fire-and-forget scheduler for per-message delivery tasks.

    Tasks are tracked only so they can be drained or cancelled at shutdown;
    each one removes itself from the tracked set when it finishes.
    """

    def __init__(
        self,
        forwarder: LogglyForwarder,
        max_concurrency: int = 0,
        tracer: Optional[Any] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            forwarder: The forwarder used by every task.
            max_concurrency: Maximum number of tasks delivering at once
                (0 means unbounded). Excess tasks wait inside their own
                context, never in the listener.
            tracer: Optional OpenTelemetry tracer (defaults to the package tracer)
        """
        self.logger = logging.getLogger("ziggiz_courier_syslog_forwarder.dispatcher")
        self.forwarder = forwarder
        self.max_concurrency = max_concurrency
        self.tracer = tracer or get_tracer()
        self.semaphore: Optional[asyncio.Semaphore] = (
            asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
        )
        self.tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self.tasks)

    def dispatch(self, payload: bytes, peer: Tuple[str, int]) -> asyncio.Task:
        """
        Schedule processing of one datagram and return without waiting.

        Args:
            payload: The datagram bytes
            peer: The (host, port) of the sender

        Returns:
            The scheduled task.

        Raises:
            DispatchError: If the task could not be created.
        """
        try:
            loop = asyncio.get_running_loop()
            task = loop.create_task(self.process(payload, peer))
        except Exception as exc:
            raise DispatchError(f"Cannot schedule message processing: {exc}") from exc
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task

    async def process(
        self, payload: bytes, peer: Tuple[str, int]
    ) -> Optional[DeliveryOutcome]:
        """
        Parse, format and deliver one datagram.

        All errors stop here. Returns the delivery outcome, or None when the
        message was dropped before delivery.
        """
        host, port = peer[0], peer[1]
        with self.tracer.start_as_current_span(
            "syslog.udp.message",
            attributes={
                "net.transport": "ip_udp",
                "net.peer.ip": host,
                "net.peer.port": port,
                "message.length": len(payload),
            },
        ):
            try:
                parsed = parse(payload)
            except ParseError as exc:
                self.logger.debug(
                    "Dropped unparsable syslog message",
                    extra={"host": host, "port": port, "error": str(exc)},
                )
                return None

            try:
                line = format_line(parsed, peer)
                self.logger.debug(
                    "Message: %s",
                    line.rstrip("\n"),
                    extra={"host": host, "port": port},
                )
                if self.semaphore is None:
                    return await self.forwarder.deliver(line)
                async with self.semaphore:
                    return await self.forwarder.deliver(line)
            except Exception:
                self.logger.exception(
                    "Unexpected error while processing syslog message",
                    extra={"host": host, "port": port},
                )
                return None

    async def shutdown(self, drain_timeout: float = 0) -> None:
        """
        Drain or cancel in-flight tasks.

        Args:
            drain_timeout: Seconds to wait for tasks to finish before
                cancelling whatever is left (0 cancels immediately).
        """
        if not self.tasks:
            return
        tasks = list(self.tasks)
        if drain_timeout > 0:
            self.logger.info(
                "Draining in-flight deliveries",
                extra={"pending": len(tasks), "timeout": drain_timeout},
            )
            _, tasks = await asyncio.wait(tasks, timeout=drain_timeout)
        if tasks:
            self.logger.info(
                "Cancelling in-flight deliveries", extra={"pending": len(tasks)}
            )
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
