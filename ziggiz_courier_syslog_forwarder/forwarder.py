# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
"""
HTTPS forwarder that posts formatted syslog lines to a Loggly input (asyncio, httpx).
"""
# Standard library imports
import asyncio
import enum
import logging

from typing import Any, Awaitable, Callable, Optional

# Third-party imports
import httpx

# Local/package imports
from ziggiz_courier_syslog_forwarder import __version__

DEFAULT_LOGGLY_URL = "https://logs.loggly.com"
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 15.0
DEFAULT_HTTP_TIMEOUT = 30.0
USER_AGENT = f"ziggiz-courier-syslog-forwarder/{__version__}"


class DeliveryOutcome(enum.Enum):
    DELIVERED = "delivered"
    EXHAUSTED = "exhausted"


class DeliveryError(Exception):
    """Raised when a single delivery attempt does not get an "ok" response."""


class LogglyForwarder:
    """
    Async forwarder that delivers one line per request to a Loggly input.

    A single pooled ``httpx.AsyncClient`` is shared by every concurrent
    delivery. Each call to :meth:`deliver` makes up to ``max_attempts``
    sequential attempts, sleeping ``retry_delay`` seconds between failed ones,
    and then gives up: delivery is best effort, at most once.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_LOGGLY_URL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.sleep = sleep or asyncio.sleep
        self.logger = logging.getLogger("ziggiz_courier_syslog_forwarder.forwarder")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/inputs/{self.api_token}"

    async def post(self, line: str) -> None:
        """
        Make one delivery attempt.

        Raises:
            DeliveryError: On a transport error, a non-2xx status, a body that
                is not a JSON object, or a ``response`` field other than "ok".
        """
        try:
            response = await self.client.post(
                self.endpoint,
                content=line.encode("utf-8"),
                headers={"Content-Type": "text/plain", "User-Agent": USER_AGENT},
            )
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Request failed: {exc}") from exc

        if not response.is_success:
            raise DeliveryError(f"Unexpected HTTP status {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise DeliveryError("Response body is not valid JSON") from exc

        # Template: {"response": "ok"}
        status = body.get("response") if isinstance(body, dict) else None
        if status != "ok":
            raise DeliveryError(f"Collector answered {status!r}")

    async def deliver(self, line: str) -> DeliveryOutcome:
        """
        Deliver a formatted line, retrying failed attempts.

        Args:
            line: The newline-terminated line to post.

        Returns:
            DeliveryOutcome.DELIVERED on the first "ok", otherwise
            DeliveryOutcome.EXHAUSTED once every attempt has failed.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.post(line)
            except DeliveryError as exc:
                if attempt >= self.max_attempts:
                    self.logger.warning(
                        "Dropping event after exhausting delivery attempts",
                        extra={"attempts": attempt, "error": str(exc)},
                    )
                    return DeliveryOutcome.EXHAUSTED
                self.logger.warning(
                    "Cannot post event, retrying",
                    extra={
                        "attempt": attempt,
                        "retry_delay": self.retry_delay,
                        "error": str(exc),
                    },
                )
                await self.sleep(self.retry_delay)
            else:
                self.logger.debug("Event posted", extra={"attempt": attempt})
                return DeliveryOutcome.DELIVERED
        return DeliveryOutcome.EXHAUSTED

    async def aclose(self) -> None:
        await self.client.aclose()
