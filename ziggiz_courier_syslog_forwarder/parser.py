# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Syslog priority header parser
#
# Splits a raw datagram into its <PRI> value and message body and decomposes
# the priority into facility and severity codes.

# Standard library imports
import re

# Third-party imports
from pydantic import BaseModel, ConfigDict

# Local/package imports
from ziggiz_courier_syslog_forwarder.catalog import FACILITIES

# "<34>remainder"; the body stops at the first line feed
PRIORITY_PATTERN = re.compile(r"<([0-9]+)>([^\n]*)")


class ParseError(ValueError):
    """Raised when a datagram does not carry a usable syslog priority header."""


class ParsedMessage(BaseModel):
    """
    A syslog message split into its priority components and free-text body.

    Attributes:
        priority (int): The raw <PRI> value.
        facility (int): Facility code, always a valid catalog index.
        severity (int): Severity code (0-7).
        body (str): The text immediately following the closing bracket.
    """

    model_config = ConfigDict(frozen=True)

    priority: int
    facility: int
    severity: int
    body: str


def decompose_priority(priority: int) -> tuple:
    """Return (facility, severity) for a syslog priority value."""
    severity = priority % 8
    facility = (priority - severity) // 8
    return facility, severity


def parse(payload: bytes) -> ParsedMessage:
    """
    Parse a raw syslog datagram.

    Args:
        payload: The datagram bytes as received from the socket.

    Returns:
        The parsed message.

    Raises:
        ParseError: If the payload does not start with a bracketed decimal
            priority, or the priority maps to an unknown facility.
    """
    text = payload.decode("utf-8", errors="replace")
    match = PRIORITY_PATTERN.match(text)
    if not match:
        raise ParseError("Missing or malformed priority header")

    priority = int(match.group(1))
    facility, severity = decompose_priority(priority)
    if facility >= len(FACILITIES):
        raise ParseError(f"Priority {priority} maps to unknown facility {facility}")

    return ParsedMessage(
        priority=priority,
        facility=facility,
        severity=severity,
        body=match.group(2),
    )
