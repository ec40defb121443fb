# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Canonical line formatter for forwarded syslog messages

# Standard library imports
import datetime
import re

from typing import Optional, Tuple

# Local/package imports
from ziggiz_courier_syslog_forwarder.catalog import facility_name, severity_name
from ziggiz_courier_syslog_forwarder.parser import ParsedMessage

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Upstream devices embed the originating address as "Location: (...) a.b.c.d"
SOURCE_MARKER_PATTERN = re.compile(
    r"Location: \([^)]*\) (\d{1,3}(?:\.\d{1,3}){3})\b", re.ASCII
)
# C0, DEL, C1 and the Unicode line/paragraph separators
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x1f\x7f-\x9f\u2028\u2029]")

UNKNOWN_SOURCE = "-"


def extract_source_address(body: str) -> Optional[str]:
    """Return the IPv4 address following the upstream location marker, if any."""
    # The last marker wins
    matches = SOURCE_MARKER_PATTERN.findall(body)
    if matches:
        return matches[-1]
    return None


def format_line(
    parsed: ParsedMessage,
    peer_address: Optional[Tuple] = None,
    now: Optional[datetime.datetime] = None,
) -> str:
    """
    Build the line forwarded to the collector.

    The layout is ``<timestamp> <source> facility=<name>,severity=<name> <body>``
    terminated by a single newline. The timestamp is local wall-clock time at
    formatting, not the time carried by the message. The source is the address
    embedded after the location marker, falling back to the datagram sender.

    Args:
        parsed: The parsed syslog message.
        peer_address: The (host, port) the datagram came from.
        now: Override for the current local time.

    Returns:
        The formatted, newline-terminated line.
    """
    timestamp = (now or datetime.datetime.now()).strftime(TIMESTAMP_FORMAT)

    source = extract_source_address(parsed.body)
    if source is None:
        source = peer_address[0] if peer_address else UNKNOWN_SOURCE

    body = CONTROL_CHARS_PATTERN.sub(" ", parsed.body.rstrip("\r"))

    return (
        f"{timestamp} {source} "
        f"facility={facility_name(parsed.facility)},"
        f"severity={severity_name(parsed.severity)} {body}\n"
    )
