# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Syslog facility and severity name tables


FACILITIES = (
    "kernel",
    "user",
    "mail",
    "daemon",
    "auth",
    "syslog",
    "lpr",
    "news",
    "uucp",
    "cron",
    "authpriv",
    "ftp",
    "local0",
    "local1",
    "local2",
    "local3",
    "local4",
    "local5",
    "local6",
    "local7",
)

SEVERITIES = (
    "emergency",
    "alert",
    "critical",
    "error",
    "warning",
    "notice",
    "info",
    "debug",
)


def facility_name(code: int) -> str:
    """Return the facility name for a facility code (0-19)."""
    if not 0 <= code < len(FACILITIES):
        raise ValueError(f"Unknown facility code: {code}")
    return FACILITIES[code]


def severity_name(code: int) -> str:
    """Return the severity name for a severity code (0-7)."""
    if not 0 <= code < len(SEVERITIES):
        raise ValueError(f"Unknown severity code: {code}")
    return SEVERITIES[code]
