# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Tests for the canonical line formatter

# Standard library imports
import datetime
import re
import time

# Third-party imports
import pytest

# Local/package imports
from ziggiz_courier_syslog_forwarder.formatter import (
    extract_source_address,
    format_line,
)
from ziggiz_courier_syslog_forwarder.parser import parse

NOW = datetime.datetime(2024, 3, 5, 7, 8, 9)


class TestExtractSourceAddress:
    """Tests for the upstream location marker lookup."""

    @pytest.mark.unit
    def test_marker_present(self):
        body = "sshd: login failed Location: (Office, Paris) 192.168.10.4"
        assert extract_source_address(body) == "192.168.10.4"

    @pytest.mark.unit
    def test_marker_absent(self):
        assert extract_source_address("plain message 10.0.0.1") is None

    @pytest.mark.unit
    def test_marker_without_address(self):
        assert extract_source_address("Location: (Office) unknown") is None

    @pytest.mark.unit
    def test_last_marker_wins(self):
        body = "Location: (A) 10.0.0.1 relayed Location: (B) 10.0.0.2"
        assert extract_source_address(body) == "10.0.0.2"

    @pytest.mark.unit
    def test_address_must_end_at_word_boundary(self):
        assert extract_source_address("Location: (x) 10.0.0.1234") is None
        assert extract_source_address("Location: (x) 10.0.0.123.") == "10.0.0.123"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "body",
        ["Location: (" * 60 + ") " * 400, "Location: ()" * 126, "Location: (" * 130],
    )
    def test_hostile_body_is_scanned_quickly(self, body):
        start = time.perf_counter()
        extract_source_address(body)
        assert time.perf_counter() - start < 0.05


class TestFormatLine:
    """Tests for format_line()."""

    @pytest.mark.unit
    def test_round_trip_line(self):
        line = format_line(parse(b"<34>host message text"), ("10.1.2.3", 514), now=NOW)
        assert line == (
            "2024-03-05T07:08:09 10.1.2.3 "
            "facility=auth,severity=critical host message text\n"
        )

    @pytest.mark.unit
    def test_marker_address_preferred_over_peer(self):
        parsed = parse(b"<157>event Location: (HQ) 172.16.0.9")
        line = format_line(parsed, ("10.1.2.3", 514), now=NOW)
        assert line.startswith("2024-03-05T07:08:09 172.16.0.9 ")
        assert "facility=local7,severity=notice" in line

    @pytest.mark.unit
    def test_unknown_source_without_peer(self):
        line = format_line(parse(b"<14>msg"), None, now=NOW)
        assert line == "2024-03-05T07:08:09 - facility=user,severity=info msg\n"

    @pytest.mark.unit
    def test_control_characters_replaced(self):
        line = format_line(parse(b"<14>tab\there\x00nul\r"), ("10.0.0.1", 1), now=NOW)
        assert line.endswith("tab here nul\n")
        assert line.count("\n") == 1
        assert not re.search(r"[\x00-\x09\x0b-\x1f\x7f]", line)

    @pytest.mark.unit
    def test_unicode_line_breaks_and_c1_controls_replaced(self):
        parsed = parse("<14>a\u0085b\u2028c\x9bd\u2029e".encode("utf-8"))
        line = format_line(parsed, ("10.0.0.1", 1), now=NOW)
        assert line.endswith(" a b c d e\n")
        for char in ("\u0085", "\u2028", "\u2029", "\x9b"):
            assert char not in line

    @pytest.mark.unit
    def test_uses_current_local_time(self):
        line = format_line(parse(b"<14>msg"), ("10.0.0.1", 1))
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2} ", line)
