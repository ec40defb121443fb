# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Detach the forwarder from its controlling terminal

# Standard library imports
import os
import sys


class DaemonizeError(Exception):
    """Raised when the process cannot detach itself."""


def daemonize(workdir: str = "/tmp") -> None:
    """
    Detach the current process.

    Forks once (the parent exits with status 0), starts a new session,
    changes to ``workdir`` and points the standard streams at /dev/null.

    Raises:
        DaemonizeError: If fork, setsid or chdir fails.
    """
    try:
        pid = os.fork()
    except OSError as e:
        raise DaemonizeError(f"Cannot fork: {e}") from e
    if pid:
        os._exit(0)

    try:
        os.setsid()
    except OSError as e:
        raise DaemonizeError(f"setsid: {e}") from e

    try:
        os.chdir(workdir)
    except OSError as e:
        raise DaemonizeError(f"Cannot chdir to {workdir}: {e}") from e

    sys.stdout.flush()
    sys.stderr.flush()
    devnull = os.open(os.devnull, os.O_RDWR)
    for stream in (sys.stdin, sys.stdout, sys.stderr):
        os.dup2(devnull, stream.fileno())
    os.close(devnull)
