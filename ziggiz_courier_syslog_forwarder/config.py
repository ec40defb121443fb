# -*- coding: utf-8 -*-

# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2025 Ziggiz Inc.
#
# This file is part of the ziggiz-courier-core-data-processing and is licensed under the
# Business Source License 1.1. You may not use this file except in
# compliance with the License. You may obtain a copy of the License at:
# https://github.com/ziggiz-courier/ziggiz-courier-core-data-processing/blob/main/LICENSE
# Configuration module for loading and validating the forwarder configuration

# Standard library imports
import logging

from pathlib import Path
from typing import Any, Dict, Optional, Union

# Third-party imports
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_CONFIG_PATH = "/etc/syslog2loggly.conf"
API_KEY_LENGTH = 36

logger = logging.getLogger("ziggiz_courier_syslog_forwarder.config")

# Keys accepted in the key=value file, mapped to Config fields
FILE_KEYS = {
    "apikey": "api_key",
    "api_key": "api_key",
    "port": "port",
    "host": "host",
    "loggly_url": "loggly_url",
    "max_attempts": "max_attempts",
    "retry_delay": "retry_delay",
    "http_timeout": "http_timeout",
    "max_concurrency": "max_concurrency",
    "drain_timeout": "drain_timeout",
    "log_level": "log_level",
    "tracing": "tracing",
}


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded or is invalid."""


class Config(BaseModel):
    """
    Configuration for the Ziggiz Courier Syslog Forwarder.

    Loaded once at startup and immutable afterwards, so it can be shared by
    every delivery task without locking.
    """

    model_config = ConfigDict(frozen=True)

    # Collector configuration
    api_key: str
    loggly_url: str = "https://logs.loggly.com"
    max_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=15.0, ge=0)
    http_timeout: float = Field(default=30.0, gt=0)

    # Listener configuration
    host: str = "0.0.0.0"
    port: int = Field(default=5140, ge=1, le=65535)

    # Task configuration
    max_concurrency: int = Field(
        default=0, ge=0  # Maximum concurrent deliveries (0 means unbounded)
    )
    drain_timeout: float = Field(
        default=0, ge=0  # Seconds to wait for in-flight deliveries at shutdown
    )

    # Logging and tracing configuration
    log_level: str = "ERROR"
    log_format: str = "%(asctime)s %(levelname)s %(name)s %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    tracing: str = "none"  # "none" or "console"

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that the API key has the length of a Loggly input token."""
        if len(v) != API_KEY_LENGTH:
            raise ValueError(
                f"Invalid API key: expected {API_KEY_LENGTH} characters, got {len(v)}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a valid Python logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v

    @field_validator("tracing")
    @classmethod
    def validate_tracing(cls, v: str) -> str:
        """Validate that the tracing mode is valid."""
        valid_modes = ["none", "console"]
        v = v.lower()
        if v not in valid_modes:
            raise ValueError(f"Invalid tracing mode: {v}. Must be one of {valid_modes}")
        return v


def parse_config_lines(text: str) -> Dict[str, str]:
    """
    Parse key=value lines.

    All whitespace is removed from each line and keys are case-insensitive.
    Blank lines, comments and unknown keys are skipped.
    """
    values: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = "".join(raw_line.split())
        if not line or line.startswith("#") or "=" not in line:
            continue
        keyword, _, value = line.partition("=")
        field = FILE_KEYS.get(keyword.lower())
        if field is None:
            logger.debug("Ignoring unknown configuration key", extra={"key": keyword})
            continue
        values[field] = value
    return values


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Config:
    """
    Load configuration from a key=value file.

    Args:
        config_path: Path to the configuration file (default: /etc/syslog2loggly.conf).
        overrides: Values that take precedence over the file (e.g. from the command line).

    Returns:
        A validated Config object.

    Raises:
        ConfigError: If the file cannot be read or the configuration is invalid.
    """
    config_file = Path(config_path or DEFAULT_CONFIG_PATH)
    try:
        with open(config_file, "r") as f:
            values: Dict[str, Any] = parse_config_lines(f.read())
    except OSError as e:
        raise ConfigError(
            f"Cannot read the configuration file {config_file}: {e}"
        ) from e

    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})

    if "api_key" not in values:
        raise ConfigError("Invalid or not found API key")

    try:
        return Config(**values)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration in {config_file}: {errors}") from e


def configure_logging(config: Optional[Config] = None, verbose: bool = False) -> None:
    """
    Configure logging for the forwarder.

    Args:
        config: The loaded configuration object, if any.
        verbose: Log everything at DEBUG level regardless of configuration.
    """
    # Reset logging configuration
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    log_format = config.log_format if config else Config.model_fields["log_format"].default
    date_format = (
        config.log_date_format
        if config
        else Config.model_fields["log_date_format"].default
    )
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, config.log_level if config else "ERROR", logging.ERROR)

    # Add console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    logging.root.setLevel(level)
    logging.root.addHandler(console_handler)

    # Set specific log levels for third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
