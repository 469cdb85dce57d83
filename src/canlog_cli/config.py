"""
Handles application configuration for the canlog-decode CLI.

This module is responsible for:
- Configuring logging for the application.
- Determining the path of the YAML configuration file, considering the
  command line, the CANLOG_CONFIG environment variable and the default.
- Loading and validating the YAML configuration into a DecoderConfig.
- Parsing the configured base local time into an aware datetime.
"""

import logging
import os
import re
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

import coloredlogs
import yaml
from pydantic import ValidationError

from common.exceptions import ConfigError
from common.models import DecoderConfig

# ── Logging Configuration ──────────────────────────────────────────────────
module_logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"
LOG_FORMAT = "%(asctime)s %(name)s[%(process)d] %(levelname)s %(message)s"

_LOCALTIME_RE = re.compile(r"^(\d{1,2}):(\d{2}):(\d{2})(?:\.(\d{1,6}))?$")


def configure_logger(level: Optional[str] = None):
    """
    Install coloredlogs on the root logger.

    The level comes from ``level`` if given, else the LOG_LEVEL environment
    variable, else INFO. An unknown level name logs a warning and uses INFO.
    """
    root_logger = logging.getLogger()
    log_level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    log_level_int = getattr(logging, log_level_str, None)
    if not isinstance(log_level_int, int):
        module_logger.warning(f"Invalid LOG_LEVEL '{log_level_str}'. Defaulting to INFO.")
        log_level_int = logging.INFO

    root_logger.setLevel(logging.DEBUG)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    coloredlogs.install(
        level=log_level_int,
        fmt=LOG_FORMAT,
        logger=root_logger,
        reconfigure=True,
    )

    return root_logger


# ── Config file ────────────────────────────────────────────────────────────
def get_config_path(cli_path: Optional[str] = None) -> str:
    """
    Path of the YAML configuration: the command-line value if given, else
    CANLOG_CONFIG, else ``config.yaml`` in the working directory.
    """
    if cli_path:
        return cli_path
    env_path = os.getenv("CANLOG_CONFIG")
    if env_path:
        module_logger.info(f"Using config path from CANLOG_CONFIG: {env_path}")
        return env_path
    return DEFAULT_CONFIG_PATH


def load_config(config_path: str) -> DecoderConfig:
    """
    Read and validate the YAML configuration file.

    Raises:
        ConfigError: if the file cannot be read, is not valid YAML, is not a
            mapping, or fails validation.
    """
    try:
        with open(config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse config file {config_path}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping at top level")

    try:
        config = DecoderConfig(**raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    module_logger.info(
        f"Loaded {len(config.messages)} message definitions from {config_path} "
        f"(data: {config.data_file}, output: {config.output_file})"
    )
    if not config.messages:
        module_logger.warning(f"No messages configured in {config_path}; output will be empty")
    return config


# ── Base time ──────────────────────────────────────────────────────────────
def parse_base_time(
    localtime: str,
    on_date: Optional[date] = None,
    timezone: Optional[str] = None,
) -> datetime:
    """
    Combine ``HH:MM:SS[.ffffff]`` with a date and zone into an aware datetime.

    Args:
        localtime: Wall-clock time of log offset zero.
        on_date: Calendar date; today (in the target zone) when omitted.
        timezone: IANA zone name; the system local zone when omitted.

    Raises:
        ConfigError: if ``localtime`` or ``timezone`` is invalid.
    """
    match = _LOCALTIME_RE.match(localtime.strip())
    if not match:
        raise ConfigError(f"Invalid localtime '{localtime}', expected HH:MM:SS[.fff]")
    hours, minutes, seconds, fraction = match.groups()
    microseconds = int((fraction or "0").ljust(6, "0"))

    try:
        tzinfo = ZoneInfo(timezone) if timezone else None
    except (KeyError, ValueError) as e:
        raise ConfigError(f"Unknown timezone '{timezone}'") from e

    if on_date is None:
        on_date = datetime.now(tzinfo).date()

    try:
        wall_clock = time(int(hours), int(minutes), int(seconds), microseconds)
    except ValueError as e:
        raise ConfigError(f"Invalid localtime '{localtime}': {e}") from e

    if tzinfo is None:
        # local offset in effect on that date, not today's
        return datetime.combine(on_date, wall_clock).astimezone()
    return datetime.combine(on_date, wall_clock, tzinfo=tzinfo)
