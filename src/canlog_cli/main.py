#!/usr/bin/env python3
"""
Main entry point for the canlog-decode command.

Loads the YAML configuration, decodes the configured signals out of a
semicolon-delimited CAN log and writes the enriched CSV. Run-level failures
(configuration, input, output) are logged and turn into exit status 1;
per-record failures are logged by the pipeline and do not stop the run.
"""

import argparse
import logging
import sys
from typing import List, Optional

from common.exceptions import CanLogError

from ._version import VERSION
from .config import configure_logger, get_config_path, load_config
from .metrics import write_metrics
from .processing import run_decode

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canlog-decode",
        description="Decode CAN payloads in a semicolon-delimited log into signal values.",
    )
    parser.add_argument(
        "--config",
        help="Path to the YAML configuration (default: $CANLOG_CONFIG or config.yaml)",
    )
    parser.add_argument("--data-file", help="Override the data_file from the configuration")
    parser.add_argument("--output", help="Override the output_file from the configuration")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--metrics-file",
        help="Write run counters in Prometheus text format to this path",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logger(args.log_level)

    config_path = get_config_path(args.config)
    try:
        config = load_config(config_path)
        run_decode(config, data_file=args.data_file, output_file=args.output)
        if args.metrics_file:
            write_metrics(args.metrics_file)
    except CanLogError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
