"""
canlog_cli

Command-line application for canlog-decoder: decodes a semicolon-delimited
CAN log into physical signal values using bit layouts from a YAML file.

Modules:
    - config: Logging setup, YAML configuration loading and base time parsing
    - metrics: Prometheus counters for a decode run
    - record_io: Reading log records and writing decoded rows
    - processing: Matching records to messages and decoding each pair
    - main: argparse entry point (``canlog-decode``)
"""

from ._version import VERSION
from .config import configure_logger, load_config, parse_base_time
from .processing import ProcessingSummary, process_records, run_decode

__all__ = [
    "VERSION",
    "configure_logger",
    "load_config",
    "parse_base_time",
    "ProcessingSummary",
    "process_records",
    "run_decode",
]
