"""
Defines Prometheus metrics for a canlog-decode run.

This module centralizes the Counter and Histogram metrics used to account for
record reading, per-pair decoding and row output. A run can dump them with
``write_metrics`` for a node-exporter textfile collector.
"""

import logging

from prometheus_client import REGISTRY, Counter, Histogram, write_to_textfile

from common.exceptions import OutputError

logger = logging.getLogger(__name__)

RECORDS_READ = Counter("canlog_records_read_total", "Log rows parsed into records")
RECORDS_SKIPPED = Counter(
    "canlog_records_skipped_total", "Log rows skipped by the reader", ["reason"]
)
FRAME_COUNTER = Counter("canlog_frames_total", "(message, record) pairs attempted")
SUCCESSFUL_DECODES = Counter("canlog_successful_decodes_total", "Total successful decodes")
DECODE_ERRORS = Counter("canlog_decode_errors_total", "Pairs skipped for invalid payloads")
RANGE_ERRORS = Counter("canlog_range_errors_total", "Pairs skipped for out-of-range bit spans")
LOOKUP_MISSES = Counter(
    "canlog_lookup_misses_total", "Records whose ID matches no configured message"
)
ROWS_WRITTEN = Counter("canlog_rows_written_total", "Output rows written")
FRAME_LATENCY = Histogram("canlog_frame_latency_seconds", "Time spent decoding one pair")


def write_metrics(path: str) -> None:
    """Write the default registry to ``path`` in text exposition format."""
    try:
        write_to_textfile(path, REGISTRY)
    except OSError as e:
        raise OutputError(f"Cannot write metrics file {path}: {e}") from e
    logger.info(f"Wrote metrics to {path}")
