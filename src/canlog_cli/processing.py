"""
Drives the decoding of a CAN log against the configured message definitions.

This module is responsible for:
- Matching log records to message definitions by normalized CAN ID.
- Decoding each record's hex payload, validated as a python-can Message
  when the ID is a numeric arbitration ID.
- Running the bit-field extractor and value transform for each
  (message, record) pair and building the output row.
- Isolating per-pair failures: invalid payloads and out-of-range spans are
  logged and skipped, the run continues.
- Recording run metrics.
"""

import logging
import re
import time
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Protocol, Tuple

import can
from pydantic import BaseModel

from bitfield_decoder import bytes_to_bits, decode_field, hex_to_bytes
from common.exceptions import DecodeError, RangeError
from common.models import DecodedRow, DecoderConfig, LogRecord, MessageDefinition

from .config import parse_base_time
from .metrics import (
    DECODE_ERRORS,
    FRAME_COUNTER,
    FRAME_LATENCY,
    LOOKUP_MISSES,
    RANGE_ERRORS,
    SUCCESSFUL_DECODES,
)
from .record_io import RecordWriter, read_records

logger = logging.getLogger(__name__)

MAX_STANDARD_ID = 0x7FF

_ARBITRATION_ID_RE = re.compile(r"^([0-9A-F]+)(X?)$")


class RowSink(Protocol):
    def write_row(self, row: DecodedRow) -> None: ...


class ProcessingSummary(BaseModel):
    """Counts for one decode run."""

    records: int = 0
    rows_written: int = 0
    decode_errors: int = 0
    range_errors: int = 0
    unmatched_records: int = 0


def parse_arbitration_id(can_id: str) -> Optional[Tuple[int, bool]]:
    """
    Numeric arbitration ID and extended flag for a normalized CAN ID.

    A trailing ``X`` (as in ``18FF50E5x``) marks an extended ID; IDs above
    0x7FF are extended either way. Returns None for IDs that are not hex,
    such as plain labels; those are matched as text only.
    """
    match = _ARBITRATION_ID_RE.match(can_id)
    if not match:
        return None
    arbitration_id = int(match.group(1), 16)
    return arbitration_id, bool(match.group(2)) or arbitration_id > MAX_STANDARD_ID


def build_frame(record: LogRecord) -> can.Message:
    """
    Decode a record's payload into a python-can Message.

    Payloads longer than 8 bytes are treated as CAN FD.

    Raises:
        DecodeError: if the payload is not hex, the ID is not hex, or the
            resulting frame is not a valid CAN frame.
    """
    data = hex_to_bytes(record.hex_value)
    arbitration = parse_arbitration_id(record.can_id)
    if arbitration is None:
        raise DecodeError(f"CAN ID '{record.can_id}' is not hexadecimal")
    arbitration_id, is_extended_id = arbitration
    try:
        return can.Message(
            timestamp=record.offset,
            arbitration_id=arbitration_id,
            is_extended_id=is_extended_id,
            data=data,
            is_fd=len(data) > 8,
            check=True,
        )
    except ValueError as e:
        raise DecodeError(f"invalid CAN frame for ID {record.can_id}: {e}") from e


def record_payload(record: LogRecord) -> bytes:
    """
    Payload bytes of a record.

    Records with a hex ID go through ``build_frame`` so the frame is checked
    by python-can. For any other ID only the hex payload is decoded.
    """
    if parse_arbitration_id(record.can_id) is None:
        logger.debug(
            f"ID {record.can_id} line {record.line}: not a numeric CAN ID, frame not checked"
        )
        return hex_to_bytes(record.hex_value)
    return bytes(build_frame(record).data)


def decode_record(
    record: LogRecord, message: MessageDefinition, base_time: datetime
) -> DecodedRow:
    """
    Decode one record against one message definition.

    The span must fit both the actual payload and the DLC declared for the
    message.

    Raises:
        DecodeError: for an invalid payload.
        RangeError: for a span that does not fit.
    """
    frame = record_payload(record)
    spec = message.field_spec

    if len(frame) != message.dlc:
        logger.debug(
            f"ID {record.can_id} line {record.line}: payload has {len(frame)} bytes, "
            f"declared DLC is {message.dlc}"
        )

    field = decode_field(frame, spec)
    if spec.start_bit + spec.bit_length > message.dlc * 8:
        raise RangeError(
            f"bits {spec.start_bit}..{spec.start_bit + spec.bit_length - 1} exceed "
            f"declared DLC {message.dlc}"
        )

    return DecodedRow(
        timestamp=base_time + timedelta(seconds=record.offset),
        can_id=record.can_id,
        dlc=message.dlc,
        start_bit=message.start_bit,
        bit_length=message.bit_length,
        hex_value=record.hex_value,
        bin=bytes_to_bits(frame, spec.byte_order),
        bin_converted=field.bits,
        dec=field.raw,
        value=field.value,
        message=message.message,
    )


def process_records(
    records: List[LogRecord],
    config: DecoderConfig,
    writer: RowSink,
    base_time: datetime,
) -> ProcessingSummary:
    """
    Decode every (message, matching record) pair and hand the rows to ``writer``.

    Rows come out grouped by message definition in config order, and by
    record in input order within a message. A record that matches several
    definitions yields one row per definition; a record that matches none
    yields nothing.
    """
    summary = ProcessingSummary(records=len(records))

    records_by_id: Dict[str, List[LogRecord]] = defaultdict(list)
    for record in records:
        records_by_id[record.can_id].append(record)

    configured_ids = {message.can_id for message in config.messages}
    for can_id, matched in records_by_id.items():
        if can_id not in configured_ids:
            LOOKUP_MISSES.inc(len(matched))
            summary.unmatched_records += len(matched)

    for message in config.messages:
        for record in records_by_id.get(message.can_id, []):
            FRAME_COUNTER.inc()
            start_time = time.perf_counter()
            try:
                row = decode_record(record, message, base_time)
            except DecodeError as e:
                logger.warning(
                    f"Decode error for ID {record.can_id} (line {record.line}, "
                    f"'{message.message}'): {e}"
                )
                DECODE_ERRORS.inc()
                summary.decode_errors += 1
                continue
            except RangeError as e:
                logger.warning(
                    f"Bit range error for ID {record.can_id} (line {record.line}, "
                    f"'{message.message}'): {e}"
                )
                RANGE_ERRORS.inc()
                summary.range_errors += 1
                continue
            finally:
                FRAME_LATENCY.observe(time.perf_counter() - start_time)

            writer.write_row(row)
            SUCCESSFUL_DECODES.inc()
            summary.rows_written += 1

    return summary


def run_decode(
    config: DecoderConfig,
    data_file: Optional[str] = None,
    output_file: Optional[str] = None,
) -> ProcessingSummary:
    """
    Full batch run: read the log, decode it, write the enriched CSV.

    ``data_file`` and ``output_file`` override the paths from ``config``.

    Raises:
        ConfigError, InputError, OutputError: run-level failures.
    """
    data_path = data_file or config.data_file
    output_path = output_file or config.output_file

    base_time = parse_base_time(config.localtime, config.date, config.timezone)
    logger.info(f"Base time for offsets: {base_time.isoformat()}")

    records = read_records(data_path)

    with RecordWriter(output_path) as writer:
        summary = process_records(records, config, writer, base_time)

    logger.info(
        f"Wrote {summary.rows_written} rows to {output_path} "
        f"({summary.records} records, {summary.unmatched_records} unmatched, "
        f"{summary.decode_errors} decode errors, {summary.range_errors} range errors)"
    )
    return summary
