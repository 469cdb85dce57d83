"""
Reading of raw CAN log rows and writing of decoded rows.

Both sides are semicolon-delimited text. Input rows carry the time offset in
column 0, the CAN ID in column 3 and the hex payload in column 5; other
columns are ignored. Output rows follow ``OUTPUT_HEADER``.
"""

import csv
import logging
import os
from typing import List, Optional

from pydantic import ValidationError

from common.exceptions import InputError, OutputError
from common.models import DecodedRow, LogRecord

from .metrics import RECORDS_READ, RECORDS_SKIPPED, ROWS_WRITTEN

logger = logging.getLogger(__name__)

DELIMITER = ";"
MIN_FIELDS = 6
OFFSET_COLUMN = 0
ID_COLUMN = 3
HEX_COLUMN = 5

OUTPUT_HEADER = [
    "Time",
    "ID",
    "DLC",
    "StartBit",
    "Length",
    "HEX",
    "BIN",
    "BIN_Converted",
    "DEC",
    "Value",
    "Message",
]


def read_records(path: str, encoding: str = "utf-8") -> List[LogRecord]:
    """
    Parse the input log into records, in file order.

    Blank rows are ignored. Rows with fewer than six fields, an offset that is
    not a number (a decimal comma is accepted) or an empty ID are skipped with a
    diagnostic.

    Raises:
        InputError: if the file cannot be opened or read.
    """
    records: List[LogRecord] = []
    try:
        with open(path, newline="", encoding=encoding) as f:
            reader = csv.reader(f, delimiter=DELIMITER)
            for row in reader:
                record = _parse_row(row, reader.line_num)
                if record is not None:
                    records.append(record)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InputError(f"Cannot read data file {path}: {e}") from e

    RECORDS_READ.inc(len(records))
    logger.info(f"Read {len(records)} records from {path}")
    return records


def _parse_row(row: List[str], line: int) -> Optional[LogRecord]:
    if not any(cell.strip() for cell in row):
        return None
    if len(row) < MIN_FIELDS:
        logger.debug(f"Line {line}: {len(row)} fields, need {MIN_FIELDS}; skipped")
        RECORDS_SKIPPED.labels(reason="short_row").inc()
        return None

    offset_text = row[OFFSET_COLUMN].strip()
    try:
        offset = float(offset_text.replace(",", "."))
    except ValueError:
        logger.warning(f"Line {line}: cannot parse offset '{offset_text}'; skipped")
        RECORDS_SKIPPED.labels(reason="bad_offset").inc()
        return None

    try:
        return LogRecord(
            offset=offset,
            can_id=row[ID_COLUMN],
            hex_value=row[HEX_COLUMN].strip(),
            line=line,
        )
    except ValidationError as e:
        logger.warning(f"Line {line}: invalid record ({e.errors()[0]['msg']}); skipped")
        RECORDS_SKIPPED.labels(reason="bad_id").inc()
        return None


class RecordWriter:
    """
    Context manager writing decoded rows to a semicolon-delimited file.

    The header row is written on entry; parent directories are created.
    Any failure to create or write the file raises ``OutputError``.
    """

    def __init__(self, path: str, encoding: str = "utf-8"):
        self.path = path
        self.encoding = encoding
        self.rows_written = 0
        self._file = None
        self._writer = None

    def __enter__(self):
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._file = open(self.path, "w", newline="", encoding=self.encoding)
            self._writer = csv.writer(self._file, delimiter=DELIMITER)
            self._writer.writerow(OUTPUT_HEADER)
        except OSError as e:
            self.close()
            raise OutputError(f"Cannot create output file {self.path}: {e}") from e
        return self

    def write_row(self, row: DecodedRow) -> None:
        if self._writer is None:
            raise OutputError(f"Output file {self.path} is not open")
        try:
            self._writer.writerow(row.to_csv_row())
        except OSError as e:
            raise OutputError(f"Cannot write to output file {self.path}: {e}") from e
        self.rows_written += 1
        ROWS_WRITTEN.inc()

    def close(self) -> None:
        if self._file is not None:
            try:
                self._file.close()
            finally:
                self._file = None
                self._writer = None

    def __exit__(self, exc_type, exc, tb):
        try:
            self.close()
        except OSError as e:
            if exc_type is None:
                raise OutputError(f"Cannot finish output file {self.path}: {e}") from e
            logger.error(f"Error closing {self.path} after failure: {e}")
        return False
