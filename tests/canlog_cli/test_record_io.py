"""
Tests for canlog_cli.record_io: parsing semicolon-delimited log rows into
records (with skip rules) and writing decoded rows with the fixed header.
"""

import logging
from datetime import datetime, timezone

import pytest

from canlog_cli.record_io import OUTPUT_HEADER, RecordWriter, read_records
from common.exceptions import InputError, OutputError
from common.models import DecodedRow

LOG_TEXT = """\
Offset;Channel;Dir;ID;DLC;Data
0,000;1;Rx;1A0;8;40 1F 5A 00 00 00 00 00

0.010;1;Rx; 2b4 ;2; 0F A3
abc;1;Rx;1A0;8;00
0,120;1;Rx;1A0
1.5;1;Rx;;8;00
2,25;1;Rx;0x3C8;4;01 02 03 04;extra;columns
"""


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "canlog.csv"
    path.write_text(LOG_TEXT, encoding="utf-8")
    return str(path)


def _decoded_row(**overrides):
    values = dict(
        timestamp=datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc),
        can_id="1A0",
        dlc=2,
        start_bit=0,
        bit_length=8,
        hex_value="12 34",
        bin="0001001000110100",
        bin_converted="00010010",
        dec=18,
        value=18.0,
        message="Speed",
    )
    values.update(overrides)
    return DecodedRow(**values)


def test_read_records_parses_usable_rows(log_file):
    records = read_records(log_file)

    assert [(r.offset, r.can_id, r.hex_value) for r in records] == [
        (0.0, "1A0", "40 1F 5A 00 00 00 00 00"),
        (0.01, "2B4", "0F A3"),
        (2.25, "3C8", "01 02 03 04"),
    ]
    assert [r.line for r in records] == [2, 4, 8]


def test_read_records_logs_skipped_rows(log_file, caplog):
    with caplog.at_level(logging.DEBUG, logger="canlog_cli.record_io"):
        read_records(log_file)

    assert "cannot parse offset 'Offset'" in caplog.text
    assert "cannot parse offset 'abc'" in caplog.text
    assert "Line 6: 4 fields, need 6" in caplog.text
    assert "Line 7: invalid record" in caplog.text


def test_read_records_counts_skips(log_file, sample_value):
    before_short = sample_value("canlog_records_skipped_total", {"reason": "short_row"})
    before_offset = sample_value("canlog_records_skipped_total", {"reason": "bad_offset"})
    before_read = sample_value("canlog_records_read_total")

    read_records(log_file)

    assert sample_value("canlog_records_skipped_total", {"reason": "short_row"}) == before_short + 1
    assert (
        sample_value("canlog_records_skipped_total", {"reason": "bad_offset"}) == before_offset + 2
    )
    assert sample_value("canlog_records_read_total") == before_read + 3


def test_read_records_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    assert read_records(str(path)) == []


def test_read_records_missing_file(tmp_path):
    with pytest.raises(InputError, match="Cannot read data file"):
        read_records(str(tmp_path / "missing.csv"))


def test_read_records_undecodable_file(tmp_path):
    path = tmp_path / "latin1.csv"
    path.write_bytes("0;1;Rx;1A0;8;00;Überdruck\n".encode("latin-1"))
    with pytest.raises(InputError):
        read_records(str(path))
    assert read_records(str(path), encoding="latin-1")[0].can_id == "1A0"


def test_record_writer_writes_header_and_rows(tmp_path):
    path = tmp_path / "nested" / "dir" / "out.csv"

    with RecordWriter(str(path)) as writer:
        writer.write_row(_decoded_row())
        writer.write_row(_decoded_row(dec=52, value=104.5, message="Speed;scaled"))

    assert writer.rows_written == 2
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == ";".join(OUTPUT_HEADER)
    assert lines[0] == "Time;ID;DLC;StartBit;Length;HEX;BIN;BIN_Converted;DEC;Value;Message"
    assert lines[1] == (
        "2024-05-01T12:00:00.000+00:00;1A0;2;0;8;12 34;0001001000110100;00010010;18;18.000000;Speed"
    )
    # a delimiter inside a field is quoted
    assert lines[2].endswith(';52;104.500000;"Speed;scaled"')


def test_record_writer_header_only(tmp_path):
    path = tmp_path / "out.csv"
    with RecordWriter(str(path)):
        pass
    assert path.read_text(encoding="utf-8").splitlines() == [";".join(OUTPUT_HEADER)]


def test_record_writer_cannot_create(tmp_path):
    with pytest.raises(OutputError, match="Cannot create output file"):
        with RecordWriter(str(tmp_path)):
            pass


def test_record_writer_not_open(tmp_path):
    writer = RecordWriter(str(tmp_path / "out.csv"))
    with pytest.raises(OutputError, match="not open"):
        writer.write_row(_decoded_row())
