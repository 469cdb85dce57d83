from datetime import datetime, timezone

import pytest
from prometheus_client import REGISTRY

from common.models import DecoderConfig, LogRecord, MessageDefinition


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keeps LOG_LEVEL / CANLOG_CONFIG from the developer's shell out of the tests."""
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("CANLOG_CONFIG", raising=False)


@pytest.fixture
def base_time():
    """Fixed, timezone-aware base time for offset arithmetic."""
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_record():
    """Factory for LogRecord instances with sensible defaults."""

    def _make(can_id="1A0", hex_value="12 34", offset=0.0, line=1):
        return LogRecord(offset=offset, can_id=can_id, hex_value=hex_value, line=line)

    return _make


@pytest.fixture
def make_config():
    """Factory for DecoderConfig instances built from message dicts."""

    def _make(*messages, **overrides):
        values = {
            "data_file": "data.csv",
            "localtime": "12:00:00",
            "output_file": "out.csv",
            "messages": [MessageDefinition(**m) for m in messages],
        }
        values.update(overrides)
        return DecoderConfig(**values)

    return _make


class RowCollector:
    """Stands in for RecordWriter; keeps rows in memory."""

    def __init__(self):
        self.rows = []

    def write_row(self, row):
        self.rows.append(row)


@pytest.fixture
def collector():
    return RowCollector()


@pytest.fixture
def sample_value():
    """Reads a metric sample from the default registry, None counted as 0."""

    def _value(name, labels=None):
        return REGISTRY.get_sample_value(name, labels or {}) or 0.0

    return _value
