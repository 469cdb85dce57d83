"""
common

This package contains shared models and exceptions used across the canlog-decoder project.

Modules:
    - models: Pydantic models shared by the decoder library and the CLI
    - exceptions: The CanLogError hierarchy
"""

from .exceptions import (
    CanLogError,
    ConfigError,
    DecodeError,
    InputError,
    OutputError,
    RangeError,
)
from .models import (
    ByteOrder,
    DecodedRow,
    DecoderConfig,
    ExtractedField,
    FieldSpec,
    LogRecord,
    MessageDefinition,
    normalize_can_id,
)

__all__ = [
    "ByteOrder",
    "DecodedRow",
    "DecoderConfig",
    "ExtractedField",
    "FieldSpec",
    "LogRecord",
    "MessageDefinition",
    "normalize_can_id",
    "CanLogError",
    "ConfigError",
    "DecodeError",
    "InputError",
    "OutputError",
    "RangeError",
]
