"""
common.models

Shared Pydantic models for use across canlog-decoder modules.

ByteOrder:
    Bit/byte numbering convention of a field: MSB (Motorola, network order) or
    LSB (Intel, little-endian).

FieldSpec / ExtractedField:
    The input and output of a single bit-field extraction.

MessageDefinition / DecoderConfig:
    The validated contents of the YAML configuration file.

LogRecord / DecodedRow:
    One parsed input row and one enriched output row.
"""

from datetime import date as date_type
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOCALTIME_PATTERN = r"^\d{1,2}:\d{2}:\d{2}(\.\d{1,6})?$"


class ByteOrder(str, Enum):
    """Byte order of a signal. The value is the tag used in config files."""

    MSB = "MSB"
    LSB = "LSB"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            tag = _BYTE_ORDER_ALIASES.get(value.strip().upper())
            if tag is not None:
                return cls(tag)
        return None


_BYTE_ORDER_ALIASES = {
    "MSB": "MSB",
    "MOTOROLA": "MSB",
    "BIG": "MSB",
    "BIG_ENDIAN": "MSB",
    "LSB": "LSB",
    "INTEL": "LSB",
    "LITTLE": "LSB",
    "LITTLE_ENDIAN": "LSB",
}


def normalize_can_id(value: Union[int, str]) -> str:
    """
    Canonical text form of a CAN ID: upper-case hex without a ``0x`` prefix.

    Integers (e.g. a YAML ``can_id: 0x1A0``, which PyYAML loads as 416) are
    rendered as hex; strings are stripped, de-prefixed and upper-cased.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid CAN ID: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"invalid CAN ID: {value!r}")
        return f"{value:X}"
    text = str(value).strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not text:
        raise ValueError("CAN ID must not be empty")
    return text.upper()


class FieldSpec(BaseModel):
    """
    Identifies one signal inside a frame.

    Attributes:
        start_bit (int): First bit of the field. For LSB this is the least
            significant bit of the field in little-endian numbering; for MSB it
            is the most significant bit, numbered as in the MSB bit string.
        bit_length (int): Field width in bits (1..64).
        byte_order (ByteOrder): Numbering convention.
        scale (float): Linear scale applied to the raw value.
        offset (float): Linear offset applied after scaling.

    Spans are not checked here: whether a field fits is a property of the frame
    it is applied to, and a misfit is reported per field as ``RangeError``.
    """

    model_config = ConfigDict(frozen=True)

    start_bit: int
    bit_length: int
    byte_order: ByteOrder = ByteOrder.MSB
    scale: float = 0.0
    offset: float = 0.0


class ExtractedField(BaseModel):
    """Result of applying a FieldSpec to a frame."""

    raw: int
    bits: str
    value: Union[int, float]


class MessageDefinition(BaseModel):
    """One ``messages`` entry of the configuration file."""

    can_id: str
    start_bit: int
    bit_length: int
    dlc: int = Field(8, ge=0, le=64)
    message: str = ""
    method: ByteOrder = ByteOrder.MSB
    scale: float = 0.0
    offset: float = 0.0

    @field_validator("can_id", mode="before")
    @classmethod
    def _normalize_can_id(cls, value):
        return normalize_can_id(value)

    @property
    def field_spec(self) -> FieldSpec:
        return FieldSpec(
            start_bit=self.start_bit,
            bit_length=self.bit_length,
            byte_order=self.method,
            scale=self.scale,
            offset=self.offset,
        )


class DecoderConfig(BaseModel):
    """
    DecoderConfig

    Validated contents of the YAML configuration file.

    Attributes:
        data_file (str): Path of the semicolon-delimited input log.
        localtime (str): Wall-clock time of the first log offset, ``HH:MM:SS[.fff]``.
        output_file (str): Path of the enriched CSV to write.
        messages (List[MessageDefinition]): Signal definitions, in output order.
        date (Optional[date]): Calendar date of ``localtime``; today when omitted.
        timezone (Optional[str]): IANA zone of ``localtime``; system zone when omitted.
    """

    data_file: str
    localtime: str = Field(pattern=LOCALTIME_PATTERN)
    output_file: str
    messages: List[MessageDefinition] = Field(default_factory=list)
    date: Optional[date_type] = None
    timezone: Optional[str] = None

    @field_validator("localtime", mode="before")
    @classmethod
    def _sexagesimal_localtime(cls, value):
        # PyYAML resolves an unquoted 12:30:05 as the base-60 integer 45005.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            whole = int(value)
            text = f"{whole // 3600:02d}:{whole // 60 % 60:02d}:{whole % 60:02d}"
            fraction = round(value - whole, 6)
            if fraction:
                text += f"{fraction:.6f}"[1:].rstrip("0")
            return text
        return value

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value):
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone {value!r}") from e
        return value


class LogRecord(BaseModel):
    """One usable row of the input log."""

    offset: float
    can_id: str
    hex_value: str
    line: int = 0

    @field_validator("can_id", mode="before")
    @classmethod
    def _normalize_can_id(cls, value):
        return normalize_can_id(value)


def _format_value(value: Union[int, float]) -> str:
    # unscaled fields stay exact up to 64 bits
    if isinstance(value, int):
        return f"{value}.000000"
    return f"{value:.6f}"


class DecodedRow(BaseModel):
    """One output row: a log record decoded against one message definition."""

    timestamp: datetime
    can_id: str
    dlc: int
    start_bit: int
    bit_length: int
    hex_value: str
    bin: str
    bin_converted: str
    dec: int
    value: Union[int, float]
    message: str

    def to_csv_row(self) -> List[str]:
        return [
            self.timestamp.isoformat(timespec="milliseconds"),
            self.can_id,
            str(self.dlc),
            str(self.start_bit),
            str(self.bit_length),
            self.hex_value,
            self.bin,
            self.bin_converted,
            str(self.dec),
            _format_value(self.value),
            self.message,
        ]
