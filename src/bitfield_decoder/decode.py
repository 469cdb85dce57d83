"""
bitfield_decoder.decode

Core bit-field extraction for CAN payloads.

Functions:
    - get_bits: Extracts a little-endian bitfield from a CAN payload
    - extract_bits: Extracts a field in either byte order, returning (raw, bits)
    - extract_from_bits: Same field, read from a pre-rendered bit string
    - extract: extract_bits driven by a FieldSpec
    - transform: Applies linear scale/offset to a raw value
    - decode_field: extract + transform as an ExtractedField
    - extract_fields: Decodes several named fields of one frame
    - extract_flags: Reads single-bit flags out of a bit string

Notes:
    - LSB (Intel) fields number bits from the least significant bit of byte 0
      upward; ``start_bit`` is the field's least significant bit.
    - MSB (Motorola) fields number bits as in the MSB bit string: byte 0 holds
      positions 0-7 and position 0 is its most significant bit. ``start_bit``
      is the field's most significant bit and the field runs forward from it,
      crossing byte boundaries as needed.
    - The byte-buffer and bit-string paths agree bit for bit, including which
      spans they reject.
"""

import logging
from typing import Mapping, Union

from common.exceptions import RangeError
from common.models import ByteOrder, ExtractedField, FieldSpec

from .bitstring import check_bits

logger = logging.getLogger(__name__)

MAX_BIT_LENGTH = 64


def _check_span(total_bits: int, start_bit: int, bit_length: int) -> None:
    if bit_length <= 0:
        raise RangeError("bit length must be positive")
    if bit_length > MAX_BIT_LENGTH:
        raise RangeError(f"bit length {bit_length} exceeds {MAX_BIT_LENGTH}")
    if start_bit < 0:
        raise RangeError(f"start bit {start_bit} is negative")
    if start_bit + bit_length > total_bits:
        raise RangeError(
            f"bits {start_bit}..{start_bit + bit_length - 1} exceed the "
            f"{total_bits} bits available"
        )


def get_bits(data_bytes: bytes, start_bit: int, length: int) -> int:
    """
    Extract a little‑endian bitfield from a CAN payload.
    """
    raw_int = int.from_bytes(data_bytes, byteorder="little")
    mask = (1 << length) - 1
    return (raw_int >> start_bit) & mask


def extract_bits(
    data: bytes,
    start_bit: int,
    bit_length: int,
    byte_order: ByteOrder = ByteOrder.MSB,
) -> tuple[int, str]:
    """
    Extract one field from a raw payload.

    Returns:
      tuple(raw: int, bits: str) where ``bits`` is ``raw`` written out in
      binary, most significant bit first, zero-padded to ``bit_length``.

    Raises:
      RangeError: if ``bit_length`` is not in 1..64, ``start_bit`` is negative
      or the span runs past the end of ``data``.
    """
    total_bits = len(data) * 8
    _check_span(total_bits, start_bit, bit_length)

    if ByteOrder(byte_order) is ByteOrder.LSB:
        raw = get_bits(data, start_bit, bit_length)
    else:
        shift = total_bits - start_bit - bit_length
        raw = (int.from_bytes(data, byteorder="big") >> shift) & ((1 << bit_length) - 1)
    return raw, f"{raw:0{bit_length}b}"


def extract_from_bits(
    bits: str,
    start_bit: int,
    bit_length: int,
    byte_order: ByteOrder = ByteOrder.MSB,
) -> tuple[int, str]:
    """
    Extract one field from a bit string produced by ``bytes_to_bits`` in the
    same byte order. Same numbering, results and errors as ``extract_bits``.
    """
    check_bits(bits)
    total_bits = len(bits)
    _check_span(total_bits, start_bit, bit_length)

    if ByteOrder(byte_order) is ByteOrder.LSB:
        # The LSB string is the little-endian integer in binary, so LSB bit p
        # sits at index total_bits - 1 - p.
        end = total_bits - start_bit
        literal = bits[end - bit_length : end]
    else:
        literal = _collect_msb_bits(bits, start_bit, bit_length)
    return int(literal, 2), literal


def _collect_msb_bits(bits: str, start_bit: int, bit_length: int) -> str:
    end_bit = start_bit + bit_length
    first_byte = start_bit // 8
    last_byte = (end_bit - 1) // 8

    if first_byte == last_byte:
        return bits[start_bit:end_bit]

    # Tail of the first byte, whole middle bytes, head of the last byte.
    parts = [bits[start_bit : (first_byte + 1) * 8]]
    for index in range(first_byte + 1, last_byte):
        parts.append(bits[index * 8 : (index + 1) * 8])
    parts.append(bits[last_byte * 8 : end_bit])
    return "".join(parts)


def extract(frame: bytes, spec: FieldSpec) -> tuple[int, str]:
    return extract_bits(frame, spec.start_bit, spec.bit_length, spec.byte_order)


def transform(raw: int, scale: float, offset: float) -> Union[int, float]:
    """
    Physical value ``raw * scale + offset``.

    A field with neither scale nor offset configured (both zero) is unscaled:
    the raw value is returned as is.
    """
    if scale == 0 and offset == 0:
        return raw
    return raw * scale + offset


def decode_field(frame: bytes, spec: FieldSpec) -> ExtractedField:
    raw, bits = extract(frame, spec)
    return ExtractedField(raw=raw, bits=bits, value=transform(raw, spec.scale, spec.offset))


def extract_fields(frame: bytes, specs: Mapping[str, FieldSpec]) -> dict[str, ExtractedField]:
    """
    Decode every named field in ``specs`` from the same frame.

    Fields are independent and may mix byte orders. The first field that does
    not fit raises ``RangeError`` with the field name in the message.
    """
    decoded = {}
    for name, spec in specs.items():
        try:
            decoded[name] = decode_field(frame, spec)
        except RangeError as e:
            raise RangeError(f"field '{name}': {e}") from e
    logger.debug(f"Decoded {len(decoded)} fields from {frame.hex().upper()}")
    return decoded


def extract_flags(bits: str, flags: Mapping[int, str]) -> dict[str, bool]:
    """
    Read single-bit flags by position in a bit string.

    A flag is True when the character at its position is '1'. Positions past
    the end of ``bits`` (or negative) read as False.
    """
    result = {}
    for position, name in flags.items():
        result[name] = 0 <= position < len(bits) and bits[position] == "1"
    return result
