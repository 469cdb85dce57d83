"""
bitfield_decoder.bitstring

Conversions between byte buffers, hex text and '0'/'1' bit strings.

Both byte orders expand every byte most-significant-bit first; they differ only
in byte order. MSB keeps the buffer order (byte 0 at positions 0-7), LSB
reverses it (last byte first), so the LSB string reads as the payload's
little-endian integer written out in binary.
"""

from common.exceptions import DecodeError
from common.models import ByteOrder

_BINARY_DIGITS = frozenset("01")


def bytes_to_bits(data: bytes, order: ByteOrder = ByteOrder.MSB) -> str:
    """
    Render ``data`` as a bit string of length ``8 * len(data)``.
    """
    if ByteOrder(order) is ByteOrder.LSB:
        data = reversed(data)
    return "".join(f"{byte:08b}" for byte in data)


def bits_to_bytes(bits: str, order: ByteOrder = ByteOrder.MSB) -> bytes:
    """
    Inverse of ``bytes_to_bits``.

    Raises:
        DecodeError: if ``bits`` holds anything but '0'/'1' or is not a whole
            number of bytes long.
    """
    check_bits(bits)
    if len(bits) % 8:
        raise DecodeError(f"bit string length {len(bits)} is not a multiple of 8")
    data = bytes(int(bits[i : i + 8], 2) for i in range(0, len(bits), 8))
    if ByteOrder(order) is ByteOrder.LSB:
        data = data[::-1]
    return data


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Decode a hex payload such as ``"12 34 AB"`` or ``"1234ab"``.

    Raises:
        DecodeError: on odd-length or non-hex input.
    """
    try:
        return bytes.fromhex(hex_str.replace(" ", ""))
    except ValueError as e:
        raise DecodeError(f"invalid hex payload {hex_str!r}: {e}") from e


def hex_to_bits(hex_str: str, order: ByteOrder = ByteOrder.MSB) -> str:
    return bytes_to_bits(hex_to_bytes(hex_str), order)


def bits_to_int(bits: str) -> int:
    """Unsigned value of a bit string, most significant bit first."""
    if not bits:
        raise DecodeError("empty bit string")
    check_bits(bits)
    return int(bits, 2)


def check_bits(bits: str) -> None:
    """Raise ``DecodeError`` unless ``bits`` consists of '0' and '1' only."""
    if not _BINARY_DIGITS.issuperset(bits):
        raise DecodeError(f"not a bit string: {bits!r}")
