"""
bitfield_decoder
================

Library for extracting bit fields from raw CAN payloads.

This package contains the core decoding logic of canlog-decoder: rendering
payloads as bit strings in Motorola (MSB) or Intel (LSB) order, slicing out
fields that may span several bytes, and applying linear scale/offset.

Functions:
    - bytes_to_bits / bits_to_bytes: Payload <-> bit string in either byte order
    - hex_to_bytes / hex_to_bits / bits_to_int: Text conversions
    - get_bits: Extract a little-endian bitfield
    - extract_bits / extract_from_bits / extract: Extract a field as (raw, bits)
    - transform: Apply scale and offset
    - decode_field / extract_fields / extract_flags: Convenience layers
"""

from .bitstring import bits_to_bytes, bits_to_int, bytes_to_bits, hex_to_bits, hex_to_bytes
from .decode import (
    decode_field,
    extract,
    extract_bits,
    extract_fields,
    extract_flags,
    extract_from_bits,
    get_bits,
    transform,
)

__all__ = [
    "bytes_to_bits",
    "bits_to_bytes",
    "bits_to_int",
    "hex_to_bits",
    "hex_to_bytes",
    "get_bits",
    "extract_bits",
    "extract_from_bits",
    "extract",
    "transform",
    "decode_field",
    "extract_fields",
    "extract_flags",
]
