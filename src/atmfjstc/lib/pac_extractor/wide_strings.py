"""
Decoding for the fixed-capacity wide string fields used in PAC headers and partition records.

Names in PAC containers are stored as arrays of 16-bit little-endian code units, padded with zeros up to the capacity
of the field. In practice they only ever contain ASCII (or at most Latin-1) text, so only the low byte of each code
unit is kept. This is lossy by design of the format: characters outside Latin-1 are mangled, not rejected.
"""

import struct

from typing import Sequence, Tuple, Optional


def decode_wide_string(code_units: Sequence[int], max_length: Optional[int] = None) -> str:
    """
    Converts a sequence of 16-bit code units into a narrow string.

    Decoding stops at the first zero code unit or at the end of the sequence, whichever comes first. Each code unit
    before that contributes one character, namely the one corresponding to its low 8 bits.

    Args:
        code_units: The code units of the field, e.g. as obtained from `code_units_from_bytes`.
        max_length: The maximum number of characters in the result. Anything beyond it is silently dropped. By default,
            the limit is the number of code units in the field.

    Returns:
        The decoded string, without any terminator.
    """

    if max_length is None:
        max_length = len(code_units)
    if max_length < 0:
        raise ValueError(f"max_length must be non-negative (is: {max_length})")

    chars = bytearray()

    for unit in code_units:
        if unit == 0 or len(chars) >= max_length:
            break

        chars.append(unit & 0xFF)

    return chars.decode('latin-1')


def code_units_from_bytes(raw: bytes) -> Tuple[int, ...]:
    """
    Splits the raw content of a wide string field into little-endian 16-bit code units.

    A trailing odd byte, if any, is ignored.
    """
    return struct.unpack(f'<{len(raw) // 2}H', raw[:len(raw) & ~1])


def decode_wide_field(raw: bytes, max_length: Optional[int] = None) -> str:
    """
    Shortcut for applying `decode_wide_string` directly to the raw bytes of a field.
    """
    return decode_wide_string(code_units_from_bytes(raw), max_length)
