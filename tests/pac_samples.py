"""
Builders for synthetic PAC containers used throughout the tests.
"""

import struct

from typing import Sequence, Tuple, Optional


HEADER_SIZE = 1220
RECORD_SIZE = 1568


def wide(text: str, units: int) -> bytes:
    encoded = text.encode('latin-1')
    assert len(encoded) <= units

    return struct.pack(f'<{units}H', *encoded, *([0] * (units - len(encoded))))


def make_header(
    partition_count: int, table_offset: int = HEADER_SIZE, product_name: str = 'TestProduct',
    firmware_name: str = 'TEST_FW_V1.0', product_alias: str = 'test-alias', format_version: int = 1,
    format_tag: str = 'BP_R1.0.0'
) -> bytes:
    return struct.pack(
        '<48si512s512siI20s100s16s',
        wide(format_tag, 24), format_version, wide(product_name, 256), wide(firmware_name, 256),
        partition_count, table_offset, b'\x00' * 20, wide(product_alias, 50), b'\x00' * 16
    )


def make_record(
    partition_name: str, file_name: str, partition_size: int, payload_offset: int, extra: bytes = b'',
    record_length: Optional[int] = None
) -> bytes:
    if record_length is None:
        record_length = RECORD_SIZE + len(extra)

    return struct.pack(
        '<I512s1024sI8sI12s',
        record_length, wide(partition_name, 256), wide(file_name, 512), partition_size, b'\x00' * 8,
        payload_offset, b'\x00' * 12
    ) + extra


def pattern(size: int, seed: int = 0) -> bytes:
    return bytes((seed + i * 7) & 0xFF for i in range(size))


def build_container(
    partitions: Sequence[Tuple[str, str, bytes]], extras: Optional[Sequence[bytes]] = None, **header_kwargs
) -> bytes:
    """
    Builds a well-formed container holding the given (partition name, file name, payload) entries. The partition table
    directly follows the header, and the payloads directly follow the table, in order.
    """

    extras = extras or [b''] * len(partitions)

    table_size = sum(RECORD_SIZE + len(extra) for extra in extras)
    payload_offset = HEADER_SIZE + table_size

    records = []
    payloads = []

    for (partition_name, file_name, payload), extra in zip(partitions, extras):
        records.append(make_record(partition_name, file_name, len(payload), payload_offset, extra=extra))
        payloads.append(payload)
        payload_offset += len(payload)

    return make_header(len(partitions), HEADER_SIZE, **header_kwargs) + b''.join(records) + b''.join(payloads)
