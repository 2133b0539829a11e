"""
Reading of the partition records that make up the partition table of a PAC container.

Each record starts with a 32-bit field giving the length of the entire record, followed by a fixed layout of names,
sizes and offsets, and possibly by extension data that this module does not interpret. Records are laid out back to
back, so the only way to find record N+1 is to read the length of record N.
"""

import struct
import logging

from dataclasses import dataclass
from typing import Tuple, Iterator
from os import SEEK_SET

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader, BinaryReaderFormatError

from atmfjstc.lib.pac_extractor.errors import TruncatedInputError, MalformedRecordError
from atmfjstc.lib.pac_extractor.wide_strings import decode_wide_field


_log = logging.getLogger(__name__)


RECORD_FORMAT = '<I512s1024sI8sI12s'
PARTITION_RECORD_MIN_SIZE = struct.calcsize(RECORD_FORMAT)

PARTITION_NAME_MAX_LENGTH = 255
FILE_NAME_MAX_LENGTH = 511


@dataclass(frozen=True)
class PACPartitionRecord:
    """
    The metadata describing one partition stored in a PAC container.

    Records are inert data containers; they remain valid after the container they were read from is closed.

    Attributes:
        record_offset: The offset in the container at which this record was found.
        record_length: The total length of the record, as declared by its prefix. At least
            `PARTITION_RECORD_MIN_SIZE`.
        partition_name: The name of the partition (e.g. "boot", "system").
        file_name: The suggested name for the file the partition is extracted to.
        partition_size: The size, in bytes, of the partition payload. May be 0 for placeholder entries.
        payload_offset: The offset in the container at which the payload starts.
        raw_extra: Any bytes in the record past its fixed layout, uninterpreted.
    """

    record_offset: int
    record_length: int
    partition_name: str
    file_name: str
    partition_size: int
    payload_offset: int
    raw_extra: bytes = b''

    @property
    def next_record_offset(self) -> int:
        return self.record_offset + self.record_length

    @property
    def payload_end(self) -> int:
        return self.payload_offset + self.partition_size


def read_partition_record(reader: BinaryReader, offset: int) -> Tuple[PACPartitionRecord, int]:
    """
    Reads the partition record found at a given offset in the container.

    The read is done in two phases: the length prefix is read first, then the whole record, prefix included, is read
    again from the same offset. This means records with extension fields are handled transparently.

    Args:
        reader: A `BinaryReader` over the container. It must be seekable. Its position is not preserved.
        offset: The offset of the record, relative to the start of the container.

    Returns:
        A tuple of the decoded record and the offset at which the next record begins.

    Raises:
        TruncatedInputError: If the container ends before the length prefix or before the full declared length of the
            record.
        MalformedRecordError: If the declared length is too small for the fixed part of the record.
    """

    reader.seek(offset, SEEK_SET)

    try:
        record_length = reader.read_fixed_size_int(4, 'partition record length')
    except BinaryReaderFormatError as e:
        raise TruncatedInputError(
            f"Container ends before the length of the partition record at position {offset}", reader.name(), offset
        ) from e

    if record_length < PARTITION_RECORD_MIN_SIZE:
        raise MalformedRecordError(offset, record_length, PARTITION_RECORD_MIN_SIZE)

    available = reader.total_size() - offset
    if record_length > available:
        raise TruncatedInputError(
            f"Partition record at position {offset} declares a length of {record_length} bytes, but only {available} "
            f"remain in the container",
            reader.name(), offset
        )

    reader.seek(offset, SEEK_SET)

    try:
        data = reader.read_amount(record_length, 'partition record')
    except BinaryReaderFormatError as e:
        raise TruncatedInputError(
            f"Container ends in the middle of the partition record at position {offset}", reader.name(), offset
        ) from e

    _, raw_partition_name, raw_file_name, partition_size, _, payload_offset, _ = \
        struct.unpack_from(RECORD_FORMAT, data)

    record = PACPartitionRecord(
        record_offset=offset,
        record_length=record_length,
        partition_name=decode_wide_field(raw_partition_name, PARTITION_NAME_MAX_LENGTH),
        file_name=decode_wide_field(raw_file_name, FILE_NAME_MAX_LENGTH),
        partition_size=partition_size,
        payload_offset=payload_offset,
        raw_extra=data[PARTITION_RECORD_MIN_SIZE:],
    )

    _log.debug(
        "Read partition record '%s' at offset %d (length %d, payload %d bytes at %d)",
        record.partition_name, offset, record_length, partition_size, payload_offset
    )

    return record, offset + record_length


def iter_partition_records(reader: BinaryReader, first_offset: int, count: int) -> Iterator[PACPartitionRecord]:
    """
    Reads `count` consecutive partition records, the first of which is at `first_offset`.

    See `read_partition_record` for the exceptions that may be raised.
    """

    offset = first_offset

    for _ in range(count):
        record, offset = read_partition_record(reader, offset)
        yield record
