import struct
import logging

from dataclasses import dataclass

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader, BinaryReaderFormatError

from atmfjstc.lib.pac_extractor.errors import TruncatedInputError
from atmfjstc.lib.pac_extractor.wide_strings import decode_wide_field


_log = logging.getLogger(__name__)


HEADER_FORMAT = '<48si512s512siI20s100s16s'
PAC_HEADER_SIZE = struct.calcsize(HEADER_FORMAT)

NAME_MAX_LENGTH = 255


@dataclass(frozen=True)
class PACHeader:
    """
    The fixed-size header found at the very start of a PAC container.

    Attributes:
        raw_reserved: The 48 leading bytes of the header, which this tool does not interpret. In the containers seen in
            practice they hold a short wide string identifying the format revision (see `format_tag`).
        format_version: A 32-bit integer following the reserved area. Only its presence matters.
        product_name: The product the firmware is meant for.
        firmware_name: The name (usually the version) of the firmware.
        partition_count: The number of partition records in the container. This is NOT validated by the decoder; it
            may be negative in a corrupt file.
        partition_table_offset: The offset, relative to the start of the container, of the first partition record.
        product_alias: A secondary, shorter product name.
    """

    raw_reserved: bytes
    format_version: int
    product_name: str
    firmware_name: str
    partition_count: int
    partition_table_offset: int
    product_alias: str

    @property
    def format_tag(self) -> str:
        return decode_wide_field(self.raw_reserved)

    @staticmethod
    def read_from_binary(reader: BinaryReader) -> 'PACHeader':
        """
        Reads the header from the reader's current position, which should normally be the start of the container.

        Raises:
            TruncatedInputError: If fewer than `PAC_HEADER_SIZE` bytes are available.
        """

        position = reader.tell()

        try:
            raw_reserved, format_version, raw_product_name, raw_firmware_name, partition_count, \
                partition_table_offset, _, raw_product_alias, _ = reader.read_struct(HEADER_FORMAT, 'PAC header')
        except BinaryReaderFormatError as e:
            raise TruncatedInputError(
                f"Container is too short to hold a PAC header ({PAC_HEADER_SIZE} bytes)", reader.name(), position
            ) from e

        header = PACHeader(
            raw_reserved=raw_reserved,
            format_version=format_version,
            product_name=decode_wide_field(raw_product_name, NAME_MAX_LENGTH),
            firmware_name=decode_wide_field(raw_firmware_name, NAME_MAX_LENGTH),
            partition_count=partition_count,
            partition_table_offset=partition_table_offset,
            product_alias=decode_wide_field(raw_product_alias, NAME_MAX_LENGTH),
        )

        _log.debug(
            "Read PAC header: %d partition(s), table at offset %d",
            header.partition_count, header.partition_table_offset
        )

        return header


def read_pac_header(reader: BinaryReader) -> PACHeader:
    return PACHeader.read_from_binary(reader)
