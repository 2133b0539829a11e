"""
Read-only access to a PAC container as a whole.

The main class of interest is `PACFile`. Opening a container immediately decodes its header and partition table::

    with PACFile('firmware.pac') as pac:
        print(pac.header.firmware_name)

        for partition in pac.partitions:
            print(partition.partition_name, partition.partition_size)

        pac.extract_all('output/dir')

The functions `read_container_header` and `read_container_records` perform the validated decoding steps on their own
and are shared with the step-by-step `PACExtractionDriver`.
"""

import logging

from typing import ContextManager, BinaryIO, Union, Optional, Tuple
from io import IOBase
from os import SEEK_SET

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader
from atmfjstc.lib.error_utils import ignore_errors
from atmfjstc.lib.file_utils import PathType

from atmfjstc.lib.pac_extractor.errors import TruncatedInputError, MalformedHeaderError, PartitionIOError
from atmfjstc.lib.pac_extractor.header import PACHeader, PAC_HEADER_SIZE
from atmfjstc.lib.pac_extractor.records import PACPartitionRecord, iter_partition_records
from atmfjstc.lib.pac_extractor.extract import ExtractionResult, extract_partition, DEFAULT_BUFFER_SIZE
from atmfjstc.lib.pac_extractor.output import ensure_directory
from atmfjstc.lib.pac_extractor.progress import ProgressReporter


_log = logging.getLogger(__name__)


class PACFile(ContextManager['PACFile']):
    """
    This class provides access to a PAC firmware container stored in a file or file object.

    The header and partition table are read and validated as soon as the object is constructed. Afterwards, they are
    available through the `header` and `partitions` attributes, and the partitions' payloads can be extracted with
    `extract` or `extract_all`.

    If a file object is passed, it must be seekable and binary. It will not be closed when the context ends, unless
    `close` is called explicitly.
    """

    _fileobj: BinaryIO
    _fileobj_owned: bool = False
    _reader: BinaryReader

    _header: PACHeader
    _partitions: Tuple[PACPartitionRecord, ...] = ()

    def __init__(self, path_or_fileobj: Union[PathType, BinaryIO], check_payload_bounds: bool = True):
        """
        Opens a PAC container for reading.

        Args:
            path_or_fileobj: Either a filename, or an open binary file object containing the container.
            check_payload_bounds: If True (the default), reject containers in which the payload of a partition extends
                past the end of the file. Otherwise, such problems are only discovered during extraction.

        Raises:
            PartitionIOError: If the file could not be opened.
            TruncatedInputError: If the file is too short for the header, the partition table or a payload.
            MalformedHeaderError: If the header declares a negative number of partitions.
            MalformedRecordError: If a partition record is too short for its fixed layout.
        """

        self._fileobj, self._fileobj_owned = open_container(path_or_fileobj)

        try:
            self._reader = BinaryReader(self._fileobj, big_endian=False)
            self._header = read_container_header(self._reader)
            self._partitions = read_container_records(self._reader, self._header, check_payload_bounds)
        except BaseException:
            if self._fileobj_owned:
                with ignore_errors():
                    self._fileobj.close()
            raise

    @property
    def header(self) -> PACHeader:
        return self._header

    @property
    def partitions(self) -> Tuple[PACPartitionRecord, ...]:
        """
        The partition records, in the order they appear in the partition table.
        """
        return self._partitions

    @property
    def total_size(self) -> int:
        return self._reader.total_size()

    def extract(
        self, partition: PACPartitionRecord, output_dir: PathType, progress: Optional[ProgressReporter] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE
    ) -> ExtractionResult:
        """
        Extracts one partition to a file in `output_dir`, which must exist. See `extract_partition` for details.
        """

        if self._fileobj.closed:
            raise ValueError("Cannot extract partitions because the underlying file object has been closed")
        if partition not in self._partitions:
            raise ValueError("Partition does not belong to this PAC file!")

        return extract_partition(self._reader, partition, output_dir, progress=progress, buffer_size=buffer_size)

    def extract_all(
        self, output_dir: PathType, progress: Optional[ProgressReporter] = None, buffer_size: int = DEFAULT_BUFFER_SIZE
    ) -> Tuple[ExtractionResult, ...]:
        """
        Creates `output_dir` if needed and extracts all partitions to it, in order.
        """

        ensure_directory(output_dir)

        return tuple(
            self.extract(partition, output_dir, progress=progress, buffer_size=buffer_size)
            for partition in self._partitions
        )

    def close(self):
        """
        Closes the underlying file object, regardless of whether it was opened by the `PACFile` or received from
        elsewhere. The metadata remains accessible afterwards.
        """
        self._fileobj.close()

    def __enter__(self) -> 'PACFile':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if (not self._fileobj_owned) or self._fileobj.closed:
            return

        self._fileobj.close()


def open_container(path_or_fileobj: Union[PathType, BinaryIO]) -> Tuple[BinaryIO, bool]:
    """
    Returns a binary file object for the container, and whether it was opened by us (and should thus be closed by us).
    """

    if isinstance(path_or_fileobj, IOBase):
        if not path_or_fileobj.seekable():
            raise ValueError("File object must be seekable")

        return path_or_fileobj, False

    try:
        fileobj = open(path_or_fileobj, 'rb')
    except OSError as e:
        raise PartitionIOError(f"Cannot open container file '{path_or_fileobj}'") from e

    # Pipes and FIFOs open fine, but records and payloads must be read at arbitrary offsets
    if not fileobj.seekable():
        with ignore_errors():
            fileobj.close()

        raise PartitionIOError(f"Container file '{path_or_fileobj}' is not seekable")

    return fileobj, True


def read_container_header(reader: BinaryReader) -> PACHeader:
    """
    Checks that the container is large enough, then reads its header from offset 0 and validates the partition count.
    """

    total_size = reader.total_size()
    if total_size < PAC_HEADER_SIZE:
        quoted_name = f" '{reader.name()}'" if reader.name() is not None else ''
        raise TruncatedInputError(
            f"File{quoted_name} is not a valid firmware: it is {total_size} bytes long, shorter than a PAC header "
            f"({PAC_HEADER_SIZE} bytes)",
            reader.name(), 0
        )

    reader.seek(0, SEEK_SET)
    header = PACHeader.read_from_binary(reader)

    if header.partition_count < 0:
        raise MalformedHeaderError(f"PAC header declares a negative number of partitions ({header.partition_count})")

    return header


def read_container_records(
    reader: BinaryReader, header: PACHeader, check_payload_bounds: bool = True
) -> Tuple[PACPartitionRecord, ...]:
    """
    Reads all the partition records announced by the header.

    If `check_payload_bounds` is True, also verifies that the payload of every non-empty partition lies within the
    container.
    """

    records = tuple(iter_partition_records(reader, header.partition_table_offset, header.partition_count))

    if check_payload_bounds:
        total_size = reader.total_size()

        for record in records:
            if (record.partition_size > 0) and (record.payload_end > total_size):
                raise TruncatedInputError(
                    f"Data of partition '{record.partition_name}' ({record.partition_size} bytes at position "
                    f"{record.payload_offset}) extends past the end of the container ({total_size} bytes)",
                    reader.name(), record.payload_offset
                )

    _log.debug("Read %d partition record(s)", len(records))

    return records
