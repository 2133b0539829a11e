import logging

from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional, BinaryIO
from os import SEEK_SET

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader, BinaryReaderFormatError
from atmfjstc.lib.file_utils import PathType

from atmfjstc.lib.pac_extractor.errors import PartitionIOError
from atmfjstc.lib.pac_extractor.records import PACPartitionRecord
from atmfjstc.lib.pac_extractor.output import resolve_output_path, remove_stale_output, open_output_file
from atmfjstc.lib.pac_extractor.progress import ProgressReporter, NullProgress


_log = logging.getLogger(__name__)


DEFAULT_BUFFER_SIZE = 256 * 1024


@dataclass(frozen=True)
class ExtractionResult:
    """
    The outcome of extracting a single partition.

    Attributes:
        partition: The record of the partition that was extracted.
        output_path: The path of the file the payload was written to, or None if the partition was empty and thus
            skipped.
        bytes_written: The number of payload bytes written.
    """

    partition: PACPartitionRecord
    output_path: Optional[PurePath]
    bytes_written: int

    @property
    def skipped(self) -> bool:
        return self.output_path is None


def extract_partition(
    reader: BinaryReader, record: PACPartitionRecord, output_dir: PathType,
    progress: Optional[ProgressReporter] = None, buffer_size: int = DEFAULT_BUFFER_SIZE,
) -> ExtractionResult:
    """
    Copies the payload of a partition from the container to a file in the output directory.

    The file is named according to the record's `file_name`. Any existing file by that name is replaced. The payload
    is streamed in chunks of at most `buffer_size` bytes, so partitions of any size can be handled. Empty partitions
    are skipped without touching the output directory.

    There is no rollback: if the copy fails midway, the partially written file is left on disk.

    Args:
        reader: A `BinaryReader` over the container. Its position is not preserved.
        record: The record of the partition to extract.
        output_dir: The directory to extract to. It must already exist.
        progress: An optional `ProgressReporter` to be notified after every chunk.
        buffer_size: The maximum size of the chunks the payload is copied in.

    Returns:
        An `ExtractionResult` describing where the payload was written.

    Raises:
        OutputWriteError: If the output file name is unusable, or the output file cannot be removed or created.
        PartitionIOError: If reading the payload or writing it out fails, including when the container ends before
            the payload does.
    """

    if buffer_size < 1:
        raise ValueError(f"Buffer size must be strictly positive (is: {buffer_size})")

    if record.partition_size == 0:
        _log.debug("Partition '%s' is empty, skipping", record.partition_name)
        return ExtractionResult(partition=record, output_path=None, bytes_written=0)

    output_path = resolve_output_path(output_dir, record.file_name)

    remove_stale_output(output_path)

    _log.info("Extracting partition '%s' to %s", record.partition_name, output_path)

    progress = progress or NullProgress()

    try:
        with open_output_file(output_path) as out:
            progress.begin(record.partition_name, PurePath(output_path))
            bytes_written = _copy_payload(reader, record, out, progress, buffer_size)
    except OSError as e:
        raise PartitionIOError(f"Error while finishing output file '{output_path}'") from e

    _log.debug("Wrote %d bytes to %s", bytes_written, output_path)

    return ExtractionResult(partition=record, output_path=PurePath(output_path), bytes_written=bytes_written)


def _copy_payload(
    reader: BinaryReader, record: PACPartitionRecord, out: BinaryIO, progress: ProgressReporter, buffer_size: int
) -> int:
    try:
        reader.seek(record.payload_offset, SEEK_SET)
    except OSError as e:
        raise PartitionIOError(
            f"Error seeking to the data of partition '{record.partition_name}' at position {record.payload_offset}"
        ) from e

    remaining = record.partition_size
    bytes_written = 0

    while remaining > 0:
        chunk_size = min(buffer_size, remaining)

        try:
            chunk = reader.read_amount(chunk_size, f"data of partition '{record.partition_name}'")
        except (BinaryReaderFormatError, OSError) as e:
            raise PartitionIOError(f"Error while reading the data of partition '{record.partition_name}'") from e

        try:
            written = out.write(chunk)
        except OSError as e:
            raise PartitionIOError(f"Error while writing the data of partition '{record.partition_name}'") from e

        if written != chunk_size:
            raise PartitionIOError(
                f"Short write for partition '{record.partition_name}': {written} of {chunk_size} bytes written"
            )

        remaining -= chunk_size
        bytes_written += chunk_size

        progress.report(bytes_written, record.partition_size)

    return bytes_written
