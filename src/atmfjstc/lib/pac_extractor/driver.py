"""
The end-to-end extraction pipeline: header, partition table, then the payloads of all partitions.

The pipeline is strictly linear and goes through the states of `ExtractionState`::

    IDLE -> HEADER_READ -> RECORDS_READ -> EXTRACTING -> DONE

Any error moves it to the terminal FAILED state and is propagated to the caller; nothing is retried and nothing that
was already written is rolled back.

Most callers will just use::

    summary = extract_pac('firmware.pac', 'output/dir')

while `PACExtractionDriver` can be used directly to run the steps one by one (e.g. to display the partition table
before the extraction starts).
"""

import logging

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import ContextManager, BinaryIO, Union, Optional, Tuple, Iterator

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader
from atmfjstc.lib.file_utils import PathType

from atmfjstc.lib.pac_extractor.header import PACHeader
from atmfjstc.lib.pac_extractor.records import PACPartitionRecord
from atmfjstc.lib.pac_extractor.extract import ExtractionResult, extract_partition, DEFAULT_BUFFER_SIZE
from atmfjstc.lib.pac_extractor.output import ensure_directory
from atmfjstc.lib.pac_extractor.progress import ProgressReporter
from atmfjstc.lib.pac_extractor.container import open_container, read_container_header, read_container_records


_log = logging.getLogger(__name__)


class ExtractionState(Enum):
    IDLE = 'idle'
    HEADER_READ = 'header_read'
    RECORDS_READ = 'records_read'
    EXTRACTING = 'extracting'
    DONE = 'done'
    FAILED = 'failed'


@dataclass(frozen=True)
class ExtractionSummary:
    """
    The outcome of a complete extraction.

    Attributes:
        header: The header of the container.
        results: The extraction results for all partitions, in partition table order (including skipped ones).
        output_dir_created: Whether the output directory had to be created.
    """

    header: PACHeader
    results: Tuple[ExtractionResult, ...]
    output_dir_created: bool = False

    @property
    def partitions_extracted(self) -> int:
        return sum(1 for result in self.results if not result.skipped)

    @property
    def partitions_skipped(self) -> int:
        return sum(1 for result in self.results if result.skipped)

    @property
    def total_bytes_written(self) -> int:
        return sum(result.bytes_written for result in self.results)


class PACExtractionDriver(ContextManager['PACExtractionDriver']):
    """
    Runs the extraction of a PAC container step by step.

    Each of `read_header`, `read_records` and `extract_all` must be called exactly once, in this order (or `run` can be
    called to do all of them). Calling a step out of order raises a `RuntimeError`.

    The container file is opened by `read_header` and closed once the driver reaches the DONE or FAILED state, or when
    the context exits if the driver is used as a context manager. File objects passed in by the caller are never
    closed.
    """

    _container: Union[PathType, BinaryIO]
    _output_dir: PathType
    _progress: Optional[ProgressReporter]
    _buffer_size: int
    _check_payload_bounds: bool

    _state: ExtractionState = ExtractionState.IDLE
    _fileobj: Optional[BinaryIO] = None
    _fileobj_owned: bool = False
    _reader: Optional[BinaryReader] = None
    _header: Optional[PACHeader] = None
    _partitions: Tuple[PACPartitionRecord, ...] = ()

    def __init__(
        self, container: Union[PathType, BinaryIO], output_dir: PathType, progress: Optional[ProgressReporter] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE, check_payload_bounds: bool = True
    ):
        """
        Constructor.

        Args:
            container: The path of the container, or a seekable binary file object holding it.
            output_dir: The directory to extract the partitions to. It will be created if missing.
            progress: An optional `ProgressReporter` to be notified as partitions are written.
            buffer_size: The size of the chunks in which payloads are copied.
            check_payload_bounds: Whether to reject, before extraction starts, containers in which a payload extends
                past the end of the file. If False, this is only discovered when the payload is read.
        """

        if buffer_size < 1:
            raise ValueError(f"Buffer size must be strictly positive (is: {buffer_size})")

        self._container = container
        self._output_dir = output_dir
        self._progress = progress
        self._buffer_size = buffer_size
        self._check_payload_bounds = check_payload_bounds

    @property
    def state(self) -> ExtractionState:
        return self._state

    @property
    def header(self) -> Optional[PACHeader]:
        """The container header, once it has been read."""
        return self._header

    @property
    def partitions(self) -> Tuple[PACPartitionRecord, ...]:
        """The partition records, once they have been read."""
        return self._partitions

    def read_header(self) -> PACHeader:
        """
        Opens the container and reads its header.

        Raises:
            PartitionIOError: If the container cannot be opened.
            TruncatedInputError: If the container is shorter than a header.
            MalformedHeaderError: If the header declares a negative partition count.
        """

        with self._step(ExtractionState.IDLE):
            self._fileobj, self._fileobj_owned = open_container(self._container)
            self._reader = BinaryReader(self._fileobj, big_endian=False)
            self._header = read_container_header(self._reader)

            self._state = ExtractionState.HEADER_READ

        return self._header

    def read_records(self) -> Tuple[PACPartitionRecord, ...]:
        """
        Reads all the partition records announced by the header.

        Raises:
            TruncatedInputError: If the container ends within the partition table or (when payload bounds are checked)
                before the payload of some partition.
            MalformedRecordError: If a record declares a length too small for its fixed layout.
        """

        with self._step(ExtractionState.HEADER_READ):
            self._partitions = read_container_records(self._reader, self._header, self._check_payload_bounds)

            self._state = ExtractionState.RECORDS_READ

        return self._partitions

    def extract_all(self) -> ExtractionSummary:
        """
        Creates the output directory if needed, then extracts all partitions in order.

        Raises:
            OutputWriteError: If the output directory or an output file cannot be created.
            PartitionIOError: If copying a payload fails.
        """

        with self._step(ExtractionState.RECORDS_READ):
            output_dir_created = ensure_directory(self._output_dir)

            self._state = ExtractionState.EXTRACTING

            results = tuple(
                extract_partition(
                    self._reader, partition, self._output_dir,
                    progress=self._progress, buffer_size=self._buffer_size,
                )
                for partition in self._partitions
            )

            self._state = ExtractionState.DONE
            self._release()

        summary = ExtractionSummary(header=self._header, results=results, output_dir_created=output_dir_created)

        _log.info(
            "Extracted %d partition(s), %d bytes in total (%d empty partition(s) skipped)",
            summary.partitions_extracted, summary.total_bytes_written, summary.partitions_skipped
        )

        return summary

    def run(self) -> ExtractionSummary:
        """
        Performs all the steps of the extraction in sequence.
        """
        self.read_header()
        self.read_records()
        return self.extract_all()

    @contextmanager
    def _step(self, expected_state: ExtractionState) -> Iterator[None]:
        if self._state != expected_state:
            raise RuntimeError(
                f"Cannot perform this step in state {self._state.name} (expected: {expected_state.name})"
            )

        try:
            yield
        except BaseException:
            self._state = ExtractionState.FAILED
            self._release()
            raise

    def _release(self):
        if self._fileobj_owned and (self._fileobj is not None) and not self._fileobj.closed:
            self._fileobj.close()

    def __enter__(self) -> 'PACExtractionDriver':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._release()


def extract_pac(
    container: Union[PathType, BinaryIO], output_dir: PathType, progress: Optional[ProgressReporter] = None,
    buffer_size: int = DEFAULT_BUFFER_SIZE, check_payload_bounds: bool = True
) -> ExtractionSummary:
    """
    Extracts all partitions of a PAC container to a directory. See `PACExtractionDriver` for the meaning of the
    parameters and the exceptions that may be raised.
    """

    with PACExtractionDriver(
        container, output_dir, progress=progress, buffer_size=buffer_size, check_payload_bounds=check_payload_bounds
    ) as driver:
        return driver.run()
