"""
Exceptions raised while decoding or extracting PAC containers.

All of them derive from `PACFileError`, so a caller that only cares whether the operation succeeded can catch that.
Where an OS-level error was involved, it is chained to the exception as its ``__cause__``.
"""

from typing import Optional, AnyStr


class PACFileError(Exception):
    """
    Base class for all errors signaled while reading a PAC container or extracting its partitions.
    """


class TruncatedInputError(PACFileError):
    """
    The container ends before some required structure or payload does.
    """
    file_name: Optional[AnyStr]
    position: Optional[int]

    def __init__(self, message: str, file_name: Optional[AnyStr] = None, position: Optional[int] = None):
        self.file_name = file_name
        self.position = position

        super().__init__(message)


class MalformedHeaderError(PACFileError):
    """
    The container header was read in full, but its content is inconsistent (e.g. a negative partition count).
    """


class MalformedRecordError(PACFileError):
    """
    A partition record declares a length that cannot hold the fixed part of the record.
    """
    position: int
    record_length: int

    def __init__(self, position: int, record_length: int, min_length: int):
        self.position = position
        self.record_length = record_length

        super().__init__(
            f"Partition record at position {position} declares a length of {record_length} bytes, but at least "
            f"{min_length} are required"
        )


class PartitionIOError(PACFileError):
    """
    Reading from the container or writing to an output file failed, or transferred fewer bytes than required.
    """


class OutputWriteError(PACFileError):
    """
    An output directory or file could not be created, removed or opened.
    """
