"""
Helpers for setting up the output directory and the files partitions are extracted to.
"""

import os
import logging

from pathlib import Path
from typing import BinaryIO

from atmfjstc.lib.file_utils import PathType

from atmfjstc.lib.pac_extractor.errors import OutputWriteError


_log = logging.getLogger(__name__)


def ensure_directory(path: PathType, mode: int = 0o777) -> bool:
    """
    Makes sure a directory exists, creating it and any missing parents if necessary (like ``mkdir -p``).

    Args:
        path: The path of the directory.
        mode: The mode with which missing directories are created (subject to the umask).

    Returns:
        True if any directory was created, False if it already existed.

    Raises:
        OutputWriteError: If the directory could not be created, e.g. because a file by that name is in the way.
    """

    path = Path(os.fsdecode(path))

    if path.is_dir():
        return False

    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as e:
        raise OutputWriteError(f"Failed to create output directory '{path}'") from e

    _log.info("Created output directory %s", path)

    return True


def resolve_output_path(output_dir: PathType, file_name: str) -> Path:
    """
    Computes the path a partition with a given file name is extracted to.

    The name comes straight from the container, so it is checked so as not to point outside `output_dir`.

    Raises:
        OutputWriteError: If the file name is empty, or resolves to a location outside the output directory.
    """

    if file_name == '':
        raise OutputWriteError("Partition has no output file name")

    output_dir = os.fsdecode(output_dir)

    base = os.path.abspath(output_dir)
    target = os.path.abspath(os.path.join(base, file_name))

    if (target == base) or (os.path.commonpath([base, target]) != base):
        raise OutputWriteError(f"Output file name {file_name!r} points outside the output directory")

    return Path(output_dir) / file_name


def remove_stale_output(path: Path):
    """
    Removes a previously extracted file at the given path, if any.

    Raises:
        OutputWriteError: If the entry exists but could not be removed.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as e:
        raise OutputWriteError(f"Error removing existing output file '{path}'") from e

    _log.debug("Removed existing output file %s", path)


def open_output_file(path: Path) -> BinaryIO:
    """
    Opens an output file for writing in binary mode, creating it or truncating any previous content.

    Raises:
        OutputWriteError: If the file could not be opened.
    """
    try:
        return open(path, 'wb')
    except OSError as e:
        raise OutputWriteError(f"Error creating output file '{path}'") from e
