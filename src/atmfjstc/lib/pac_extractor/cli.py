"""
The ``pacextractor`` command-line tool.

Usage::

    pacextractor -e <firmware name>.pac -o <output path>
    pacextractor -h
    pacextractor -v

The exit status is 0 on success and 1 on any error (including invalid arguments).
"""

import sys

from argparse import ArgumentParser, Namespace
from pathlib import PurePath
from typing import Optional, Sequence, NoReturn

from atmfjstc.lib.cli_utils.console import console
from atmfjstc.lib.cli_utils.errors import DescriptiveError, descriptive_errors, pretty_print_exception, \
    pretty_unhandled

from atmfjstc.lib.pac_extractor import __version__
from atmfjstc.lib.pac_extractor.errors import PACFileError
from atmfjstc.lib.pac_extractor.driver import PACExtractionDriver, ExtractionSummary
from atmfjstc.lib.pac_extractor.progress import ConsoleProgressBar
from atmfjstc.lib.pac_extractor.logging import init_cli_logging


PROGRAM_NAME = 'pacextractor'

USAGE = f"""\
Usage: {PROGRAM_NAME} -e <firmware name>.pac -o <output path>
Options:
  -h               Show this help message and exit
  -v               Show version information and exit"""


class InvalidArgumentsError(Exception):
    pass


class _ArgumentParser(ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise InvalidArgumentsError(message)


def parse_args(argv: Sequence[str]) -> Namespace:
    """
    Parses the command line (without the program name).

    Raises:
        InvalidArgumentsError: If the arguments are malformed, or neither help, version nor a complete extraction
            request (both ``-e`` and ``-o``) is present.
    """

    parser = _ArgumentParser(prog=PROGRAM_NAME, add_help=False)
    parser.add_argument('-h', dest='help', action='store_true')
    parser.add_argument('-v', dest='version', action='store_true')
    parser.add_argument('-e', dest='container', metavar='FIRMWARE')
    parser.add_argument('-o', dest='output_dir', metavar='OUTPUT_PATH')

    args = parser.parse_args(argv)

    if not (args.help or args.version) and ((args.container is None) or (args.output_dir is None)):
        raise InvalidArgumentsError("Both a firmware file (-e) and an output path (-o) are required")

    return args


class _ExtractionProgress(ConsoleProgressBar):
    def begin(self, partition_name: str, output_path: PurePath):
        console.print_info(f"Extracting to {output_path}")
        super().begin(partition_name, output_path)


def run_extraction(container: str, output_dir: str) -> int:
    """
    Extracts all partitions of a container, reporting progress and errors on the console.

    Returns:
        The exit status: 0 for success, 1 for failure.
    """

    try:
        with descriptive_errors(PACFileError, OSError):
            summary = _extract_with_report(container, output_dir)
    except (DescriptiveError, KeyboardInterrupt) as e:
        pretty_print_exception(e)
        return 1

    created = " (created)" if summary.output_dir_created else ''
    console.print_success(
        f"Extracted {summary.partitions_extracted} partition(s), {summary.total_bytes_written} bytes in total, "
        f"to {output_dir}{created}"
    )

    return 0


def _extract_with_report(container: str, output_dir: str) -> ExtractionSummary:
    with PACExtractionDriver(container, output_dir, progress=_ExtractionProgress()) as driver:
        header = driver.read_header()
        console.print_info(f"Firmware name: {header.firmware_name}")

        for partition in driver.read_records():
            console.print_info(
                f"Partition name: {partition.partition_name}\n"
                f"\twith file name: {partition.file_name}\n"
                f"\twith size {partition.partition_size}"
            )

        return driver.extract_all()


def _setup_logging():
    try:
        init_cli_logging()
    except ValueError as e:
        console.print_warning(f"{e}, using the default level")


@pretty_unhandled()
def main(argv: Optional[Sequence[str]] = None) -> int:
    _setup_logging()

    try:
        args = parse_args(sys.argv[1:] if argv is None else argv)
    except InvalidArgumentsError as e:
        console.print_error(str(e))
        console.print_info(USAGE)
        return 1

    if args.help:
        console.print_info(USAGE)
        return 0
    if args.version:
        console.print_info(f"{PROGRAM_NAME} version {__version__}")
        return 0

    return run_extraction(args.container, args.output_dir)
