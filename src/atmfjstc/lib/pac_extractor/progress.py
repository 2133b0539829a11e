"""
Progress reporting for partition extraction.

The extractor only depends on the `ProgressReporter` interface, i.e. an object with a ``report(completed, total)``
method and an optional ``begin`` hook. Reporting is purely presentational; implementations must not raise.
"""

import sys

from abc import ABCMeta, abstractmethod
from pathlib import PurePath
from typing import Optional

from atmfjstc.lib.cli_utils.console import Console, console as default_console


class ProgressReporter(metaclass=ABCMeta):
    def begin(self, partition_name: str, output_path: PurePath):
        """
        Called once the output file for a non-empty partition has been created, before any data is copied.
        """
        pass

    @abstractmethod
    def report(self, completed_bytes: int, total_bytes: int):
        """
        Called after every chunk of a partition is written, with the number of bytes written so far and the total size
        of the partition.
        """
        raise NotImplementedError


class NullProgress(ProgressReporter):
    """A progress reporter that ignores all updates."""

    def report(self, completed_bytes: int, total_bytes: int):
        pass


class ConsoleProgressBar(ProgressReporter):
    """
    Renders progress as a text bar printed through the `cli_utils` console::

        [=========================>                        ] 51.20%

    Going through the console means the bar is silenced together with all other stdout messages when
    ``console.disable_stdout()`` is in effect. Since the console only prints whole lines, redrawing the bar in place is
    done by moving the cursor back up over the previous rendering. This only makes sense on a terminal, so by default
    the bar is redrawn only when stdout is a TTY. Otherwise, just the completed bar is printed for each partition.
    """

    _width: int
    _console: Console
    _redraw: Optional[bool]

    _last_rendered: Optional[str] = None

    def __init__(self, width: int = 50, console: Optional[Console] = None, redraw: Optional[bool] = None):
        """
        Constructor.

        Args:
            width: The number of columns between the brackets.
            console: The console to print through. Defaults to the shared `cli_utils` console.
            redraw: Whether to redraw the bar in place after every update. If None (the default), this is decided by
                whether stdout is a terminal.
        """

        if width < 1:
            raise ValueError(f"Progress bar width must be at least 1 (is: {width})")

        self._width = width
        self._console = console or default_console
        self._redraw = redraw

    def begin(self, partition_name: str, output_path: PurePath):
        self._last_rendered = None

    def report(self, completed_bytes: int, total_bytes: int):
        rendered = render_progress_bar(completed_bytes, total_bytes, self._width)
        if rendered == self._last_rendered:
            return

        if self._should_redraw():
            self._console.print_progress(('' if self._last_rendered is None else _CURSOR_UP_AND_CLEAR) + rendered)
        elif completed_bytes >= total_bytes:
            self._console.print_progress(rendered)

        self._last_rendered = None if completed_bytes >= total_bytes else rendered

    def _should_redraw(self) -> bool:
        return sys.stdout.isatty() if self._redraw is None else self._redraw


_CURSOR_UP_AND_CLEAR = '\x1b[1A\r\x1b[2K'


def render_progress_bar(completed: int, total: int, width: int = 50) -> str:
    progress = 1.0 if total <= 0 else min(1.0, completed / total)
    pos = int(width * progress)

    bar = ''.join(
        '=' if i < pos else ('>' if i == pos else ' ')
        for i in range(width)
    )

    return f"[{bar}] {progress * 100:.2f}%"
