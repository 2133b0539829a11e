"""
Logging setup for the ``pacextractor`` command-line tool.

The library modules only ever obtain loggers via ``logging.getLogger(__name__)``. The tool routes the messages of these
loggers, and only these, to stderr, at the level named by the ``PACEXTRACTOR_LOG_LEVEL`` environment variable. The
root logger is left alone, so the setup does not interfere with programs that embed the extractor.
"""

import os
import logging

from typing import Mapping, Optional


LOG_LEVEL_ENV_VAR = 'PACEXTRACTOR_LOG_LEVEL'
DEFAULT_LOG_LEVEL = logging.WARNING

PACKAGE_LOGGER_NAME = 'atmfjstc.lib.pac_extractor'


_installed_handler: Optional[logging.Handler] = None


def init_cli_logging(environ: Optional[Mapping[str, str]] = None):
    """
    Attaches a stderr handler to the package logger, replacing the one installed by a previous call (if any).

    Messages are prefixed with their level and the module they come from, e.g.::

        INFO pac_extractor.output: Created output directory out

    Args:
        environ: The environment to read ``PACEXTRACTOR_LOG_LEVEL`` from. Defaults to `os.environ`.

    Raises:
        ValueError: If the variable does not name a known level. Logging is still set up, at `DEFAULT_LOG_LEVEL`,
            before the error is raised.
    """
    global _installed_handler

    level, level_error = DEFAULT_LOG_LEVEL, None
    try:
        env_level = log_level_from_env(environ)
        if env_level is not None:
            level = env_level
    except ValueError as e:
        level_error = e

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)

    if _installed_handler is not None:
        package_logger.removeHandler(_installed_handler)

    # Bound to whatever sys.stderr is at this point
    _installed_handler = logging.StreamHandler()
    _installed_handler.setFormatter(_ShortNameFormatter('{levelname} {short_name}: {message}', style='{'))

    package_logger.addHandler(_installed_handler)
    package_logger.setLevel(level)

    if level_error is not None:
        raise level_error


class _ShortNameFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.short_name = record.name[len('atmfjstc.lib.'):] if record.name.startswith('atmfjstc.lib.') \
            else record.name
        return super().format(record)


def log_level_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """
    Reads the logging level configured through the ``PACEXTRACTOR_LOG_LEVEL`` environment variable.

    The value is a level name as understood by `logging` (e.g. ``DEBUG``, ``info``).

    Returns:
        The level, or None if the variable is not set.

    Raises:
        ValueError: If the variable is set but does not name a known level.
    """

    raw_level = (os.environ if environ is None else environ).get(LOG_LEVEL_ENV_VAR, '').strip()
    if raw_level == '':
        return None

    level = logging.getLevelName(raw_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level in {LOG_LEVEL_ENV_VAR}: {raw_level!r}")

    return level
