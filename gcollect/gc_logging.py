"""
Console logging for gcollect.

All output goes to stderr through a GCLogger, which adds three levels to the
stdlib set: STATUS for run milestones, RESULT for the final report and
VERBOSE for detail shown with --verbose. Records are colored by level when
stderr is a terminal.
"""

import datetime
import enum
import logging
import sys

CRITICAL = logging.CRITICAL
ERROR = logging.ERROR
RESULT = 35
WARNING = logging.WARNING   # 30
STATUS = 25
INFO = logging.INFO         # 20
VERBOSE = 19
DEBUG = logging.DEBUG       # 10

DEFAULT_STREAM_LOG_LEVEL = INFO

custom_levels = {
    'RESULT': RESULT,
    'STATUS': STATUS,
    'VERBOSE': VERBOSE,
}

for _name, _num in custom_levels.items():
    logging.addLevelName(_num, _name)


class COLORS(enum.Enum):
    red = "\033[0;31m"
    green = "\033[0;32m"
    yellow = "\033[1;33m"
    blue = "\033[0;34m"
    bred = "\033[1;31m"
    bgreen = "\033[1;32m"
    normal = "\033[0m"


level_to_color_map = {
    CRITICAL: COLORS.bred,
    ERROR: COLORS.red,
    RESULT: COLORS.bgreen,
    WARNING: COLORS.yellow,
    STATUS: COLORS.green,
    INFO: COLORS.blue,
}


def get_level_color(level):
    return level_to_color_map.get(level, COLORS.normal).value


class GCLogger(logging.Logger):
    """Logger with STATUS, RESULT and VERBOSE helpers."""

    # stacklevel=2 attributes the record to the helper's caller, not this module
    def status(self, message, *args, **kwargs):
        if self.isEnabledFor(STATUS):
            kwargs.setdefault("stacklevel", 2)
            self._log(STATUS, message, args, **kwargs)

    def result(self, message, *args, **kwargs):
        if self.isEnabledFor(RESULT):
            kwargs.setdefault("stacklevel", 2)
            self._log(RESULT, message, args, **kwargs)

    def verbose(self, message, *args, **kwargs):
        if self.isEnabledFor(VERBOSE):
            kwargs.setdefault("stacklevel", 2)
            self._log(VERBOSE, message, args, **kwargs)


class GCFormatter(logging.Formatter):
    """
    `[LEVEL] message`, or with detailed=True
    `YYYY-mm-dd HH:MM:SS|LEVEL:module:line: message`.
    """

    def __init__(self, detailed=False, use_colors=True):
        super().__init__()
        self.detailed = detailed
        self.use_colors = use_colors

    def format(self, record):
        if self.detailed:
            stamp = datetime.datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
            prefix = f"{stamp}|{record.levelname}:{record.module}:{record.lineno}:"
        else:
            prefix = f"[{record.levelname}]"

        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if not self.use_colors:
            return f"{prefix} {message}"
        return f"{get_level_color(record.levelno)}{prefix}{COLORS.normal.value} {message}"


def _stream_handlers(_logger):
    return [h for h in _logger.handlers if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)]


def setup_logging(name=__name__, stream_log_level=DEFAULT_STREAM_LOG_LEVEL, use_colors=None):
    """Create a GCLogger writing to stderr; colors default to whether stderr is a TTY."""
    if isinstance(stream_log_level, str):
        stream_log_level = logging.getLevelName(stream_log_level.upper())
    if use_colors is None:
        use_colors = sys.stderr.isatty()

    _logger = GCLogger(name)
    _logger.setLevel(DEBUG)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(GCFormatter(use_colors=use_colors))
    stream_handler.setLevel(stream_log_level)
    _logger.addHandler(stream_handler)

    return _logger


def apply_logging_options(_logger, args):
    """
    Apply --verbose, --debug and --stream-log-level to the stream handlers.

    --verbose and --debug only ever lower the threshold; an explicit
    --stream-log-level is applied last and wins.
    """
    if args is None:
        return

    for handler in _stream_handlers(_logger):
        threshold = handler.level
        if getattr(args, "verbose", False):
            threshold = min(threshold, VERBOSE)
        if getattr(args, "debug", False):
            threshold = min(threshold, DEBUG)
            colors = getattr(handler.formatter, "use_colors", True)
            handler.setFormatter(GCFormatter(detailed=True, use_colors=colors))

        explicit = getattr(args, "stream_log_level", None)
        if explicit:
            threshold = logging.getLevelName(explicit.upper())

        handler.setLevel(threshold)
