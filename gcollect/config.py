"""
Constants and defaults for gcollect.

Everything that the original tool exposed as editable variables at the top of
the script lives here as a default; the CLI and the optional YAML config file
override them per run.
"""

import enum
import os


VERSION = "1.1.0"
TOOL_NAME = "g#collect"

# Perf events to record (comma-separated)
DEFAULT_PERF_EVENTS = (
    "cycles/period=100000/,instructions/period=100000/,"
    "L1-dcache-load-misses/period=10000/,LLC-load-misses/period=10000/"
)
# -T: record timestamps for each sample
DEFAULT_PERF_EXTRA_OPTS = "-T"
DEFAULT_DURATION = 0
DEFAULT_OUTPUT_DIR = "."
DEFAULT_TURBOSTAT_ITERATIONS = 5
DEFAULT_UPLOAD_TIMEOUT = 300

PERF_BIN = "perf"
LSCPU_BIN = "lscpu"
UNAME_BIN = "uname"
TURBOSTAT_BIN = "turbostat"

PROC_CMDLINE = "/proc/cmdline"
PROC_SELF_STATUS = "/proc/self/status"

DATETIME_FORMAT = "%Y%m%d_%H%M%S"
DISPLAY_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

# Sampler start-up verification delays (seconds)
STARTUP_LIVENESS_DELAY = 2.0
STARTUP_OUTPUT_DELAY = 1.0

# Timed collection polls once per second and reports every 10 seconds
POLL_INTERVAL = 1.0
PROGRESS_INTERVAL = 10
# Manual collection waits on the sampler in slices so stop requests are seen
MANUAL_WAIT_SLICE = 0.5

# Warn when the output directory has less free space than this
MIN_FREE_SPACE_BYTES = 1024 ** 3

UPLOAD_TOKEN_ENV = "GCOLLECT_UPLOAD_TOKEN"
UPLOAD_URL_ENV = "GCOLLECT_UPLOAD_URL"
GCOLLECT_DEBUG = os.environ.get("GCOLLECT_DEBUG", "").lower() in ("1", "true", "yes")


class CoreMode(enum.Enum):
    AUTO = "auto"
    ALL = "all"
    MANUAL = "manual"

    def __str__(self):
        return self.value


CORE_MODES = [mode.value for mode in CoreMode]


class EXIT_CODE(enum.IntEnum):
    SUCCESS = 0
    FAILURE = 1

    def __str__(self):
        return f"{self.name} ({self.value})"
