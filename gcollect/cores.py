"""
Core selection for perf sampling.

Resolves the CPU cores perf should be restricted to from one of three modes:

- manual: the user-supplied list, passed through verbatim
- all: system-wide sampling
- auto: the isolated cores named by the ``isolcpus=`` kernel boot parameter,
  falling back to system-wide sampling when none are configured

Missing isolation configuration is not an error; the run just samples every
core.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from gcollect.config import CoreMode, PROC_CMDLINE
from gcollect.errors import ConfigurationError, ErrorCode
from gcollect.error_messages import format_error

ALL_CORES_TOKEN = "all"

ISOLCPUS_RE = re.compile(r'(?:^|\s)isolcpus=(\S+)')
CPU_RANGE_RE = re.compile(r'\d+(?:-\d+)?')


@dataclass(frozen=True)
class CoreSet:
    """Either every core (``cores == "all"``) or a non-empty CPU list like ``1-30,33-62``."""
    cores: str

    def __post_init__(self):
        if not self.cores:
            raise ValueError("CoreSet cannot be empty")

    @property
    def is_all(self) -> bool:
        return self.cores == ALL_CORES_TOKEN

    def sampler_args(self) -> List[str]:
        """perf record arguments restricting sampling to this core set."""
        if self.is_all:
            return ["-a"]
        return ["-C", self.cores]

    def describe(self) -> str:
        return "all (system-wide)" if self.is_all else self.cores

    def __str__(self):
        return self.cores


ALL_CORES = CoreSet(ALL_CORES_TOKEN)


def parse_isolcpus(cmdline: str) -> str:
    """
    Extract the CPU list from the ``isolcpus=`` parameter of a kernel command line.

    Qualifier flags such as ``domain``, ``nohz`` or ``managed_irq`` are dropped,
    keeping only the comma separated numbers and ranges. When the parameter is
    given more than once the last one wins, as it does for the kernel.

    Returns:
        The CPU list, or an empty string when the parameter is absent or holds
        no CPU numbers.

    Example:
        >>> parse_isolcpus("BOOT_IMAGE=/vmlinuz isolcpus=domain,1-30,33-62 quiet")
        '1-30,33-62'
    """
    matches = ISOLCPUS_RE.findall(cmdline)
    if not matches:
        return ""

    tokens = matches[-1].split(',')
    return ",".join(token for token in tokens if CPU_RANGE_RE.fullmatch(token))


def detect_isolated_cores(cmdline_path: str = PROC_CMDLINE, logger=None) -> CoreSet:
    """Return the isolated cores from the boot parameters, or ALL_CORES."""
    if logger:
        logger.info(f"Detecting isolated cores from {cmdline_path}...")

    try:
        with open(cmdline_path, 'r') as f:
            cmdline = f.read()
    except OSError as e:
        if logger:
            logger.warning(f"Could not read {cmdline_path}: {e}")
            logger.warning("Will collect data from all available cores")
        return ALL_CORES

    if not ISOLCPUS_RE.search(cmdline):
        if logger:
            logger.warning(f"No isolated cores found in {cmdline_path}")
            logger.warning("Will collect data from all available cores")
        return ALL_CORES

    isolated = parse_isolcpus(cmdline)
    if not isolated:
        if logger:
            logger.warning(f"Could not parse CPU list from isolcpus parameter: "
                           f"{ISOLCPUS_RE.findall(cmdline)[-1]}")
            logger.warning("Will collect data from all available cores")
        return ALL_CORES

    if logger:
        logger.status(f"Detected isolated cores: {isolated}")
    return CoreSet(isolated)


def select_cores(config, logger=None, cmdline_path: Optional[str] = None) -> CoreSet:
    """
    Resolve the core set for a run.

    Raises:
        ConfigurationError: Manual mode without a core list.
    """
    if config.core_mode is CoreMode.MANUAL:
        if not config.manual_cores:
            raise ConfigurationError(
                format_error('CONFIG_MANUAL_CORES_MISSING'),
                parameter="cores",
                code=ErrorCode.CONFIG_MISSING_REQUIRED,
            )
        return CoreSet(config.manual_cores)

    if config.core_mode is CoreMode.ALL:
        return ALL_CORES

    return detect_isolated_cores(cmdline_path or PROC_CMDLINE, logger=logger)
