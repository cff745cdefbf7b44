"""
Output file naming for a collection run.

Every run writes up to three files, named
``<hostname>_[label_]<kind>_<YYYYMMDD_HHMMSS>.<ext>``, so two runs on the same
host never collide unless started within the same second.
"""

import os
import socket
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from gcollect.config import DATETIME_FORMAT

SYMBOL_ARCHIVE_SUFFIX = ".tar.bz2"


def is_valid_datetime_format(datetime_str: str) -> bool:
    """Check if a string is a valid datetime in the format "YYYYMMDD_HHMMSS".

    Example:
        >>> is_valid_datetime_format("20250115_143022")
        True
        >>> is_valid_datetime_format("invalid")
        False
    """
    try:
        if len(datetime_str) != 15 or datetime_str[8] != '_':
            return False
        datetime.strptime(datetime_str, DATETIME_FORMAT)
        return True
    except ValueError:
        return False


def get_datetime_from_timestamp(datetime_str: str) -> Optional[datetime]:
    """Parse a "YYYYMMDD_HHMMSS" string, returning None when it is malformed."""
    if is_valid_datetime_format(datetime_str):
        return datetime.strptime(datetime_str, DATETIME_FORMAT)
    return None


def get_hostname() -> str:
    # Short name only; dots would read like extra extensions in the file names
    return socket.gethostname().split('.')[0] or "localhost"


@dataclass(frozen=True)
class RunArtifacts:
    output_dir: str
    hostname: str
    label: str
    timestamp: str

    @classmethod
    def generate(cls, output_dir: str, label: str = "", hostname: Optional[str] = None,
                 now: Optional[datetime] = None) -> "RunArtifacts":
        now = now or datetime.now()
        return cls(
            output_dir=output_dir,
            hostname=hostname or get_hostname(),
            label=label or "",
            timestamp=now.strftime(DATETIME_FORMAT),
        )

    def _path(self, kind: str, ext: str) -> str:
        label_part = f"{self.label}_" if self.label else ""
        return os.path.join(self.output_dir, f"{self.hostname}_{label_part}{kind}_{self.timestamp}.{ext}")

    @property
    def perf_file(self) -> str:
        return self._path("perf", "data")

    @property
    def info_file(self) -> str:
        return self._path("info", "txt")

    @property
    def bundle_file(self) -> str:
        return self._path("gcollect", "tar.gz")

    @property
    def symbol_archive_file(self) -> str:
        # Named by `perf archive` itself
        return f"{self.perf_file}{SYMBOL_ARCHIVE_SUFFIX}"

    def existing_outputs(self) -> List[str]:
        """Per-run files currently on disk, in bundling order."""
        candidates = [self.perf_file, self.info_file, self.symbol_archive_file]
        return [path for path in candidates if os.path.isfile(path)]
