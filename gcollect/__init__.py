"""
gcollect - host-side hardware performance data collection.

Launches and supervises ``perf record``, captures system description text
and finalizes the run into a single bundle that can be uploaded for analysis.
"""

from gcollect.config import VERSION

__all__ = ["VERSION"]
