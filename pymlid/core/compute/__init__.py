"""
Shared compute infrastructure for PyMLID.

Submodules:
    timing: Execution timing utilities
"""

from pymlid.core.compute.timing import Timer

__all__ = [
    "Timer",
]
