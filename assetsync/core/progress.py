"""
Line-to-fraction progress parsers for external tool output.
"""

import re
from typing import Optional, Pattern, Protocol


class ProgressParser(Protocol):
    """Turns one output line into a completion fraction, if it carries one."""

    def parse(self, line: str) -> Optional[float]:
        ...


class RegexProgressParser:
    """Extracts a percentage captured by the first group of ``pattern``."""

    def __init__(self, pattern: str):
        self.pattern: Pattern[str] = re.compile(pattern)

    def parse(self, line: str) -> Optional[float]:
        match = self.pattern.search(line)
        if not match:
            return None
        percent = int(match.group(1))
        return min(max(percent, 0), 100) / 100.0


class GitProgressParser(RegexProgressParser):
    """Reads the ``Receiving objects: NN%`` meter printed by ``git clone``."""

    def __init__(self):
        super().__init__(r"Receiving objects:\s+(\d+)%")


def scale_progress(fraction: float, start: float, end: float) -> float:
    """Map a 0..1 fraction into the ``[start, end]`` sub-range."""

    fraction = min(max(fraction, 0.0), 1.0)
    return start + (end - start) * fraction


__all__ = [
    "ProgressParser",
    "RegexProgressParser",
    "GitProgressParser",
    "scale_progress",
]
