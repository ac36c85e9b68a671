"""
Services talking to the outside world: the git executable, the
filesystem scratch space and the raw-content HTTP endpoint.
"""

from .git_tool import GitToolService
from .scratch import ScratchSpaceManager
from .fetcher import DirectFileFetcher

__all__ = [
    "GitToolService",
    "ScratchSpaceManager",
    "DirectFileFetcher",
]
