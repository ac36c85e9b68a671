"""
Caller-facing surfaces: the Python API and the command line.
"""

from .api import AssetSyncClient

__all__ = [
    "AssetSyncClient",
]
