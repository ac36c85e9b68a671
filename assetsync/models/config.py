"""
Configuration models for AssetSync.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .pipeline import DEFAULT_RELOCATION_MAP, RelocationMap


@dataclass
class SyncConfig:
    """
    Unified configuration for a sync client.

    Combines settings for the bulk clone, the scratch space and the
    direct file fetcher.
    """

    # Remote settings
    host: str = "github.com"
    branch: str = "main"

    # External tool settings
    tool_executable: str = "git"
    scratch_dir_name: str = "AssetSyncTemp"

    # Direct fetch settings
    user_agent: str = "AssetSync-SetupTool"
    timeout: float = 60.0
    chunk_size: int = 8192

    # Layout
    relocation_map: RelocationMap = DEFAULT_RELOCATION_MAP

    # Logging
    log_file: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if not self.scratch_dir_name:
            raise ValueError("scratch_dir_name is required")


__all__ = [
    "SyncConfig",
]
