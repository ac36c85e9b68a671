"""
Pipeline domain models for AssetSync.

This module contains data classes and enums representing a sync request,
the state of a running pipeline, relocation diagnostics and final results.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple

from ..infrastructure.error_handler import RelocationWarning
from .source import CredentialInput, SourceLocator

if TYPE_CHECKING:
    from ..infrastructure.error_handler import AssetSyncError


class Phase(Enum):
    """Phases of a pipeline run."""

    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    PREPARING_SCRATCH = "preparing_scratch"
    CLONING = "cloning"
    RELOCATING = "relocating"
    CLEANING_UP = "cleaning_up"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.COMPLETE, Phase.FAILED)


@dataclass(frozen=True)
class RelocationEntry:
    """Maps a category folder of the checkout onto a destination subpath."""

    category: str
    destination: str

    def __post_init__(self) -> None:
        if not self.category or not self.destination:
            raise ValueError("Relocation category and destination are required")


RelocationMap = Tuple[RelocationEntry, ...]

DEFAULT_RELOCATION_MAP: RelocationMap = tuple(
    RelocationEntry(name, name)
    for name in ("3dModel", "Plugins", "Scripts", "Materials", "Resources", "UI")
)


@dataclass(frozen=True)
class CategoryReport:
    """Outcome of relocating a single category."""

    category: str
    destination: Path
    found: bool
    files_copied: int = 0
    error: Optional[str] = None


@dataclass
class RelocationReport:
    """Per-category diagnostics of a relocation pass."""

    categories: list = field(default_factory=list)

    def add(self, report: CategoryReport) -> None:
        self.categories.append(report)

    @property
    def skipped(self) -> list:
        return [c.category for c in self.categories if not c.found]

    @property
    def total_files_copied(self) -> int:
        return sum(c.files_copied for c in self.categories)

    @property
    def warnings(self) -> list:
        """One ``RelocationWarning`` per skipped or failed category."""

        found = []
        for c in self.categories:
            if not c.found:
                found.append(RelocationWarning(
                    c.category, "folder not found in downloaded repository"
                ))
            elif c.error:
                found.append(RelocationWarning(c.category, c.error))
        return found

    def get(self, category: str) -> Optional[CategoryReport]:
        for c in self.categories:
            if c.category == category:
                return c
        return None


@dataclass
class OperationState:
    """
    Mutable state of one pipeline run.

    Owned by a single orchestrator; callers only ever see copies made
    through ``snapshot``.
    """

    phase: Phase = Phase.IDLE
    progress: float = 0.0
    status_message: str = ""
    scratch_path: Optional[Path] = None
    error: Optional["AssetSyncError"] = None
    warnings: Tuple[str, ...] = ()
    relocation: Optional[RelocationReport] = None

    @property
    def is_finished(self) -> bool:
        return self.phase.is_terminal

    def snapshot(self) -> "OperationState":
        return replace(self)


@dataclass(frozen=True)
class SyncRequest:
    """Everything needed for one bulk sync."""

    source: SourceLocator
    destination: Path
    credentials: CredentialInput = field(default_factory=CredentialInput)
    relocation_map: RelocationMap = DEFAULT_RELOCATION_MAP
    scratch_base: Optional[Path] = None

    def __post_init__(self) -> None:
        if not self.destination:
            raise ValueError("Destination path is required")

    @property
    def scratch_root(self) -> Path:
        return Path(self.scratch_base or self.destination)


@dataclass
class SyncResult:
    """Result of a finished pipeline run."""

    request: SyncRequest
    state: OperationState
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_successful(self) -> bool:
        return self.state.phase == Phase.COMPLETE

    @property
    def error(self) -> Optional["AssetSyncError"]:
        return self.state.error

    @property
    def duration_seconds(self) -> float:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0


__all__ = [
    "Phase",
    "RelocationEntry",
    "RelocationMap",
    "DEFAULT_RELOCATION_MAP",
    "CategoryReport",
    "RelocationReport",
    "OperationState",
    "SyncRequest",
    "SyncResult",
]
