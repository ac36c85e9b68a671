"""
Core data models API surface for AssetSync.

This file re-exports model classes from domain-specific modules so callers
can write `from assetsync.models import X`.
"""

from .source import (
    TokenAuth,
    BasicAuth,
    Credentials,
    CredentialInput,
    SourceLocator,
    FetchTarget,
)
from .pipeline import (
    Phase,
    RelocationEntry,
    RelocationMap,
    DEFAULT_RELOCATION_MAP,
    CategoryReport,
    RelocationReport,
    OperationState,
    SyncRequest,
    SyncResult,
)
from .config import SyncConfig

__all__ = [
    # Source models
    "TokenAuth",
    "BasicAuth",
    "Credentials",
    "CredentialInput",
    "SourceLocator",
    "FetchTarget",
    # Pipeline models
    "Phase",
    "RelocationEntry",
    "RelocationMap",
    "DEFAULT_RELOCATION_MAP",
    "CategoryReport",
    "RelocationReport",
    "OperationState",
    "SyncRequest",
    "SyncResult",
    # Config models
    "SyncConfig",
]
