"""
Error taxonomy and error mapping helpers for AssetSync.
"""

import functools
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import httpx

from .logger import logger


F = TypeVar("F", bound=Callable[..., Any])


####
##      EXCEPTIONS
#####
class AssetSyncError(Exception):
    """Base exception for every pipeline failure."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} | Original: {self.original_error}"
        return self.message


class AuthRequiredError(AssetSyncError):
    """A private source was requested without usable credentials."""


class ToolNotFoundError(AssetSyncError):
    """The external version-control tool is not installed."""


class ScratchPreparationError(AssetSyncError):
    """Neither the canonical nor the alternate scratch path could be created."""


class ToolProcessError(AssetSyncError):
    """The external tool exited with a non-zero status."""

    action = "Git command"

    def __init__(self, exit_code: int, output: str):
        self.exit_code = exit_code
        self.output = output
        super().__init__(
            f"{self.action} failed with exit code {exit_code}. Output: {output}"
        )


class CloneError(ToolProcessError):
    action = "Git clone"


class PullError(ToolProcessError):
    action = "Git pull"


class CleanupError(AssetSyncError):
    """A scratch directory survived every deletion strategy."""

    def __init__(
        self,
        path: Path,
        message: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.path = Path(path)
        super().__init__(
            message or f"Could not remove directory {path}", original_error
        )


class FetchError(AssetSyncError):
    """A direct file download did not succeed."""

    def __init__(
        self,
        status: Optional[int],
        reason: str,
        url: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.status = status
        self.reason = reason
        self.url = url
        if status is None:
            message = f"Download failed: {reason}"
        else:
            message = f"Download failed: HTTP {status} - {reason}"
        super().__init__(message, original_error)


@dataclass(frozen=True)
class RelocationWarning:
    """Non-fatal problem encountered while relocating one category."""

    category: str
    message: str

    def __str__(self) -> str:
        return f"{self.category}: {self.message}"


####
##      DECORATORS
#####
def handle_fetch_error(func: F) -> F:
    """
    Map transport and filesystem failures of a fetch into ``FetchError``.

    ``AssetSyncError`` subclasses raised inside ``func`` pass through
    unchanged.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AssetSyncError:
            raise
        except httpx.TimeoutException as e:
            logger.error(f"Timed out while downloading: {e}")
            raise FetchError(None, "Request timed out", original_error=e)
        except httpx.HTTPError as e:
            logger.error(f"HTTP transport error: {e}")
            raise FetchError(None, str(e) or type(e).__name__, original_error=e)
        except OSError as e:
            logger.error(f"Could not write downloaded file: {e}")
            raise FetchError(None, f"Filesystem error: {e}", original_error=e)

    return wrapper  # type: ignore[return-value]


__all__ = [
    "AssetSyncError",
    "AuthRequiredError",
    "ToolNotFoundError",
    "ScratchPreparationError",
    "ToolProcessError",
    "CloneError",
    "PullError",
    "CleanupError",
    "FetchError",
    "RelocationWarning",
    "handle_fetch_error",
]
