"""
Scratch space management for bulk clones.
"""

import os
import shutil
import stat
import subprocess
import sys
import time
from pathlib import Path

from ..infrastructure.error_handler import CleanupError, ScratchPreparationError
from ..infrastructure.logger import logger


def _make_writable(path: str) -> None:
    mode = os.lstat(path).st_mode
    if stat.S_ISLNK(mode):
        return
    extra = stat.S_IREAD | stat.S_IWRITE
    if stat.S_ISDIR(mode):
        extra |= stat.S_IEXEC
    os.chmod(path, stat.S_IMODE(mode) | extra)


class ScratchSpaceManager:
    """
    Creates and force-clears the isolated directory a clone runs in.
    """

    def __init__(self, dir_name: str = "AssetSyncTemp"):
        self.dir_name = dir_name

    def canonical_path(self, base_dir: Path) -> Path:
        return Path(base_dir) / self.dir_name

    def prepare(self, base_dir: Path) -> Path:
        """
        Create a fresh, empty scratch directory under ``base_dir``.

        A leftover directory at the canonical path is destroyed first. If
        that or the creation fails, a uniquely suffixed alternate path is
        used instead.

        Args:
            base_dir: Directory the scratch space lives in

        Returns:
            Path of the created scratch directory

        Raises:
            ScratchPreparationError: If no scratch directory could be created
        """
        path = self.canonical_path(base_dir)
        try:
            if path.exists():
                self.destroy(path)
            path.mkdir(parents=True)
            return path
        except (CleanupError, OSError) as e:
            logger.warning(f"Failed to prepare temp directory {path}: {e}")

        alternate = Path(base_dir) / f"{self.dir_name}_{time.time_ns()}"
        logger.info(f"Using alternative temp folder: {alternate}")
        try:
            alternate.mkdir(parents=True)
        except OSError as e:
            raise ScratchPreparationError(
                f"Could not create scratch directory under {base_dir}", e
            )
        return alternate

    def destroy(self, path: Path) -> None:
        """
        Delete ``path`` recursively, clearing read-only bits first.

        Calling this on a path that does not exist is a no-op.

        Raises:
            CleanupError: If the directory survives every strategy
        """
        path = Path(path)
        if not os.path.lexists(path):
            return

        if path.is_symlink() or not path.is_dir():
            try:
                path.unlink()
            except OSError as e:
                raise CleanupError(path, original_error=e)
            return

        self._clear_read_only(path)

        if os.name == "nt":
            self._shell_delete(path)
            if path.exists():
                logger.warning(
                    f"Command line deletion failed, falling back to library delete for {path}"
                )

        last_error = None
        if path.exists():
            try:
                self._library_delete(path)
            except OSError as e:
                last_error = e

        if path.exists():
            raise CleanupError(path, original_error=last_error)
        logger.debug(f"Removed scratch directory {path}")

    def _clear_read_only(self, root: Path) -> None:
        try:
            _make_writable(str(root))
        except OSError as e:
            logger.debug(f"Could not clear read-only flag on {root}: {e}")
        for current, dirs, files in os.walk(root):
            for name in dirs + files:
                try:
                    _make_writable(os.path.join(current, name))
                except OSError as e:
                    logger.debug(f"Could not clear read-only flag on {name}: {e}")

    def _shell_delete(self, path: Path) -> None:
        try:
            subprocess.run(
                ["cmd.exe", "/c", "rd", "/s", "/q", str(path)],
                capture_output=True
            )
        except OSError as e:
            logger.debug(f"rd failed for {path}: {e}")

    def _library_delete(self, path: Path) -> None:

        def retry_writable(func, failed_path, _exc):
            _make_writable(failed_path)
            func(failed_path)

        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=retry_writable)
        else:
            shutil.rmtree(path, onerror=retry_writable)


__all__ = [
    "ScratchSpaceManager",
]
