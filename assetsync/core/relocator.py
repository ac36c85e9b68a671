"""
Merges the category folders of a checkout into the destination layout.
"""

import errno
import os
import shutil
import stat
from pathlib import Path
from typing import Iterable, Set

from ..models import CategoryReport, RelocationEntry, RelocationReport
from ..infrastructure.logger import logger


class Relocator:
    """
    Copies each mapped category of a scratch checkout into
    ``destination_root``, overwriting files that already exist.
    """

    def __init__(self, destination_root: Path):
        self.destination_root = Path(destination_root)

    def relocate(
        self,
        scratch_root: Path,
        relocation_map: Iterable[RelocationEntry]
    ) -> RelocationReport:
        """
        Relocate every category of ``relocation_map`` in order.

        Categories missing from the checkout are recorded as skips. A
        filesystem error inside one category is recorded on that category
        and the remaining categories are still processed.

        Args:
            scratch_root: Root of the cloned checkout
            relocation_map: Ordered category to destination mapping

        Returns:
            RelocationReport with per-category diagnostics
        """
        scratch_root = Path(scratch_root)
        entries = list(relocation_map)
        report = RelocationReport()
        logger.info("Relocating downloaded files to their correct locations")

        for entry in entries:
            self._ensure_directory(self.destination_root / entry.destination)

        for entry in entries:
            source = scratch_root / entry.category
            target = self.destination_root / entry.destination

            if not source.is_dir():
                logger.warning(
                    f"{entry.category} folder not found in downloaded repository"
                )
                report.add(CategoryReport(entry.category, target, found=False))
                continue

            logger.info(f"Moving {entry.category} files from {source} to {target}")
            try:
                copied = self._merge_directory(source, target, set())
            except OSError as e:
                logger.warning(f"Failed to relocate {entry.category}: {e}")
                report.add(CategoryReport(
                    entry.category, target, found=True, error=str(e)
                ))
                continue

            report.add(CategoryReport(
                entry.category, target, found=True, files_copied=copied
            ))

        logger.info(
            f"Files relocated: {report.total_files_copied} copied, "
            f"{len(report.skipped)} categories skipped"
        )
        return report

    def _merge_directory(
        self,
        source: Path,
        target: Path,
        ancestors: Set[str]
    ) -> int:
        # symlinked directories are followed; `ancestors` breaks link cycles
        real = os.path.realpath(source)
        if real in ancestors:
            logger.warning(f"Skipping directory cycle at {source}")
            return 0
        ancestors.add(real)

        self._ensure_directory(target)
        with os.scandir(source) as it:
            entries = sorted(it, key=lambda e: e.name)

        copied = 0
        for entry in entries:
            destination = target / entry.name
            if entry.is_dir():
                copied += self._merge_directory(
                    Path(entry.path), destination, ancestors
                )
            elif entry.is_file():
                self._copy_file(Path(entry.path), destination)
                copied += 1
            else:
                logger.debug(f"Skipping dangling link or special file {entry.path}")

        ancestors.discard(real)
        return copied

    def _copy_file(self, source: Path, destination: Path) -> None:
        # a link is replaced, never written through
        if destination.is_symlink():
            destination.unlink()
        elif destination.is_dir():
            raise IsADirectoryError(
                errno.EISDIR, "Cannot overwrite a directory with a file", str(destination)
            )
        if destination.exists() and not os.access(destination, os.W_OK):
            os.chmod(destination, destination.stat().st_mode | stat.S_IWRITE)
        shutil.copy2(source, destination)
        logger.debug(f"Copied file: {destination}")

    def _ensure_directory(self, directory: Path) -> None:
        if not directory.is_dir():
            directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created directory: {directory}")


__all__ = [
    "Relocator",
]
