"""
Service wrapping the external ``git`` executable.
"""

import os
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Callable, IO, List, Optional, Type

from ..core.progress import GitProgressParser, ProgressParser
from ..infrastructure.error_handler import (
    CloneError, PullError, ToolNotFoundError, ToolProcessError
)
from ..infrastructure.logger import logger


# Called with (fraction or None, raw output line)
ProgressCallback = Callable[[Optional[float], str], None]
LineFilter = Callable[[str], str]


class _OutputCollector:
    """Thread-safe accumulator of the combined tool output."""

    def __init__(self):
        self._lines: List[str] = []
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def text(self) -> str:
        with self._lock:
            return "\n".join(self._lines)


class GitToolService:
    """
    Runs ``git`` as a child process and streams its output.

    Calls block until the process exits; the caller is expected to run
    them off its primary thread.
    """

    def __init__(
        self,
        executable: str = "git",
        progress_parser: Optional[ProgressParser] = None
    ):
        self.executable = executable
        self.progress_parser = progress_parser or GitProgressParser()
        self._detected: Optional[Path] = None

    def detect(self) -> Optional[Path]:
        """
        Locate the executable on PATH.

        Returns:
            Full path to the tool, or None when it is not installed
        """
        if os.path.dirname(self.executable):
            candidate = Path(self.executable)
            found = str(candidate) if candidate.is_file() and \
                os.access(candidate, os.X_OK) else None
        else:
            found = shutil.which(self.executable)

        if found:
            self._detected = Path(found)
            logger.info(f"Git found at: {self._detected}")
        else:
            self._detected = None
            logger.warning(f"{self.executable} not found on system PATH")
        return self._detected

    @property
    def is_available(self) -> bool:
        """Whether clone/pull may be attempted at all."""

        if self._detected is None:
            self.detect()
        return self._detected is not None

    def verify(self) -> bool:
        """Check that the tool actually runs (``git --version``)."""

        try:
            completed = subprocess.run(
                [self.executable, "--version"],
                capture_output=True,
                text=True
            )
        except OSError as e:
            logger.warning(f"Could not run {self.executable}: {e}")
            return False
        return completed.returncode == 0

    def run_clone(
        self,
        url: str,
        dest_dir: Path,
        on_progress: Optional[ProgressCallback] = None,
        line_filter: Optional[LineFilter] = None,
        auth_header: Optional[str] = None
    ) -> str:
        """
        Clone ``url`` into ``dest_dir``.

        Args:
            url: Repository URL without credentials
            dest_dir: Target directory (may exist but must be empty)
            on_progress: Receives each parsed progress fraction with its line
            line_filter: Applied to every output line before it is stored,
                used to redact secrets
            auth_header: HTTP header sent for this invocation only; it is
                not written to the clone's config

        Returns:
            Combined output of the tool

        Raises:
            ToolNotFoundError: If the executable cannot be started
            CloneError: On non-zero exit
        """

        def handle(line: str) -> None:
            fraction = self.progress_parser.parse(line)
            if fraction is not None and on_progress:
                on_progress(fraction, line)

        args = [self.executable]
        if auth_header:
            args += ["-c", f"http.extraHeader={auth_header}"]
        args += ["clone", "--progress", url, str(dest_dir)]

        return self._run(
            args,
            cwd=None,
            on_line=handle,
            line_filter=line_filter,
            error_cls=CloneError
        )

    def run_pull(
        self,
        working_dir: Path,
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        """
        Run ``git pull`` inside ``working_dir``.

        Every stdout line is reported to ``on_progress`` as an
        ``Updating: ...`` status without a fraction.

        Raises:
            ToolNotFoundError: If the executable cannot be started
            PullError: On non-zero exit
        """

        def handle(line: str) -> None:
            if on_progress:
                on_progress(None, f"Updating: {line}")

        return self._run(
            [self.executable, "pull"],
            cwd=Path(working_dir),
            on_line=handle,
            line_filter=None,
            error_cls=PullError,
            stderr_progress=False
        )

    def _run(
        self,
        args: List[str],
        cwd: Optional[Path],
        on_line: Callable[[str], None],
        line_filter: Optional[LineFilter],
        error_cls: Type[ToolProcessError],
        stderr_progress: bool = True
    ) -> str:
        output = _OutputCollector()
        env = dict(os.environ)
        # never block on an interactive credential prompt
        env["GIT_TERMINAL_PROMPT"] = "0"

        try:
            process = subprocess.Popen(
                args,
                cwd=str(cwd) if cwd else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
                env=env
            )
        except OSError as e:
            raise ToolNotFoundError(
                f"{self.executable} could not be started", e
            )

        def pump(stream: IO[str], prefix: str, parse: bool) -> None:
            # universal newlines split git's carriage-return meter into lines
            for raw in stream:
                line = raw.rstrip("\r\n")
                if not line:
                    continue
                if line_filter:
                    line = line_filter(line)
                output.append(f"{prefix}{line}")
                logger.debug(f"{prefix}{line}")
                if parse:
                    on_line(line)
            stream.close()

        readers = [
            threading.Thread(
                target=pump, args=(process.stdout, "", True), daemon=True
            ),
            threading.Thread(
                target=pump, args=(process.stderr, "ERROR: ", stderr_progress),
                daemon=True
            ),
        ]
        for reader in readers:
            reader.start()

        exit_code = process.wait()
        for reader in readers:
            reader.join()

        combined = output.text()
        if exit_code != 0:
            raise error_cls(exit_code, combined)
        return combined


__all__ = [
    "GitToolService",
    "ProgressCallback",
]
