"""
Public Python API for AssetSync.

``AssetSyncClient`` is the only entry point a front end (editor panel,
CLI, script) needs: it starts bulk syncs on a background worker, exposes
state snapshots for progress display and performs one-off file fetches.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Set, Union

from ..core.credentials import resolve_input
from ..core.orchestrator import PipelineOrchestrator
from ..models import (
    CredentialInput, FetchTarget, OperationState, RelocationMap,
    SourceLocator, SyncConfig, SyncRequest, SyncResult
)
from ..services import DirectFileFetcher, GitToolService, ScratchSpaceManager
from ..infrastructure.error_handler import FetchError, ToolNotFoundError
from ..infrastructure.logger import enable_file_logging, logger


# Destination roots with a run in flight, shared by every client in the process
_active_roots: Set[str] = set()
_active_roots_lock = threading.Lock()


def _claim_root(destination: Path) -> str:
    key = str(Path(destination).resolve())
    with _active_roots_lock:
        if key in _active_roots:
            raise RuntimeError(f"A sync into {destination} is already running")
        _active_roots.add(key)
    return key


def _release_root(key: str) -> None:
    with _active_roots_lock:
        _active_roots.discard(key)


class AssetSyncClient:
    """
    High-level client pulling a remote asset bundle into a local layout.
    """

    def __init__(
        self,
        source: Optional[SourceLocator] = None,
        token: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        config: Optional[SyncConfig] = None,
        verbose: bool = False
    ):
        """
        Args:
            source: Default repository for ``start`` and single-file fetches
            token: Personal access token
            username: Account name for basic auth
            password: Password for basic auth
            config: Client configuration
            verbose: Log at DEBUG level when True
        """
        self.source = source
        self.credentials = CredentialInput(token, username, password)
        self.config = config or SyncConfig()
        self.verbose = verbose
        self._apply_log_level()
        if self.config.log_file:
            enable_file_logging(self.config.log_file)

        self.git_tool = GitToolService(self.config.tool_executable)
        self.scratch_manager = ScratchSpaceManager(self.config.scratch_dir_name)
        self.fetcher = DirectFileFetcher(
            user_agent=self.config.user_agent,
            timeout=self.config.timeout,
            chunk_size=self.config.chunk_size
        )
        self.orchestrator = PipelineOrchestrator(self.git_tool, self.scratch_manager)

        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="assetsync"
        )
        self._future: Optional[Future] = None
        self._start_lock = threading.Lock()

    def _apply_log_level(self) -> None:
        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

    def set_verbose(self, verbose: bool) -> None:
        """Switch DEBUG logging on or off."""

        self.verbose = verbose
        self._apply_log_level()

    def parse_source(self, value: str, is_private: bool = False) -> SourceLocator:
        """
        Parse ``owner/repo`` or a repository URL with the configured
        host and branch as defaults.
        """
        return SourceLocator.parse(
            value,
            branch=self.config.branch,
            is_private=is_private,
            default_host=self.config.host
        )

    def _source_or_default(self, source: Optional[SourceLocator]) -> SourceLocator:
        source = source or self.source
        if source is None:
            raise ValueError("No source repository configured")
        return source

    def _build_request(
        self,
        source: Optional[SourceLocator],
        credentials: Optional[CredentialInput],
        destination: Path,
        relocation_map: Optional[RelocationMap]
    ) -> SyncRequest:
        return SyncRequest(
            source=self._source_or_default(source),
            destination=Path(destination),
            credentials=credentials or self.credentials,
            relocation_map=(
                self.config.relocation_map if relocation_map is None else relocation_map
            )
        )

    ####
    ##      BULK SYNC
    #####
    def start(
        self,
        source: Optional[SourceLocator],
        credentials: Optional[CredentialInput],
        destination: Path,
        relocation_map: Optional[RelocationMap] = None
    ) -> "Future[SyncResult]":
        """
        Start a sync on the background worker and return immediately.

        Poll ``get_state`` for progress; the returned future resolves to
        the final SyncResult.

        Raises:
            RuntimeError: If a run is already active on this client or
                into the same destination root
        """
        request = self._build_request(source, credentials, destination, relocation_map)
        with self._start_lock:
            if self._future is not None and not self._future.done():
                raise RuntimeError("A sync is already running on this client")

            key = _claim_root(request.destination)
            try:
                future = self._executor.submit(self._run_in_worker, request, key)
            except BaseException:
                _release_root(key)
                raise
            self._future = future
        return future

    def _run_in_worker(self, request: SyncRequest, key: str) -> SyncResult:
        # the root is free again by the time the future resolves
        try:
            return asyncio.run(self.orchestrator.execute(request))
        finally:
            _release_root(key)

    def run(
        self,
        destination: Path,
        source: Optional[SourceLocator] = None,
        credentials: Optional[CredentialInput] = None,
        relocation_map: Optional[RelocationMap] = None
    ) -> SyncResult:
        """Blocking convenience wrapper around ``start``."""

        return self.start(source, credentials, destination, relocation_map).result()

    async def sync(
        self,
        destination: Path,
        source: Optional[SourceLocator] = None,
        credentials: Optional[CredentialInput] = None,
        relocation_map: Optional[RelocationMap] = None
    ) -> SyncResult:
        """Run a sync on the caller's event loop."""

        request = self._build_request(source, credentials, destination, relocation_map)
        key = _claim_root(request.destination)
        try:
            return await self.orchestrator.execute(request)
        finally:
            _release_root(key)

    def get_state(self) -> OperationState:
        """Snapshot of the current or last run."""

        return self.orchestrator.get_state()

    ####
    ##      SINGLE FILES
    #####
    def fetch_single_file(
        self,
        target: FetchTarget,
        source: Optional[SourceLocator] = None,
        credentials: Optional[CredentialInput] = None
    ) -> Path:
        """
        Download one named asset outside the bulk pipeline.

        Raises:
            AuthRequiredError: If the source is private and no credentials exist
            FetchError: If the download fails
        """
        source = self._source_or_default(source)
        resolved = resolve_input(credentials or self.credentials, source.is_private)
        logger.info(f"Downloading {target.display_label} from {source.display_name}")
        return self.fetcher.fetch_file(
            source, resolved, target.remote_file_name, target.destination_path
        )

    def fetch_files(
        self,
        targets: Iterable[FetchTarget],
        source: Optional[SourceLocator] = None,
        credentials: Optional[CredentialInput] = None
    ) -> Dict[str, Union[Path, FetchError]]:
        """
        Fetch several assets one after another.

        A failing asset does not stop the others.

        Returns:
            Mapping of target label to the written path or the FetchError
        """
        outcomes: Dict[str, Union[Path, FetchError]] = {}
        for target in targets:
            try:
                outcomes[target.display_label] = self.fetch_single_file(
                    target, source, credentials
                )
            except FetchError as e:
                logger.error(f"Failed to download {target.display_label}: {e}")
                outcomes[target.display_label] = e
        return outcomes

    ####
    ##      TOOLING
    #####
    def detect_tool(self) -> Optional[Path]:
        """Locate the git executable; None when it is not installed."""

        return self.git_tool.detect()

    def verify_login(self, credentials: Optional[CredentialInput] = None) -> bool:
        """
        Check that credentials are present and the tool runs.

        No request is sent to the remote host.
        """
        credentials = credentials or self.credentials
        if credentials.is_empty:
            logger.warning("Invalid credentials")
            return False
        if not self.git_tool.verify():
            logger.warning("Git command failed")
            return False
        logger.info("Login check successful")
        return True

    def update(
        self,
        working_dir: Path,
        on_status: Optional[Callable[[str], None]] = None
    ) -> str:
        """
        Pull the latest changes into an existing checkout.

        Raises:
            ToolNotFoundError: If git is not installed
            PullError: If ``git pull`` fails
        """
        if not self.git_tool.is_available:
            raise ToolNotFoundError(
                f"{self.git_tool.executable} is not installed or not on PATH"
            )
        logger.info(f"Updating existing repository in {working_dir}")

        def report(_fraction, line: str) -> None:
            logger.debug(line)
            if on_status:
                on_status(line)

        output = self.git_tool.run_pull(Path(working_dir), report)
        logger.info("Repository updated successfully!")
        return output

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "AssetSyncClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


__all__ = [
    "AssetSyncClient",
]
