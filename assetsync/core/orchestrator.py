"""
Orchestrator sequencing authentication, clone, relocation and cleanup
into a single observable pipeline run.
"""

import asyncio
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..models import (
    Credentials, OperationState, Phase, SyncRequest, SyncResult
)
from ..services import GitToolService, ScratchSpaceManager
from ..infrastructure.error_handler import (
    AssetSyncError, AuthRequiredError, CleanupError, ToolNotFoundError
)
from .credentials import describe_credentials, git_auth_header, redact, resolve_input
from .progress import scale_progress
from .relocator import Relocator

from assetsync.infrastructure.logger import logger


# Fixed progress milestones; cloning fills the range between scratch and relocation
AUTH_PROGRESS = 0.05
SCRATCH_PROGRESS = 0.10
CLONE_END_PROGRESS = 0.80
RELOCATE_PROGRESS = 0.80
CLEANUP_PROGRESS = 0.95
COMPLETE_PROGRESS = 1.0


####
##      PIPELINE ORCHESTRATOR
#####
class PipelineOrchestrator:
    """
    Runs the acquisition state machine and owns its OperationState.

    Blocking work is pushed to worker threads, so the event loop and any
    thread polling ``get_state`` stay responsive.
    """

    def __init__(
        self,
        git_tool: GitToolService,
        scratch_manager: ScratchSpaceManager
    ):
        self.git_tool = git_tool
        self.scratch_manager = scratch_manager

        self._lock = threading.Lock()
        self._state = OperationState()
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def execute(self, request: SyncRequest) -> SyncResult:
        """
        Execute one complete sync.

        Args:
            request: Source, destination, credentials and layout of the run

        Returns:
            SyncResult holding the final state snapshot; failures are
            reported through ``result.state.error`` rather than raised

        Raises:
            RuntimeError: If this orchestrator is already running a sync
        """
        with self._lock:
            if self._is_running:
                raise RuntimeError("A sync is already running on this orchestrator")
            self._is_running = True
            self._state = OperationState()

        logger.debug(f"Starting sync of {request.source.display_name} into {request.destination}")
        result = SyncResult(request=request, state=self.get_state())

        try:
            await self._run_pipeline(request)
        except AssetSyncError as e:
            self._fail(e)
        except Exception as e:
            self._fail(AssetSyncError(f"Sync failed: {e}", e))
        finally:
            with self._lock:
                self._is_running = False

        result.state = self.get_state()
        result.completed_at = datetime.now()
        return result

    async def _run_pipeline(self, request: SyncRequest) -> None:
        source = request.source

        if source.is_private or not request.credentials.is_empty:
            self._transition(Phase.AUTHENTICATING, AUTH_PROGRESS, "Authenticating...")
        credentials = resolve_input(request.credentials, source.is_private)
        logger.info(
            f"Using {describe_credentials(credentials)} access for {source.display_name}"
        )

        if not self.git_tool.is_available:
            raise ToolNotFoundError(
                f"{self.git_tool.executable} is not installed or not on PATH"
            )
        if source.is_private and not await asyncio.to_thread(self.git_tool.verify):
            raise AuthRequiredError(
                f"Login check failed: {self.git_tool.executable} --version did not succeed"
            )

        self._transition(
            Phase.PREPARING_SCRATCH, AUTH_PROGRESS, "Preparing temporary folder..."
        )
        await asyncio.to_thread(request.destination.mkdir, parents=True, exist_ok=True)
        scratch = await asyncio.to_thread(
            self.scratch_manager.prepare, request.scratch_root
        )
        with self._lock:
            self._state.scratch_path = scratch

        self._transition(Phase.CLONING, SCRATCH_PROGRESS, "Cloning repository...")
        try:
            await self._clone(source.clone_url, scratch, credentials)
        except BaseException:
            await self._destroy_scratch(scratch)
            raise
        logger.info(f"Cloned {source.clone_url}")

        self._transition(
            Phase.RELOCATING, RELOCATE_PROGRESS, "Moving files to correct locations..."
        )
        await self._relocate(request, scratch)

        self._transition(Phase.CLEANING_UP, CLEANUP_PROGRESS, "Cleaning up...")
        await self._destroy_scratch(scratch)

        self._transition(
            Phase.COMPLETE, COMPLETE_PROGRESS, "Download and installation complete!"
        )
        logger.info("Assets downloaded successfully")

    async def _clone(self, url: str, scratch: Path, credentials: Credentials) -> None:
        await asyncio.to_thread(
            self.git_tool.run_clone,
            url,
            scratch,
            self._on_clone_progress,
            lambda line: redact(line, credentials),
            git_auth_header(credentials)
        )

    async def _relocate(self, request: SyncRequest, scratch: Path) -> None:
        relocator = Relocator(request.destination)
        try:
            report = await asyncio.to_thread(
                relocator.relocate, scratch, request.relocation_map
            )
        except Exception as e:
            logger.warning(f"Failed to relocate files: {e}")
            self._add_warning(f"Failed to relocate files: {e}")
            return

        with self._lock:
            self._state.relocation = report
        for warning in report.warnings:
            self._add_warning(str(warning))

    async def _destroy_scratch(self, scratch: Path) -> None:
        try:
            await asyncio.to_thread(self.scratch_manager.destroy, scratch)
        except CleanupError as e:
            message = (
                f"Could not remove temp folder: {e}. Manual cleanup may be required."
            )
            logger.warning(message)
            self._add_warning(message)

    def _on_clone_progress(self, fraction: Optional[float], line: str) -> None:
        # runs on the tool's reader threads
        if fraction is None:
            return
        value = scale_progress(fraction, SCRATCH_PROGRESS, CLONE_END_PROGRESS)
        with self._lock:
            if self._state.phase != Phase.CLONING:
                return
            self._state.progress = max(self._state.progress, value)
            self._state.status_message = line

    def _transition(self, phase: Phase, progress: float, message: str) -> None:
        with self._lock:
            if self._state.phase.is_terminal:
                raise RuntimeError(
                    f"Cannot leave terminal phase {self._state.phase.value}"
                )
            self._state.phase = phase
            self._state.progress = max(self._state.progress, progress)
            self._state.status_message = message
        logger.info(message)

    def _add_warning(self, message: str) -> None:
        with self._lock:
            self._state.warnings = self._state.warnings + (message,)

    def _fail(self, error: AssetSyncError) -> None:
        logger.error(f"Sync failed: {error.message}")
        with self._lock:
            self._state.phase = Phase.FAILED
            self._state.error = error
            self._state.status_message = error.message

    def get_state(self) -> OperationState:
        """
        Get a snapshot of the current run state.

        Safe to call from any thread; the returned object is a copy.
        """
        with self._lock:
            return self._state.snapshot()


__all__ = [
    "PipelineOrchestrator",
]
