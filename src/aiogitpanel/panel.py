"""One git panel bound to one working path.

``GitPanel`` wires the fetcher, store, scheduler, orchestrator and checkout
guard together and is the only object a UI layer needs to hold.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .branches import sort_local_branches
from .exceptions import NotARepositoryError
from .gateway import GitCliGateway, GitGateway
from .models.config import PanelSettings
from .models.snapshot import BranchInfo, RepositorySnapshot
from .models.state import Action, OperationResult, OrchestratorState
from .models.views import BlameLine, CommitDetail, FileHistoryEntry, ReflogEntry
from .ops import CheckoutGuard, ConflictAndProgressTracker, OperationOrchestrator
from .sync import AutoRefreshScheduler, RepositorySnapshotFetcher, SnapshotStore

logger = logging.getLogger(__name__)


class GitPanel:
    """Repository state and operations for a single working copy.

    The constructor accepts plain values; no environment variables are read.
    When no *gateway* is given a :class:`GitCliGateway` is built from
    *settings*.
    """

    def __init__(
        self,
        path: Path | str,
        *,
        gateway: GitGateway | None = None,
        settings: PanelSettings | None = None,
    ) -> None:
        self.settings = settings or PanelSettings()
        self.gateway: GitGateway = gateway or GitCliGateway(
            git_binary=self.settings.git_binary,
            timeout=self.settings.command_timeout,
        )
        self.fetcher = RepositorySnapshotFetcher(self.gateway, self.settings)
        self.store = SnapshotStore(self.fetcher, Path(path))
        self.scheduler = AutoRefreshScheduler(self.store, self.settings)
        self.orchestrator = OperationOrchestrator(self.gateway, self.store, self.settings)
        self.guard = CheckoutGuard(self.orchestrator)
        self.mounted = False

        self.store.subscribe(self.scheduler.sync)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self.store.path

    @property
    def snapshot(self) -> RepositorySnapshot:
        return self.store.snapshot

    @property
    def state(self) -> OrchestratorState:
        return self.orchestrator.state

    @property
    def tracker(self) -> ConflictAndProgressTracker:
        return ConflictAndProgressTracker(self.snapshot)

    @property
    def sorted_branches(self) -> list[BranchInfo]:
        return sort_local_branches(self.snapshot.branches)

    def subscribe(
        self, listener: Callable[[RepositorySnapshot], None]
    ) -> Callable[[], None]:
        """Receive every new snapshot; returns an unsubscribe callable."""
        return self.store.subscribe(listener)

    def subscribe_state(
        self, listener: Callable[[OrchestratorState], None]
    ) -> Callable[[], None]:
        return self.orchestrator.subscribe(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def mount(self) -> RepositorySnapshot | None:
        """Load the first snapshot and start auto-refresh if eligible."""
        logger.debug("Mounting git panel for %s", self.path)
        self.mounted = True
        self.store.open()
        self.scheduler.mounted = True
        snapshot = await self.store.refresh()
        self.scheduler.sync(self.store.snapshot)
        return snapshot

    async def unmount(self) -> None:
        """Stop refreshing; results of calls still running are dropped."""
        logger.debug("Unmounting git panel for %s", self.path)
        self.mounted = False
        self.scheduler.mounted = False
        await self.scheduler.stop()
        self.store.close()
        self.orchestrator.close()

    async def set_path(self, path: Path | str) -> RepositorySnapshot | None:
        """Switch the panel to another working path."""
        new_path = Path(path)
        logger.info("Switching git panel from %s to %s", self.path, new_path)
        await self.scheduler.stop()
        self.orchestrator.reset()
        self.store.reset(new_path)
        if not self.mounted:
            return None
        snapshot = await self.store.refresh()
        self.scheduler.sync(self.store.snapshot)
        return snapshot

    async def refresh(self) -> RepositorySnapshot | None:
        return await self.store.refresh()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def execute_operation(
        self, action: Action | str, *, wait: bool = False, **args: Any
    ) -> OperationResult | None:
        """Run *action*; checkout goes through the guard and may return ``None``."""
        action = Action(action)
        if action is Action.CHECKOUT:
            return await self.guard.request_checkout(args.get("branch", ""), wait=wait)
        return await self.orchestrator.execute(action, wait=wait, **args)

    async def request_checkout(
        self, branch: str, *, wait: bool = False
    ) -> OperationResult | None:
        return await self.guard.request_checkout(branch, wait=wait)

    async def confirm_discard_and_checkout(self) -> OperationResult:
        return await self.guard.confirm_discard_and_checkout()

    def cancel_checkout(self) -> None:
        self.guard.cancel_checkout()

    def insert_conventional_prefix(self, prefix: str) -> str:
        return self.orchestrator.insert_conventional_prefix(prefix)

    def set_commit_message(self, message: str) -> None:
        self.orchestrator.set_commit_message(message)

    def set_amend_mode(self, enabled: bool) -> None:
        self.orchestrator.set_amend_mode(enabled)

    def set_stash_message(self, message: str) -> None:
        self.orchestrator.update_drafts(stash_message=message)

    def set_new_branch_name(self, name: str) -> None:
        self.orchestrator.update_drafts(new_branch_name=name)

    def set_tag_draft(
        self,
        *,
        name: str | None = None,
        message: str | None = None,
        commit: str | None = None,
    ) -> None:
        changes = {
            key: value
            for key, value in (
                ("new_tag_name", name),
                ("new_tag_message", message),
                ("new_tag_commit", commit),
            )
            if value is not None
        }
        self.orchestrator.update_drafts(**changes)

    def dismiss_error(self) -> None:
        self.orchestrator.dismiss_error()

    # ------------------------------------------------------------------
    # Read-only views (no in-flight token, no refresh)
    # ------------------------------------------------------------------

    def _require_repository(self) -> None:
        if not self.snapshot.is_repository:
            raise NotARepositoryError(f"{self.path} is not a git repository")

    async def view_diff(
        self,
        file: str | None = None,
        *,
        staged: bool = False,
        commit: str | None = None,
    ) -> str:
        self._require_repository()
        return await self.gateway.diff_raw(self.path, file=file, staged=staged, commit=commit)

    async def view_file_history(self, file: str) -> list[FileHistoryEntry]:
        self._require_repository()
        return await self.gateway.file_history(self.path, file)

    async def view_blame(self, file: str) -> list[BlameLine]:
        self._require_repository()
        return await self.gateway.blame(self.path, file)

    async def view_reflog(self) -> list[ReflogEntry]:
        self._require_repository()
        return await self.gateway.reflog(self.path)

    async def view_commit(self, commit_hash: str) -> CommitDetail:
        self._require_repository()
        return await self.gateway.show_commit(self.path, commit_hash)
