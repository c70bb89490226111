"""Periodic snapshot refresh while the panel is showing a repository."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Literal

from ..models.config import PanelSettings
from ..models.snapshot import RepositorySnapshot
from .store import SnapshotStore

logger = logging.getLogger(__name__)

SchedulerState = Literal["disabled", "armed"]


class AutoRefreshScheduler:
    """Timer that calls :meth:`SnapshotStore.refresh` every ``refresh_interval``.

    Armed only while mounted, with auto-refresh enabled, and the latest
    snapshot is a repository. :meth:`sync` re-evaluates that after every
    snapshot update. Timer refreshes run independently of refreshes
    triggered by operations.
    """

    def __init__(self, store: SnapshotStore, settings: PanelSettings | None = None) -> None:
        self.store = store
        self.settings = settings or PanelSettings()
        self.mounted = False
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SchedulerState:
        if self._task is not None and not self._task.done():
            return "armed"
        return "disabled"

    def should_arm(self, snapshot: RepositorySnapshot) -> bool:
        return self.mounted and self.settings.auto_refresh and snapshot.is_repository

    def sync(self, snapshot: RepositorySnapshot) -> None:
        """Arm or disarm to match *snapshot*."""
        if self.should_arm(snapshot):
            self.arm()
        else:
            self.disarm()

    def arm(self) -> None:
        if self.state == "armed":
            return
        logger.debug(
            "Auto-refresh armed for %s every %.1fs",
            self.store.path,
            self.settings.refresh_interval,
        )
        self._task = asyncio.get_running_loop().create_task(self._run())

    def disarm(self) -> None:
        """Cancel the timer; does not wait for it."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            logger.debug("Auto-refresh disarmed for %s", self.store.path)
            task.cancel()

    async def stop(self) -> None:
        """Disarm and wait until the timer task has finished."""
        task = self._task
        self.disarm()
        if task is not None and task is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.settings.refresh_interval)
            snapshot = await self.store.refresh()
            if snapshot is None and self.store.fetch_error is not None:
                logger.warning(
                    "Timed refresh of %s failed: %s",
                    self.store.path,
                    self.store.fetch_error,
                )
