"""Holder of the latest known-good snapshot and its subscribers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from ..exceptions import FetchError
from ..models.snapshot import RepositorySnapshot
from .fetcher import RepositorySnapshotFetcher

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[RepositorySnapshot], None]


class SnapshotStore:
    """Owns the snapshot for one working path.

    The snapshot is only ever replaced wholesale. Concurrent refreshes are
    allowed and the last one to complete wins. Results that arrive after
    :meth:`close` or after the path changed are discarded.
    """

    def __init__(self, fetcher: RepositorySnapshotFetcher, path: Path) -> None:
        self.fetcher = fetcher
        self._path = path
        self._snapshot = RepositorySnapshot.not_a_repository()
        self._fetch_error: FetchError | None = None
        self._last_fetched_at: datetime | None = None
        self._loading = 0
        self._generation = 0
        self._closed = False
        self._listeners: list[SnapshotListener] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def snapshot(self) -> RepositorySnapshot:
        return self._snapshot

    @property
    def fetch_error(self) -> FetchError | None:
        """The blocking error from the most recent failed fetch, if any."""
        return self._fetch_error

    @property
    def last_fetched_at(self) -> datetime | None:
        return self._last_fetched_at

    @property
    def is_loading(self) -> bool:
        return self._loading > 0

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register *listener* for every new snapshot; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        self._closed = False

    def close(self) -> None:
        """Stop accepting fetch results; in-flight fetches finish but are dropped."""
        self._closed = True
        self._generation += 1

    def reset(self, path: Path) -> None:
        """Point the store at *path* and forget everything about the old one."""
        self._generation += 1
        self._path = path
        self._fetch_error = None
        self._last_fetched_at = None
        self._publish(RepositorySnapshot.not_a_repository())

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh(self) -> RepositorySnapshot | None:
        """Fetch and publish a new snapshot.

        Returns the new snapshot, or ``None`` when the fetch failed (the
        previous snapshot stays in place and :attr:`fetch_error` is set) or
        the result was discarded.
        """
        generation = self._generation
        path = self._path
        self._loading += 1
        try:
            snapshot = await self.fetcher.fetch(path)
        except FetchError as exc:
            if self._is_current(generation):
                self._fetch_error = exc
                logger.error("Refreshing %s failed: %s", path, exc)
            return None
        finally:
            self._loading -= 1

        if not self._is_current(generation):
            logger.debug("Discarding stale snapshot for %s", path)
            return None

        self._fetch_error = None
        self._last_fetched_at = datetime.now(UTC)
        self._publish(snapshot)
        logger.debug(
            "Refreshed %s: branch=%s staged=%d unstaged=%d untracked=%d",
            path,
            snapshot.current_branch,
            len(snapshot.staged),
            len(snapshot.unstaged),
            len(snapshot.untracked),
        )
        return snapshot

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _publish(self, snapshot: RepositorySnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener %r raised", listener)
