"""Snapshot fetching, storage and periodic refresh."""

from .fetcher import RepositorySnapshotFetcher
from .scheduler import AutoRefreshScheduler
from .store import SnapshotStore

__all__ = [
    "AutoRefreshScheduler",
    "RepositorySnapshotFetcher",
    "SnapshotStore",
]
