"""Tests for SnapshotStore."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from fakes import FakeGateway

from aiogitpanel.exceptions import GitCommandError
from aiogitpanel.models import RepositorySnapshot
from aiogitpanel.sync.fetcher import RepositorySnapshotFetcher
from aiogitpanel.sync.store import SnapshotStore


@pytest.fixture
def store(tmp_path: Path, gateway: FakeGateway) -> SnapshotStore:
    return SnapshotStore(RepositorySnapshotFetcher(gateway), tmp_path)


class TestRefresh:
    async def test_publishes_snapshot(self, store: SnapshotStore) -> None:
        received: list[RepositorySnapshot] = []
        store.subscribe(received.append)

        snapshot = await store.refresh()

        assert snapshot is not None
        assert store.snapshot is snapshot
        assert received == [snapshot]
        assert store.last_fetched_at is not None
        assert store.fetch_error is None

    async def test_failure_keeps_previous_snapshot(
        self, store: SnapshotStore, gateway: FakeGateway
    ) -> None:
        first = await store.refresh()
        gateway.unstaged = {"a.py": "modified"}
        gateway.fail["branches"] = GitCommandError("boom")

        assert await store.refresh() is None
        assert store.snapshot is first
        assert store.fetch_error is not None
        assert store.fetch_error.query == "branches"

    async def test_success_clears_fetch_error(
        self, store: SnapshotStore, gateway: FakeGateway
    ) -> None:
        gateway.fail["tags"] = GitCommandError("boom")
        await store.refresh()
        del gateway.fail["tags"]
        await store.refresh()
        assert store.fetch_error is None

    async def test_loading_flag(self, store: SnapshotStore, gateway: FakeGateway) -> None:
        release = asyncio.Event()
        gateway.hold["is_repository"] = release
        task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        assert store.is_loading is True
        release.set()
        await task
        assert store.is_loading is False

    async def test_unsubscribe(self, store: SnapshotStore) -> None:
        received: list[RepositorySnapshot] = []
        unsubscribe = store.subscribe(received.append)
        unsubscribe()
        await store.refresh()
        assert received == []

    async def test_listener_error_does_not_break_refresh(self, store: SnapshotStore) -> None:
        def broken(_: RepositorySnapshot) -> None:
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        assert await store.refresh() is not None


class TestStaleResults:
    async def test_dropped_after_close(self, store: SnapshotStore, gateway: FakeGateway) -> None:
        release = asyncio.Event()
        gateway.hold["is_repository"] = release
        task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        store.close()
        release.set()
        assert await task is None
        assert store.snapshot.is_repository is False

    async def test_dropped_after_path_change(
        self, store: SnapshotStore, gateway: FakeGateway, tmp_path: Path
    ) -> None:
        release = asyncio.Event()
        gateway.hold["is_repository"] = release
        task = asyncio.create_task(store.refresh())
        await asyncio.sleep(0)
        store.reset(tmp_path / "other")
        release.set()
        assert await task is None
        assert store.path == tmp_path / "other"
        assert store.last_fetched_at is None

    async def test_reopen_after_close(self, store: SnapshotStore) -> None:
        store.close()
        assert await store.refresh() is None
        store.open()
        assert await store.refresh() is not None
