"""Tests for AutoRefreshScheduler."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from fakes import FakeGateway

from aiogitpanel.exceptions import GitCommandError
from aiogitpanel.models import PanelSettings, RepositorySnapshot
from aiogitpanel.sync.fetcher import RepositorySnapshotFetcher
from aiogitpanel.sync.scheduler import AutoRefreshScheduler
from aiogitpanel.sync.store import SnapshotStore

_FAST = PanelSettings(refresh_interval=0.01)
_REPO = RepositorySnapshot(is_repository=True)


@pytest.fixture
def store(tmp_path: Path, gateway: FakeGateway) -> SnapshotStore:
    return SnapshotStore(RepositorySnapshotFetcher(gateway), tmp_path)


@pytest.fixture
async def scheduler(store: SnapshotStore) -> AsyncIterator[AutoRefreshScheduler]:
    sched = AutoRefreshScheduler(store, _FAST)
    sched.mounted = True
    store.subscribe(sched.sync)
    yield sched
    await sched.stop()


class TestArming:
    async def test_disabled_until_synced(self, scheduler: AutoRefreshScheduler) -> None:
        assert scheduler.state == "disabled"
        scheduler.sync(_REPO)
        assert scheduler.state == "armed"

    async def test_not_armed_for_non_repository(self, scheduler: AutoRefreshScheduler) -> None:
        scheduler.sync(RepositorySnapshot.not_a_repository())
        assert scheduler.state == "disabled"

    async def test_not_armed_when_unmounted(self, scheduler: AutoRefreshScheduler) -> None:
        scheduler.mounted = False
        scheduler.sync(_REPO)
        assert scheduler.state == "disabled"

    async def test_not_armed_when_auto_refresh_off(self, store: SnapshotStore) -> None:
        sched = AutoRefreshScheduler(store, PanelSettings(auto_refresh=False))
        sched.mounted = True
        sched.sync(_REPO)
        assert sched.state == "disabled"

    async def test_arm_is_idempotent(self, scheduler: AutoRefreshScheduler) -> None:
        scheduler.sync(_REPO)
        task = scheduler._task
        scheduler.sync(_REPO)
        assert scheduler._task is task


class TestTimer:
    async def test_refreshes_periodically(
        self, scheduler: AutoRefreshScheduler, gateway: FakeGateway
    ) -> None:
        scheduler.sync(_REPO)
        await asyncio.sleep(0.1)
        assert gateway.fetch_count >= 2

    async def test_disarms_when_repository_disappears(
        self, scheduler: AutoRefreshScheduler, gateway: FakeGateway
    ) -> None:
        scheduler.sync(_REPO)
        gateway.repository = False
        await asyncio.sleep(0.1)
        assert scheduler.state == "disabled"
        count = gateway.fetch_count
        await asyncio.sleep(0.05)
        assert gateway.fetch_count == count

    async def test_failures_do_not_disarm(
        self, scheduler: AutoRefreshScheduler, gateway: FakeGateway
    ) -> None:
        gateway.fail["stash_list"] = GitCommandError("locked")
        scheduler.sync(_REPO)
        await asyncio.sleep(0.1)
        assert scheduler.state == "armed"
        assert gateway.fetch_count >= 2

    async def test_stop_cancels(
        self, scheduler: AutoRefreshScheduler, gateway: FakeGateway
    ) -> None:
        scheduler.sync(_REPO)
        await scheduler.stop()
        assert scheduler.state == "disabled"
        count = gateway.fetch_count
        await asyncio.sleep(0.05)
        assert gateway.fetch_count == count
