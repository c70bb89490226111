"""Shared fixtures for aiogitpanel tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from fakes import FakeGateway

from aiogitpanel.models import PanelSettings
from aiogitpanel.panel import GitPanel


@pytest.fixture
def gateway() -> FakeGateway:
    """A clean repository on ``main`` with a remote and nothing to push."""
    return FakeGateway()


@pytest.fixture
def settings() -> PanelSettings:
    """Settings with the timer off so tests control every refresh."""
    return PanelSettings(auto_refresh=False, error_ttl=60.0)


@pytest.fixture
async def panel(
    tmp_path: Path, gateway: FakeGateway, settings: PanelSettings
) -> AsyncIterator[GitPanel]:
    """A mounted panel over the fake gateway."""
    p = GitPanel(tmp_path, gateway=gateway, settings=settings)
    await p.mount()
    yield p
    await p.unmount()
