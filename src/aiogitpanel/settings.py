"""Loading :class:`PanelSettings` from a YAML file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import aiofiles
import yaml
from pydantic import ValidationError

from .exceptions import SettingsError
from .models.config import PanelSettings

logger = logging.getLogger(__name__)


def parse_settings(content: str, *, source: str = "<string>") -> PanelSettings:
    """Parse YAML *content* into settings; an empty document gives defaults."""
    try:
        data: Any = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in {source}: {exc}") from exc

    if data is None:
        return PanelSettings()
    if not isinstance(data, dict):
        raise SettingsError(f"Expected a mapping in {source}, got {type(data).__name__}")

    # ``git_panel:`` may wrap the keys when the file is shared with other tools
    if "git_panel" in data and isinstance(data["git_panel"], dict):
        data = data["git_panel"]

    try:
        return PanelSettings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings in {source}: {exc}") from exc


def load_settings(path: Path) -> PanelSettings:
    """Read settings from *path*; a missing file gives defaults."""
    if not path.exists():
        logger.debug("No settings file at %s, using defaults", path)
        return PanelSettings()
    return parse_settings(path.read_text(encoding="utf-8"), source=str(path))


async def async_load_settings(path: Path) -> PanelSettings:
    """Async variant of :func:`load_settings` using ``aiofiles``."""
    if not path.exists():
        logger.debug("No settings file at %s, using defaults", path)
        return PanelSettings()
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
    except OSError as exc:
        raise SettingsError(f"Failed to read {path}: {exc}") from exc
    return parse_settings(content, source=str(path))
