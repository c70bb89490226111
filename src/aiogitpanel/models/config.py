"""Panel configuration model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PanelSettings(BaseModel):
    """Tunables for one git panel.

    Built from plain values; no environment variables are read.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    auto_refresh: bool = True
    refresh_interval: float = Field(default=3.0, gt=0)
    error_ttl: float = Field(default=5.0, gt=0)
    log_count: int = Field(default=10, ge=1, le=100)
    protected_branches: tuple[str, ...] = ("main", "master")
    git_binary: str = "git"
    command_timeout: float = Field(default=30.0, gt=0)
    infer_branch_parents: bool = False
