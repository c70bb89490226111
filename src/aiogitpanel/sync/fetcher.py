"""Assemble one :class:`RepositorySnapshot` from a batch of gateway queries."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from ..exceptions import FetchError
from ..gateway.protocol import GitGateway
from ..models.config import PanelSettings
from ..models.snapshot import (
    AheadBehind,
    BranchInfo,
    CommitInfo,
    ConflictFile,
    DetailedStatus,
    RepositorySnapshot,
    StashEntry,
    TagInfo,
)

logger = logging.getLogger(__name__)


class RepositorySnapshotFetcher:
    """Read-only: issues queries concurrently and merges them atomically.

    Either every query succeeds and a complete snapshot is returned, or a
    single :class:`FetchError` is raised and nothing is returned.
    """

    def __init__(self, gateway: GitGateway, settings: PanelSettings | None = None) -> None:
        self.gateway = gateway
        self.settings = settings or PanelSettings()

    async def fetch(self, path: Path) -> RepositorySnapshot:
        try:
            is_repository = await self.gateway.is_repository(path)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise FetchError(
                f"Failed to check repository at {path}: {exc}", query="is_repository"
            ) from exc

        if not is_repository:
            logger.debug("%s is not a git repository", path)
            return RepositorySnapshot.not_a_repository()

        gw = self.gateway
        queries: dict[str, Any] = {
            "status": gw.detailed_status(path),
            "branches": gw.branches(
                path, with_hierarchy=self.settings.infer_branch_parents
            ),
            "log": gw.log_detailed(path, self.settings.log_count),
            "ahead_behind": gw.ahead_behind(path),
            "stash_list": gw.stash_list(path),
            "merge_in_progress": gw.merge_in_progress(path),
            "cherry_pick_in_progress": gw.cherry_pick_in_progress(path),
            "rebase_in_progress": gw.rebase_in_progress(path),
            "tags": gw.tags(path),
            "conflict_files": gw.conflict_files(path),
            "conventional_prefixes": gw.conventional_prefixes(path),
        }
        results = await asyncio.gather(*queries.values(), return_exceptions=True)

        for name, value in zip(queries, results, strict=True):
            if isinstance(value, asyncio.CancelledError):
                raise value
            if isinstance(value, BaseException):
                logger.error("Snapshot query %s failed for %s: %s", name, path, value)
                raise FetchError(
                    f"Failed to load {name.replace('_', ' ')}: {value}", query=name
                ) from value

        values = dict(zip(queries, results, strict=True))
        status: DetailedStatus = values["status"]
        remote: AheadBehind = values["ahead_behind"]
        branches: list[BranchInfo] = values["branches"]
        commits: list[CommitInfo] = values["log"]
        stashes: list[StashEntry] = values["stash_list"]
        tags: list[TagInfo] = values["tags"]
        conflicts: list[ConflictFile] = values["conflict_files"]

        return RepositorySnapshot(
            is_repository=True,
            current_branch=status.branch,
            ahead=remote.ahead,
            behind=remote.behind,
            has_remote=remote.has_remote,
            has_upstream=remote.has_upstream,
            staged=status.staged,
            unstaged=status.unstaged,
            untracked=status.untracked,
            branches=[b for b in branches if not b.is_remote],
            commits=commits,
            stashes=stashes,
            tags=tags,
            conflict_files=conflicts,
            merge_in_progress=values["merge_in_progress"],
            cherry_pick_in_progress=values["cherry_pick_in_progress"],
            rebase_in_progress=values["rebase_in_progress"],
            conventional_prefixes=values["conventional_prefixes"],
        )
