"""The boundary between the panel core and whatever actually runs git.

The core never builds git arguments or parses git output itself; it only
talks to an object satisfying :class:`GitGateway`. Query methods return typed
payloads and raise :class:`~aiogitpanel.exceptions.GitCommandError` on
failure. Mutating methods never raise for git-level failures; they report
them through :class:`~aiogitpanel.models.GitResult`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from ..models.common import GitResult
from ..models.snapshot import (
    AheadBehind,
    BranchInfo,
    CommitInfo,
    ConflictFile,
    DetailedStatus,
    StashEntry,
    TagInfo,
)
from ..models.views import (
    BlameLine,
    CommitDetail,
    FileHistoryEntry,
    ReflogEntry,
)


@runtime_checkable
class GitGateway(Protocol):
    """One async method per git capability, each taking the working path."""

    # -- queries ---------------------------------------------------------

    async def is_repository(self, path: Path) -> bool: ...

    async def detailed_status(self, path: Path) -> DetailedStatus: ...

    async def branches(
        self, path: Path, *, with_hierarchy: bool = False
    ) -> list[BranchInfo]: ...

    async def log_detailed(self, path: Path, count: int = 10) -> list[CommitInfo]: ...

    async def ahead_behind(self, path: Path) -> AheadBehind: ...

    async def stash_list(self, path: Path) -> list[StashEntry]: ...

    async def merge_in_progress(self, path: Path) -> bool: ...

    async def cherry_pick_in_progress(self, path: Path) -> bool: ...

    async def rebase_in_progress(self, path: Path) -> bool: ...

    async def tags(self, path: Path) -> list[TagInfo]: ...

    async def conflict_files(self, path: Path) -> list[ConflictFile]: ...

    async def conventional_prefixes(self, path: Path) -> list[str]: ...

    async def file_history(self, path: Path, file: str) -> list[FileHistoryEntry]: ...

    async def blame(self, path: Path, file: str) -> list[BlameLine]: ...

    async def reflog(self, path: Path) -> list[ReflogEntry]: ...

    async def show_commit(self, path: Path, commit_hash: str) -> CommitDetail: ...

    async def diff_raw(
        self,
        path: Path,
        *,
        file: str | None = None,
        staged: bool = False,
        commit: str | None = None,
    ) -> str: ...

    # -- working tree and index ------------------------------------------

    async def stage(self, path: Path, files: list[str]) -> GitResult: ...

    async def unstage(self, path: Path, files: list[str]) -> GitResult: ...

    async def discard_changes(self, path: Path, files: list[str]) -> GitResult: ...

    async def clean_untracked(self, path: Path, file: str) -> GitResult: ...

    async def commit(self, path: Path, message: str) -> GitResult: ...

    async def commit_amend(
        self, path: Path, *, message: str | None = None, no_edit: bool = False
    ) -> GitResult: ...

    # -- remotes ---------------------------------------------------------

    async def push(self, path: Path) -> GitResult: ...

    async def pull(self, path: Path) -> GitResult: ...

    async def fetch(self, path: Path) -> GitResult: ...

    # -- branches, merge, rebase, cherry-pick -----------------------------

    async def checkout(self, path: Path, branch: str) -> GitResult: ...

    async def create_branch(
        self, path: Path, name: str, *, checkout: bool = True
    ) -> GitResult: ...

    async def delete_branch(
        self, path: Path, name: str, *, force: bool = False
    ) -> GitResult: ...

    async def merge(
        self, path: Path, branch: str, *, no_ff: bool = False, squash: bool = False
    ) -> GitResult: ...

    async def merge_abort(self, path: Path) -> GitResult: ...

    async def rebase(self, path: Path, branch: str) -> GitResult: ...

    async def rebase_abort(self, path: Path) -> GitResult: ...

    async def rebase_continue(self, path: Path) -> GitResult: ...

    async def rebase_skip(self, path: Path) -> GitResult: ...

    async def cherry_pick(self, path: Path, commit_hash: str) -> GitResult: ...

    async def cherry_pick_abort(self, path: Path) -> GitResult: ...

    async def cherry_pick_continue(self, path: Path) -> GitResult: ...

    async def resolve_ours(self, path: Path, file: str) -> GitResult: ...

    async def resolve_theirs(self, path: Path, file: str) -> GitResult: ...

    # -- stash, tags, reflog, init ----------------------------------------

    async def stash_push(self, path: Path, message: str | None = None) -> GitResult: ...

    async def stash_pop(self, path: Path, index: int | None = None) -> GitResult: ...

    async def stash_apply(self, path: Path, index: int | None = None) -> GitResult: ...

    async def stash_drop(self, path: Path, index: int) -> GitResult: ...

    async def create_tag(
        self,
        path: Path,
        name: str,
        *,
        message: str | None = None,
        commit: str | None = None,
    ) -> GitResult: ...

    async def delete_tag(self, path: Path, name: str) -> GitResult: ...

    async def reset_to_reflog(
        self, path: Path, index: int, *, hard: bool = False
    ) -> GitResult: ...

    async def init(self, path: Path) -> GitResult: ...
