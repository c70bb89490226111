"""Snapshot models: the point-in-time view of a working copy."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FileStatus = Literal[
    "modified",
    "added",
    "deleted",
    "renamed",
    "copied",
    "untracked",
    "ignored",
]


class FileChange(BaseModel):
    """A single changed path as reported by porcelain status."""

    model_config = ConfigDict(frozen=True)

    file: str
    status: FileStatus
    staged: bool = False
    original_path: str | None = None
    index_status: str = " "
    work_tree_status: str = " "


class BranchInfo(BaseModel):
    """A branch, optionally annotated with its inferred parent."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_current: bool = False
    is_remote: bool = False
    hash: str = ""
    upstream: str | None = None
    parent_branch: str | None = None
    commits_ahead: int | None = None


class CommitInfo(BaseModel):
    """A single commit in the history."""

    model_config = ConfigDict(frozen=True)

    hash: str
    short_hash: str
    author: str
    email: str = ""
    date: str
    subject: str


class StashEntry(BaseModel):
    """One ``stash@{n}`` entry."""

    model_config = ConfigDict(frozen=True)

    index: int
    message: str
    branch: str = ""


class TagInfo(BaseModel):
    """A lightweight or annotated tag."""

    model_config = ConfigDict(frozen=True)

    name: str
    hash: str = ""
    is_annotated: bool = False
    message: str | None = None
    tagger: str | None = None
    date: str | None = None


class ConflictFile(BaseModel):
    """An unmerged path during a merge, rebase or cherry-pick."""

    model_config = ConfigDict(frozen=True)

    file: str
    our_status: str = "modified"
    their_status: str = "modified"


class AheadBehind(BaseModel):
    """Divergence of the current branch from its upstream."""

    model_config = ConfigDict(frozen=True)

    ahead: int = 0
    behind: int = 0
    has_remote: bool = False
    has_upstream: bool = False


class DetailedStatus(BaseModel):
    """Parsed ``git status --porcelain`` output."""

    model_config = ConfigDict(frozen=True)

    branch: str = ""
    staged: list[FileChange] = Field(default_factory=list)
    unstaged: list[FileChange] = Field(default_factory=list)
    untracked: list[FileChange] = Field(default_factory=list)


class RepositorySnapshot(BaseModel):
    """Everything the panel shows, produced by exactly one fetch cycle.

    Snapshots are never updated field by field; a new fetch produces a new
    instance which replaces the old one wholesale.
    """

    model_config = ConfigDict(frozen=True)

    is_repository: bool = False
    current_branch: str = ""
    ahead: int = 0
    behind: int = 0
    has_remote: bool = False
    has_upstream: bool = False
    staged: list[FileChange] = Field(default_factory=list)
    unstaged: list[FileChange] = Field(default_factory=list)
    untracked: list[FileChange] = Field(default_factory=list)
    branches: list[BranchInfo] = Field(default_factory=list)
    commits: list[CommitInfo] = Field(default_factory=list)
    stashes: list[StashEntry] = Field(default_factory=list)
    tags: list[TagInfo] = Field(default_factory=list)
    conflict_files: list[ConflictFile] = Field(default_factory=list)
    merge_in_progress: bool = False
    cherry_pick_in_progress: bool = False
    rebase_in_progress: bool = False
    conventional_prefixes: list[str] = Field(default_factory=list)

    @classmethod
    def not_a_repository(cls) -> RepositorySnapshot:
        return cls(is_repository=False)

    @property
    def has_changes(self) -> bool:
        """``True`` when anything is staged or modified (untracked excluded)."""
        return bool(self.staged or self.unstaged)

    @property
    def total_changes(self) -> int:
        return len(self.staged) + len(self.unstaged) + len(self.untracked)

    @property
    def local_branches(self) -> list[BranchInfo]:
        return [branch for branch in self.branches if not branch.is_remote]
