"""Payloads for the read-only detail views (diff, blame, history, reflog)."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class CommitFile(BaseModel):
    """A path touched by a commit."""

    file: str
    status: Literal["added", "modified", "deleted", "renamed", "copied"] = "modified"
    insertions: int = 0
    deletions: int = 0
    old_path: str | None = None


class CommitStats(BaseModel):
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0


class CommitDetail(BaseModel):
    """Full detail of one commit."""

    hash: str
    short_hash: str
    author: str
    email: str
    date: str
    subject: str
    body: str = ""
    files: list[CommitFile] = Field(default_factory=list)
    stats: CommitStats = Field(default_factory=CommitStats)


class FileHistoryEntry(BaseModel):
    hash: str
    short_hash: str
    author: str
    date: str
    subject: str


class BlameLine(BaseModel):
    hash: str
    author: str
    author_time: str
    line_number: int
    content: str


class ReflogEntry(BaseModel):
    """One ``HEAD@{n}`` reflog entry."""

    hash: str
    short_hash: str
    action: str
    message: str
    date: str
    index: int
