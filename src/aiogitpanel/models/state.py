"""Orchestrator-side state models.

These never travel inside a :class:`RepositorySnapshot`; they describe what
the panel itself is doing (which mutation is running, whether a checkout is
waiting for confirmation, the last transient error, and draft user input).
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .common import GitResult
from .snapshot import RepositorySnapshot


class Action(StrEnum):
    """Every mutating action the orchestrator can dispatch."""

    STAGE = "stage"
    UNSTAGE = "unstage"
    STAGE_ALL = "stage_all"
    UNSTAGE_ALL = "unstage_all"
    DISCARD = "discard"
    CLEAN_UNTRACKED = "clean_untracked"
    COMMIT = "commit"
    PUSH = "push"
    PULL = "pull"
    FETCH = "fetch"
    CHECKOUT = "checkout"
    CREATE_BRANCH = "create_branch"
    DELETE_BRANCH = "delete_branch"
    MERGE = "merge"
    MERGE_ABORT = "merge_abort"
    REBASE = "rebase"
    REBASE_ABORT = "rebase_abort"
    REBASE_CONTINUE = "rebase_continue"
    REBASE_SKIP = "rebase_skip"
    CHERRY_PICK = "cherry_pick"
    CHERRY_PICK_ABORT = "cherry_pick_abort"
    CHERRY_PICK_CONTINUE = "cherry_pick_continue"
    STASH_PUSH = "stash_push"
    STASH_POP = "stash_pop"
    STASH_APPLY = "stash_apply"
    STASH_DROP = "stash_drop"
    CREATE_TAG = "create_tag"
    DELETE_TAG = "delete_tag"
    RESOLVE_OURS = "resolve_ours"
    RESOLVE_THEIRS = "resolve_theirs"
    RESET_TO_REFLOG = "reset_to_reflog"
    INIT = "init"


class ProgressKind(StrEnum):
    """A multi-step git operation that can be left half-finished on disk."""

    NONE = "none"
    MERGE = "merge"
    REBASE = "rebase"
    CHERRY_PICK = "cherry_pick"


class PendingCheckout(BaseModel):
    """A branch switch waiting for the user to confirm discarding changes."""

    model_config = ConfigDict(frozen=True)

    target_branch: str


class TransientError(BaseModel):
    """An operation error shown for a fixed time, independent of fetches."""

    model_config = ConfigDict(frozen=True)

    message: str
    created_at: datetime


class PanelDrafts(BaseModel):
    """Text the user is still editing; cleared only after a successful action."""

    model_config = ConfigDict(frozen=True)

    commit_message: str = ""
    amend_mode: bool = False
    stash_message: str = ""
    new_branch_name: str = ""
    new_tag_name: str = ""
    new_tag_message: str = ""
    new_tag_commit: str = ""


class OrchestratorState(BaseModel):
    """The whole mutable side of the panel as one immutable value."""

    model_config = ConfigDict(frozen=True)

    in_flight: Action | None = None
    pending_checkout: PendingCheckout | None = None
    transient_error: TransientError | None = None
    drafts: PanelDrafts = Field(default_factory=PanelDrafts)

    @property
    def is_busy(self) -> bool:
        return self.in_flight is not None

    @property
    def awaiting_confirmation(self) -> bool:
        return self.pending_checkout is not None


class OperationResult(BaseModel):
    """What :meth:`OperationOrchestrator.execute` reports back to the caller."""

    action: Action
    outcome: Literal["succeeded", "failed", "conflict"]
    message: str | None = None
    result: GitResult
    snapshot: RepositorySnapshot | None = None

    @property
    def success(self) -> bool:
        return self.outcome == "succeeded"
