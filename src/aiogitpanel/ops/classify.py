"""Classification of failed operations into conflicts and plain failures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..models.common import GitResult
from ..models.snapshot import RepositorySnapshot
from ..models.state import Action, ProgressKind

# Case-sensitive substrings that mark conflict output. git prints
# "CONFLICT (content): ..." and "Automatic merge failed; fix conflicts ...";
# stash pop/apply and rebase use the same wording.
CONFLICT_PATTERNS: tuple[str, ...] = ("CONFLICT", "conflict")

# Actions that can leave an operation half-finished on disk, with the kinds
# whose marker they may leave behind. The first kind names text-only
# conflicts. Pull merges or rebases depending on ``pull.rebase``.
CONFLICT_CAPABLE: dict[Action, tuple[ProgressKind, ...]] = {
    Action.MERGE: (ProgressKind.MERGE,),
    Action.PULL: (ProgressKind.MERGE, ProgressKind.REBASE),
    Action.REBASE: (ProgressKind.REBASE,),
    Action.REBASE_CONTINUE: (ProgressKind.REBASE,),
    Action.REBASE_SKIP: (ProgressKind.REBASE,),
    Action.CHERRY_PICK: (ProgressKind.CHERRY_PICK,),
    Action.CHERRY_PICK_CONTINUE: (ProgressKind.CHERRY_PICK,),
}

CONFLICT_MESSAGES: dict[ProgressKind, str] = {
    ProgressKind.MERGE: "Merge has conflicts - resolve them and commit",
    ProgressKind.REBASE: "Rebase has conflicts - resolve them and continue",
    ProgressKind.CHERRY_PICK: "Cherry-pick has conflicts - resolve them and continue",
}

ACTION_LABELS: dict[Action, str] = {
    Action.STAGE: "Stage",
    Action.UNSTAGE: "Unstage",
    Action.STAGE_ALL: "Stage all",
    Action.UNSTAGE_ALL: "Unstage all",
    Action.DISCARD: "Discard",
    Action.CLEAN_UNTRACKED: "Delete untracked file",
    Action.COMMIT: "Commit",
    Action.PUSH: "Push",
    Action.PULL: "Pull",
    Action.FETCH: "Fetch",
    Action.CHECKOUT: "Checkout",
    Action.CREATE_BRANCH: "Create branch",
    Action.DELETE_BRANCH: "Delete branch",
    Action.MERGE: "Merge",
    Action.MERGE_ABORT: "Merge abort",
    Action.REBASE: "Rebase",
    Action.REBASE_ABORT: "Rebase abort",
    Action.REBASE_CONTINUE: "Rebase continue",
    Action.REBASE_SKIP: "Rebase skip",
    Action.CHERRY_PICK: "Cherry-pick",
    Action.CHERRY_PICK_ABORT: "Cherry-pick abort",
    Action.CHERRY_PICK_CONTINUE: "Cherry-pick continue",
    Action.STASH_PUSH: "Stash",
    Action.STASH_POP: "Stash pop",
    Action.STASH_APPLY: "Stash apply",
    Action.STASH_DROP: "Stash drop",
    Action.CREATE_TAG: "Create tag",
    Action.DELETE_TAG: "Delete tag",
    Action.RESOLVE_OURS: "Resolve (ours)",
    Action.RESOLVE_THEIRS: "Resolve (theirs)",
    Action.RESET_TO_REFLOG: "Reset",
    Action.INIT: "Init",
}


@dataclass(frozen=True)
class Classification:
    outcome: Literal["failed", "conflict"]
    message: str


def label_for(action: Action) -> str:
    return ACTION_LABELS.get(action, action.value.replace("_", " ").capitalize())


def has_conflict_markers(result: GitResult) -> bool:
    """``True`` if any pattern occurs in the error, stderr or output text."""
    texts = (result.error or "", result.stderr or "", result.output or "")
    return any(pattern in text for text in texts for pattern in CONFLICT_PATTERNS)


def progress_flag(snapshot: RepositorySnapshot, kind: ProgressKind) -> bool:
    if kind is ProgressKind.MERGE:
        return snapshot.merge_in_progress
    if kind is ProgressKind.REBASE:
        return snapshot.rebase_in_progress
    if kind is ProgressKind.CHERRY_PICK:
        return snapshot.cherry_pick_in_progress
    return False


def classify_failure(
    action: Action,
    result: GitResult,
    snapshot: RepositorySnapshot | None = None,
) -> Classification:
    """Decide whether a failed *result* is a conflict.

    For conflict-capable actions the in-progress flag of the post-operation
    *snapshot* is checked first, since it reflects git's markers on disk.
    Text matching against :data:`CONFLICT_PATTERNS` is the fallback, which
    also covers squash merges and stash pop/apply (neither leaves a marker).
    """
    kinds = CONFLICT_CAPABLE.get(action, ())
    if snapshot is not None:
        for kind in kinds:
            if progress_flag(snapshot, kind):
                return Classification("conflict", CONFLICT_MESSAGES[kind])

    if has_conflict_markers(result):
        if kinds:
            return Classification("conflict", CONFLICT_MESSAGES[kinds[0]])
        return Classification(
            "conflict", f"{label_for(action)} has conflicts - resolve them and commit"
        )

    error = (result.error or "unknown error").strip()
    return Classification("failed", f"{label_for(action)} failed: {error}")
