"""Which actions are legal given the in-progress state of a snapshot."""

from __future__ import annotations

import logging

from ..exceptions import NothingInProgressError, OperationBlockedError
from ..models.snapshot import ConflictFile, RepositorySnapshot
from ..models.state import Action, ProgressKind
from .classify import label_for

logger = logging.getLogger(__name__)

# Legal whether or not anything is in progress; used to resolve conflicts.
RESOLUTION_ACTIONS: frozenset[Action] = frozenset(
    {
        Action.STAGE,
        Action.UNSTAGE,
        Action.STAGE_ALL,
        Action.UNSTAGE_ALL,
        Action.COMMIT,
        Action.RESOLVE_OURS,
        Action.RESOLVE_THEIRS,
    }
)

# Continue/abort/skip, legal only while their own operation is in progress.
FOLLOW_UP_ACTIONS: dict[Action, ProgressKind] = {
    Action.MERGE_ABORT: ProgressKind.MERGE,
    Action.REBASE_ABORT: ProgressKind.REBASE,
    Action.REBASE_CONTINUE: ProgressKind.REBASE,
    Action.REBASE_SKIP: ProgressKind.REBASE,
    Action.CHERRY_PICK_ABORT: ProgressKind.CHERRY_PICK,
    Action.CHERRY_PICK_CONTINUE: ProgressKind.CHERRY_PICK,
}

_KIND_NAMES = {
    ProgressKind.MERGE: "merge",
    ProgressKind.REBASE: "rebase",
    ProgressKind.CHERRY_PICK: "cherry-pick",
}


class ConflictAndProgressTracker:
    """Pure view over one snapshot; holds no state of its own."""

    def __init__(self, snapshot: RepositorySnapshot) -> None:
        self.snapshot = snapshot

    def in_progress_operations(self) -> tuple[ProgressKind, ...]:
        """Every active operation kind; git normally allows at most one."""
        flags = (
            (ProgressKind.MERGE, self.snapshot.merge_in_progress),
            (ProgressKind.REBASE, self.snapshot.rebase_in_progress),
            (ProgressKind.CHERRY_PICK, self.snapshot.cherry_pick_in_progress),
        )
        return tuple(kind for kind, active in flags if active)

    def in_progress_operation(self) -> ProgressKind:
        active = self.in_progress_operations()
        if not active:
            return ProgressKind.NONE
        if len(active) > 1:
            logger.warning(
                "Several operations in progress at once: %s",
                ", ".join(kind.value for kind in active),
            )
        return active[0]

    def has_conflicts(self) -> bool:
        return len(self.snapshot.conflict_files) > 0

    @property
    def conflict_files(self) -> list[ConflictFile]:
        return self.snapshot.conflict_files

    def is_allowed(self, action: Action) -> bool:
        try:
            self.check(action)
        except (OperationBlockedError, NothingInProgressError):
            return False
        return True

    def check(self, action: Action) -> None:
        """Raise if *action* may not start in the current in-progress state."""
        active = self.in_progress_operations()

        kind = FOLLOW_UP_ACTIONS.get(action)
        if kind is not None:
            if kind not in active:
                raise NothingInProgressError(f"No {_KIND_NAMES[kind]} in progress")
            return

        if not active or action in RESOLUTION_ACTIONS:
            return

        names = " and ".join(_KIND_NAMES[k] for k in active)
        raise OperationBlockedError(
            f"{label_for(action)} is not allowed while a {names} is in progress"
        )
