"""Tests for ConflictAndProgressTracker gating."""

from __future__ import annotations

import logging

import pytest

from aiogitpanel.exceptions import NothingInProgressError, OperationBlockedError
from aiogitpanel.models import Action, ConflictFile, ProgressKind, RepositorySnapshot
from aiogitpanel.ops.tracker import ConflictAndProgressTracker


def _tracker(**flags: bool) -> ConflictAndProgressTracker:
    return ConflictAndProgressTracker(RepositorySnapshot(is_repository=True, **flags))


class TestInProgressOperation:
    def test_none(self) -> None:
        tracker = _tracker()
        assert tracker.in_progress_operation() is ProgressKind.NONE
        assert tracker.in_progress_operations() == ()

    def test_single(self) -> None:
        assert _tracker(rebase_in_progress=True).in_progress_operation() is ProgressKind.REBASE

    def test_several_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        tracker = _tracker(merge_in_progress=True, cherry_pick_in_progress=True)
        assert tracker.in_progress_operations() == (
            ProgressKind.MERGE,
            ProgressKind.CHERRY_PICK,
        )
        with caplog.at_level(logging.WARNING):
            assert tracker.in_progress_operation() is ProgressKind.MERGE
        assert "Several operations" in caplog.text


class TestHasConflicts:
    def test_conflict_list(self) -> None:
        snapshot = RepositorySnapshot(
            is_repository=True, conflict_files=[ConflictFile(file="c.ts")]
        )
        assert ConflictAndProgressTracker(snapshot).has_conflicts() is True
        assert _tracker().has_conflicts() is False


class TestCheck:
    @pytest.mark.parametrize(
        "action",
        [
            Action.PUSH,
            Action.PULL,
            Action.FETCH,
            Action.MERGE,
            Action.REBASE,
            Action.CHERRY_PICK,
            Action.CHECKOUT,
            Action.STASH_PUSH,
            Action.DISCARD,
        ],
    )
    def test_initiating_actions_blocked_during_merge(self, action: Action) -> None:
        with pytest.raises(OperationBlockedError, match="merge is in progress"):
            _tracker(merge_in_progress=True).check(action)

    @pytest.mark.parametrize(
        "action",
        [
            Action.STAGE,
            Action.UNSTAGE,
            Action.STAGE_ALL,
            Action.UNSTAGE_ALL,
            Action.COMMIT,
            Action.RESOLVE_OURS,
            Action.RESOLVE_THEIRS,
            Action.MERGE_ABORT,
        ],
    )
    def test_resolution_actions_allowed_during_merge(self, action: Action) -> None:
        _tracker(merge_in_progress=True).check(action)

    def test_follow_up_for_other_kind_refused(self) -> None:
        with pytest.raises(NothingInProgressError, match="No rebase in progress"):
            _tracker(merge_in_progress=True).check(Action.REBASE_CONTINUE)

    def test_follow_up_without_operation_refused(self) -> None:
        tracker = _tracker()
        assert tracker.is_allowed(Action.CHERRY_PICK_ABORT) is False
        with pytest.raises(NothingInProgressError):
            tracker.check(Action.MERGE_ABORT)

    def test_rebase_follow_ups(self) -> None:
        tracker = _tracker(rebase_in_progress=True)
        for action in (Action.REBASE_CONTINUE, Action.REBASE_SKIP, Action.REBASE_ABORT):
            assert tracker.is_allowed(action)

    def test_everything_allowed_when_idle(self) -> None:
        tracker = _tracker()
        assert tracker.is_allowed(Action.PUSH)
        assert tracker.is_allowed(Action.MERGE)
