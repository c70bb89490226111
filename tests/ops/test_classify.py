"""Tests for failure classification and commit message prefixes."""

from __future__ import annotations

import pytest

from aiogitpanel.models import Action, GitResult, RepositorySnapshot
from aiogitpanel.ops.classify import (
    CONFLICT_PATTERNS,
    classify_failure,
    has_conflict_markers,
    label_for,
)
from aiogitpanel.ops.messages import apply_conventional_prefix


class TestConflictMarkers:
    def test_patterns_documented(self) -> None:
        assert "CONFLICT" in CONFLICT_PATTERNS
        assert "conflict" in CONFLICT_PATTERNS

    def test_error_text(self) -> None:
        assert has_conflict_markers(GitResult.failed("Automatic merge failed; fix conflicts"))

    def test_stderr_text(self) -> None:
        result = GitResult.failed("exit 1", stderr="CONFLICT (content): Merge conflict in c.ts")
        assert has_conflict_markers(result)

    def test_plain_failure(self) -> None:
        assert not has_conflict_markers(GitResult.failed("Permission denied"))


class TestClassifyFailure:
    def test_merge_conflict_text(self) -> None:
        result = GitResult.failed("CONFLICT (content): Merge conflict in c.ts")
        classification = classify_failure(Action.MERGE, result)
        assert classification.outcome == "conflict"
        assert classification.message == "Merge has conflicts - resolve them and commit"

    def test_in_progress_flag_wins_over_text(self) -> None:
        snapshot = RepositorySnapshot(is_repository=True, rebase_in_progress=True)
        result = GitResult.failed("could not apply 1234abc... change")
        classification = classify_failure(Action.REBASE, result, snapshot)
        assert classification.outcome == "conflict"
        assert classification.message == "Rebase has conflicts - resolve them and continue"

    def test_cherry_pick_message(self) -> None:
        snapshot = RepositorySnapshot(is_repository=True, cherry_pick_in_progress=True)
        classification = classify_failure(
            Action.CHERRY_PICK, GitResult.failed("error"), snapshot
        )
        assert classification.message == (
            "Cherry-pick has conflicts - resolve them and continue"
        )

    def test_rebasing_pull_reports_rebase(self) -> None:
        snapshot = RepositorySnapshot(is_repository=True, rebase_in_progress=True)
        result = GitResult.failed("CONFLICT (content): Merge conflict in a.py")
        classification = classify_failure(Action.PULL, result, snapshot)
        assert classification.outcome == "conflict"
        assert classification.message == "Rebase has conflicts - resolve them and continue"

    def test_merging_pull_reports_merge(self) -> None:
        snapshot = RepositorySnapshot(is_repository=True, merge_in_progress=True)
        classification = classify_failure(Action.PULL, GitResult.failed("error"), snapshot)
        assert classification.message == "Merge has conflicts - resolve them and commit"

    def test_flag_ignored_for_unrelated_action(self) -> None:
        snapshot = RepositorySnapshot(is_repository=True, merge_in_progress=True)
        classification = classify_failure(
            Action.DELETE_TAG, GitResult.failed("tag not found"), snapshot
        )
        assert classification.outcome == "failed"
        assert classification.message == "Delete tag failed: tag not found"

    def test_stash_pop_conflict_by_text(self) -> None:
        result = GitResult.failed("CONFLICT (content): Merge conflict in a.py")
        classification = classify_failure(Action.STASH_POP, result)
        assert classification.outcome == "conflict"
        assert classification.message.startswith("Stash pop has conflicts")

    def test_generic_failure_message(self) -> None:
        classification = classify_failure(
            Action.CHECKOUT, GitResult.failed("pathspec 'x' did not match\n")
        )
        assert classification.outcome == "failed"
        assert classification.message == "Checkout failed: pathspec 'x' did not match"

    def test_missing_error_text(self) -> None:
        classification = classify_failure(Action.PUSH, GitResult(success=False))
        assert classification.message == "Push failed: unknown error"


class TestLabels:
    def test_every_action_has_label(self) -> None:
        for action in Action:
            assert label_for(action)


class TestApplyConventionalPrefix:
    @pytest.mark.parametrize(
        ("message", "prefix", "expected"),
        [
            ("add button", "feat", "feat: add button"),
            ("feat: add button", "fix", "fix: add button"),
            ("feat(ui): add button", "fix", "fix: add button"),
            ("fix:   spaced", "docs", "docs: spaced"),
            ("", "chore", "chore: "),
            ("Fix: capitalised", "fix", "fix: Fix: capitalised"),
            ("add button", "feat:", "feat: add button"),
        ],
    )
    def test_transform(self, message: str, prefix: str, expected: str) -> None:
        assert apply_conventional_prefix(message, prefix) == expected
