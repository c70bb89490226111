"""Tests for snapshot and state models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from aiogitpanel.models import (
    Action,
    FileChange,
    GitResult,
    OperationResult,
    OrchestratorState,
    PendingCheckout,
    RepositorySnapshot,
    TransientError,
)


class TestRepositorySnapshot:
    def test_not_a_repository_is_empty(self) -> None:
        snapshot = RepositorySnapshot.not_a_repository()
        assert snapshot.is_repository is False
        assert snapshot.branches == []
        assert snapshot.total_changes == 0

    def test_has_changes_ignores_untracked(self) -> None:
        snapshot = RepositorySnapshot(
            is_repository=True,
            untracked=[FileChange(file="n.txt", status="untracked")],
        )
        assert snapshot.has_changes is False
        assert snapshot.total_changes == 1

    def test_has_changes_with_unstaged(self) -> None:
        snapshot = RepositorySnapshot(
            is_repository=True,
            unstaged=[FileChange(file="a.py", status="modified")],
        )
        assert snapshot.has_changes is True

    def test_frozen(self) -> None:
        snapshot = RepositorySnapshot(is_repository=True)
        with pytest.raises(ValidationError):
            snapshot.current_branch = "other"  # type: ignore[misc]

    def test_structural_equality(self) -> None:
        a = RepositorySnapshot(is_repository=True, current_branch="main", ahead=1)
        b = RepositorySnapshot(is_repository=True, current_branch="main", ahead=1)
        assert a == b


class TestTransientError:
    def test_same_message_at_another_time_differs(self) -> None:
        created = datetime(2024, 1, 1, tzinfo=UTC)
        first = TransientError(message="boom", created_at=created)
        assert first == TransientError(message="boom", created_at=created)
        assert first != TransientError(
            message="boom", created_at=created + timedelta(seconds=1)
        )


class TestOrchestratorState:
    def test_defaults_idle(self) -> None:
        state = OrchestratorState()
        assert state.is_busy is False
        assert state.awaiting_confirmation is False
        assert state.drafts.commit_message == ""

    def test_flags(self) -> None:
        state = OrchestratorState(
            in_flight=Action.PUSH,
            pending_checkout=PendingCheckout(target_branch="feature"),
        )
        assert state.is_busy is True
        assert state.awaiting_confirmation is True


class TestOperationResult:
    def test_success_property(self) -> None:
        ok = OperationResult(
            action=Action.STAGE, outcome="succeeded", result=GitResult(success=True)
        )
        failed = OperationResult(
            action=Action.STAGE, outcome="conflict", result=GitResult.failed("x")
        )
        assert ok.success is True
        assert failed.success is False

    def test_action_values(self) -> None:
        assert Action("create_branch") is Action.CREATE_BRANCH
        assert Action.CHERRY_PICK_CONTINUE == "cherry_pick_continue"
