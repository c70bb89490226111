"""Tests for the pure orchestrator state transition function."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from aiogitpanel.exceptions import InvalidGuardTransitionError, OperationInFlightError
from aiogitpanel.models import Action, OrchestratorState, PanelDrafts, TransientError
from aiogitpanel.ops.state import (
    CheckoutCancelled,
    CheckoutConfirmed,
    CheckoutRequested,
    DraftsCleared,
    DraftsEdited,
    ErrorDismissed,
    ErrorExpired,
    ErrorRaised,
    OperationFinished,
    OperationStarted,
    PathChanged,
    transition,
)


def _error(message: str = "boom") -> TransientError:
    return TransientError(message=message, created_at=datetime.now(UTC))


class TestInFlight:
    def test_start_and_finish(self) -> None:
        state = transition(OrchestratorState(), OperationStarted(Action.STAGE))
        assert state.in_flight is Action.STAGE
        state = transition(state, OperationFinished())
        assert state.in_flight is None

    def test_second_start_refused(self) -> None:
        state = transition(OrchestratorState(), OperationStarted(Action.PUSH))
        with pytest.raises(OperationInFlightError):
            transition(state, OperationStarted(Action.STAGE))

    def test_input_state_unchanged(self) -> None:
        state = OrchestratorState()
        transition(state, OperationStarted(Action.COMMIT))
        assert state.in_flight is None


class TestErrors:
    def test_raise_and_dismiss(self) -> None:
        error = _error()
        state = transition(OrchestratorState(), ErrorRaised(error))
        assert state.transient_error == error
        assert transition(state, ErrorDismissed()).transient_error is None

    def test_expiry_only_clears_same_error(self) -> None:
        old, new = _error("old"), _error("new")
        state = transition(OrchestratorState(), ErrorRaised(new))
        assert transition(state, ErrorExpired(old)).transient_error == new
        assert transition(state, ErrorExpired(new)).transient_error is None


class TestCheckoutConfirmation:
    def test_request_then_cancel(self) -> None:
        state = transition(OrchestratorState(), CheckoutRequested("feature"))
        assert state.pending_checkout is not None
        assert state.pending_checkout.target_branch == "feature"
        assert transition(state, CheckoutCancelled()).pending_checkout is None

    def test_second_request_replaces_target(self) -> None:
        state = transition(OrchestratorState(), CheckoutRequested("a"))
        state = transition(state, CheckoutRequested("b"))
        assert state.pending_checkout is not None
        assert state.pending_checkout.target_branch == "b"

    @pytest.mark.parametrize("event", [CheckoutConfirmed(), CheckoutCancelled()])
    def test_confirm_or_cancel_from_idle_refused(self, event: object) -> None:
        with pytest.raises(InvalidGuardTransitionError):
            transition(OrchestratorState(), event)  # type: ignore[arg-type]


class TestDrafts:
    def test_edit(self) -> None:
        state = transition(
            OrchestratorState(), DraftsEdited({"commit_message": "fix: x", "amend_mode": True})
        )
        assert state.drafts.commit_message == "fix: x"
        assert state.drafts.amend_mode is True

    def test_cleared_after_commit(self) -> None:
        state = OrchestratorState(
            drafts=PanelDrafts(commit_message="fix: x", amend_mode=True, stash_message="s")
        )
        state = transition(state, DraftsCleared(Action.COMMIT))
        assert state.drafts.commit_message == ""
        assert state.drafts.amend_mode is False
        assert state.drafts.stash_message == "s"

    def test_cleared_after_tag(self) -> None:
        state = OrchestratorState(
            drafts=PanelDrafts(new_tag_name="v1", new_tag_message="m", new_tag_commit="abc1")
        )
        drafts = transition(state, DraftsCleared(Action.CREATE_TAG)).drafts
        assert (drafts.new_tag_name, drafts.new_tag_message, drafts.new_tag_commit) == (
            "",
            "",
            "",
        )

    def test_actions_without_drafts_unchanged(self) -> None:
        state = OrchestratorState(drafts=PanelDrafts(commit_message="keep"))
        assert transition(state, DraftsCleared(Action.PUSH)) is state


class TestPathChanged:
    def test_keeps_only_in_flight(self) -> None:
        state = OrchestratorState(
            in_flight=Action.FETCH,
            drafts=PanelDrafts(commit_message="x"),
            transient_error=_error(),
        )
        state = transition(state, CheckoutRequested("feature"))
        state = transition(state, PathChanged())
        assert state == OrchestratorState(in_flight=Action.FETCH)
