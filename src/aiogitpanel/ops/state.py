"""Events and the pure transition function for :class:`OrchestratorState`.

Every change to the orchestrator's state goes through :func:`transition`, so
the single-operation and checkout-confirmation rules can be checked without
running any git command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..exceptions import InvalidGuardTransitionError, OperationInFlightError
from ..models.state import (
    Action,
    OrchestratorState,
    PanelDrafts,
    PendingCheckout,
    TransientError,
)

# Draft fields cleared after each action succeeds.
DRAFTS_CLEARED_ON_SUCCESS: dict[Action, dict[str, Any]] = {
    Action.COMMIT: {"commit_message": "", "amend_mode": False},
    Action.STASH_PUSH: {"stash_message": ""},
    Action.CREATE_BRANCH: {"new_branch_name": ""},
    Action.CREATE_TAG: {
        "new_tag_name": "",
        "new_tag_message": "",
        "new_tag_commit": "",
    },
}


@dataclass(frozen=True)
class OperationStarted:
    action: Action


@dataclass(frozen=True)
class OperationFinished:
    pass


@dataclass(frozen=True)
class ErrorRaised:
    error: TransientError


@dataclass(frozen=True)
class ErrorExpired:
    """Clears *error* only if it is still the one being shown."""

    error: TransientError


@dataclass(frozen=True)
class ErrorDismissed:
    pass


@dataclass(frozen=True)
class CheckoutRequested:
    target_branch: str


@dataclass(frozen=True)
class CheckoutConfirmed:
    pass


@dataclass(frozen=True)
class CheckoutCancelled:
    pass


@dataclass(frozen=True)
class DraftsEdited:
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DraftsCleared:
    action: Action


@dataclass(frozen=True)
class PathChanged:
    """Forget everything tied to the old path except the in-flight token."""


Event = (
    OperationStarted
    | OperationFinished
    | ErrorRaised
    | ErrorExpired
    | ErrorDismissed
    | CheckoutRequested
    | CheckoutConfirmed
    | CheckoutCancelled
    | DraftsEdited
    | DraftsCleared
    | PathChanged
)


def transition(state: OrchestratorState, event: Event) -> OrchestratorState:
    """Return the state that follows *state* after *event*.

    Raises :class:`OperationInFlightError` when an operation starts while
    another is running, and :class:`InvalidGuardTransitionError` when a
    checkout is confirmed or cancelled without one pending.
    """
    match event:
        case OperationStarted(action=action):
            if state.in_flight is not None:
                raise OperationInFlightError(
                    f"Cannot start {action}: {state.in_flight} is still running"
                )
            return state.model_copy(update={"in_flight": action})

        case OperationFinished():
            return state.model_copy(update={"in_flight": None})

        case ErrorRaised(error=error):
            return state.model_copy(update={"transient_error": error})

        case ErrorExpired(error=error):
            if state.transient_error != error:
                return state
            return state.model_copy(update={"transient_error": None})

        case ErrorDismissed():
            return state.model_copy(update={"transient_error": None})

        case CheckoutRequested(target_branch=branch):
            return state.model_copy(
                update={"pending_checkout": PendingCheckout(target_branch=branch)}
            )

        case CheckoutConfirmed() | CheckoutCancelled():
            if state.pending_checkout is None:
                raise InvalidGuardTransitionError("No checkout is waiting for confirmation")
            return state.model_copy(update={"pending_checkout": None})

        case DraftsEdited(changes=changes):
            drafts = PanelDrafts.model_validate({**state.drafts.model_dump(), **changes})
            return state.model_copy(update={"drafts": drafts})

        case DraftsCleared(action=action):
            cleared = DRAFTS_CLEARED_ON_SUCCESS.get(action)
            if not cleared:
                return state
            drafts = state.drafts.model_copy(update=cleared)
            return state.model_copy(update={"drafts": drafts})

        case PathChanged():
            return OrchestratorState(in_flight=state.in_flight)

    raise TypeError(f"Unknown event: {event!r}")
