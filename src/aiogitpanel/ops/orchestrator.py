"""Serialised execution of mutating git operations.

Every action follows the same path: check preconditions, take the in-flight
token, call the gateway, refresh the snapshot once, classify any failure,
release the token. Action handlers only describe their gateway call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..exceptions import (
    EmptyInputError,
    NoRemoteError,
    NotARepositoryError,
    NothingToPullError,
    NothingToPushError,
    OperationBlockedError,
    OperationInFlightError,
    PreconditionRefusal,
    ProtectedBranchError,
)
from ..gateway.protocol import GitGateway
from ..models.common import GitResult
from ..models.config import PanelSettings
from ..models.snapshot import RepositorySnapshot
from ..models.state import Action, OperationResult, OrchestratorState, TransientError
from ..sync.store import SnapshotStore
from .classify import classify_failure, label_for
from .messages import apply_conventional_prefix
from .state import (
    DraftsCleared,
    DraftsEdited,
    ErrorDismissed,
    ErrorExpired,
    ErrorRaised,
    Event,
    OperationFinished,
    OperationStarted,
    PathChanged,
    transition,
)
from .tracker import ConflictAndProgressTracker

logger = logging.getLogger(__name__)

GatewayStep = Callable[[], Awaitable[GitResult]]
StateListener = Callable[[OrchestratorState], None]

_REMOTE_ACTIONS = frozenset({Action.PUSH, Action.PULL, Action.FETCH})


class OperationOrchestrator:
    """Runs one mutating action at a time against a :class:`SnapshotStore`.

    Refusals raise a :class:`PreconditionRefusal` before any gateway call.
    Gateway failures never raise; they are reported in the returned
    :class:`OperationResult` and as an auto-expiring transient error.
    """

    def __init__(
        self,
        gateway: GitGateway,
        store: SnapshotStore,
        settings: PanelSettings | None = None,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.settings = settings or PanelSettings()
        self._state = OrchestratorState()
        self._idle = asyncio.Event()
        self._idle.set()
        self._expiry: asyncio.TimerHandle | None = None
        self._listeners: list[StateListener] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def snapshot(self) -> RepositorySnapshot:
        return self.store.snapshot

    @property
    def path(self) -> Path:
        return self.store.path

    def apply(self, event: Event) -> OrchestratorState:
        """Advance the state through :func:`transition` and notify listeners."""
        new_state = transition(self._state, event)
        if new_state is not self._state:
            self._state = new_state
            for listener in list(self._listeners):
                try:
                    listener(new_state)
                except Exception:
                    logger.exception("State listener %r raised", listener)
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reset(self) -> None:
        """Forget drafts, errors and any pending checkout (path changed)."""
        self._cancel_expiry()
        self.apply(PathChanged())

    def close(self) -> None:
        self._cancel_expiry()

    # ------------------------------------------------------------------
    # Transient errors
    # ------------------------------------------------------------------

    def _raise_error(self, message: str) -> None:
        error = TransientError(message=message, created_at=datetime.now(UTC))
        self._cancel_expiry()
        self.apply(ErrorRaised(error))
        loop = asyncio.get_running_loop()
        self._expiry = loop.call_later(self.settings.error_ttl, self._expire, error)

    def _expire(self, error: TransientError) -> None:
        self._expiry = None
        self.apply(ErrorExpired(error))

    def _cancel_expiry(self) -> None:
        if self._expiry is not None:
            self._expiry.cancel()
            self._expiry = None

    def dismiss_error(self) -> None:
        self._cancel_expiry()
        self.apply(ErrorDismissed())

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def update_drafts(self, **changes: Any) -> None:
        self.apply(DraftsEdited(changes))

    def set_commit_message(self, message: str) -> None:
        self.update_drafts(commit_message=message)

    def set_amend_mode(self, enabled: bool) -> None:
        self.update_drafts(amend_mode=enabled)

    def insert_conventional_prefix(self, prefix: str) -> str:
        """Rewrite the commit draft with *prefix*; no gateway call."""
        if not prefix.strip():
            raise EmptyInputError("No prefix specified")
        message = apply_conventional_prefix(self._state.drafts.commit_message, prefix)
        self.set_commit_message(message)
        return message

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    def ensure_allowed(self, action: Action, *, ignore_in_flight: bool = False) -> None:
        """Checks shared by every action: in-flight token, repository, gating."""
        if self._state.in_flight is not None and not ignore_in_flight:
            raise OperationInFlightError(
                f"Cannot start {label_for(action).lower()}: "
                f"{self._state.in_flight} is still running"
            )

        snapshot = self.snapshot
        if action is Action.INIT:
            if snapshot.is_repository:
                raise NotARepositoryError(f"{self.path} is already a git repository")
            return
        if not snapshot.is_repository:
            raise NotARepositoryError(f"{self.path} is not a git repository")

        ConflictAndProgressTracker(snapshot).check(action)

        if action in _REMOTE_ACTIONS and not snapshot.has_remote:
            raise NoRemoteError("No remote configured")
        if action is Action.PUSH and snapshot.ahead == 0:
            raise NothingToPushError("Nothing to push")
        if action is Action.PULL and snapshot.behind == 0:
            raise NothingToPullError("Nothing to pull")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(
        self, action: Action | str, *, wait: bool = False, **args: Any
    ) -> OperationResult:
        """Run *action* with *args* as one unit.

        With ``wait=True`` the call queues behind a running operation instead
        of being refused with :class:`OperationInFlightError`.
        """
        action = Action(action)
        if wait:
            await self._wait_until_idle()
        self.ensure_allowed(action)
        step = self._build_step(action, args)
        return await self._dispatch(action, [step])

    async def execute_sequence(
        self,
        action: Action,
        steps: Sequence[GatewayStep],
        *,
        failure_prefix: str | None = None,
    ) -> OperationResult:
        """Run several gateway calls under one in-flight token.

        Stops at the first failing step and refreshes once at the end. With
        *failure_prefix* the error message reads ``"<prefix>: <error>"``.
        """
        self.ensure_allowed(action)
        if not steps:
            raise EmptyInputError("No steps to run")
        return await self._dispatch(action, list(steps), failure_prefix=failure_prefix)

    async def _wait_until_idle(self) -> None:
        while self._state.in_flight is not None:
            await self._idle.wait()

    async def _dispatch(
        self,
        action: Action,
        steps: list[GatewayStep],
        *,
        failure_prefix: str | None = None,
    ) -> OperationResult:
        self.apply(OperationStarted(action))
        self._idle.clear()
        path = self.path
        logger.info("Running %s in %s", action, path)
        try:
            result = await self._run_steps(action, steps)
            snapshot = await self.store.refresh()
        finally:
            self.apply(OperationFinished())
            self._idle.set()

        if self.store.closed or self.path != path:
            logger.debug("Dropping result of %s for %s", action, path)
            return OperationResult(
                action=action,
                outcome="succeeded" if result.success else "failed",
                message=result.error,
                result=result,
            )

        if result.success:
            logger.info("%s succeeded in %s", label_for(action), path)
            self.apply(DraftsCleared(action))
            return OperationResult(
                action=action, outcome="succeeded", result=result, snapshot=snapshot
            )

        classification = classify_failure(action, result, snapshot)
        message = classification.message
        if failure_prefix and classification.outcome == "failed":
            message = f"{failure_prefix}: {(result.error or 'unknown error').strip()}"
        logger.warning("%s in %s: %s", label_for(action), path, message)
        self._raise_error(message)
        return OperationResult(
            action=action,
            outcome=classification.outcome,
            message=message,
            result=result,
            snapshot=snapshot,
        )

    async def _run_steps(self, action: Action, steps: list[GatewayStep]) -> GitResult:
        result = GitResult(success=True)
        for step in steps:
            try:
                result = await step()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.exception("Gateway call for %s raised", action)
                result = GitResult.failed(str(exc) or type(exc).__name__)
            if not result.success:
                break
        return result

    # ------------------------------------------------------------------
    # Action handlers
    # ------------------------------------------------------------------

    def _build_step(self, action: Action, args: dict[str, Any]) -> GatewayStep:
        handler = getattr(self, f"_step_{action.value}")
        try:
            return handler(**args)
        except TypeError as exc:
            raise PreconditionRefusal(f"Invalid arguments for {action}: {exc}") from exc

    def _step_stage(self, files: list[str]) -> GatewayStep:
        files = _require_files(files)
        return lambda: self.gateway.stage(self.path, files)

    def _step_unstage(self, files: list[str]) -> GatewayStep:
        files = _require_files(files)
        return lambda: self.gateway.unstage(self.path, files)

    def _step_stage_all(self) -> GatewayStep:
        snapshot = self.snapshot
        files = [c.file for c in snapshot.unstaged + snapshot.untracked]
        if not files:
            raise EmptyInputError("Nothing to stage")
        return lambda: self.gateway.stage(self.path, list(dict.fromkeys(files)))

    def _step_unstage_all(self) -> GatewayStep:
        files = [c.file for c in self.snapshot.staged]
        if not files:
            raise EmptyInputError("Nothing to unstage")
        return lambda: self.gateway.unstage(self.path, files)

    def _step_discard(self, files: list[str]) -> GatewayStep:
        files = _require_files(files)
        return lambda: self.gateway.discard_changes(self.path, files)

    def _step_clean_untracked(self, file: str) -> GatewayStep:
        file = _require_text(file, "No file specified")
        return lambda: self.gateway.clean_untracked(self.path, file)

    def _step_commit(
        self, message: str | None = None, amend: bool | None = None
    ) -> GatewayStep:
        drafts = self._state.drafts
        text = (drafts.commit_message if message is None else message).strip()
        amend = drafts.amend_mode if amend is None else amend

        if amend:
            if not self.snapshot.commits:
                raise EmptyInputError("No commit to amend")
            if text:
                return lambda: self.gateway.commit_amend(self.path, message=text)
            return lambda: self.gateway.commit_amend(self.path, no_edit=True)

        if not text:
            raise EmptyInputError("Commit message is empty")
        if not self.snapshot.staged:
            raise EmptyInputError("Nothing staged to commit")
        return lambda: self.gateway.commit(self.path, text)

    def _step_push(self) -> GatewayStep:
        return lambda: self.gateway.push(self.path)

    def _step_pull(self) -> GatewayStep:
        return lambda: self.gateway.pull(self.path)

    def _step_fetch(self) -> GatewayStep:
        return lambda: self.gateway.fetch(self.path)

    def _step_checkout(self, branch: str) -> GatewayStep:
        branch = _require_text(branch, "No branch specified")
        if self.snapshot.has_changes:
            raise OperationBlockedError(
                "Uncommitted changes; confirm discarding them before switching branches"
            )
        return lambda: self.gateway.checkout(self.path, branch)

    def _step_create_branch(
        self, name: str | None = None, checkout: bool = True
    ) -> GatewayStep:
        name = _require_text(
            self._state.drafts.new_branch_name if name is None else name,
            "Branch name is empty",
        )
        return lambda: self.gateway.create_branch(self.path, name, checkout=checkout)

    def _step_delete_branch(self, name: str, force: bool = False) -> GatewayStep:
        name = _require_text(name, "No branch specified")
        if not force:
            if name == self.snapshot.current_branch:
                raise ProtectedBranchError(
                    f"Cannot delete the current branch {name} without force"
                )
            if name in self.settings.protected_branches:
                raise ProtectedBranchError(
                    f"Cannot delete protected branch {name} without force"
                )
        return lambda: self.gateway.delete_branch(self.path, name, force=force)

    def _step_merge(
        self, branch: str, no_ff: bool = False, squash: bool = False
    ) -> GatewayStep:
        branch = _require_text(branch, "No branch specified")
        return lambda: self.gateway.merge(self.path, branch, no_ff=no_ff, squash=squash)

    def _step_merge_abort(self) -> GatewayStep:
        return lambda: self.gateway.merge_abort(self.path)

    def _step_rebase(self, branch: str) -> GatewayStep:
        branch = _require_text(branch, "No branch specified")
        return lambda: self.gateway.rebase(self.path, branch)

    def _step_rebase_abort(self) -> GatewayStep:
        return lambda: self.gateway.rebase_abort(self.path)

    def _step_rebase_continue(self) -> GatewayStep:
        return lambda: self.gateway.rebase_continue(self.path)

    def _step_rebase_skip(self) -> GatewayStep:
        return lambda: self.gateway.rebase_skip(self.path)

    def _step_cherry_pick(self, commit_hash: str) -> GatewayStep:
        commit_hash = _require_text(commit_hash, "No commit specified")
        return lambda: self.gateway.cherry_pick(self.path, commit_hash)

    def _step_cherry_pick_abort(self) -> GatewayStep:
        return lambda: self.gateway.cherry_pick_abort(self.path)

    def _step_cherry_pick_continue(self) -> GatewayStep:
        return lambda: self.gateway.cherry_pick_continue(self.path)

    def _step_stash_push(self, message: str | None = None) -> GatewayStep:
        if not self.snapshot.has_changes:
            raise EmptyInputError("No local changes to stash")
        text = (self._state.drafts.stash_message if message is None else message).strip()
        return lambda: self.gateway.stash_push(self.path, text or None)

    def _step_stash_pop(self, index: int | None = None) -> GatewayStep:
        self._require_stashes()
        return lambda: self.gateway.stash_pop(self.path, index)

    def _step_stash_apply(self, index: int | None = None) -> GatewayStep:
        self._require_stashes()
        return lambda: self.gateway.stash_apply(self.path, index)

    def _step_stash_drop(self, index: int) -> GatewayStep:
        self._require_stashes()
        return lambda: self.gateway.stash_drop(self.path, index)

    def _require_stashes(self) -> None:
        if not self.snapshot.stashes:
            raise EmptyInputError("No stashes")

    def _step_create_tag(
        self,
        name: str | None = None,
        message: str | None = None,
        commit: str | None = None,
    ) -> GatewayStep:
        drafts = self._state.drafts
        name = _require_text(
            drafts.new_tag_name if name is None else name, "Tag name is empty"
        )
        message = (drafts.new_tag_message if message is None else message).strip()
        commit = (drafts.new_tag_commit if commit is None else commit).strip()
        return lambda: self.gateway.create_tag(
            self.path, name, message=message or None, commit=commit or None
        )

    def _step_delete_tag(self, name: str) -> GatewayStep:
        name = _require_text(name, "No tag specified")
        return lambda: self.gateway.delete_tag(self.path, name)

    def _step_resolve_ours(self, file: str) -> GatewayStep:
        file = _require_text(file, "No file specified")
        return lambda: self.gateway.resolve_ours(self.path, file)

    def _step_resolve_theirs(self, file: str) -> GatewayStep:
        file = _require_text(file, "No file specified")
        return lambda: self.gateway.resolve_theirs(self.path, file)

    def _step_reset_to_reflog(self, index: int, hard: bool = False) -> GatewayStep:
        if index < 0:
            raise EmptyInputError("Invalid reflog index")
        return lambda: self.gateway.reset_to_reflog(self.path, index, hard=hard)

    def _step_init(self) -> GatewayStep:
        return lambda: self.gateway.init(self.path)


def _require_files(files: list[str]) -> list[str]:
    cleaned = [f for f in files if f]
    if not cleaned:
        raise EmptyInputError("No files specified")
    return cleaned


def _require_text(value: str | None, message: str) -> str:
    if value is None or not value.strip():
        raise EmptyInputError(message)
    return value.strip()
