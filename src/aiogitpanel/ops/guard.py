"""Confirmation step in front of branch switches on a dirty working tree."""

from __future__ import annotations

import logging
from typing import Literal

from ..exceptions import EmptyInputError, InvalidGuardTransitionError
from ..models.snapshot import RepositorySnapshot
from ..models.state import Action, OperationResult, PendingCheckout
from .orchestrator import GatewayStep, OperationOrchestrator
from .state import CheckoutCancelled, CheckoutConfirmed, CheckoutRequested

logger = logging.getLogger(__name__)

GuardState = Literal["idle", "pending_confirmation"]


def files_to_discard(snapshot: RepositorySnapshot) -> list[str]:
    """Tracked paths that must be reverted so a checkout sees a clean tree.

    Staged additions are left alone: once unstaged they are untracked files,
    which a discard never deletes. That holds for their later edits too
    (``AM``), since the path is not in HEAD. A staged rename restores the
    old path.
    """
    new_paths = {c.file for c in snapshot.staged if c.status in ("added", "copied")}
    files: list[str] = []
    for change in snapshot.staged:
        if change.file in new_paths:
            continue
        if change.status == "renamed" and change.original_path:
            files.append(change.original_path)
        else:
            files.append(change.file)
    files.extend(
        c.file
        for c in snapshot.unstaged
        if c.status != "untracked" and c.file not in new_paths
    )
    return list(dict.fromkeys(files))


class CheckoutGuard:
    """``idle -> pending_confirmation -> idle``.

    The pending target lives in the orchestrator state so a single
    :func:`~aiogitpanel.ops.state.transition` governs both.
    """

    def __init__(self, orchestrator: OperationOrchestrator) -> None:
        self.orchestrator = orchestrator

    @property
    def pending(self) -> PendingCheckout | None:
        return self.orchestrator.state.pending_checkout

    @property
    def state(self) -> GuardState:
        return "idle" if self.pending is None else "pending_confirmation"

    async def request_checkout(
        self, branch: str, *, wait: bool = False
    ) -> OperationResult | None:
        """Switch to *branch*, or hold the request if the tree is dirty.

        Returns ``None`` when the request is waiting for
        :meth:`confirm_discard_and_checkout` or :meth:`cancel_checkout`.
        """
        branch = (branch or "").strip()
        if not branch:
            raise EmptyInputError("No branch specified")

        snapshot = self.orchestrator.snapshot
        if not snapshot.has_changes:
            if self.pending is not None:
                self.orchestrator.apply(CheckoutCancelled())
            return await self.orchestrator.execute(
                Action.CHECKOUT, wait=wait, branch=branch
            )

        self.orchestrator.ensure_allowed(Action.CHECKOUT, ignore_in_flight=wait)
        logger.info(
            "Checkout of %s waits for confirmation: %d staged, %d unstaged",
            branch,
            len(snapshot.staged),
            len(snapshot.unstaged),
        )
        self.orchestrator.apply(CheckoutRequested(branch))
        return None

    async def confirm_discard_and_checkout(self) -> OperationResult:
        """Unstage everything, revert tracked changes, then switch branches."""
        pending = self.pending
        if pending is None:
            raise InvalidGuardTransitionError("No checkout is waiting for confirmation")
        target = pending.target_branch

        self.orchestrator.ensure_allowed(Action.CHECKOUT)

        gateway = self.orchestrator.gateway
        path = self.orchestrator.path
        snapshot = self.orchestrator.snapshot
        staged: list[str] = []
        for change in snapshot.staged:
            if change.original_path:
                staged.append(change.original_path)
            staged.append(change.file)
        discard = files_to_discard(snapshot)

        steps: list[GatewayStep] = []
        if staged:
            steps.append(lambda: gateway.unstage(path, staged))
        if discard:
            steps.append(lambda: gateway.discard_changes(path, discard))
        steps.append(lambda: gateway.checkout(path, target))

        logger.info("Discarding %d file(s) and switching to %s", len(discard), target)
        self.orchestrator.apply(CheckoutConfirmed())
        return await self.orchestrator.execute_sequence(
            Action.CHECKOUT,
            steps,
            failure_prefix=f"Could not switch to {target}",
        )

    def cancel_checkout(self) -> None:
        pending = self.pending
        if pending is None:
            raise InvalidGuardTransitionError("No checkout is waiting for confirmation")
        logger.info("Checkout of %s cancelled", pending.target_branch)
        self.orchestrator.apply(CheckoutCancelled())
