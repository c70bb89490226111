"""Exception hierarchy for aiogitpanel."""

from __future__ import annotations


class GitPanelError(Exception):
    """Base exception for all aiogitpanel errors."""


class SettingsError(GitPanelError):
    """Panel settings could not be loaded or validated."""


class GitCommandError(GitPanelError):
    """A read-only gateway query failed."""

    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr


class FetchError(GitPanelError):
    """A snapshot fetch cycle failed; the previous snapshot stays in place."""

    def __init__(self, message: str, *, query: str | None = None) -> None:
        super().__init__(message)
        self.query = query


class PreconditionRefusal(GitPanelError):
    """The orchestrator refused to dispatch an operation."""


class OperationInFlightError(PreconditionRefusal):
    """Another mutating operation is still running."""


class NotARepositoryError(PreconditionRefusal):
    """The working path is not (or is already) a git repository."""


class NoRemoteError(PreconditionRefusal):
    """The repository has no remote configured."""


class NothingToPushError(PreconditionRefusal):
    """The current branch is not ahead of its upstream."""


class NothingToPullError(PreconditionRefusal):
    """The current branch is not behind its upstream."""


class ProtectedBranchError(PreconditionRefusal):
    """Deleting the current or a protected branch requires ``force``."""


class OperationBlockedError(PreconditionRefusal):
    """A merge, rebase or cherry-pick in progress blocks this operation."""


class NothingInProgressError(PreconditionRefusal):
    """Continue/abort/skip was requested for an operation that is not running."""


class EmptyInputError(PreconditionRefusal):
    """A required input (message, name, file list) is empty."""


class InvalidGuardTransitionError(PreconditionRefusal):
    """The checkout guard is not in a state that accepts this request."""
