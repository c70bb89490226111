"""aiogitpanel: async repository state sync and git operation orchestration."""

from ._version import __version__
from .branches import choose_parent_branch, sort_local_branches
from .exceptions import (
    EmptyInputError,
    FetchError,
    GitCommandError,
    GitPanelError,
    InvalidGuardTransitionError,
    NoRemoteError,
    NotARepositoryError,
    NothingInProgressError,
    NothingToPullError,
    NothingToPushError,
    OperationBlockedError,
    OperationInFlightError,
    PreconditionRefusal,
    ProtectedBranchError,
    SettingsError,
)
from .gateway import GitCliGateway, GitGateway
from .models import (
    Action,
    GitResult,
    OperationResult,
    OrchestratorState,
    PanelSettings,
    ProgressKind,
    RepositorySnapshot,
)
from .ops import (
    CheckoutGuard,
    ConflictAndProgressTracker,
    OperationOrchestrator,
    apply_conventional_prefix,
    classify_failure,
)
from .panel import GitPanel
from .settings import async_load_settings, load_settings
from .sync import AutoRefreshScheduler, RepositorySnapshotFetcher, SnapshotStore

__all__ = [
    "Action",
    "AutoRefreshScheduler",
    "CheckoutGuard",
    "ConflictAndProgressTracker",
    "EmptyInputError",
    "FetchError",
    "GitCliGateway",
    "GitCommandError",
    "GitGateway",
    "GitPanel",
    "GitPanelError",
    "GitResult",
    "InvalidGuardTransitionError",
    "NoRemoteError",
    "NotARepositoryError",
    "NothingInProgressError",
    "NothingToPullError",
    "NothingToPushError",
    "OperationBlockedError",
    "OperationInFlightError",
    "OperationOrchestrator",
    "OperationResult",
    "OrchestratorState",
    "PanelSettings",
    "PreconditionRefusal",
    "ProgressKind",
    "ProtectedBranchError",
    "RepositorySnapshot",
    "RepositorySnapshotFetcher",
    "SettingsError",
    "SnapshotStore",
    "__version__",
    "apply_conventional_prefix",
    "async_load_settings",
    "choose_parent_branch",
    "classify_failure",
    "load_settings",
    "sort_local_branches",
]
