"""Pydantic models for aiogitpanel."""

from .common import GitResult
from .config import PanelSettings
from .snapshot import (
    AheadBehind,
    BranchInfo,
    CommitInfo,
    ConflictFile,
    DetailedStatus,
    FileChange,
    FileStatus,
    RepositorySnapshot,
    StashEntry,
    TagInfo,
)
from .state import (
    Action,
    OperationResult,
    OrchestratorState,
    PanelDrafts,
    PendingCheckout,
    ProgressKind,
    TransientError,
)
from .views import (
    BlameLine,
    CommitDetail,
    CommitFile,
    CommitStats,
    FileHistoryEntry,
    ReflogEntry,
)

__all__ = [
    "Action",
    "AheadBehind",
    "BlameLine",
    "BranchInfo",
    "CommitDetail",
    "CommitFile",
    "CommitInfo",
    "CommitStats",
    "ConflictFile",
    "DetailedStatus",
    "FileChange",
    "FileHistoryEntry",
    "FileStatus",
    "GitResult",
    "OperationResult",
    "OrchestratorState",
    "PanelDrafts",
    "PanelSettings",
    "PendingCheckout",
    "ProgressKind",
    "ReflogEntry",
    "RepositorySnapshot",
    "StashEntry",
    "TagInfo",
    "TransientError",
]
