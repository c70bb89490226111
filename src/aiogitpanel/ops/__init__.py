"""Mutation orchestration: preconditions, execution, checkout guard."""

from .classify import CONFLICT_PATTERNS, Classification, classify_failure
from .guard import CheckoutGuard
from .messages import apply_conventional_prefix
from .orchestrator import OperationOrchestrator
from .state import transition
from .tracker import ConflictAndProgressTracker

__all__ = [
    "CONFLICT_PATTERNS",
    "CheckoutGuard",
    "Classification",
    "ConflictAndProgressTracker",
    "OperationOrchestrator",
    "apply_conventional_prefix",
    "classify_failure",
    "transition",
]
