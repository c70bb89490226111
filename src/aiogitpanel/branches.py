"""Branch list presentation helpers.

Parent inference is a heuristic used only to render the branch list as a
tree; nothing in the orchestration logic depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models.snapshot import BranchInfo

DEFAULT_BRANCHES = ("main", "master")


@dataclass(frozen=True)
class ParentCandidate:
    """Another branch considered as the parent of a branch.

    ``distance_to_tip`` counts commits from the merge-base to the candidate's
    tip (0 means the branch was cut from the candidate's current tip).
    ``commits_ahead`` counts the branch's own commits past that merge-base.
    """

    name: str
    distance_to_tip: int
    commits_ahead: int


def choose_parent_branch(
    candidates: list[ParentCandidate],
) -> tuple[str | None, int]:
    """Pick the closest candidate; ties keep the earliest one.

    Returns ``(parent_name, commits_ahead)``, or ``(None, 0)`` when there are
    no candidates.
    """
    best: ParentCandidate | None = None
    for candidate in candidates:
        if best is None or candidate.distance_to_tip < best.distance_to_tip:
            best = candidate
    if best is None:
        return None, 0
    return best.name, best.commits_ahead


def default_branch(names: list[str]) -> str | None:
    """``main``, else ``master``, else the first branch."""
    for name in DEFAULT_BRANCHES:
        if name in names:
            return name
    return names[0] if names else None


def sort_local_branches(branches: list[BranchInfo]) -> list[BranchInfo]:
    """Order local branches for display.

    main/master come first, then branches without an inferred parent, then
    the rest grouped under their parents, alphabetical within each group.
    """
    local = [b for b in branches if not b.is_remote]
    mains = [b for b in local if b.name in DEFAULT_BRANCHES]
    mains.sort(key=lambda b: DEFAULT_BRANCHES.index(b.name))
    others = [b for b in local if b.name not in DEFAULT_BRANCHES]

    roots = sorted((b for b in others if not b.parent_branch), key=lambda b: b.name)
    children: dict[str, list[BranchInfo]] = {}
    for branch in others:
        if branch.parent_branch:
            children.setdefault(branch.parent_branch, []).append(branch)

    ordered: list[BranchInfo] = []
    placed: set[str] = set()

    def _place(branch: BranchInfo) -> None:
        if branch.name in placed:
            return
        placed.add(branch.name)
        ordered.append(branch)
        for child in sorted(children.get(branch.name, []), key=lambda b: b.name):
            _place(child)

    for branch in mains:
        placed.add(branch.name)
        ordered.append(branch)
    for branch in roots:
        _place(branch)
    for parent in sorted(children):
        for child in sorted(children[parent], key=lambda b: b.name):
            if parent in placed or parent not in {b.name for b in others}:
                _place(child)
    # Anything left sits in a parent cycle; keep it visible.
    for branch in sorted(others, key=lambda b: b.name):
        _place(branch)
    return ordered
