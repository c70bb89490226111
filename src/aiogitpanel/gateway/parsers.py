"""Parsers for git's machine-readable output and argument validators.

Everything in here is pure so it can be tested without a repository.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

from ..models.snapshot import (
    ConflictFile,
    DetailedStatus,
    FileChange,
    FileStatus,
    StashEntry,
)
from ..models.views import (
    BlameLine,
    CommitDetail,
    CommitFile,
    CommitStats,
    FileHistoryEntry,
    ReflogEntry,
)

# Field separator used in every ``--format`` string we pass to git.
FIELD_SEP = "\x1f"

STANDARD_PREFIXES: tuple[str, ...] = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "perf",
    "test",
    "build",
    "ci",
    "chore",
    "revert",
)

_BRANCH_NAME_RE = re.compile(r"^[\w./-]+$")
_COMMIT_HASH_RE = re.compile(r"^[0-9a-fA-F]{4,40}$")
_SUBJECT_PREFIX_RE = re.compile(r"^(\w+)(?:\([^)]+\))?!?:")
_STASH_RE = re.compile(r"^stash@\{(\d+)\}:\s*(?:(?:On|WIP on)\s+(\S+):\s*)?(.*)$")
_BLAME_HEADER_RE = re.compile(r"^([0-9a-f]{40})\s+\d+\s+(\d+)")
_REFLOG_ACTION_RE = re.compile(r"^([\w-]+)(?:\s*\([^)]*\))?:")

_INDEX_STATUS: dict[str, FileStatus] = {
    "A": "added",
    "D": "deleted",
    "M": "modified",
    "R": "renamed",
    "C": "copied",
}


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------


def validate_ref_name(name: str) -> str | None:
    """Return an error message if *name* is unsafe as a branch or tag name."""
    if not name:
        return "No name specified"
    if not _BRANCH_NAME_RE.match(name) or name.startswith("-"):
        return (
            "Invalid name. Use only letters, numbers, dashes, underscores, "
            "slashes, and dots."
        )
    if ".." in name or name.endswith((".", "/", ".lock")):
        return "Invalid name"
    return None


def validate_commit_hash(commit_hash: str) -> str | None:
    if not _COMMIT_HASH_RE.match(commit_hash):
        return "Invalid commit hash format"
    return None


# ----------------------------------------------------------------------
# Status
# ----------------------------------------------------------------------


def parse_status_line(line: str) -> FileChange | None:
    """Parse one ``git status --porcelain=v1`` entry line."""
    if len(line) < 4:
        return None

    index_status = line[0]
    work_tree_status = line[1]
    file_path = _unquote(line[3:])
    original_path: str | None = None

    if " -> " in file_path:
        original_path, file_path = (_unquote(p) for p in file_path.split(" -> ", 1))

    status: FileStatus
    staged = False
    if index_status == "?" and work_tree_status == "?":
        status = "untracked"
    elif index_status == "!" and work_tree_status == "!":
        status = "ignored"
    elif index_status not in (" ", "?"):
        staged = True
        status = _INDEX_STATUS.get(index_status, "modified")
    elif work_tree_status != " ":
        status = "deleted" if work_tree_status == "D" else "modified"
    else:
        return None

    return FileChange(
        file=file_path,
        status=status,
        staged=staged,
        original_path=original_path,
        index_status=index_status,
        work_tree_status=work_tree_status,
    )


def parse_branch_header(line: str) -> str:
    """Extract the branch name from a ``## ...`` porcelain header."""
    header = line[3:].strip()
    for prefix in ("No commits yet on ", "Initial commit on "):
        if header.startswith(prefix):
            return header[len(prefix) :].strip()
    if header.startswith("HEAD (no branch)"):
        return "HEAD"
    return header.split("...", 1)[0].split(" ", 1)[0]


def parse_detailed_status(output: str) -> DetailedStatus:
    """Split porcelain status into staged, unstaged and untracked lists.

    A path with both index and work-tree changes is reported twice: once as
    staged and once as unstaged.
    """
    branch = ""
    staged: list[FileChange] = []
    unstaged: list[FileChange] = []
    untracked: list[FileChange] = []

    for line in output.splitlines():
        if line.startswith("## "):
            branch = parse_branch_header(line)
            continue

        change = parse_status_line(line)
        if change is None or change.status == "ignored":
            continue

        if change.status == "untracked":
            untracked.append(change)
        elif change.staged:
            staged.append(change)
            if change.work_tree_status != " ":
                unstaged.append(
                    change.model_copy(
                        update={
                            "staged": False,
                            "status": "deleted"
                            if change.work_tree_status == "D"
                            else "modified",
                        }
                    )
                )
        else:
            unstaged.append(change)

    return DetailedStatus(
        branch=branch,
        staged=staged,
        unstaged=unstaged,
        untracked=untracked,
    )


def _unquote(path: str) -> str:
    """Strip the C-style quoting git applies to unusual path names."""
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        inner = path[1:-1]
        # Octal escapes are the raw UTF-8 bytes of the name.
        raw = inner.encode("latin-1", "backslashreplace").decode("unicode_escape")
        return raw.encode("latin-1").decode("utf-8", errors="replace")
    return path


# ----------------------------------------------------------------------
# Remote tracking
# ----------------------------------------------------------------------


def parse_left_right_count(output: str) -> tuple[int, int]:
    """Parse ``rev-list --left-right --count upstream...HEAD`` as (behind, ahead)."""
    parts = output.split()
    if len(parts) != 2:
        return 0, 0
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return 0, 0


# ----------------------------------------------------------------------
# Stash, conflicts, prefixes
# ----------------------------------------------------------------------


def parse_stash_list(output: str) -> list[StashEntry]:
    stashes: list[StashEntry] = []
    for line in output.splitlines():
        match = _STASH_RE.match(line.strip())
        if not match:
            continue
        index, branch, message = match.groups()
        stashes.append(
            StashEntry(index=int(index), branch=branch or "", message=message.strip())
        )
    return stashes


def parse_conflict_files(output: str) -> list[ConflictFile]:
    """Parse ``git diff --name-only --diff-filter=U`` (one path per line)."""
    seen: dict[str, ConflictFile] = {}
    for line in output.splitlines():
        file = _unquote(line.strip())
        if file and file not in seen:
            seen[file] = ConflictFile(file=file)
    return list(seen.values())


def extract_conventional_prefixes(subjects: list[str]) -> list[str]:
    """Prefixes already used in *subjects* first, then the standard set."""
    used: list[str] = []
    for subject in subjects:
        match = _SUBJECT_PREFIX_RE.match(subject)
        if match:
            prefix = match.group(1).lower()
            if prefix not in used:
                used.append(prefix)
    return used + [p for p in STANDARD_PREFIXES if p not in used]


# ----------------------------------------------------------------------
# Detail views
# ----------------------------------------------------------------------


def parse_file_history(output: str) -> list[FileHistoryEntry]:
    entries: list[FileHistoryEntry] = []
    for line in output.splitlines():
        parts = line.split(FIELD_SEP)
        if len(parts) < 5 or not parts[0]:
            continue
        entries.append(
            FileHistoryEntry(
                hash=parts[0],
                short_hash=parts[1],
                author=parts[2],
                date=parts[3],
                subject=FIELD_SEP.join(parts[4:]),
            )
        )
    return entries


def parse_blame_porcelain(output: str) -> list[BlameLine]:
    lines: list[BlameLine] = []
    current_hash = ""
    current_author = ""
    current_time = ""
    line_number = 0

    # Author headers appear only on the first line of each commit group, so
    # remember them per hash for subsequent groups from the same commit.
    authors: dict[str, tuple[str, str]] = {}

    for raw in output.split("\n"):
        header = _BLAME_HEADER_RE.match(raw)
        if header:
            current_hash = header.group(1)
            line_number = int(header.group(2))
            current_author, current_time = authors.get(current_hash, ("", ""))
            continue
        if raw.startswith("author "):
            current_author = raw[len("author ") :]
            authors[current_hash] = (current_author, current_time)
            continue
        if raw.startswith("author-time "):
            timestamp = int(raw[len("author-time ") :])
            current_time = datetime.fromtimestamp(timestamp, tz=UTC).isoformat()
            authors[current_hash] = (current_author, current_time)
            continue
        if raw.startswith("\t"):
            lines.append(
                BlameLine(
                    hash=current_hash[:8],
                    author=current_author,
                    author_time=current_time,
                    line_number=line_number,
                    content=raw[1:],
                )
            )
    return lines


def parse_reflog(output: str) -> list[ReflogEntry]:
    entries: list[ReflogEntry] = []
    for line in output.splitlines():
        parts = line.split(FIELD_SEP)
        if len(parts) < 5 or not parts[0]:
            continue
        message = parts[3]
        action = _REFLOG_ACTION_RE.match(message)
        entries.append(
            ReflogEntry(
                hash=parts[0],
                short_hash=parts[1],
                action=action.group(1) if action else "unknown",
                message=message,
                date=parts[4],
                index=len(entries),
            )
        )
    return entries


def parse_commit_detail(header: str, numstat: str, name_status: str) -> CommitDetail:
    """Combine ``show --no-patch``, ``--numstat`` and ``--name-status`` output."""
    fields = header.split(FIELD_SEP)
    if len(fields) < 6:
        raise ValueError("Failed to parse commit info")

    statuses: dict[str, str] = {}
    for line in name_status.splitlines():
        parts = line.split("\t")
        if len(parts) >= 2 and parts[0]:
            statuses[parts[-1]] = parts[0][0]

    files: list[CommitFile] = []
    insertions = deletions = 0
    for line in numstat.splitlines():
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        added = int(parts[0]) if parts[0].isdigit() else 0
        removed = int(parts[1]) if parts[1].isdigit() else 0
        file = parts[2]
        insertions += added
        deletions += removed
        files.append(
            CommitFile(
                file=file,
                status=_INDEX_STATUS.get(statuses.get(file, "M"), "modified"),  # type: ignore[arg-type]
                insertions=added,
                deletions=removed,
            )
        )

    return CommitDetail(
        hash=fields[0],
        short_hash=fields[1],
        author=fields[2],
        email=fields[3],
        date=fields[4],
        subject=fields[5],
        body=FIELD_SEP.join(fields[6:]).strip(),
        files=files,
        stats=CommitStats(
            files_changed=len(files),
            insertions=insertions,
            deletions=deletions,
        ),
    )
