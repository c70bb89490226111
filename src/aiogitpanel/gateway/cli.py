"""Git gateway backed by dulwich and the ``git`` binary.

Ref, object and marker-file reads (repository discovery, branches, tags,
history, merge/rebase/cherry-pick markers) go through dulwich and run in a
worker thread via ``asyncio.to_thread`` so they never block the event loop.
Porcelain status, remote tracking, stashes, conflicts and every mutation
shell out to ``git`` with ``asyncio.create_subprocess_exec``; arguments are
passed as a list, never through a shell.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, TypeVar

from dulwich.errors import NotGitRepository
from dulwich.objects import Commit, Tag
from dulwich.repo import Repo

from ..branches import ParentCandidate, choose_parent_branch, default_branch
from ..exceptions import GitCommandError
from ..models.common import GitResult
from ..models.snapshot import (
    AheadBehind,
    BranchInfo,
    CommitInfo,
    ConflictFile,
    DetailedStatus,
    StashEntry,
    TagInfo,
)
from ..models.views import BlameLine, CommitDetail, FileHistoryEntry, ReflogEntry
from .parsers import (
    FIELD_SEP,
    extract_conventional_prefixes,
    parse_blame_porcelain,
    parse_commit_detail,
    parse_conflict_files,
    parse_detailed_status,
    parse_file_history,
    parse_left_right_count,
    parse_reflog,
    parse_stash_list,
    validate_commit_hash,
    validate_ref_name,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_SYMREF = b"ref: "
_HEADS = b"refs/heads/"
_PREFIX_SCAN_DEPTH = 100
_HISTORY_LIMIT = 50
_REFLOG_LIMIT = 50


def _decode(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _split_identity(identity: bytes) -> tuple[str, str]:
    """Split ``b"Name <email>"`` into its parts."""
    text = _decode(identity)
    if "<" in text and text.endswith(">"):
        name, _, email = text.rpartition("<")
        return name.strip(), email[:-1]
    return text.strip(), ""


def _iso_time(timestamp: int, offset_seconds: int) -> str:
    tz = timezone(timedelta(seconds=offset_seconds))
    return datetime.fromtimestamp(timestamp, tz=tz).isoformat()


class GitCliGateway:
    """Stateless :class:`~aiogitpanel.gateway.GitGateway` implementation."""

    def __init__(self, *, git_binary: str = "git", timeout: float = 30.0) -> None:
        self.git_binary = git_binary
        self.timeout = timeout
        self._env = {
            **os.environ,
            "GIT_TERMINAL_PROMPT": "0",
            "LC_ALL": "C",
        }

    # ------------------------------------------------------------------
    # Process helpers
    # ------------------------------------------------------------------

    async def _run(self, path: Path, *args: str) -> GitResult:
        """Run one git command; never raises for git-level failures."""
        command = args[0] if args else "git"
        try:
            proc = await asyncio.create_subprocess_exec(
                self.git_binary,
                *args,
                cwd=str(path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env,
            )
        except OSError as exc:
            logger.error("Failed to start git %s: %s", command, exc)
            return GitResult.failed(f"Failed to run git: {exc}")

        try:
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), self.timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            logger.warning("git %s timed out after %.0fs", command, self.timeout)
            return GitResult.failed(f"git {command} timed out after {self.timeout:.0f}s")

        stdout = stdout_b.decode("utf-8", errors="replace").rstrip("\n")
        stderr = stderr_b.decode("utf-8", errors="replace").strip()

        if proc.returncode == 0:
            return GitResult(success=True, output=stdout, stderr=stderr or None)

        # Merge and cherry-pick report conflicts on stdout, not stderr.
        detail = "\n".join(part for part in (stderr, stdout.strip()) if part)
        return GitResult(
            success=False,
            error=detail or f"git {command} exited with status {proc.returncode}",
            stderr=stderr or None,
            output=stdout or None,
        )

    async def _query(self, path: Path, *args: str) -> str:
        result = await self._run(path, *args)
        if not result.success:
            raise GitCommandError(
                f"git {args[0]} failed: {result.error}", stderr=result.stderr
            )
        return result.output or ""

    async def _in_thread(self, func: Callable[..., _T], *args: Any) -> _T:
        """Run a dulwich helper off the event loop."""
        try:
            return await asyncio.to_thread(func, *args)
        except NotGitRepository as exc:
            raise GitCommandError(f"Not a git repository: {exc}") from exc

    # ------------------------------------------------------------------
    # dulwich reads
    # ------------------------------------------------------------------

    def _is_repository_sync(self, path: Path) -> bool:
        try:
            with Repo.discover(str(path)):
                return True
        except (NotGitRepository, OSError):
            return False

    def _marker_exists_sync(self, path: Path, *names: str) -> bool:
        with Repo.discover(str(path)) as repo:
            control = Path(repo.controldir())
            return any((control / name).exists() for name in names)

    def _branches_sync(self, path: Path) -> list[BranchInfo]:
        with Repo.discover(str(path)) as repo:
            head = repo.refs.read_ref(b"HEAD") or b""
            current = head[len(_SYMREF) + len(_HEADS) :] if head.startswith(_SYMREF) else b""
            config = repo.get_config()

            branches: list[BranchInfo] = []
            for name in sorted(repo.refs.keys(base=_HEADS)):
                try:
                    upstream: str | None = _decode(config.get((b"branch", name), b"merge"))
                except KeyError:
                    upstream = None
                branches.append(
                    BranchInfo(
                        name=_decode(name),
                        is_current=name == current,
                        is_remote=False,
                        hash=_decode(repo.refs[_HEADS + name])[:7],
                        upstream=upstream,
                    )
                )
            return branches

    def _log_sync(self, path: Path, count: int) -> list[CommitInfo]:
        with Repo.discover(str(path)) as repo:
            try:
                walker = repo.get_walker(max_entries=count)
            except KeyError:
                # Unborn HEAD: no commits yet
                return []

            commits: list[CommitInfo] = []
            for entry in walker:
                commit: Commit = entry.commit
                author, email = _split_identity(commit.author)
                message = _decode(commit.message).strip()
                sha = _decode(commit.id)
                commits.append(
                    CommitInfo(
                        hash=sha,
                        short_hash=sha[:7],
                        author=author,
                        email=email,
                        date=_iso_time(commit.author_time, commit.author_timezone),
                        subject=message.splitlines()[0] if message else "",
                    )
                )
            return commits

    def _tags_sync(self, path: Path) -> list[TagInfo]:
        with Repo.discover(str(path)) as repo:
            tags: list[TagInfo] = []
            for name, sha in sorted(repo.refs.as_dict(b"refs/tags").items()):
                obj = repo[sha]
                if isinstance(obj, Tag):
                    tagger, _ = _split_identity(obj.tagger or b"")
                    message = _decode(obj.message or b"").strip()
                    tags.append(
                        TagInfo(
                            name=_decode(name),
                            hash=_decode(obj.object[1])[:7],
                            is_annotated=True,
                            message=message.splitlines()[0] if message else None,
                            tagger=tagger or None,
                            date=_iso_time(obj.tag_time, obj.tag_timezone),
                        )
                    )
                else:
                    tags.append(TagInfo(name=_decode(name), hash=_decode(sha)[:7]))
            return tags

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def is_repository(self, path: Path) -> bool:
        return await asyncio.to_thread(self._is_repository_sync, path)

    async def detailed_status(self, path: Path) -> DetailedStatus:
        output = await self._query(path, "status", "--porcelain=v1", "-b", "-u")
        return parse_detailed_status(output)

    async def branches(
        self, path: Path, *, with_hierarchy: bool = False
    ) -> list[BranchInfo]:
        branches: list[BranchInfo] = await self._in_thread(
            self._branches_sync, path
        )
        if not with_hierarchy or len(branches) <= 1:
            return branches
        return await self._with_hierarchy(path, branches)

    async def _with_hierarchy(
        self, path: Path, branches: list[BranchInfo]
    ) -> list[BranchInfo]:
        names = [b.name for b in branches]
        main = default_branch(names)
        tips: dict[str, str] = {}
        for name in names:
            result = await self._run(path, "rev-parse", name)
            if result.success and result.output:
                tips[name] = result.output.strip()

        annotated: list[BranchInfo] = []
        for branch in branches:
            if branch.name == main:
                annotated.append(branch)
                continue
            candidates: list[ParentCandidate] = []
            for other in names:
                if other == branch.name:
                    continue
                base = await self._run(path, "merge-base", other, branch.name)
                if not base.success or not base.output:
                    continue
                merge_base = base.output.strip()
                if tips.get(other) == merge_base:
                    distance = 0
                else:
                    distance = await self._count(path, f"{merge_base}..{other}")
                ahead = await self._count(path, f"{merge_base}..{branch.name}")
                candidates.append(ParentCandidate(other, distance, ahead))
            parent, commits_ahead = choose_parent_branch(candidates)
            annotated.append(
                branch.model_copy(
                    update={"parent_branch": parent, "commits_ahead": commits_ahead}
                )
            )
        return annotated

    async def _count(self, path: Path, revision_range: str) -> int:
        result = await self._run(path, "rev-list", "--count", revision_range)
        if result.success and result.output and result.output.strip().isdigit():
            return int(result.output.strip())
        return 0

    async def log_detailed(self, path: Path, count: int = 10) -> list[CommitInfo]:
        count = max(1, min(100, count))
        return await self._in_thread(self._log_sync, path, count)

    async def ahead_behind(self, path: Path) -> AheadBehind:
        remotes = await self._query(path, "remote")
        if not remotes.strip():
            return AheadBehind()

        branch = await self._run(path, "branch", "--show-current")
        current = (branch.output or "").strip() if branch.success else ""
        if not current:
            # Detached HEAD
            return AheadBehind(has_remote=True)

        upstream = await self._run(
            path, "rev-list", "--left-right", "--count", "@{upstream}...HEAD"
        )
        if upstream.success and upstream.output:
            behind, ahead = parse_left_right_count(upstream.output)
            return AheadBehind(ahead=ahead, behind=behind, has_remote=True, has_upstream=True)

        remote_branch = f"origin/{current}"
        exists = await self._run(path, "rev-parse", "--verify", "-q", remote_branch)
        if exists.success:
            compare = await self._run(
                path, "rev-list", "--left-right", "--count", f"{remote_branch}...HEAD"
            )
            if compare.success and compare.output:
                behind, ahead = parse_left_right_count(compare.output)
                return AheadBehind(ahead=ahead, behind=behind, has_remote=True)

        # Never pushed: every commit on the branch counts as ahead.
        return AheadBehind(ahead=await self._count(path, "HEAD"), has_remote=True)

    async def stash_list(self, path: Path) -> list[StashEntry]:
        return parse_stash_list(await self._query(path, "stash", "list"))

    async def merge_in_progress(self, path: Path) -> bool:
        return await self._in_thread(self._marker_exists_sync, path, "MERGE_HEAD")

    async def cherry_pick_in_progress(self, path: Path) -> bool:
        return await self._in_thread(
            self._marker_exists_sync, path, "CHERRY_PICK_HEAD"
        )

    async def rebase_in_progress(self, path: Path) -> bool:
        return await self._in_thread(
            self._marker_exists_sync, path, "rebase-merge", "rebase-apply"
        )

    async def tags(self, path: Path) -> list[TagInfo]:
        return await self._in_thread(self._tags_sync, path)

    async def conflict_files(self, path: Path) -> list[ConflictFile]:
        output = await self._query(path, "diff", "--name-only", "--diff-filter=U")
        return parse_conflict_files(output)

    async def conventional_prefixes(self, path: Path) -> list[str]:
        commits = await self._in_thread(self._log_sync, path, _PREFIX_SCAN_DEPTH)
        return extract_conventional_prefixes([c.subject for c in commits])

    async def file_history(self, path: Path, file: str) -> list[FileHistoryEntry]:
        output = await self._query(
            path,
            "log",
            f"--max-count={_HISTORY_LIMIT}",
            f"--format=%H{FIELD_SEP}%h{FIELD_SEP}%an{FIELD_SEP}%aI{FIELD_SEP}%s",
            "--follow",
            "--",
            file,
        )
        return parse_file_history(output)

    async def blame(self, path: Path, file: str) -> list[BlameLine]:
        output = await self._query(path, "blame", "--porcelain", "--", file)
        return parse_blame_porcelain(output)

    async def reflog(self, path: Path) -> list[ReflogEntry]:
        output = await self._query(
            path,
            "reflog",
            f"--max-count={_REFLOG_LIMIT}",
            f"--format=%H{FIELD_SEP}%h{FIELD_SEP}%gD{FIELD_SEP}%gs{FIELD_SEP}%aI",
        )
        return parse_reflog(output)

    async def show_commit(self, path: Path, commit_hash: str) -> CommitDetail:
        if error := validate_commit_hash(commit_hash):
            raise GitCommandError(error)
        fmt = FIELD_SEP.join(["%H", "%h", "%an", "%ae", "%aI", "%s", "%b"])
        header, numstat, name_status = await asyncio.gather(
            self._query(path, "show", "--no-patch", f"--format={fmt}", commit_hash),
            self._query(path, "show", "--format=", "--no-renames", "--numstat", commit_hash),
            self._query(
                path, "show", "--format=", "--no-renames", "--name-status", commit_hash
            ),
        )
        try:
            return parse_commit_detail(header, numstat, name_status)
        except ValueError as exc:
            raise GitCommandError(str(exc)) from exc

    async def diff_raw(
        self,
        path: Path,
        *,
        file: str | None = None,
        staged: bool = False,
        commit: str | None = None,
    ) -> str:
        args = ["diff"]
        if commit:
            if error := validate_commit_hash(commit):
                raise GitCommandError(error)
            args.append(f"{commit}^..{commit}")
        elif staged:
            args.append("--staged")
        if file:
            args.extend(["--", file])
        return await self._query(path, *args)

    # ------------------------------------------------------------------
    # Working tree and index
    # ------------------------------------------------------------------

    async def stage(self, path: Path, files: list[str]) -> GitResult:
        if not files:
            return GitResult.failed("No files specified")
        return await self._run(path, "add", "--", *files)

    async def unstage(self, path: Path, files: list[str]) -> GitResult:
        if not files:
            return GitResult.failed("No files specified")
        has_head = await self._run(path, "rev-parse", "--verify", "-q", "HEAD")
        if not has_head.success:
            # Nothing to reset to before the first commit
            return await self._run(path, "rm", "--cached", "-q", "--", *files)
        return await self._run(path, "reset", "-q", "HEAD", "--", *files)

    async def discard_changes(self, path: Path, files: list[str]) -> GitResult:
        if not files:
            return GitResult.failed("No files specified")
        return await self._run(path, "checkout", "HEAD", "--", *files)

    async def clean_untracked(self, path: Path, file: str) -> GitResult:
        if not file:
            return GitResult.failed("No file specified")
        return await self._run(path, "clean", "-f", "--", file)

    async def commit(self, path: Path, message: str) -> GitResult:
        if not message:
            return GitResult.failed("No commit message specified")
        return await self._run(path, "commit", "-m", message)

    async def commit_amend(
        self, path: Path, *, message: str | None = None, no_edit: bool = False
    ) -> GitResult:
        args = ["commit", "--amend"]
        if message:
            args.extend(["-m", message])
        elif no_edit:
            args.append("--no-edit")
        logger.info("Amending last commit in %s", path)
        return await self._run(path, *args)

    # ------------------------------------------------------------------
    # Remotes
    # ------------------------------------------------------------------

    async def push(self, path: Path) -> GitResult:
        return await self._run(path, "push")

    async def pull(self, path: Path) -> GitResult:
        return await self._run(path, "pull")

    async def fetch(self, path: Path) -> GitResult:
        return await self._run(path, "fetch")

    # ------------------------------------------------------------------
    # Branches, merge, rebase, cherry-pick
    # ------------------------------------------------------------------

    async def checkout(self, path: Path, branch: str) -> GitResult:
        if error := validate_ref_name(branch):
            return GitResult.failed(error)
        logger.info("Checking out branch %s", branch)
        return await self._run(path, "checkout", branch)

    async def create_branch(
        self, path: Path, name: str, *, checkout: bool = True
    ) -> GitResult:
        if error := validate_ref_name(name):
            return GitResult.failed(error)
        logger.info("Creating branch %s (checkout: %s)", name, checkout)
        if checkout:
            return await self._run(path, "checkout", "-b", name)
        return await self._run(path, "branch", name)

    async def delete_branch(
        self, path: Path, name: str, *, force: bool = False
    ) -> GitResult:
        if error := validate_ref_name(name):
            return GitResult.failed(error)
        current = await self._run(path, "branch", "--show-current")
        if current.success and (current.output or "").strip() == name:
            return GitResult.failed("Cannot delete the currently checked out branch")
        logger.info("Deleting branch %s (force: %s)", name, force)
        return await self._run(path, "branch", "-D" if force else "-d", name)

    async def merge(
        self, path: Path, branch: str, *, no_ff: bool = False, squash: bool = False
    ) -> GitResult:
        if error := validate_ref_name(branch):
            return GitResult.failed(error)
        args = ["merge"]
        if no_ff:
            args.append("--no-ff")
        if squash:
            args.append("--squash")
        args.append(branch)
        logger.info("Merging %s (no_ff=%s, squash=%s)", branch, no_ff, squash)
        return await self._run(path, *args)

    async def merge_abort(self, path: Path) -> GitResult:
        return await self._run(path, "merge", "--abort")

    async def rebase(self, path: Path, branch: str) -> GitResult:
        if error := validate_ref_name(branch):
            return GitResult.failed(error)
        logger.info("Rebasing onto %s", branch)
        return await self._run(path, "rebase", branch)

    async def rebase_abort(self, path: Path) -> GitResult:
        return await self._run(path, "rebase", "--abort")

    async def rebase_continue(self, path: Path) -> GitResult:
        # --continue would otherwise open an editor for the commit message
        return await self._run(path, "-c", "core.editor=true", "rebase", "--continue")

    async def rebase_skip(self, path: Path) -> GitResult:
        return await self._run(path, "rebase", "--skip")

    async def cherry_pick(self, path: Path, commit_hash: str) -> GitResult:
        if error := validate_commit_hash(commit_hash):
            return GitResult.failed(error)
        logger.info("Cherry-picking %s", commit_hash)
        return await self._run(path, "cherry-pick", commit_hash)

    async def cherry_pick_abort(self, path: Path) -> GitResult:
        return await self._run(path, "cherry-pick", "--abort")

    async def cherry_pick_continue(self, path: Path) -> GitResult:
        return await self._run(path, "-c", "core.editor=true", "cherry-pick", "--continue")

    async def _resolve(self, path: Path, file: str, side: str) -> GitResult:
        if not file:
            return GitResult.failed("No file specified")
        logger.info("Resolving conflict in %s with %s", file, side)
        checkout = await self._run(path, "checkout", f"--{side}", "--", file)
        if not checkout.success:
            return checkout
        return await self._run(path, "add", "--", file)

    async def resolve_ours(self, path: Path, file: str) -> GitResult:
        return await self._resolve(path, file, "ours")

    async def resolve_theirs(self, path: Path, file: str) -> GitResult:
        return await self._resolve(path, file, "theirs")

    # ------------------------------------------------------------------
    # Stash, tags, reflog, init
    # ------------------------------------------------------------------

    async def stash_push(self, path: Path, message: str | None = None) -> GitResult:
        args = ["stash", "push"]
        if message:
            args.extend(["-m", message])
        return await self._run(path, *args)

    async def stash_pop(self, path: Path, index: int | None = None) -> GitResult:
        args = ["stash", "pop"]
        if index is not None:
            args.append(f"stash@{{{index}}}")
        return await self._run(path, *args)

    async def stash_apply(self, path: Path, index: int | None = None) -> GitResult:
        args = ["stash", "apply"]
        if index is not None:
            args.append(f"stash@{{{index}}}")
        return await self._run(path, *args)

    async def stash_drop(self, path: Path, index: int) -> GitResult:
        return await self._run(path, "stash", "drop", f"stash@{{{index}}}")

    async def create_tag(
        self,
        path: Path,
        name: str,
        *,
        message: str | None = None,
        commit: str | None = None,
    ) -> GitResult:
        if error := validate_ref_name(name):
            return GitResult.failed(error)
        args = ["tag"]
        if message:
            args.extend(["-a", name, "-m", message])
        else:
            args.append(name)
        if commit:
            if error := validate_commit_hash(commit):
                return GitResult.failed(error)
            args.append(commit)
        logger.info("Creating tag %s", name)
        return await self._run(path, *args)

    async def delete_tag(self, path: Path, name: str) -> GitResult:
        if error := validate_ref_name(name):
            return GitResult.failed(error)
        logger.info("Deleting tag %s", name)
        return await self._run(path, "tag", "-d", name)

    async def reset_to_reflog(
        self, path: Path, index: int, *, hard: bool = False
    ) -> GitResult:
        if index < 0:
            return GitResult.failed("Invalid reflog index")
        args = ["reset"]
        if hard:
            args.append("--hard")
        args.append(f"HEAD@{{{index}}}")
        logger.info("Resetting to HEAD@{%d} (hard=%s)", index, hard)
        return await self._run(path, *args)

    async def init(self, path: Path) -> GitResult:
        return await self._run(path, "init")
