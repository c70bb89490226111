"""GitCliGateway process handling with the subprocess layer mocked out."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from aiogitpanel.exceptions import GitCommandError
from aiogitpanel.gateway import GitCliGateway

_EXEC = "aiogitpanel.gateway.cli.asyncio.create_subprocess_exec"


def _process(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.wait = AsyncMock(return_value=returncode)
    return proc


class TestRun:
    async def test_success_output(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock(return_value=_process(stdout=b"done\n"))) as exec_mock:
            result = await GitCliGateway().push(tmp_path)

        assert result.success is True
        assert result.output == "done"
        args, kwargs = exec_mock.call_args
        assert args == ("git", "push")
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"
        assert kwargs["env"]["LC_ALL"] == "C"

    async def test_custom_binary(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock(return_value=_process())) as exec_mock:
            await GitCliGateway(git_binary="/opt/git/bin/git").fetch(tmp_path)
        assert exec_mock.call_args.args[0] == "/opt/git/bin/git"

    async def test_failure_combines_stderr_and_stdout(self, tmp_path: Path) -> None:
        proc = _process(
            returncode=1,
            stdout=b"CONFLICT (content): Merge conflict in a.txt\n",
            stderr=b"Automatic merge failed",
        )
        with patch(_EXEC, new=AsyncMock(return_value=proc)):
            result = await GitCliGateway().merge(tmp_path, "feature")

        assert result.success is False
        assert result.error == (
            "Automatic merge failed\nCONFLICT (content): Merge conflict in a.txt"
        )
        assert result.stderr == "Automatic merge failed"

    async def test_silent_failure_reports_status(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock(return_value=_process(returncode=128))):
            result = await GitCliGateway().pull(tmp_path)
        assert result.error == "git pull exited with status 128"

    async def test_missing_binary(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock(side_effect=FileNotFoundError("git"))):
            result = await GitCliGateway().fetch(tmp_path)
        assert result.success is False
        assert result.error is not None
        assert result.error.startswith("Failed to run git")

    async def test_timeout_kills_process(self, tmp_path: Path) -> None:
        async def hang() -> tuple[bytes, bytes]:
            await asyncio.sleep(10)
            return b"", b""

        proc = _process()
        proc.communicate = AsyncMock(side_effect=hang)
        with patch(_EXEC, new=AsyncMock(return_value=proc)):
            result = await GitCliGateway(timeout=0.01).fetch(tmp_path)

        assert result.success is False
        assert "timed out" in (result.error or "")
        proc.kill.assert_called_once()


class TestQueriesRaise:
    async def test_status_failure(self, tmp_path: Path) -> None:
        proc = _process(returncode=128, stderr=b"fatal: not a git repository")
        with patch(_EXEC, new=AsyncMock(return_value=proc)):
            with pytest.raises(GitCommandError, match="not a git repository") as exc_info:
                await GitCliGateway().detailed_status(tmp_path)
        assert exc_info.value.stderr == "fatal: not a git repository"


class TestValidation:
    @pytest.mark.parametrize("name", ["", "-D", "a..b", "topic.lock", "has space"])
    async def test_bad_branch_names_never_spawn(self, tmp_path: Path, name: str) -> None:
        with patch(_EXEC, new=AsyncMock()) as exec_mock:
            result = await GitCliGateway().checkout(tmp_path, name)
        assert result.success is False
        exec_mock.assert_not_called()

    async def test_bad_commit_hash_never_spawns(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock()) as exec_mock:
            result = await GitCliGateway().cherry_pick(tmp_path, "HEAD; rm -rf /")
        assert result.success is False
        exec_mock.assert_not_called()

    async def test_negative_reflog_index(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock()) as exec_mock:
            result = await GitCliGateway().reset_to_reflog(tmp_path, -1)
        assert result.error == "Invalid reflog index"
        exec_mock.assert_not_called()

    async def test_stash_index_argument(self, tmp_path: Path) -> None:
        with patch(_EXEC, new=AsyncMock(return_value=_process())) as exec_mock:
            await GitCliGateway().stash_drop(tmp_path, 2)
        assert exec_mock.call_args.args == ("git", "stash", "drop", "stash@{2}")
