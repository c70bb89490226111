"""Common gateway result model."""

from __future__ import annotations

from pydantic import BaseModel


class GitResult(BaseModel):
    """Outcome of a single mutating gateway call."""

    success: bool
    error: str | None = None
    stderr: str | None = None
    output: str | None = None

    @classmethod
    def failed(cls, error: str, *, stderr: str | None = None) -> GitResult:
        return cls(success=False, error=error, stderr=stderr)
