"""Commit message helpers."""

from __future__ import annotations

import re

# ``type:`` or ``type(scope):`` at the start of a message, with trailing spaces.
_CONVENTIONAL_PREFIX_RE = re.compile(r"^[a-z]+(\([^)]+\))?:\s*")


def apply_conventional_prefix(message: str, prefix: str) -> str:
    """Put ``prefix: `` in front of *message*, replacing an existing prefix.

    >>> apply_conventional_prefix("feat(ui): add button", "fix")
    'fix: add button'
    >>> apply_conventional_prefix("add button", "feat")
    'feat: add button'
    """
    prefix = prefix.strip().rstrip(":")
    match = _CONVENTIONAL_PREFIX_RE.match(message)
    if match:
        return f"{prefix}: {message[match.end():]}"
    return f"{prefix}: {message}"
