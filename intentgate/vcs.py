"""Revision-control lookup for trace provenance."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable

RevisionProvider = Callable[[Path], "str | None"]


def current_revision_id(root: Path) -> str | None:
    """Current git HEAD sha for `root`, or None when unavailable."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=root,
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    sha = result.stdout.strip()
    return sha or None


def content_at_head(root: Path, relative_path: str) -> str | None:
    """Content of `relative_path` at HEAD, or None when not tracked or unavailable."""
    try:
        result = subprocess.run(
            ["git", "show", f"HEAD:{relative_path}"],
            cwd=root,
            capture_output=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.decode("utf-8", errors="replace")
