"""Tests for the git lookups used for trace provenance."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest
from rich.console import Console

from intentgate.config import GovernanceConfig
from intentgate.harness import ActionDescriptor, GovernanceEngine
from intentgate.vcs import content_at_head, current_revision_id

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(root: Path, *args: str) -> None:
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=root,
        check=True,
        capture_output=True,
    )


def _commit(root: Path, relative_path: str, data: bytes) -> None:
    target = root / relative_path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    _git(root, "init", "-q")
    _git(root, "add", relative_path)
    _git(root, "commit", "-q", "-m", "initial")


def test_outside_a_repository(tmp_path: Path) -> None:
    assert content_at_head(tmp_path, "a.txt") is None
    assert current_revision_id(tmp_path) is None


@requires_git
class TestContentAtHead:
    def test_tracked_file(self, tmp_path: Path) -> None:
        _commit(tmp_path, "src/a.py", b"x = 1\n")
        assert content_at_head(tmp_path, "src/a.py") == "x = 1\n"
        assert current_revision_id(tmp_path) is not None

    def test_untracked_file(self, tmp_path: Path) -> None:
        _commit(tmp_path, "src/a.py", b"x = 1\n")
        assert content_at_head(tmp_path, "src/b.py") is None

    def test_non_utf8_blob_is_decoded_with_replacement(self, tmp_path: Path) -> None:
        _commit(tmp_path, "src/legacy.txt", b"caf\xe9\n")
        assert content_at_head(tmp_path, "src/legacy.txt") == "caf\ufffd\n"


@requires_git
@pytest.mark.asyncio
async def test_post_action_records_rewrite_of_latin1_file(workspace: Path, quiet_console: Console) -> None:
    _commit(workspace, "src/auth/legacy.txt", b"caf\xe9\n")
    (workspace / "src" / "auth" / "legacy.txt").write_text("cafe\n", encoding="utf-8")
    engine = GovernanceEngine(workspace, config=GovernanceConfig(), console=quiet_console)
    engine.select_intent("s1", "INT-001")

    record = await engine.post_action(
        ActionDescriptor("s1", "write_to_file", {"path": "src/auth/legacy.txt"})
    )

    assert record is not None
    assert record.files[0].relative_path == "src/auth/legacy.txt"
    assert record.revision_id is not None
