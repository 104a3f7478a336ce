"""
Tests for the governance engine facade.

Covers the full select -> read -> check -> write -> record cycle.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from rich.console import Console

from intentgate.config import GovernanceConfig
from intentgate.harness import ActionDescriptor, DenialCode, GovernanceEngine, SessionRegistry
from intentgate.ledger import MutationClass, TraceLedger
from intentgate.util import content_hash


def _trace_lines(root: Path) -> list[dict]:
    path = root / ".orchestration" / "agent_trace.jsonl"
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


def _map_text(root: Path) -> str:
    return (root / ".orchestration" / "intent_map.md").read_text(encoding="utf-8")


class TestSelectIntent:
    def test_select_sets_active_intent(self, engine: GovernanceEngine) -> None:
        result = engine.select_intent("s1", "INT-001")
        assert result.success
        assert result.context.id == "INT-001"
        assert result.context.owned_scope == ("src/auth/**", "tests/auth/**")
        assert engine.active_intent("s1") == "INT-001"

    def test_unknown_intent(self, engine: GovernanceEngine) -> None:
        result = engine.select_intent("s1", "INT-404")
        assert not result.success
        assert result.error_code == "intent_not_found"
        assert engine.active_intent("s1") is None
        assert json.loads(result.render())["code"] == "intent_not_found"

    def test_blank_intent_id(self, engine: GovernanceEngine) -> None:
        assert engine.select_intent("s1", "   ").error_code == "intent_not_found"

    def test_ungoverned_workspace(self, tmp_path: Path, quiet_console: Console) -> None:
        engine = GovernanceEngine(tmp_path, config=GovernanceConfig(), console=quiet_console)
        result = engine.select_intent("s1", "INT-001")
        assert result.error_code == "governance_disabled"

    def test_context_includes_recent_trace(self, engine: GovernanceEngine, workspace: Path) -> None:
        ledger = TraceLedger(workspace, console=engine.console)
        for i in range(7):
            ledger.record_write(f"src/auth/f{i}.py", str(i), intent_id="INT-001")
        ledger.record_write("docs/other.md", "x", intent_id="INT-002")

        result = engine.select_intent("s1", "INT-001")
        assert [e.relative_path for e in result.recent] == [f"src/auth/f{i}.py" for i in (6, 5, 4, 3, 2)]
        assert "<recent_trace>" in result.render()

    def test_recent_trace_limit_from_config(self, workspace: Path, quiet_console: Console) -> None:
        engine = GovernanceEngine(
            workspace, config=GovernanceConfig(recent_trace_limit=1), console=quiet_console
        )
        ledger = TraceLedger(workspace, console=quiet_console)
        ledger.record_write("src/auth/a.py", "1", intent_id="INT-001")
        ledger.record_write("src/auth/b.py", "2", intent_id="INT-001")
        assert [e.relative_path for e in engine.select_intent("s1", "INT-001").recent] == ["src/auth/b.py"]


class TestQueries:
    def test_is_mutating(self, engine: GovernanceEngine) -> None:
        assert engine.is_mutating("write_to_file")
        assert engine.is_mutating("execute_command")
        assert not engine.is_mutating("read_file")

    def test_custom_tool_sets(self, workspace: Path, quiet_console: Console) -> None:
        config = GovernanceConfig(mutating_tools=frozenset({"save"}), destructive_tools=frozenset())
        engine = GovernanceEngine(workspace, config=config, console=quiet_console)
        assert engine.is_mutating("save")
        assert not engine.is_mutating("write_to_file")

    def test_is_governed(self, engine: GovernanceEngine) -> None:
        assert engine.is_governed()


class TestPostAction:
    @pytest.mark.asyncio
    async def test_new_file_is_recorded_as_behavioral(self, engine: GovernanceEngine, workspace: Path) -> None:
        engine.select_intent("s1", "INT-001")
        action = ActionDescriptor("s1", "write_to_file", {"path": "src/auth/session.py"})
        assert (await engine.pre_check(action)).allow

        (workspace / "src" / "auth" / "session.py").write_text("def login():\n    pass\n", encoding="utf-8")
        record = await engine.post_action(action, model_identifier="test-model")

        assert record is not None
        lines = _trace_lines(workspace)
        assert len(lines) == 1
        conversation = lines[0]["files"][0]["conversations"][0]
        assert conversation["mutation_class"] == "BEHAVIORAL_CHANGE"
        assert conversation["related"] == [{"type": "specification", "value": "INT-001"}]
        assert conversation["ranges"][0]["end_line"] == 2
        assert "src/auth/session.py" in _map_text(workspace)

    @pytest.mark.asyncio
    async def test_refactor_leaves_map_alone(self, engine: GovernanceEngine, workspace: Path) -> None:
        target = workspace / "src" / "auth" / "jwt.py"
        original = "a = 1\nb = 2\n"
        target.write_text(original, encoding="utf-8")
        before_map = _map_text(workspace)

        engine.select_intent("s1", "INT-001")
        action = ActionDescriptor("s1", "write_to_file", {"path": "src/auth/jwt.py"})
        target.write_text("a = 1   \nb = 2\n", encoding="utf-8")
        record = await engine.post_action(action, previous_content=original)

        assert record.mutation_classes() == [MutationClass.STRUCTURAL_REFACTOR]
        assert _map_text(workspace) == before_map

    @pytest.mark.asyncio
    async def test_explicit_class_wins(self, engine: GovernanceEngine, workspace: Path) -> None:
        engine.select_intent("s1", "INT-001")
        (workspace / "src" / "auth" / "x.py").write_text("x = 1\n", encoding="utf-8")
        action = ActionDescriptor("s1", "write_to_file", {"path": "src/auth/x.py"})
        record = await engine.post_action(action, mutation_class="STRUCTURAL_REFACTOR")
        assert record.mutation_classes() == [MutationClass.STRUCTURAL_REFACTOR]

    @pytest.mark.asyncio
    async def test_own_write_is_not_stale(self, engine: GovernanceEngine, workspace: Path) -> None:
        target = workspace / "src" / "auth" / "jwt.py"
        target.write_text("v1\n", encoding="utf-8")
        engine.select_intent("s1", "INT-001")
        engine.record_read("s1", "src/auth/jwt.py")

        action = ActionDescriptor("s1", "write_to_file", {"path": "src/auth/jwt.py"})
        assert (await engine.pre_check(action)).allow
        target.write_text("v2\n", encoding="utf-8")
        await engine.post_action(action, previous_content="v1\n")

        assert (await engine.pre_check(action)).allow

    @pytest.mark.asyncio
    async def test_concurrent_sessions_detect_staleness(self, engine: GovernanceEngine, workspace: Path) -> None:
        target = workspace / "src" / "auth" / "jwt.py"
        target.write_text("v1\n", encoding="utf-8")
        for session in ("a", "b"):
            engine.select_intent(session, "INT-001")
            engine.record_read(session, "src/auth/jwt.py")

        write_a = ActionDescriptor("a", "write_to_file", {"path": "src/auth/jwt.py"})
        assert (await engine.pre_check(write_a)).allow
        target.write_text("v2 from a\n", encoding="utf-8")
        await engine.post_action(write_a, previous_content="v1\n")

        write_b = ActionDescriptor("b", "write_to_file", {"path": "src/auth/jwt.py"})
        result = await engine.pre_check(write_b)
        assert result.error_code is DenialCode.STALE_FILE

        engine.record_read("b", "src/auth/jwt.py")
        assert (await engine.pre_check(write_b)).allow

    @pytest.mark.asyncio
    async def test_patch_records_every_file(self, engine: GovernanceEngine, workspace: Path) -> None:
        engine.select_intent("s1", "INT-001")
        (workspace / "src" / "auth" / "a.py").write_text("a = 1\n", encoding="utf-8")
        body = (
            "*** Begin Patch\n"
            "*** Update File: src/auth/a.py\n@@\n-a = 1\n+a = 2\n"
            "*** Add File: src/auth/b.py\n+def b():\n+    return 1\n"
            "*** Delete File: src/auth/gone.py\n"
            "*** End Patch\n"
        )
        action = ActionDescriptor("s1", "apply_patch", {"patch": body})
        previous = engine.snapshot(action)
        assert previous == {"src/auth/a.py": "a = 1\n", "src/auth/b.py": None, "src/auth/gone.py": None}

        (workspace / "src" / "auth" / "a.py").write_text("a = 2\n", encoding="utf-8")
        (workspace / "src" / "auth" / "b.py").write_text("def b():\n    return 1\n", encoding="utf-8")
        record = await engine.post_action(action, previous_contents=previous)

        assert [f.relative_path for f in record.files] == ["src/auth/a.py", "src/auth/b.py"]
        classes = {f.relative_path: f.conversations[0].mutation_class for f in record.files}
        assert classes["src/auth/b.py"] is MutationClass.BEHAVIORAL_CHANGE
        assert len(_trace_lines(workspace)) == 1

    @pytest.mark.asyncio
    async def test_command_without_paths_is_not_recorded(self, engine: GovernanceEngine, workspace: Path) -> None:
        engine.select_intent("s1", "INT-001")
        action = ActionDescriptor("s1", "execute_command", {"command": "make"})
        assert await engine.post_action(action) is None
        assert _trace_lines(workspace) == []

    @pytest.mark.asyncio
    async def test_read_only_is_not_recorded(self, engine: GovernanceEngine, workspace: Path) -> None:
        (workspace / "src" / "auth" / "a.py").write_text("x\n", encoding="utf-8")
        action = ActionDescriptor("s1", "read_file", {"path": "src/auth/a.py"})
        assert await engine.post_action(action) is None

    @pytest.mark.asyncio
    async def test_ungoverned_is_not_recorded(self, tmp_path: Path, quiet_console: Console) -> None:
        (tmp_path / "a.py").write_text("x\n", encoding="utf-8")
        engine = GovernanceEngine(tmp_path, config=GovernanceConfig(), console=quiet_console)
        action = ActionDescriptor("s1", "write_to_file", {"path": "a.py"})
        assert await engine.post_action(action) is None
        assert not (tmp_path / ".orchestration").exists()

    @pytest.mark.asyncio
    async def test_revision_id_is_recorded(self, workspace: Path, quiet_console: Console) -> None:
        engine = GovernanceEngine(
            workspace,
            config=GovernanceConfig(),
            revision_provider=lambda root: "deadbeef",
            console=quiet_console,
        )
        (workspace / "src" / "auth" / "a.py").write_text("x\n", encoding="utf-8")
        record = await engine.post_action(
            ActionDescriptor("s1", "write_to_file", {"path": "src/auth/a.py"}), previous_content="x\n"
        )
        assert record.revision_id == "deadbeef"
        assert _trace_lines(workspace)[0]["vcs"] == {"revision_id": "deadbeef"}

    @pytest.mark.asyncio
    async def test_written_path_overrides_params(self, engine: GovernanceEngine, workspace: Path) -> None:
        (workspace / "src" / "auth" / "real.py").write_text("x\n", encoding="utf-8")
        action = ActionDescriptor("s1", "generate_image", {"prompt": "a cat"})
        record = await engine.post_action(action, written_path="src/auth/real.py")
        assert record.files[0].relative_path == "src/auth/real.py"
        assert record.files[0].conversations[0].ranges[0].content_hash == content_hash("x\n")

    @pytest.mark.asyncio
    async def test_map_update_can_be_disabled(self, workspace: Path, quiet_console: Console) -> None:
        engine = GovernanceEngine(
            workspace,
            config=GovernanceConfig(update_intent_map=False),
            revision_provider=lambda root: None,
            console=quiet_console,
        )
        before_map = _map_text(workspace)
        engine.select_intent("s1", "INT-001")
        (workspace / "src" / "auth" / "new.py").write_text("def f():\n    pass\n", encoding="utf-8")
        await engine.post_action(ActionDescriptor("s1", "write_to_file", {"path": "src/auth/new.py"}))
        assert _map_text(workspace) == before_map


class TestRecordRead:
    def test_returns_hash(self, engine: GovernanceEngine, workspace: Path) -> None:
        (workspace / "src" / "auth" / "a.py").write_text("hello\n", encoding="utf-8")
        assert engine.record_read("s1", "src/auth/a.py") == content_hash(b"hello\n")
        assert engine.registry.observed_hash("s1", "src/auth/a.py") == content_hash(b"hello\n")

    def test_missing_file(self, engine: GovernanceEngine) -> None:
        assert engine.record_read("s1", "src/auth/missing.py") is None

    @pytest.mark.asyncio
    async def test_crlf_file_is_hashed_as_raw_bytes(self, engine: GovernanceEngine, workspace: Path) -> None:
        (workspace / "src" / "auth" / "win.py").write_bytes(b"a = 1\r\nb = 2\r\n")
        engine.select_intent("s1", "INT-001")
        assert engine.record_read("s1", "src/auth/win.py") == content_hash(b"a = 1\r\nb = 2\r\n")

        action = ActionDescriptor("s1", "write_to_file", {"path": "src/auth/win.py"})
        assert (await engine.pre_check(action)).allow


class TestDisposeSession:
    def test_dispose_forgets_everything(self, engine: GovernanceEngine, registry: SessionRegistry) -> None:
        engine.select_intent("s1", "INT-001")
        engine.dispose_session("s1")
        assert engine.active_intent("s1") is None
        assert "s1" not in registry

    @pytest.mark.asyncio
    async def test_disposed_session_needs_a_new_intent(self, engine: GovernanceEngine) -> None:
        engine.select_intent("s1", "INT-001")
        engine.dispose_session("s1")
        action = ActionDescriptor("s1", "write_to_file", {"path": "src/auth/a.py"})
        assert (await engine.pre_check(action)).error_code is DenialCode.INTENT_REQUIRED
