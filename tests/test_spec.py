"""Tests for intent specification parsing and loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from intentgate.spec import (
    IntentStatus,
    LineSpecParser,
    SpecificationStore,
    YamlSpecParser,
    get_parser,
    load_approval_required,
    lookup,
    parse_intent_list,
    parse_intents,
)


class TestLineParser:
    def test_parses_all_fields(self, sample_spec: str) -> None:
        intents = parse_intents(sample_spec)
        assert [i.id for i in intents] == ["INT-001", "INT-002"]

        first = intents[0]
        assert first.name == "JWT auth migration"
        assert first.status_enum is IntentStatus.IN_PROGRESS
        assert first.owned_scope == ("src/auth/**", "tests/auth/**")
        assert first.constraints == ("Must not use external auth providers",)
        assert first.acceptance_criteria == ("Unit tests in tests/auth/ pass",)

    def test_inline_empty_list_is_unrestricted(self, sample_spec: str) -> None:
        second = parse_intents(sample_spec)[1]
        assert second.owned_scope == ()
        assert second.is_unrestricted

    def test_inline_list_values(self) -> None:
        text = '- id: A\n  owned_scope: ["src/**", \'docs/*.md\']\n'
        assert parse_intents(text)[0].owned_scope == ("src/**", "docs/*.md")

    def test_unknown_status_kept_as_text(self) -> None:
        intent = parse_intents("- id: A\n  status: BLOCKED\n")[0]
        assert intent.status == "BLOCKED"
        assert intent.status_enum is None

    def test_unknown_key_closes_open_list(self) -> None:
        text = (
            "- id: A\n"
            "  owned_scope:\n"
            "    - src/**\n"
            "  owner: someone\n"
            "    - not/a/scope\n"
        )
        assert parse_intents(text)[0].owned_scope == ("src/**",)

    def test_comments_and_blank_lines_are_skipped(self) -> None:
        text = "# header\n\n- id: A\n  # note\n  name: Alpha\n"
        intent = parse_intents(text)[0]
        assert intent.name == "Alpha"

    def test_lines_before_first_intent_are_ignored(self) -> None:
        text = "version: 2\nname: top-level\n- id: A\n"
        intents = parse_intents(text)
        assert len(intents) == 1
        assert intents[0].name is None

    def test_empty_id_is_dropped(self) -> None:
        assert parse_intents("- id:\n  name: nothing\n- id: B\n")[0].id == "B"

    def test_garbage_never_raises(self) -> None:
        assert parse_intents(":::\n- - -\n\t\x00") == []

    def test_lookup(self, sample_spec: str) -> None:
        assert lookup(sample_spec, "INT-002").name == "Docs refresh"
        assert lookup(sample_spec, "INT-404") is None


class TestYamlParser:
    def test_same_result_as_line_parser_on_sample(self, sample_spec: str) -> None:
        assert YamlSpecParser().parse(sample_spec) == LineSpecParser().parse(sample_spec)

    def test_top_level_list(self) -> None:
        intents = YamlSpecParser().parse("- id: A\n  owned_scope: [src/**]\n")
        assert intents[0].owned_scope == ("src/**",)

    def test_invalid_yaml_yields_nothing(self) -> None:
        assert YamlSpecParser().parse("active_intents: [unclosed") == []


class TestGetParser:
    def test_known_names(self) -> None:
        assert isinstance(get_parser("line"), LineSpecParser)
        assert isinstance(get_parser("yaml"), YamlSpecParser)

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError):
            get_parser("toml")


class TestSpecificationStore:
    def test_missing_file_reads_as_empty(self, tmp_path: Path) -> None:
        store = SpecificationStore(tmp_path)
        assert store.load() == []
        assert store.get("INT-001") is None

    def test_sees_edits_without_reload(self, workspace: Path) -> None:
        store = SpecificationStore(workspace)
        assert store.get("INT-001") is not None

        spec = workspace / ".orchestration" / "active_intents.yaml"
        spec.write_text("- id: INT-009\n", encoding="utf-8")

        assert store.get("INT-001") is None
        assert store.ids() == ["INT-009"]


class TestApprovalList:
    def test_parse_intent_list(self) -> None:
        text = "# approvals\nINT-001\n\n  INT-002  # trailing comment\n"
        assert parse_intent_list(text) == frozenset({"INT-001", "INT-002"})

    def test_governance_dir_file_wins(self, workspace: Path) -> None:
        (workspace / ".orchestration" / ".intentignore").write_text("INT-001\n", encoding="utf-8")
        (workspace / ".intentignore").write_text("INT-002\n", encoding="utf-8")
        assert load_approval_required(workspace) == frozenset({"INT-001"})

    def test_root_fallback(self, workspace: Path) -> None:
        (workspace / ".intentignore").write_text("INT-002\n", encoding="utf-8")
        assert load_approval_required(workspace) == frozenset({"INT-002"})

    def test_absent(self, workspace: Path) -> None:
        assert load_approval_required(workspace) == frozenset()
