"""Tests for governance.toml loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from intentgate.config import (
    DEFAULT_DESTRUCTIVE_TOOLS,
    DEFAULT_MUTATING_TOOLS,
    ConfigError,
    GovernanceConfig,
    load_config,
    parse_config,
)


def _write_config(root: Path, text: str) -> None:
    (root / ".orchestration" / "governance.toml").write_text(text, encoding="utf-8")


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, workspace: Path) -> None:
        config = load_config(workspace)
        assert config == GovernanceConfig()
        assert config.fail_open_on_missing_approval is True
        assert config.recent_trace_limit == 5
        assert config.mutating_tools == DEFAULT_MUTATING_TOOLS

    def test_values(self, workspace: Path) -> None:
        _write_config(
            workspace,
            'fail_open_on_missing_approval = false\n'
            'recent_trace_limit = 3\n'
            'spec_parser = "yaml"\n'
            'audit_denials = false\n'
            'unknown_key = "ignored"\n',
        )
        config = load_config(workspace)
        assert config.fail_open_on_missing_approval is False
        assert config.recent_trace_limit == 3
        assert config.spec_parser == "yaml"
        assert config.audit_denials is False
        assert config.update_intent_map is True

    def test_invalid_toml(self, workspace: Path) -> None:
        _write_config(workspace, "this is = = not toml")
        with pytest.raises(ConfigError):
            load_config(workspace)


class TestParseConfig:
    def test_destructive_is_subset_of_mutating(self) -> None:
        config = parse_config({"mutating_tools": ["save", "write_to_file"]})
        assert config.mutating_tools == frozenset({"save", "write_to_file"})
        assert config.destructive_tools == frozenset({"write_to_file"})
        assert config.destructive_tools <= config.mutating_tools

    def test_custom_destructive(self) -> None:
        config = parse_config({"destructive_tools": ["execute_command"]})
        assert config.destructive_tools == frozenset({"execute_command"})
        assert config.mutating_tools == DEFAULT_MUTATING_TOOLS

    @pytest.mark.parametrize(
        "data",
        [
            {"recent_trace_limit": -1},
            {"recent_trace_limit": "5"},
            {"recent_trace_limit": True},
            {"spec_parser": "toml"},
            {"audit_denials": "yes"},
            {"mutating_tools": "write_to_file"},
            {"mutating_tools": [1, 2]},
        ],
    )
    def test_invalid_values(self, data: dict) -> None:
        with pytest.raises(ConfigError):
            parse_config(data)

    def test_config_error_is_value_error(self) -> None:
        assert issubclass(ConfigError, ValueError)

    def test_defaults_are_consistent(self) -> None:
        assert DEFAULT_DESTRUCTIVE_TOOLS <= DEFAULT_MUTATING_TOOLS
