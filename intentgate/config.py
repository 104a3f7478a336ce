"""
Governance configuration (`.orchestration/governance.toml`).

The schema is intentionally small. Every key is optional; a missing file
yields the defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .workspace import config_path

# Tools that mutate the workspace or system. The gate enforces intent and
# scope for these; everything else passes untouched.
DEFAULT_MUTATING_TOOLS: frozenset[str] = frozenset(
    {
        "write_to_file",
        "apply_diff",
        "edit",
        "search_and_replace",
        "search_replace",
        "edit_file",
        "apply_patch",
        "execute_command",
        "update_todo_list",
        "new_task",
        "generate_image",
    }
)

# Mutating tools that write, delete, or execute. Subject to the approval gate.
DEFAULT_DESTRUCTIVE_TOOLS: frozenset[str] = frozenset(
    {
        "write_to_file",
        "apply_diff",
        "edit",
        "search_and_replace",
        "search_replace",
        "edit_file",
        "apply_patch",
        "execute_command",
        "generate_image",
    }
)

SPEC_PARSERS = ("line", "yaml")


class ConfigError(ValueError):
    """Invalid governance configuration."""


@dataclass(frozen=True)
class GovernanceConfig:
    # Approval-required intent + destructive tool + no approval callback wired:
    # True allows the action, False denies it as user_rejected.
    fail_open_on_missing_approval: bool = True
    recent_trace_limit: int = 5
    spec_parser: str = "line"
    audit_denials: bool = True
    update_intent_map: bool = True
    mutating_tools: frozenset[str] = field(default_factory=lambda: DEFAULT_MUTATING_TOOLS)
    destructive_tools: frozenset[str] = field(default_factory=lambda: DEFAULT_DESTRUCTIVE_TOOLS)


def _coerce_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be a boolean")
    return value


def _coerce_tools(data: dict[str, Any], key: str, default: frozenset[str]) -> frozenset[str]:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} must be a list of tool names")
    return frozenset(v.strip() for v in value if v.strip())


def parse_config(data: dict[str, Any]) -> GovernanceConfig:
    """Build a config from already-decoded TOML data. Unknown keys are ignored."""
    limit = data.get("recent_trace_limit", 5)
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
        raise ConfigError("recent_trace_limit must be a non-negative integer")

    parser = str(data.get("spec_parser", "line")).strip() or "line"
    if parser not in SPEC_PARSERS:
        raise ConfigError(f"spec_parser must be one of {', '.join(SPEC_PARSERS)}")

    mutating = _coerce_tools(data, "mutating_tools", DEFAULT_MUTATING_TOOLS)
    # Destructive tools are a subset of mutating tools by definition.
    destructive = _coerce_tools(data, "destructive_tools", DEFAULT_DESTRUCTIVE_TOOLS) & mutating

    return GovernanceConfig(
        fail_open_on_missing_approval=_coerce_bool(data, "fail_open_on_missing_approval", True),
        recent_trace_limit=limit,
        spec_parser=parser,
        audit_denials=_coerce_bool(data, "audit_denials", True),
        update_intent_map=_coerce_bool(data, "update_intent_map", True),
        mutating_tools=mutating,
        destructive_tools=destructive,
    )


def load_config(root: Path) -> GovernanceConfig:
    """Load `.orchestration/governance.toml`, or defaults when absent."""
    import tomllib

    path = config_path(root)
    if not path.exists():
        return GovernanceConfig()
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e
    return parse_config(data)
