"""Governance file locations relative to the workspace root."""

from __future__ import annotations

from pathlib import Path

# Directory whose presence turns enforcement on.
ORCHESTRATION_DIR = ".orchestration"

ACTIVE_INTENTS_FILE = "active_intents.yaml"
AGENT_TRACE_FILE = "agent_trace.jsonl"
INTENT_MAP_FILE = "intent_map.md"
INTENT_IGNORE_FILE = ".intentignore"
CONFIG_FILE = "governance.toml"
GATE_AUDIT_FILE = "gate_audit.jsonl"
LESSONS_FILE = "CLAUDE.md"


def governance_dir(root: Path) -> Path:
    return root / ORCHESTRATION_DIR


def is_governed(root: Path) -> bool:
    """Enforcement is on iff the governance directory exists."""
    return governance_dir(root).is_dir()


def spec_path(root: Path) -> Path:
    return governance_dir(root) / ACTIVE_INTENTS_FILE


def trace_path(root: Path) -> Path:
    return governance_dir(root) / AGENT_TRACE_FILE


def intent_map_path(root: Path) -> Path:
    return governance_dir(root) / INTENT_MAP_FILE


def config_path(root: Path) -> Path:
    return governance_dir(root) / CONFIG_FILE


def audit_path(root: Path) -> Path:
    return governance_dir(root) / GATE_AUDIT_FILE


def intentignore_candidates(root: Path) -> list[Path]:
    """Approval list locations, most specific first."""
    return [governance_dir(root) / INTENT_IGNORE_FILE, root / INTENT_IGNORE_FILE]


def find_workspace_root(start: Path) -> Path | None:
    """Find the nearest directory containing the governance dir, walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / ORCHESTRATION_DIR).is_dir():
            return p
    return None
