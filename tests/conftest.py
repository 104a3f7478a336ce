"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest
from rich.console import Console

from intentgate.config import GovernanceConfig
from intentgate.harness import GovernanceEngine, SessionRegistry

SAMPLE_SPEC = """\
active_intents:
  - id: "INT-001"
    name: "JWT auth migration"
    status: IN_PROGRESS
    owned_scope:
      - "src/auth/**"
      - "tests/auth/**"
    constraints:
      - "Must not use external auth providers"
    acceptance_criteria:
      - "Unit tests in tests/auth/ pass"
  - id: "INT-002"
    name: "Docs refresh"
    status: NOT_STARTED
    owned_scope: []
"""

SAMPLE_MAP = """\
# Intent Map

| Intent | Name | Key paths |
|--------|------|-----------|
| INT-001 | JWT auth migration | src/auth/jwt.py |
| INT-002 | Docs refresh | |
"""


@pytest.fixture
def sample_spec() -> str:
    return SAMPLE_SPEC


@pytest.fixture
def quiet_console() -> Console:
    """Console that swallows all output."""
    return Console(quiet=True)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A governed workspace with two intents and a spatial map."""
    gov = tmp_path / ".orchestration"
    gov.mkdir()
    (gov / "active_intents.yaml").write_text(SAMPLE_SPEC, encoding="utf-8")
    (gov / "intent_map.md").write_text(SAMPLE_MAP, encoding="utf-8")
    (tmp_path / "src" / "auth").mkdir(parents=True)
    (tmp_path / "src" / "billing").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def engine(workspace: Path, registry: SessionRegistry, quiet_console: Console) -> GovernanceEngine:
    """Engine with default config, no approval callback, and no VCS lookup."""
    return GovernanceEngine(
        workspace,
        registry=registry,
        config=GovernanceConfig(),
        revision_provider=lambda root: None,
        console=quiet_console,
    )
