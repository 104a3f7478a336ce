"""Scaffold the governance directory."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..workspace import (
    ACTIVE_INTENTS_FILE,
    CONFIG_FILE,
    INTENT_IGNORE_FILE,
    INTENT_MAP_FILE,
    ORCHESTRATION_DIR,
    governance_dir,
)

SAMPLE_INTENTS = """\
active_intents:
  - id: "INT-001"
    name: "Describe the unit of work"
    status: NOT_STARTED
    owned_scope:
      - "src/**"
    constraints:
      - "State what must not change"
    acceptance_criteria:
      - "State how completion is checked"
"""

SAMPLE_INTENT_MAP = """\
# Intent Map

| Intent | Name | Key paths |
|--------|------|-----------|
| INT-001 | Describe the unit of work | |
"""

SAMPLE_INTENTIGNORE = """\
# Intent ids whose destructive actions need explicit approval, one per line.
"""

SAMPLE_CONFIG = """\
# Governance settings. Every key is optional.
fail_open_on_missing_approval = true
recent_trace_limit = 5
spec_parser = "line"
audit_denials = true
update_intent_map = true
"""

SCAFFOLD = (
    (ACTIVE_INTENTS_FILE, SAMPLE_INTENTS),
    (INTENT_MAP_FILE, SAMPLE_INTENT_MAP),
    (INTENT_IGNORE_FILE, SAMPLE_INTENTIGNORE),
    (CONFIG_FILE, SAMPLE_CONFIG),
)


def run_init(root: Path) -> int:
    """Create .orchestration/ and its sample files. Existing files are left alone."""
    console = Console()
    gov = governance_dir(root)
    try:
        gov.mkdir(parents=True, exist_ok=True)
        for name, content in SCAFFOLD:
            target = gov / name
            if target.exists():
                console.print(f"  kept     {ORCHESTRATION_DIR}/{name}", style="dim")
                continue
            target.write_text(content, encoding="utf-8")
            console.print(f"  created  {ORCHESTRATION_DIR}/{name}", style="green")
    except OSError as e:
        Console(stderr=True).print(f"Error: {e}", style="bold red")
        return 1
    return 0
