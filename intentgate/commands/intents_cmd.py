"""Intent listing and context bundle commands."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import ConfigError, load_config
from ..harness import GovernanceEngine
from ..spec import SpecificationStore, get_parser
from ..workspace import is_governed, spec_path


def run_intents(root: Path, *, output_json: bool = False) -> int:
    console = Console()
    err = Console(stderr=True)
    if not spec_path(root).exists():
        err.print(f"No specification at {spec_path(root)}", style="bold red")
        return 1
    try:
        config = load_config(root)
    except ConfigError as e:
        err.print(f"Error: {e}", style="bold red")
        return 1

    store = SpecificationStore(root, parser=get_parser(config.spec_parser))
    intents = store.load()
    approval = store.approval_required()

    if output_json:
        print(json.dumps([i.to_dict() for i in intents], indent=2))
        return 0

    table = Table(title="Active intents")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("name")
    table.add_column("status", style="magenta")
    table.add_column("owned_scope")
    table.add_column("approval")

    for intent in intents:
        table.add_row(
            intent.id,
            intent.name or "",
            intent.status or "",
            ", ".join(intent.owned_scope) or "(unrestricted)",
            "required" if intent.id in approval else "",
        )

    console.print(table)
    return 0


def run_context(root: Path, intent_id: str) -> int:
    """Print the <intent_context> bundle an agent receives on selection."""
    err = Console(stderr=True)
    if not is_governed(root):
        err.print(f"Not a governed workspace: {root}", style="bold red")
        return 1
    try:
        engine = GovernanceEngine(root, console=err)
    except ConfigError as e:
        err.print(f"Error: {e}", style="bold red")
        return 1

    result = engine.select_intent("cli", intent_id)
    if not result.success:
        err.print(result.error_message or "selection failed", style="bold red")
        if result.suggestion:
            err.print(result.suggestion, style="dim")
        return 1
    print(result.render())
    return 0
