"""Trace ledger commands."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..ledger import TraceLedger


def run_trace_summary(root: Path) -> int:
    ledger = TraceLedger(root)
    print(ledger.format_summary())
    return 0


def run_trace_recent(root: Path, intent_id: str, *, limit: int = 5, output_json: bool = False) -> int:
    console = Console()
    entries = TraceLedger(root).recent_for_intent(intent_id, limit)

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return 0

    if not entries:
        console.print(f"No trace records for {intent_id}", style="dim")
        return 0

    table = Table(title=f"Recent trace: {intent_id}")
    table.add_column("timestamp", style="dim", no_wrap=True)
    table.add_column("path", style="cyan")
    table.add_column("class", style="magenta")
    table.add_column("content_hash", style="dim")

    for e in entries:
        short = e.content_hash.split(":", 1)[-1]
        table.add_row(
            e.timestamp,
            e.relative_path,
            e.mutation_class.value if e.mutation_class else "",
            (short[:12] + "…") if len(short) > 12 else short,
        )

    console.print(table)
    return 0
