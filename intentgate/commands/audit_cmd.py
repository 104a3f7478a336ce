"""Gate denial audit log command."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console

from ..audit_log import format_denial, read_audit_log


def run_audit(root: Path, *, last: int | None = 20, output_json: bool = False) -> int:
    console = Console()
    entries = read_audit_log(root, last_n=last)

    if output_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2))
        return 0

    if not entries:
        console.print("No denials recorded.", style="dim")
        return 0

    for entry in entries:
        console.print(format_denial(entry), markup=False, highlight=False)
        console.print()
    return 0
