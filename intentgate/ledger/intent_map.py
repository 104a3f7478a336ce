"""
Spatial map maintenance (`.orchestration/intent_map.md`).

The map is a markdown table keyed by intent id:

    | Intent | Name | Key paths |
    |--------|------|-----------|
    | INT-001 | JWT auth | src/auth/jwt.py, src/auth/session.py |

When a behavioral change lands, the written path is added to the intent's
"key paths" cell. Updates are idempotent.
"""

from __future__ import annotations

import re
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..workspace import intent_map_path

SEPARATOR_ROW = re.compile(r"^\|[\s\-:|]+\|$")


def _split_cells(row: str) -> list[str]:
    return [cell.strip() for cell in row.strip().split("|")[1:-1]]


def _key_paths(cell: str) -> list[str]:
    return [p.strip() for p in cell.split(",") if p.strip()]


def add_key_path(content: str, intent_id: str, relative_path: str) -> str:
    """Return `content` with `relative_path` listed in the intent's key paths cell."""
    path = relative_path.strip()
    separator_passed = False
    out: list[str] = []

    for line in content.split("\n"):
        stripped = line.strip()
        if stripped.startswith("|") and stripped.endswith("|"):
            if SEPARATOR_ROW.match(stripped):
                separator_passed = True
                out.append(line)
                continue
            if separator_passed:
                cells = _split_cells(stripped)
                if len(cells) >= 3 and cells[0] == intent_id:
                    paths = _key_paths(cells[2])
                    if path not in paths:
                        cells[2] = ", ".join([*paths, path])
                        out.append("| " + " | ".join(cells) + " |")
                        continue
        elif separator_passed and not stripped:
            # A blank line ends the table.
            separator_passed = False
        out.append(line)

    return "\n".join(out)


def update_intent_map(
    root: Path,
    intent_id: str,
    relative_path: str,
    *,
    console: Console | None = None,
) -> bool:
    """Add `relative_path` to the intent's row. Returns True if the file changed.

    A missing map is a no-op; the file is only rewritten when its content
    actually changes.
    """
    map_path = intent_map_path(root)
    try:
        content = map_path.read_text(encoding="utf-8")
    except OSError:
        return False

    updated = add_key_path(content, intent_id, relative_path)
    if updated == content:
        return False
    try:
        map_path.write_text(updated, encoding="utf-8")
    except OSError as e:
        (console or Console(stderr=True)).print(f"[yellow]Warning: intent map update failed: {escape(str(e))}[/yellow]")
        return False
    return True
