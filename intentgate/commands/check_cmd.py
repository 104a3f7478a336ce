"""Ad hoc checks: scope matching and mutation classification."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..ledger import classify_mutation
from ..scope import matches, normalize_path


def run_scope(pattern: str, path: str) -> int:
    """Exit 0 when `path` matches `pattern`, 1 otherwise."""
    console = Console()
    matched = matches(pattern, path)
    if matched:
        console.print(f"[green]match[/green] {normalize_path(path)} ~ {pattern}")
    else:
        console.print(f"[red]no match[/red] {normalize_path(path)} ~ {pattern}")
    return 0 if matched else 1


def _read_optional(path: Path | None) -> str | None:
    if path is None or str(path) == "-" or not path.exists():
        return None
    return path.read_text(encoding="utf-8", errors="replace")


def run_classify(before: Path | None, after: Path) -> int:
    """Classify the change from `before` to `after`. A missing `before` is a new file."""
    err = Console(stderr=True)
    if not after.is_file():
        err.print(f"File not found: {after}", style="bold red")
        return 1
    previous = _read_optional(before)
    new = after.read_text(encoding="utf-8", errors="replace")
    print(classify_mutation(previous, new).value)
    return 0
