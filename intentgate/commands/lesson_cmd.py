"""Record a lesson learned."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..lessons import append_lesson
from ..workspace import LESSONS_FILE


def run_lesson(root: Path, text: str) -> int:
    result = append_lesson(root, text)
    if not result.success:
        Console(stderr=True).print(f"Error: {result.error}", style="bold red")
        return 1
    Console().print(f"Recorded lesson in {LESSONS_FILE}", style="green")
    return 0
