"""
Shared lessons learned (`CLAUDE.md` at the workspace root).

Parallel sessions record what went wrong (a failing test, a lint rule, a
violated constraint) so later turns do not repeat it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .workspace import LESSONS_FILE

LESSONS_HEADING = "## Lessons Learned"
DEFAULT_TITLE = "# Shared project context (CLAUDE.md)"


@dataclass(frozen=True)
class LessonResult:
    success: bool
    error: str | None = None


def _insert_in_section(content: str, entry: str) -> str:
    lines = content.splitlines(keepends=True)
    start = next(i for i, line in enumerate(lines) if line.strip() == LESSONS_HEADING)
    end = len(lines)
    for i in range(start + 1, len(lines)):
        if lines[i].startswith("# ") or lines[i].startswith("## "):
            end = i
            break
    # Insert after the last non-blank line of the section.
    insert_at = end
    while insert_at > start + 1 and not lines[insert_at - 1].strip():
        insert_at -= 1
    head = "".join(lines[:insert_at])
    if not head.endswith("\n"):
        head += "\n"
    if insert_at == start + 1:
        head += "\n"
    tail = "".join(lines[insert_at:])
    if tail and not tail.startswith("\n"):
        tail = "\n" + tail
    return head + entry + tail


def append_lesson(root: Path, lesson: str, *, timestamp: datetime | None = None) -> LessonResult:
    """Append `- [<timestamp>] <lesson>` under the Lessons Learned heading.

    Creates the file and the heading when missing.
    """
    text = " ".join(lesson.split())
    if not text:
        return LessonResult(success=False, error="lesson is empty")

    ts = (timestamp or datetime.now(timezone.utc)).isoformat()
    entry = f"- [{ts}] {text}\n"
    path = root / LESSONS_FILE

    try:
        content = path.read_text(encoding="utf-8") if path.exists() else ""
        if not content.strip():
            new_content = f"{DEFAULT_TITLE}\n\n{LESSONS_HEADING}\n\n{entry}"
        elif not any(line.strip() == LESSONS_HEADING for line in content.splitlines()):
            new_content = content.rstrip() + f"\n\n{LESSONS_HEADING}\n\n{entry}"
        else:
            new_content = _insert_in_section(content, entry)
        path.write_text(new_content, encoding="utf-8")
    except OSError as e:
        return LessonResult(success=False, error=str(e))
    return LessonResult(success=True)


def read_lessons(root: Path) -> list[str]:
    """Lesson bullet lines under the Lessons Learned heading."""
    path = root / LESSONS_FILE
    if not path.exists():
        return []
    lessons: list[str] = []
    in_section = False
    for line in path.read_text(encoding="utf-8").splitlines():
        if line.startswith("## "):
            in_section = line.strip() == LESSONS_HEADING
            continue
        if in_section and line.startswith("- "):
            lessons.append(line[2:].strip())
    return lessons
