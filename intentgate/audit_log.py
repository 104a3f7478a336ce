"""
Audit log of gate denials.

Each denial is one JSON line in .orchestration/gate_audit.jsonl.

Best effort: logging a denial never changes the gate's answer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .workspace import audit_path, governance_dir


@dataclass
class DenialEntry:
    """A single audit log entry."""
    timestamp: str
    session_id: str
    tool_name: str
    code: str
    message: str
    intent_id: str | None = None
    paths: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "session_id": self.session_id,
            "tool_name": self.tool_name,
            "code": self.code,
            "message": self.message,
            "intent_id": self.intent_id,
            "paths": list(self.paths),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DenialEntry":
        return cls(
            timestamp=data["timestamp"],
            session_id=data.get("session_id", ""),
            tool_name=data.get("tool_name", ""),
            code=data["code"],
            message=data.get("message", ""),
            intent_id=data.get("intent_id"),
            paths=list(data.get("paths", [])),
        )


def log_denial(
    root: Path,
    *,
    session_id: str,
    tool_name: str,
    code: str,
    message: str,
    intent_id: str | None = None,
    paths: list[str] | None = None,
) -> DenialEntry | None:
    """
    Append a denial to the audit log.

    Returns the entry, or None when the governance directory is missing or
    the write failed.
    """
    if not governance_dir(root).is_dir():
        return None

    entry = DenialEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        session_id=session_id,
        tool_name=tool_name,
        code=code,
        message=message,
        intent_id=intent_id,
        paths=paths or [],
    )
    try:
        with audit_path(root).open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict()) + "\n")
    except OSError:
        return None
    return entry


def read_audit_log(root: Path, last_n: int | None = None) -> list[DenialEntry]:
    """
    Read entries from the audit log.

    Args:
        root: Workspace root
        last_n: If specified, return only the last N entries

    Returns:
        List of entries, oldest first
    """
    log_path = audit_path(root)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    entries.append(DenialEntry.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, TypeError):
                    continue  # Skip malformed lines

    if last_n is not None:
        return entries[-last_n:] if last_n > 0 else []
    return entries


def format_denial(entry: DenialEntry) -> str:
    """Format an entry for human-readable display."""
    lines = [f"[{entry.timestamp}] {entry.code} ({entry.tool_name}, session {entry.session_id})"]
    if entry.intent_id:
        lines.append(f"  Intent: {entry.intent_id}")
    if entry.paths:
        lines.append(f"  Paths: {', '.join(entry.paths)}")
    lines.append(f"  {entry.message}")
    return "\n".join(lines)
