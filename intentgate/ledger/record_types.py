"""
Trace record types for the intent ledger.

A trace record captures what a mutation did to a file, which intent it
belongs to, and whether it changed form or behavior. The wire format is
one JSON object per line in `.orchestration/agent_trace.jsonl`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


class MutationClass(str, Enum):
    """Change class of a mutation.

    - STRUCTURAL_REFACTOR: form changed, behavior did not (formatting, rename, reorder)
    - BEHAVIORAL_CHANGE: observable functionality changed (new declarations,
      substantial growth, new files)
    """
    STRUCTURAL_REFACTOR = "STRUCTURAL_REFACTOR"
    BEHAVIORAL_CHANGE = "BEHAVIORAL_CHANGE"

    @classmethod
    def _missing_(cls, value: object) -> "MutationClass | None":
        # Older ledgers used the AST_REFACTOR / INTENT_EVOLUTION names.
        aliases = {
            "AST_REFACTOR": cls.STRUCTURAL_REFACTOR,
            "INTENT_EVOLUTION": cls.BEHAVIORAL_CHANGE,
        }
        if isinstance(value, str):
            return aliases.get(value.strip().upper())
        return None


@dataclass(frozen=True)
class LineRange:
    """Affected line range (1-based, inclusive) with the hash of the persisted content."""

    start_line: int
    end_line: int
    content_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_line": self.start_line,
            "end_line": self.end_line,
            "content_hash": self.content_hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineRange":
        return cls(
            start_line=int(data.get("start_line", 1)),
            end_line=int(data.get("end_line", 1)),
            content_hash=str(data.get("content_hash", "")),
        )


@dataclass(frozen=True)
class Contributor:
    entity_type: str = "AI"
    model_identifier: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"entity_type": self.entity_type}
        if self.model_identifier:
            d["model_identifier"] = self.model_identifier
        return d


@dataclass(frozen=True)
class Conversation:
    """One contribution to a file: who changed which ranges, for which intent."""

    ranges: tuple[LineRange, ...]
    contributor: Contributor = field(default_factory=Contributor)
    related_intent: str | None = None
    mutation_class: MutationClass | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "contributor": self.contributor.to_dict(),
            "ranges": [r.to_dict() for r in self.ranges],
        }
        if self.related_intent:
            d["related"] = [{"type": "specification", "value": self.related_intent}]
        if self.mutation_class is not None:
            d["mutation_class"] = self.mutation_class.value
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        related_intent = None
        for rel in _as_list(data.get("related")):
            if isinstance(rel, dict) and rel.get("value"):
                related_intent = str(rel["value"])
                break

        raw_class = data.get("mutation_class")
        mutation_class = None
        if raw_class:
            try:
                mutation_class = MutationClass(raw_class)
            except ValueError:
                mutation_class = None

        contributor_data = data.get("contributor")
        if not isinstance(contributor_data, dict):
            contributor_data = {}
        return cls(
            ranges=tuple(LineRange.from_dict(r) for r in _as_list(data.get("ranges")) if isinstance(r, dict)),
            contributor=Contributor(
                entity_type=str(contributor_data.get("entity_type", "AI")),
                model_identifier=contributor_data.get("model_identifier"),
            ),
            related_intent=related_intent,
            mutation_class=mutation_class,
        )


@dataclass(frozen=True)
class FileEntry:
    relative_path: str
    conversations: tuple[Conversation, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "relative_path": self.relative_path,
            "conversations": [c.to_dict() for c in self.conversations],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileEntry":
        return cls(
            relative_path=str(data["relative_path"]),
            conversations=tuple(
                Conversation.from_dict(c) for c in _as_list(data.get("conversations")) if isinstance(c, dict)
            ),
        )


@dataclass(frozen=True)
class TraceRecord:
    """A single ledger entry: one successfully executed mutating action.

    Immutable once appended.
    """

    # Identity
    id: str  # ULID, sortable by creation time
    timestamp: str  # ISO-8601 UTC

    files: tuple[FileEntry, ...]

    # Provenance
    revision_id: str | None = None  # VCS revision at write time

    def related_intents(self) -> set[str]:
        return {
            c.related_intent
            for f in self.files
            for c in f.conversations
            if c.related_intent
        }

    def mutation_classes(self) -> list[MutationClass]:
        return [
            c.mutation_class
            for f in self.files
            for c in f.conversations
            if c.mutation_class is not None
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        d: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
        }
        if self.revision_id:
            d["vcs"] = {"revision_id": self.revision_id}
        d["files"] = [f.to_dict() for f in self.files]
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TraceRecord":
        """Reconstruct from JSON dict."""
        vcs = data.get("vcs") or {}
        return cls(
            id=str(data["id"]),
            timestamp=str(data["timestamp"]),
            files=tuple(FileEntry.from_dict(f) for f in _as_list(data.get("files")) if isinstance(f, dict)),
            revision_id=vcs.get("revision_id") if isinstance(vcs, dict) else None,
        )


@dataclass(frozen=True)
class RecentTraceEntry:
    """Condensed view of a trace record for context bundles."""

    relative_path: str
    content_hash: str
    timestamp: str
    mutation_class: MutationClass | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "relative_path": self.relative_path,
            "content_hash": self.content_hash,
            "timestamp": self.timestamp,
            "mutation_class": self.mutation_class.value if self.mutation_class else None,
        }
