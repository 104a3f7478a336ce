"""
Append-only trace ledger.

Stores trace records in .orchestration/agent_trace.jsonl.
Key property: append-only, never rewritten.

The ledger is best-effort observability. A missing governance directory
means "not governed" and appends are skipped; I/O failures are reported on
the console and swallowed so they never fail an action that already ran.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Sequence

from rich.console import Console
from rich.markup import escape

from ..util import content_hash, count_lines, new_ulid
from ..workspace import governance_dir, trace_path
from .record_types import (
    Contributor,
    Conversation,
    FileEntry,
    LineRange,
    MutationClass,
    RecentTraceEntry,
    TraceRecord,
)

UNREADABLE_HASH = "sha256:(unable-to-read)"


def build_file_entry(
    relative_path: str,
    content: str | None,
    *,
    intent_id: str | None = None,
    mutation_class: MutationClass | None = None,
    line_range: tuple[int, int] | None = None,
    model_identifier: str | None = None,
) -> FileEntry:
    """File entry with a single conversation spanning `line_range` (whole file by default)."""
    if content is None:
        digest = UNREADABLE_HASH
        default_end = 1
    else:
        digest = content_hash(content)
        default_end = max(1, count_lines(content))

    start, end = line_range if line_range else (1, default_end)

    return FileEntry(
        relative_path=relative_path,
        conversations=(
            Conversation(
                ranges=(LineRange(start_line=start, end_line=end, content_hash=digest),),
                contributor=Contributor(entity_type="AI", model_identifier=model_identifier),
                related_intent=intent_id,
                mutation_class=mutation_class,
            ),
        ),
    )


class TraceLedger:
    """Append-only ledger of trace records.

    Storage format: JSON Lines (.jsonl) - one record per line
    Location: .orchestration/agent_trace.jsonl relative to the workspace root
    """

    def __init__(self, root: Path, *, console: Console | None = None):
        self.root = root
        self.governance_dir = governance_dir(root)
        self.ledger_path = trace_path(root)
        self.console = console or Console(stderr=True)

    def append(self, record: TraceRecord) -> bool:
        """Append a record to the ledger.

        This is the only write operation. Records are never modified or
        deleted. Returns False when the record was not written.
        """
        if not self.governance_dir.is_dir():
            return False
        line = json.dumps(record.to_dict(), separators=(",", ":")) + "\n"
        try:
            # One write call per record so concurrent appenders do not interleave partial lines.
            with self.ledger_path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            self.console.print(f"[yellow]Warning: trace append failed: {escape(str(e))}[/yellow]")
            return False
        return True

    def record_write(
        self,
        relative_path: str,
        content: str | None,
        *,
        intent_id: str | None = None,
        mutation_class: MutationClass | None = None,
        revision_id: str | None = None,
        line_range: tuple[int, int] | None = None,
        model_identifier: str | None = None,
    ) -> TraceRecord | None:
        """Build and append the record for a file-content mutation.

        Args:
            relative_path: Workspace-relative path of the written file
            content: Persisted content (None if it could not be read back)
            intent_id: Active intent of the session, if any
            mutation_class: Explicit or classified change class
            revision_id: VCS revision, if the collaborator supplied one
            line_range: Affected (start, end) lines; whole file when omitted
            model_identifier: Model that produced the change

        Returns:
            The appended record, or None if nothing was written
        """
        entry = build_file_entry(
            relative_path,
            content,
            intent_id=intent_id,
            mutation_class=mutation_class,
            line_range=line_range,
            model_identifier=model_identifier,
        )
        return self.record_files([entry], revision_id=revision_id)

    def record_files(
        self,
        entries: Sequence[FileEntry],
        *,
        revision_id: str | None = None,
    ) -> TraceRecord | None:
        """Append one record covering several files (a multi-file patch)."""
        if not entries:
            return None
        record = TraceRecord(
            id=new_ulid(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            revision_id=revision_id,
            files=tuple(entries),
        )
        return record if self.append(record) else None

    # --- Read side ---

    def _iter_lines(self) -> Iterator[str]:
        if not self.ledger_path.exists():
            return
        try:
            with self.ledger_path.open("r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        yield line
        except OSError:
            return

    @staticmethod
    def _parse(line: str) -> TraceRecord | None:
        try:
            data = json.loads(line)
            if not isinstance(data, dict):
                return None
            return TraceRecord.from_dict(data)
        except (ValueError, KeyError, TypeError, AttributeError):
            return None  # Skip malformed lines

    def iter_records(self) -> Iterator[TraceRecord]:
        """Iterate over records, oldest first (memory-efficient for large ledgers)."""
        for line in self._iter_lines():
            record = self._parse(line)
            if record is not None:
                yield record

    def read_all(self) -> list[TraceRecord]:
        return list(self.iter_records())

    def count(self) -> int:
        """Count records (malformed lines excluded)."""
        return sum(1 for _ in self.iter_records())

    # --- Query methods ---

    def records_for_intent(self, intent_id: str) -> list[TraceRecord]:
        return [r for r in self.iter_records() if intent_id in r.related_intents()]

    def records_for_path(self, relative_path: str) -> list[TraceRecord]:
        return [
            r for r in self.iter_records()
            if any(f.relative_path == relative_path for f in r.files)
        ]

    def recent_for_intent(self, intent_id: str, limit: int = 5) -> list[RecentTraceEntry]:
        """Up to `limit` most recent entries related to `intent_id`, newest first."""
        if limit <= 0:
            return []
        entries: list[RecentTraceEntry] = []
        for line in reversed(list(self._iter_lines())):
            record = self._parse(line)
            if record is None or intent_id not in record.related_intents():
                continue
            if not record.files or not record.files[0].conversations:
                continue
            conversation = record.files[0].conversations[0]
            if not conversation.ranges:
                continue
            entries.append(
                RecentTraceEntry(
                    relative_path=record.files[0].relative_path,
                    content_hash=conversation.ranges[0].content_hash,
                    timestamp=record.timestamp,
                    mutation_class=conversation.mutation_class,
                )
            )
            if len(entries) >= limit:
                break
        return entries

    # --- Summary methods ---

    def summary(self) -> dict:
        """Generate a summary of the ledger.

        Returns statistics about mutation patterns.
        """
        records = self.read_all()
        if not records:
            return {"total_records": 0}

        class_counts: dict[str, int] = {}
        intent_counts: dict[str, int] = {}
        path_counts: dict[str, int] = {}
        unattributed = 0

        for r in records:
            for mc in r.mutation_classes():
                class_counts[mc.value] = class_counts.get(mc.value, 0) + 1
            intents = r.related_intents()
            if not intents:
                unattributed += 1
            for intent_id in intents:
                intent_counts[intent_id] = intent_counts.get(intent_id, 0) + 1
            for f in r.files:
                path_counts[f.relative_path] = path_counts.get(f.relative_path, 0) + 1

        # Most changed paths
        most_changed = sorted(path_counts.items(), key=lambda x: -x[1])[:10]

        return {
            "total_records": len(records),
            "mutation_class_counts": class_counts,
            "intent_counts": intent_counts,
            "unattributed_records": unattributed,
            "most_changed_paths": most_changed,
            "time_range": {
                "earliest": records[0].timestamp,
                "latest": records[-1].timestamp,
            },
        }

    def format_summary(self) -> str:
        """Format summary as markdown."""
        s = self.summary()
        if s["total_records"] == 0:
            return "No trace records."

        lines = [
            "# Trace Ledger Summary",
            "",
            f"- Total records: {s['total_records']}",
            f"- Time range: {s['time_range']['earliest']} to {s['time_range']['latest']}",
            f"- Unattributed records: {s['unattributed_records']}",
            "",
            "## Mutation Classes",
            "",
            "| Class | Count |",
            "|-------|------:|",
        ]
        for mc, count in sorted(s["mutation_class_counts"].items(), key=lambda x: -x[1]):
            lines.append(f"| {mc} | {count} |")

        lines.extend([
            "",
            "## Records per Intent",
            "",
            "| Intent | Records |",
            "|--------|--------:|",
        ])
        for intent_id, count in sorted(s["intent_counts"].items()):
            lines.append(f"| {intent_id} | {count} |")

        lines.extend([
            "",
            "## Most Changed Paths",
            "",
            "| Path | Records |",
            "|------|--------:|",
        ])
        for path, count in s["most_changed_paths"]:
            lines.append(f"| {path} | {count} |")

        return "\n".join(lines) + "\n"
