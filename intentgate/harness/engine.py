"""
Governance engine: the host-facing facade.

Orchestrates: select_intent() -> record_read() -> pre_check() -> [host executes] -> post_action()

Key invariants:
- The gate decides; the host executes. The engine never runs a tool
- Post-action bookkeeping is best effort and never fails an action that ran
- A session's own writes refresh its observed hash, so they never read as stale
- Sessions are explicit: the host calls dispose_session() when one ends
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Mapping

from rich.console import Console

from ..config import GovernanceConfig, load_config
from ..ledger import (
    HeuristicClassifier,
    MutationClass,
    MutationClassifier,
    TraceLedger,
    TraceRecord,
    build_file_entry,
    resolve_mutation_class,
    update_intent_map,
)
from ..spec import SpecificationStore, get_parser
from ..vcs import RevisionProvider, content_at_head, current_revision_id
from ..workspace import ACTIVE_INTENTS_FILE, ORCHESTRATION_DIR, is_governed
from .actions import ActionDescriptor
from .context import IntentContext, SelectionResult
from .gate import ApprovalCallback, Gate, GateResult, workspace_relative
from .registry import SessionRegistry


def _read_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except OSError:
        return None


def _decode(raw: bytes | None) -> str | None:
    if raw is None:
        return None
    return raw.decode("utf-8", errors="replace")


class GovernanceEngine:
    """Gate, ledger, and session state for one workspace."""

    def __init__(
        self,
        root: Path,
        *,
        registry: SessionRegistry | None = None,
        config: GovernanceConfig | None = None,
        approval: ApprovalCallback | None = None,
        classifier: MutationClassifier | None = None,
        revision_provider: RevisionProvider | None = None,
        console: Console | None = None,
    ):
        self.root = Path(root)
        self.console = console or Console(stderr=True)
        self.config = config if config is not None else load_config(self.root)
        self.registry = registry or SessionRegistry()
        self.store = SpecificationStore(self.root, parser=get_parser(self.config.spec_parser))
        self.ledger = TraceLedger(self.root, console=self.console)
        self.classifier = classifier or HeuristicClassifier()
        self.revision_provider = revision_provider or current_revision_id
        self.gate = Gate(
            self.root,
            self.registry,
            config=self.config,
            store=self.store,
            approval=approval,
            console=self.console,
        )

    # --- Queries ---

    def is_governed(self) -> bool:
        return is_governed(self.root)

    def is_mutating(self, tool_name: str) -> bool:
        return tool_name in self.config.mutating_tools

    def active_intent(self, session_id: str) -> str | None:
        return self.registry.get(session_id)

    # --- Selection ---

    def select_intent(self, session_id: str, intent_id: str) -> SelectionResult:
        """Make `intent_id` the session's active intent and build its context bundle."""
        if not self.is_governed():
            return SelectionResult.failure(
                "governance_disabled",
                f"No {ORCHESTRATION_DIR}/ directory in this workspace; intents are not enforced.",
            )

        wanted = intent_id.strip()
        intent = self.store.get(wanted) if wanted else None
        if intent is None:
            return SelectionResult.failure(
                "intent_not_found",
                f'Intent "{wanted}" was not found in {ORCHESTRATION_DIR}/{ACTIVE_INTENTS_FILE}.',
                "Call select_active_intent with a valid intent_id from the current specification.",
            )

        self.registry.select(session_id, intent.id)
        recent = self.ledger.recent_for_intent(intent.id, self.config.recent_trace_limit)
        return SelectionResult(success=True, context=IntentContext.from_intent(intent), recent=recent)

    # --- Observation ---

    def record_read(self, session_id: str, path: str) -> str | None:
        """Remember the hash of a file the session just observed.

        Returns the hash, or None when the file cannot be read.
        """
        rel_path = workspace_relative(self.root, path)
        raw = _read_bytes(self._absolute(rel_path))
        if raw is None:
            return None
        return self.registry.record_observed_hash(session_id, rel_path, raw)

    def snapshot(self, action: ActionDescriptor) -> dict[str, str | None]:
        """Current content of each target path, taken before the host executes.

        Pass the result to post_action() as `previous_contents`. Missing files
        map to None (a new file).
        """
        return {
            rel: _decode(_read_bytes(self._absolute(rel)))
            for rel in (workspace_relative(self.root, p) for p in action.target_paths())
        }

    # --- Gate ---

    async def pre_check(self, action: ActionDescriptor) -> GateResult:
        return await self.gate.pre_check(action)

    # --- Post-action ---

    async def post_action(
        self,
        action: ActionDescriptor,
        *,
        written_path: str | None = None,
        previous_content: str | None = None,
        previous_contents: Mapping[str, str | None] | None = None,
        mutation_class: MutationClass | str | None = None,
        model_identifier: str | None = None,
        line_range: tuple[int, int] | None = None,
    ) -> TraceRecord | None:
        """
        Record a mutating action that ran successfully.

        Appends one trace record covering every written file, refreshes the
        session's observed hashes, and adds behavioral changes to the
        spatial map.

        Args:
            action: The action the gate allowed
            written_path: File actually written, when it differs from the params
            previous_content: Content before the write (single-file actions)
            previous_contents: Output of snapshot() (multi-file patches)
            mutation_class: Explicit class; the classifier is the fallback
            model_identifier: Model that produced the change
            line_range: Affected (start, end) lines; whole file when omitted

        Returns:
            The appended record, or None if nothing was recorded
        """
        if not self.is_governed() or not self.is_mutating(action.tool_name):
            return None

        raw_paths = [written_path] if written_path else action.target_paths()
        paths = [workspace_relative(self.root, p) for p in raw_paths]
        if not paths:
            return None

        intent_id = self.registry.get(action.session_id)
        entries = []
        for rel_path in paths:
            raw = _read_bytes(self._absolute(rel_path))
            if raw is None:
                continue  # deleted by the action
            content = _decode(raw)

            if previous_contents is not None and rel_path in previous_contents:
                previous = previous_contents[rel_path]
            elif previous_content is not None and len(paths) == 1:
                previous = previous_content
            else:
                previous = await asyncio.to_thread(content_at_head, self.root, rel_path)

            resolved = resolve_mutation_class(mutation_class, previous, content, self.classifier)
            entries.append(
                build_file_entry(
                    rel_path,
                    content,
                    intent_id=intent_id,
                    mutation_class=resolved,
                    line_range=line_range if len(paths) == 1 else None,
                    model_identifier=model_identifier,
                )
            )
            # The session's own write is the version it has now seen.
            self.registry.record_observed_hash(action.session_id, rel_path, raw)

        if not entries:
            return None

        revision_id = await asyncio.to_thread(self.revision_provider, self.root)
        record = self.ledger.record_files(entries, revision_id=revision_id)
        if record is None:
            return None

        if intent_id and self.config.update_intent_map:
            for entry in record.files:
                if MutationClass.BEHAVIORAL_CHANGE in (c.mutation_class for c in entry.conversations):
                    update_intent_map(self.root, intent_id, entry.relative_path, console=self.console)

        return record

    # --- Lifecycle ---

    def dispose_session(self, session_id: str) -> None:
        """Forget a session; a pending approval wait resolves as a rejection."""
        self.registry.clear(session_id)

    def _absolute(self, rel_path: str) -> Path:
        candidate = Path(rel_path)
        return candidate if candidate.is_absolute() else self.root / candidate
