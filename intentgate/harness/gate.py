"""
Pre-action gate for mutating tool calls.

Orchestrates, in strict order (first failure wins):

    governance enabled? -> mutating? -> active intent? -> intent resolvable?
      -> in scope? -> not stale? -> [approval gate] -> allow

Key invariants:
- Denials are typed results, never exceptions: the calling agent branches on
  the code and self-corrects
- The active intent is never inferred; it must have been selected
- The check order is load-bearing (a session without an intent hears
  intent_required, not scope_violation)
- No automatic retries: every denial is terminal for that attempt
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable

from rich.console import Console
from rich.markup import escape

from ..audit_log import log_denial
from ..config import GovernanceConfig
from ..scope import first_out_of_scope, normalize_path
from ..spec import SpecificationStore
from ..util import content_hash
from ..workspace import ACTIVE_INTENTS_FILE, ORCHESTRATION_DIR, is_governed
from .actions import ActionDescriptor
from .registry import SessionRegistry


class DenialCode(str, Enum):
    INTENT_REQUIRED = "intent_required"
    INTENT_NOT_FOUND = "intent_not_found"
    SCOPE_VIOLATION = "scope_violation"
    STALE_FILE = "stale_file"
    USER_REJECTED = "user_rejected"


def build_tool_error(code: str, message: str, suggestion: str | None = None) -> str:
    """Standardized JSON tool error the agent can parse and recover from."""
    payload: dict[str, Any] = {"status": "error", "code": code, "message": message}
    if suggestion:
        payload["suggestion"] = suggestion
    return json.dumps(payload)


@dataclass(frozen=True)
class Denial:
    code: DenialCode
    message: str
    suggestion: str | None = None
    path: str | None = None  # offending path, for scope and staleness denials

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.suggestion:
            d["suggestion"] = self.suggestion
        if self.path:
            d["path"] = self.path
        return d


@dataclass(frozen=True)
class GateResult:
    """Result of Gate.pre_check()."""

    allow: bool
    denial: Denial | None = None

    @classmethod
    def allowed(cls) -> "GateResult":
        return cls(allow=True)

    @classmethod
    def denied(cls, denial: Denial) -> "GateResult":
        return cls(allow=False, denial=denial)

    @property
    def error_code(self) -> DenialCode | None:
        return self.denial.code if self.denial else None

    def to_tool_error(self) -> str | None:
        """JSON error content for the agent, or None when allowed."""
        if self.denial is None:
            return None
        return build_tool_error(self.denial.code.value, self.denial.message, self.denial.suggestion)


@dataclass(frozen=True)
class ApprovalRequest:
    """What the host's approval UI is asked to confirm."""

    session_id: str
    intent_id: str
    tool_name: str
    params: dict[str, Any]
    paths: tuple[str, ...] = ()


ApprovalCallback = Callable[[ApprovalRequest], Awaitable[bool]]


def workspace_relative(root: Path, path: str) -> str:
    """Forward-slash path relative to `root`; paths outside the root stay absolute."""
    cleaned = path.strip().replace("\\", "/")
    candidate = Path(cleaned)
    if candidate.is_absolute():
        try:
            return candidate.resolve().relative_to(root.resolve()).as_posix()
        except ValueError:
            return normalize_path(cleaned)
    return normalize_path(cleaned)


class Gate:
    """
    The single chokepoint between an agent's decision and a mutating tool.

    The gate reads the specification and the approval list on every check,
    so edits made while a session runs take effect on the next action.
    """

    def __init__(
        self,
        root: Path,
        registry: SessionRegistry,
        *,
        config: GovernanceConfig | None = None,
        store: SpecificationStore | None = None,
        approval: ApprovalCallback | None = None,
        console: Console | None = None,
    ):
        self.root = root
        self.registry = registry
        self.config = config or GovernanceConfig()
        self.store = store or SpecificationStore(root)
        self.approval = approval
        self.console = console or Console(stderr=True)

    async def pre_check(self, action: ActionDescriptor) -> GateResult:
        """Decide whether `action` may run."""
        # Step 1: No governance directory -> back-compatible no-op
        if not is_governed(self.root):
            return GateResult.allowed()

        # Step 2: Read-only and advisory tools always pass
        kind = action.kind(self.config)
        if kind == "read_only":
            return GateResult.allowed()

        # Step 3: An intent must have been selected
        intent_id = self.registry.get(action.session_id)
        if not intent_id:
            return self._deny(
                action,
                DenialCode.INTENT_REQUIRED,
                "You must cite a valid active Intent ID before performing this action.",
                "Call select_active_intent(intent_id) first to load context and then retry.",
            )

        # Step 4: The intent must still exist (specs change mid-session)
        intent = self.store.get(intent_id)
        if intent is None:
            return self._deny(
                action,
                DenialCode.INTENT_NOT_FOUND,
                f'Active intent "{intent_id}" no longer exists in {ORCHESTRATION_DIR}/{ACTIVE_INTENTS_FILE}.',
                "Call select_active_intent with a valid intent_id from the current specification.",
                intent_id=intent_id,
            )

        raw_paths = action.target_paths()
        paths = [workspace_relative(self.root, p) for p in raw_paths]

        # Step 5: Every target path inside owned_scope (empty scope = unrestricted)
        offending = first_out_of_scope(paths, intent.owned_scope)
        if offending is not None:
            via = " (via apply_patch)" if action.direct_path is None and action.patch else ""
            return self._deny(
                action,
                DenialCode.SCOPE_VIOLATION,
                f"{intent_id} is not authorized to edit {offending}{via}.",
                "Request scope expansion or use a file within the intent's owned_scope.",
                intent_id=intent_id,
                path=offending,
            )

        # Step 6: Optimistic lock against the last observed content
        for rel_path in paths:
            stale = self._is_stale(action.session_id, rel_path)
            if stale:
                return self._deny(
                    action,
                    DenialCode.STALE_FILE,
                    f"{rel_path} changed since this session last read it.",
                    "Re-read the file to get its current content, then retry the change.",
                    intent_id=intent_id,
                    path=rel_path,
                )

        # Step 7: Destructive actions on approval-required intents
        if kind == "destructive" and intent_id in self.store.approval_required():
            request = ApprovalRequest(
                session_id=action.session_id,
                intent_id=intent_id,
                tool_name=action.tool_name,
                params=dict(action.params),
                paths=tuple(paths),
            )
            if not await self._request_approval(request):
                return self._deny(
                    action,
                    DenialCode.USER_REJECTED,
                    "The user rejected this destructive action for the selected intent.",
                    "Explain the change to the user or choose a different approach.",
                    intent_id=intent_id,
                )

        return GateResult.allowed()

    # -------------------------------------------------------------------------
    # Private helpers
    # -------------------------------------------------------------------------

    def _absolute(self, rel_path: str) -> Path:
        candidate = Path(rel_path)
        return candidate if candidate.is_absolute() else self.root / candidate

    def _is_stale(self, session_id: str, rel_path: str) -> bool:
        observed = self.registry.observed_hash(session_id, rel_path)
        if observed is None:
            return False
        target = self._absolute(rel_path)
        if not target.is_file():
            return False
        try:
            current = content_hash(target.read_bytes())
        except OSError:
            return False
        return current != observed

    async def _request_approval(self, request: ApprovalRequest) -> bool:
        if self.approval is None:
            return self.config.fail_open_on_missing_approval

        waiter = asyncio.ensure_future(self.approval(request))
        self.registry.track_approval(request.session_id, waiter)
        try:
            await asyncio.wait({waiter})
        except asyncio.CancelledError:
            waiter.cancel()
            raise
        finally:
            self.registry.release_approval(request.session_id, waiter)

        # Session disposed while waiting
        if waiter.cancelled():
            return False
        error = waiter.exception()
        if error is not None:
            self.console.print(f"[yellow]Warning: approval callback failed: {escape(str(error))}[/yellow]")
            return False
        return bool(waiter.result())

    def _deny(
        self,
        action: ActionDescriptor,
        code: DenialCode,
        message: str,
        suggestion: str,
        *,
        intent_id: str | None = None,
        path: str | None = None,
    ) -> GateResult:
        denial = Denial(code=code, message=message, suggestion=suggestion, path=path)
        self.console.print(f"[yellow]denied {code.value}:[/yellow] {escape(action.summary())}")
        if self.config.audit_denials:
            log_denial(
                self.root,
                session_id=action.session_id,
                tool_name=action.tool_name,
                code=code.value,
                message=message,
                intent_id=intent_id,
                paths=action.target_paths(),
            )
        return GateResult.denied(denial)
