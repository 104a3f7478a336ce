"""
Session registry: active intent and observed hashes per session.

Owned by the host's session manager rather than living in module state.
Sessions are keyed by id, so concurrent sessions never touch the same
entry. There is no TTL or eviction: the host must call clear() when a
session ends.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from ..scope import normalize_path
from ..util import content_hash


@dataclass
class SessionState:
    active_intent: str | None = None
    observed_hashes: dict[str, str] = field(default_factory=dict)  # normalized path -> hash
    pending_approval: asyncio.Future | None = None


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, SessionState] = {}

    def _state(self, session_id: str) -> SessionState:
        state = self._sessions.get(session_id)
        if state is None:
            state = SessionState()
            self._sessions[session_id] = state
        return state

    # --- Active intent ---

    def select(self, session_id: str, intent_id: str) -> None:
        """Set the active intent. The only way a session gets one."""
        self._state(session_id).active_intent = intent_id

    def get(self, session_id: str) -> str | None:
        state = self._sessions.get(session_id)
        return state.active_intent if state else None

    # --- Observed hashes ---

    def record_observed_hash(self, session_id: str, path: str, content: str | bytes) -> str:
        """Hash `content` and remember it as the version of `path` the session has seen.

        `content` must be the file's raw bytes as stored on disk; the gate
        compares against a hash of those bytes. Text read in universal-newline
        mode loses CRLF endings and will always look stale. Hosts that read
        from disk should call GovernanceEngine.record_read() instead.
        """
        digest = content_hash(content)
        self._state(session_id).observed_hashes[normalize_path(path)] = digest
        return digest

    def observed_hash(self, session_id: str, path: str) -> str | None:
        state = self._sessions.get(session_id)
        if state is None:
            return None
        return state.observed_hashes.get(normalize_path(path))

    def forget_observed_hash(self, session_id: str, path: str) -> None:
        state = self._sessions.get(session_id)
        if state is not None:
            state.observed_hashes.pop(normalize_path(path), None)

    # --- Approval waits ---

    def track_approval(self, session_id: str, waiter: asyncio.Future) -> None:
        self._state(session_id).pending_approval = waiter

    def release_approval(self, session_id: str, waiter: asyncio.Future) -> None:
        state = self._sessions.get(session_id)
        if state is not None and state.pending_approval is waiter:
            state.pending_approval = None

    # --- Lifecycle ---

    def clear(self, session_id: str) -> None:
        """Drop all state for a session.

        A pending approval wait is cancelled; the gate resolves it as a
        rejection instead of leaving it dangling.
        """
        state = self._sessions.pop(session_id, None)
        if state is not None and state.pending_approval is not None:
            if not state.pending_approval.done():
                state.pending_approval.cancel()

    def sessions(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
