"""
Governance harness: the pre-action gate and its host-facing engine.

Components:
- actions: ActionDescriptor, tool classification, patch path extraction
- registry: per-session active intent, observed hashes, approval waits
- gate: strict-order pre-check returning typed denials
- context: <intent_context> bundle for intent selection
- engine: GovernanceEngine facade (gate + ledger + spatial map)
"""

from .actions import ActionDescriptor, ActionKind, classify_action, describe, extract_patch_paths
from .context import IntentContext, SelectionResult, build_intent_context_xml
from .engine import GovernanceEngine
from .gate import (
    ApprovalCallback,
    ApprovalRequest,
    Denial,
    DenialCode,
    Gate,
    GateResult,
    build_tool_error,
    workspace_relative,
)
from .registry import SessionRegistry, SessionState

__all__ = [
    "ActionDescriptor",
    "ActionKind",
    "ApprovalCallback",
    "ApprovalRequest",
    "Denial",
    "DenialCode",
    "Gate",
    "GateResult",
    "GovernanceEngine",
    "IntentContext",
    "SelectionResult",
    "SessionRegistry",
    "SessionState",
    "build_intent_context_xml",
    "build_tool_error",
    "classify_action",
    "describe",
    "extract_patch_paths",
    "workspace_relative",
]
