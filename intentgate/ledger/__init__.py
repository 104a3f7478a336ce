"""
Trace ledger for intent-governed mutations.

Each successful mutating action leaves one record linking the content hash
of what was written to the intent it served and to its change class.

Components:
- record_types: TraceRecord and its parts, MutationClass
- classifier: refactor vs behavioral change heuristics (pluggable)
- ledger: append-only storage (.orchestration/agent_trace.jsonl) and queries
- intent_map: spatial map of intents to key paths

Design principles:
- Append-only: records are never rewritten
- Attributed: every record names its intent when one is active
- Best-effort: ledger failures never fail the action that produced them
"""

from .classifier import (
    HeuristicClassifier,
    MutationClassifier,
    classify_mutation,
    resolve_mutation_class,
)
from .intent_map import add_key_path, update_intent_map
from .ledger import TraceLedger, build_file_entry
from .record_types import (
    Contributor,
    Conversation,
    FileEntry,
    LineRange,
    MutationClass,
    RecentTraceEntry,
    TraceRecord,
)

__all__ = [
    "Contributor",
    "Conversation",
    "FileEntry",
    "HeuristicClassifier",
    "LineRange",
    "MutationClass",
    "MutationClassifier",
    "RecentTraceEntry",
    "TraceLedger",
    "TraceRecord",
    "add_key_path",
    "build_file_entry",
    "classify_mutation",
    "resolve_mutation_class",
    "update_intent_map",
]
