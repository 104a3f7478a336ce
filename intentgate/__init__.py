"""
intentgate - intent governance for autonomous coding agents.

Sits between an agent's decision step and the execution of a mutating tool:
every mutation must cite a declared intent, stay inside that intent's owned
scope, be based on content the agent actually observed, and leave a trace in
the append-only ledger.
"""

__version__ = "0.1.0"

from .config import GovernanceConfig, load_config
from .harness import (
    ActionDescriptor,
    Denial,
    DenialCode,
    Gate,
    GateResult,
    GovernanceEngine,
    SessionRegistry,
)
from .ledger import MutationClass, TraceLedger, TraceRecord, classify_mutation
from .scope import matches
from .spec import Intent, SpecificationStore, parse_intents

__all__ = [
    "__version__",
    # Config
    "GovernanceConfig",
    "load_config",
    # Harness
    "ActionDescriptor",
    "Denial",
    "DenialCode",
    "Gate",
    "GateResult",
    "GovernanceEngine",
    "SessionRegistry",
    # Ledger
    "MutationClass",
    "TraceLedger",
    "TraceRecord",
    "classify_mutation",
    # Scope / spec
    "matches",
    "Intent",
    "SpecificationStore",
    "parse_intents",
]
