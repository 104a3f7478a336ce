"""Intent specification models, parsing, and loading."""

from .loader import SpecificationStore, load_approval_required, parse_intent_list
from .models import Intent, IntentStatus
from .parser import LineSpecParser, SpecParser, YamlSpecParser, get_parser, lookup, parse_intents

__all__ = [
    "Intent",
    "IntentStatus",
    "LineSpecParser",
    "SpecParser",
    "SpecificationStore",
    "YamlSpecParser",
    "get_parser",
    "load_approval_required",
    "lookup",
    "parse_intent_list",
    "parse_intents",
]
