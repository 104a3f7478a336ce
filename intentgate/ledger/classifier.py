"""
Mutation classifier.

Compares before/after versions of a file and decides whether the write was
a structural refactor or a behavioral change. This is a line-set heuristic,
not a semantic diff; ambiguous changes are classified as behavioral so they
are never under-tracked.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from .record_types import MutationClass

NET_ADDITION_THRESHOLD_LINES = 5
NET_ADDITION_RATIO = 0.2  # 20% more lines than before
LINE_OVERLAP_RATIO_FOR_REFACTOR = 0.85  # same lines, reordered/renamed
LINE_COUNT_TOLERANCE = 2
SMALL_EDIT_LINES = 2

# Declarations that indicate new behavior.
NEW_BEHAVIOR_PATTERNS = [
    re.compile(r"\bexport\s+(?:default\s+)?(?:async\s+)?function\b"),
    re.compile(r"\bexport\s+(?:default\s+)?(?:abstract\s+)?class\b"),
    re.compile(r"\bexport\s+(?:const\s+)?enum\b"),
    re.compile(r"\bexport\s+(?:const|let|var|default)\b"),
    re.compile(r"\b(?:async\s+)?function\s*\*?\s*\w+\s*\("),
    re.compile(r"\bclass\s+\w+\s*(?:[{(:<]|extends\b|implements\b|$)", re.M),
    re.compile(r"\benum\s+\w+\s*\{"),
    re.compile(r"\binterface\s+\w+\s*(?:[{<]|extends\b)"),
    re.compile(r"\btype\s+\w+\s*(?:<[^>\n]*>)?\s*="),
    re.compile(r"^\s*(?:async\s+)?def\s+\w+\s*\(", re.M),
]


def normalize_for_comparison(content: str) -> str:
    """Unify line endings and strip trailing whitespace on every line."""
    unified = content.replace("\r\n", "\n").replace("\r", "\n")
    return "\n".join(line.rstrip() for line in unified.split("\n"))


def count_new_declarations(content: str) -> int:
    return sum(len(pattern.findall(content)) for pattern in NEW_BEHAVIOR_PATTERNS)


def classify_mutation(
    previous: str | None,
    new: str,
    relative_path: str | None = None,
) -> MutationClass:
    """Classify a write by comparing previous and new content.

    Args:
        previous: Content before the write (None if the file is new)
        new: Content after the write
        relative_path: Workspace-relative path (reserved for path-based rules)

    Returns:
        STRUCTURAL_REFACTOR or BEHAVIORAL_CHANGE
    """
    # New file
    if previous is None:
        return MutationClass.BEHAVIORAL_CHANGE

    prev_norm = normalize_for_comparison(previous)
    new_norm = normalize_for_comparison(new)

    # Pure formatting
    if prev_norm == new_norm:
        return MutationClass.STRUCTURAL_REFACTOR

    prev_lines = [line for line in prev_norm.split("\n") if line]
    new_lines = [line for line in new_norm.split("\n") if line]
    prev_set = set(prev_lines)
    new_set = set(new_lines)

    added_lines = [line for line in new_lines if line not in prev_set]
    removed_lines = [line for line in prev_lines if line not in new_set]
    net_additions = len(added_lines) - len(removed_lines)
    overlap = sum(1 for line in new_lines if line in prev_set)
    overlap_ratio = overlap / len(new_lines) if new_lines else 1.0

    # Same content, shuffled or renamed
    if (
        abs(len(new_lines) - len(prev_lines)) <= LINE_COUNT_TOLERANCE
        and overlap_ratio >= LINE_OVERLAP_RATIO_FOR_REFACTOR
    ):
        return MutationClass.STRUCTURAL_REFACTOR

    if count_new_declarations("\n".join(added_lines)) > 0:
        return MutationClass.BEHAVIORAL_CHANGE

    # Substantial growth
    if (
        net_additions >= NET_ADDITION_THRESHOLD_LINES
        or net_additions >= len(prev_lines) * NET_ADDITION_RATIO
    ):
        return MutationClass.BEHAVIORAL_CHANGE

    # Small, non-declarative edit
    if net_additions <= SMALL_EDIT_LINES and len(removed_lines) <= SMALL_EDIT_LINES:
        return MutationClass.STRUCTURAL_REFACTOR

    return MutationClass.BEHAVIORAL_CHANGE


@runtime_checkable
class MutationClassifier(Protocol):
    """Pluggable classification strategy."""

    def classify(self, previous: str | None, new: str) -> MutationClass:
        ...


class HeuristicClassifier:
    """Default strategy: the line-set heuristics of `classify_mutation`."""

    def classify(self, previous: str | None, new: str) -> MutationClass:
        return classify_mutation(previous, new)


def resolve_mutation_class(
    explicit: MutationClass | str | None,
    previous: str | None,
    new: str,
    classifier: MutationClassifier | None = None,
) -> MutationClass:
    """An explicit class always wins; the classifier is only the fallback."""
    if explicit is not None:
        try:
            return MutationClass(explicit)
        except ValueError:
            pass
    return (classifier or HeuristicClassifier()).classify(previous, new)
