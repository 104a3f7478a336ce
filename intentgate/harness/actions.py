"""
Action descriptors: what the host is about to execute.

The gate never runs tools itself. The host describes each tool call as an
ActionDescriptor; the gate derives the action kind from the tool name and
the target paths from the parameters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from ..config import GovernanceConfig

ActionKind = Literal["read_only", "mutating", "destructive"]

# Parameter names carrying a single target path, in lookup order.
PATH_PARAMS = ("path", "file_path")

PATCH_PARAM = "patch"

# apply_patch bodies name their files with these markers.
PATCH_PATH_MARKERS = (
    "*** Add File: ",
    "*** Delete File: ",
    "*** Update File: ",
    "*** Move to: ",
)


def extract_patch_paths(patch: str) -> list[str]:
    """File paths named by a patch body, in order, without duplicates."""
    paths: list[str] = []
    for line in patch.splitlines():
        for marker in PATCH_PATH_MARKERS:
            if line.startswith(marker):
                p = line[len(marker):].strip()
                if p and p not in paths:
                    paths.append(p)
                break
    return paths


def classify_action(tool_name: str, config: GovernanceConfig) -> ActionKind:
    if tool_name in config.destructive_tools:
        return "destructive"
    if tool_name in config.mutating_tools:
        return "mutating"
    return "read_only"


@dataclass(frozen=True)
class ActionDescriptor:
    """A tool call awaiting a gate decision."""

    session_id: str
    tool_name: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def direct_path(self) -> str | None:
        for key in PATH_PARAMS:
            value = self.params.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None

    @property
    def patch(self) -> str | None:
        value = self.params.get(PATCH_PARAM)
        if isinstance(value, str) and value.strip():
            return value
        return None

    def target_paths(self) -> list[str]:
        """Paths this action writes: the direct path argument, else the patch markers."""
        direct = self.direct_path
        if direct is not None:
            return [direct]
        patch = self.patch
        if patch is not None:
            return extract_patch_paths(patch)
        return []

    def kind(self, config: GovernanceConfig) -> ActionKind:
        return classify_action(self.tool_name, config)

    def summary(self) -> str:
        paths = self.target_paths()
        target = f" -> {', '.join(paths)}" if paths else ""
        return f"{self.tool_name}{target}"


def describe(session_id: str, tool_name: str, params: dict[str, Any] | None = None) -> ActionDescriptor:
    return ActionDescriptor(session_id=session_id, tool_name=tool_name, params=dict(params or {}))
