"""Context bundle returned to the agent when it selects an intent."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from xml.sax.saxutils import escape

from ..ledger import RecentTraceEntry
from ..spec import Intent
from .gate import build_tool_error

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def _x(value: str) -> str:
    return escape(value, _XML_ENTITIES)


@dataclass(frozen=True)
class IntentContext:
    """What the agent needs to work within an intent."""

    id: str
    name: str | None = None
    status: str | None = None
    owned_scope: tuple[str, ...] = ()
    constraints: tuple[str, ...] = ()
    acceptance_criteria: tuple[str, ...] = ()

    @classmethod
    def from_intent(cls, intent: Intent) -> "IntentContext":
        return cls(
            id=intent.id,
            name=intent.name,
            status=intent.status,
            owned_scope=intent.owned_scope,
            constraints=intent.constraints,
            acceptance_criteria=intent.acceptance_criteria,
        )


def build_intent_context_xml(
    context: IntentContext,
    recent: list[RecentTraceEntry] | None = None,
) -> str:
    """Render the <intent_context> block. Empty sections are omitted."""
    lines = ["<intent_context>", f"<intent_id>{_x(context.id)}</intent_id>"]
    if context.name:
        lines.append(f"<name>{_x(context.name)}</name>")
    if context.status:
        lines.append(f"<status>{_x(context.status)}</status>")

    sections = (
        ("owned_scope", "path", context.owned_scope),
        ("constraints", "constraint", context.constraints),
        ("acceptance_criteria", "criterion", context.acceptance_criteria),
    )
    for tag, item_tag, items in sections:
        if not items:
            continue
        lines.append(f"<{tag}>")
        lines.extend(f"  <{item_tag}>{_x(item)}</{item_tag}>" for item in items)
        lines.append(f"</{tag}>")

    if recent:
        lines.append("<recent_trace>")
        for entry in recent:
            attrs = (
                f'path="{_x(entry.relative_path)}" '
                f'content_hash="{_x(entry.content_hash)}" '
                f'timestamp="{_x(entry.timestamp)}"'
            )
            if entry.mutation_class is not None:
                attrs += f' mutation_class="{entry.mutation_class.value}"'
            lines.append(f"  <entry {attrs} />")
        lines.append("</recent_trace>")

    lines.append("</intent_context>")
    return "\n".join(lines)


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of selecting an intent for a session."""

    success: bool
    context: IntentContext | None = None
    recent: list[RecentTraceEntry] = field(default_factory=list)
    error_code: str | None = None
    error_message: str | None = None
    suggestion: str | None = None

    @classmethod
    def failure(cls, code: str, message: str, suggestion: str | None = None) -> "SelectionResult":
        return cls(success=False, error_code=code, error_message=message, suggestion=suggestion)

    def render(self) -> str:
        """Tool result content: the context XML on success, a JSON error otherwise."""
        if self.success and self.context is not None:
            return build_intent_context_xml(self.context, self.recent)
        return self.to_tool_error()

    def to_tool_error(self) -> str:
        return build_tool_error(self.error_code or "error", self.error_message or "", self.suggestion)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "intent_id": self.context.id if self.context else None,
            "recent": [r.to_dict() for r in self.recent],
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
