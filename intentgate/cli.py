"""CLI entrypoint for intentgate."""

import sys
from pathlib import Path

import click

from . import __version__
from .workspace import ORCHESTRATION_DIR, find_workspace_root


def _workspace(ctx: click.Context, *, require_governed: bool = True) -> Path:
    """Resolve the workspace root from --root or by walking up from the cwd."""
    root: Path | None = ctx.obj.get("root")
    if root is None:
        root = find_workspace_root(Path.cwd())
        if root is None:
            if require_governed:
                raise click.ClickException(
                    f"No {ORCHESTRATION_DIR}/ directory found. Pass --root /path/to/workspace or run `intentgate init`."
                )
            root = Path.cwd()
    if not root.exists() or not root.is_dir():
        raise click.BadParameter(f"Directory '{root}' does not exist.", param_hint="--root / -r")
    return root.resolve()


@click.group()
@click.version_option(__version__, prog_name="intentgate")
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help=f"Workspace root (defaults to the nearest directory containing {ORCHESTRATION_DIR}/)",
)
@click.pass_context
def cli(ctx: click.Context, root: Path | None) -> None:
    """intentgate - Intent governance for autonomous coding agents.

    Inspect intents, trace records, and gate denials of a governed workspace.
    """
    ctx.ensure_object(dict)
    ctx.obj["root"] = root


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create .orchestration/ with sample governance files.

    Existing files are never overwritten.
    """
    from .commands.init_cmd import run_init

    sys.exit(run_init(_workspace(ctx, require_governed=False)))


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def intents(ctx: click.Context, output_json: bool) -> None:
    """List intents declared in active_intents.yaml."""
    from .commands.intents_cmd import run_intents

    sys.exit(run_intents(_workspace(ctx), output_json=output_json))


@cli.command()
@click.argument("intent_id", type=str)
@click.pass_context
def context(ctx: click.Context, intent_id: str) -> None:
    """Print the <intent_context> bundle an agent receives for INTENT_ID."""
    from .commands.intents_cmd import run_context

    sys.exit(run_context(_workspace(ctx), intent_id))


@cli.command()
@click.argument("pattern", type=str)
@click.argument("path", type=str)
def scope(pattern: str, path: str) -> None:
    """Check whether PATH matches the owned_scope PATTERN.

    Exits 0 on a match, 1 otherwise.
    """
    from .commands.check_cmd import run_scope

    sys.exit(run_scope(pattern, path))


@cli.command()
@click.argument("before", type=click.Path(path_type=Path))
@click.argument("after", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def classify(before: Path, after: Path) -> None:
    """Classify the change from BEFORE to AFTER.

    Pass '-' (or a missing path) as BEFORE to classify AFTER as a new file.
    """
    from .commands.check_cmd import run_classify

    sys.exit(run_classify(before, after))


# -----------------------------------------------------------------------------
# Trace commands - the append-only ledger
# -----------------------------------------------------------------------------


@cli.group()
def trace() -> None:
    """Inspect the agent trace ledger (agent_trace.jsonl)."""
    pass


@trace.command("summary")
@click.pass_context
def trace_summary(ctx: click.Context) -> None:
    """Show mutation classes, intents, and most changed paths."""
    from .commands.trace_cmd import run_trace_summary

    sys.exit(run_trace_summary(_workspace(ctx)))


@trace.command("recent")
@click.argument("intent_id", type=str)
@click.option("--limit", type=int, default=5, show_default=True, help="Max entries to show")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def trace_recent(ctx: click.Context, intent_id: str, limit: int, output_json: bool) -> None:
    """Show the most recent trace entries for INTENT_ID, newest first."""
    from .commands.trace_cmd import run_trace_recent

    sys.exit(run_trace_recent(_workspace(ctx), intent_id, limit=limit, output_json=output_json))


@cli.command()
@click.option("--last", "last_n", type=int, default=20, show_default=True, help="Show the last N denials")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def audit(ctx: click.Context, last_n: int, output_json: bool) -> None:
    """Show gate denials from gate_audit.jsonl."""
    from .commands.audit_cmd import run_audit

    sys.exit(run_audit(_workspace(ctx), last=last_n, output_json=output_json))


@cli.command()
@click.argument("text", type=str)
@click.pass_context
def lesson(ctx: click.Context, text: str) -> None:
    """Append a lesson to the Lessons Learned section of CLAUDE.md."""
    from .commands.lesson_cmd import run_lesson

    sys.exit(run_lesson(_workspace(ctx, require_governed=False), text))


if __name__ == "__main__":
    cli()
