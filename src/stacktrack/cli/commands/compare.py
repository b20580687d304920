"""stacktrack compare / history -- pairwise branch checks."""

from __future__ import annotations

import click

from stacktrack.cli.formatting import format_comparison_commands, format_comparisons


@click.command()
@click.argument("parent")
@click.argument("child")
@click.option("-p", "--project", "project_id", type=int, default=None, help="Project to record the result under.")
@click.option("--ancestor/--not-ancestor", "is_ancestor", default=None, help="Record the observed result.")
@click.option("--merge-base", default=None, help="Record the merge-base commit.")
@click.pass_context
def compare(
    ctx: click.Context,
    parent: str,
    child: str,
    project_id: int | None,
    is_ancestor: bool | None,
    merge_base: str | None,
) -> None:
    """Show git commands comparing CHILD with its intended PARENT.

    With --project, the comparison (and any result passed with
    --ancestor/--not-ancestor or --merge-base) is saved to history.
    """
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        format_comparison_commands(t.compare(parent, child), console)
        if project_id is not None:
            t.save_comparison(
                project_id, parent, child, is_ancestor=is_ancestor, merge_base=merge_base
            )
            console.print("[dim]Recorded.[/dim]")


@click.command()
@click.option("-p", "--project", "project_id", type=int, default=None)
@click.option("-n", "--limit", default=None, type=int, help="Maximum entries to show.")
@click.pass_context
def history(ctx: click.Context, project_id: int | None, limit: int | None) -> None:
    """Show recently recorded comparisons."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        format_comparisons(t.recent_comparisons(project_id, limit), console)
