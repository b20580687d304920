"""stacktrack branch -- manage the branches of a feature's stack."""

from __future__ import annotations

import click
from rich.markup import escape

from stacktrack.cli.formatting import format_branches
from stacktrack.models.branch import BranchStatus, PrStatus

_STATUS_CHOICE = click.Choice([s.value for s in BranchStatus], case_sensitive=False)
_PR_STATUS_CHOICE = click.Choice([s.value for s in PrStatus], case_sensitive=False)


@click.group()
def branch() -> None:
    """Add, list, edit, reorder and remove stack branches."""


@branch.command("add")
@click.argument("feature_id", type=int)
@click.argument("name")
@click.option("-s", "--short-name", default=None, help="Short label, e.g. db-infrastructure.")
@click.option("--status", default=BranchStatus.ACTIVE.value, type=_STATUS_CHOICE, show_default=True)
@click.option("--pr-url", default=None)
@click.option("--pr-number", default=None, type=int)
@click.option("--pr-status", default=None, type=_PR_STATUS_CHOICE)
@click.option("--notes", default=None)
@click.option("--stack/--no-stack", "is_part_of_stack", default=True, help="Include the branch in stack checks.")
@click.option("--planned", "is_planned", is_flag=True, help="Branch exists only in the tracker so far.")
@click.pass_context
def add(ctx: click.Context, feature_id: int, name: str, **options: object) -> None:
    """Append branch NAME to the end of a feature's stack."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        info = t.create_branch(feature_id, name, **options)
        console.print(
            f"Added [bold]{escape(info.name)}[/bold] ([yellow]{info.id}[/yellow]) "
            f"at position {info.position}"
        )


@branch.command("list")
@click.argument("feature_id", type=int)
@click.option("--stack-only", is_flag=True, help="Hide deprecated and out-of-stack branches.")
@click.pass_context
def list_(ctx: click.Context, feature_id: int, stack_only: bool) -> None:
    """List a feature's branches in stack order."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        format_branches(t.list_branches(feature_id, stack_only=stack_only), console)


@branch.command("edit")
@click.argument("branch_id", type=int)
@click.option("--name", default=None)
@click.option("-s", "--short-name", default=None)
@click.option("--status", default=None, type=_STATUS_CHOICE)
@click.option("--pr-url", default=None)
@click.option("--pr-number", default=None, type=int)
@click.option("--pr-status", default=None, type=_PR_STATUS_CHOICE)
@click.option("--notes", default=None)
@click.option("--stack/--no-stack", "is_part_of_stack", default=None)
@click.option("--planned/--not-planned", "is_planned", default=None)
@click.pass_context
def edit(ctx: click.Context, branch_id: int, **options: object) -> None:
    """Update branch fields."""
    from stacktrack.cli import _tracker_session

    changes = {k: v for k, v in options.items() if v is not None}
    with _tracker_session(ctx) as (t, console):
        if not changes:
            console.print("[dim]Nothing to update.[/dim]")
            return
        info = t.update_branch(branch_id, **changes)
        console.print(f"Updated [bold]{escape(info.name)}[/bold] ({info.status.value})")


@branch.command("rm")
@click.argument("branch_id", type=int)
@click.pass_context
def rm(ctx: click.Context, branch_id: int) -> None:
    """Delete a branch; later branches move up."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        info = t.get_branch(branch_id)
        t.delete_branch(branch_id)
        console.print(f"Deleted [bold]{escape(info.name)}[/bold]")


@branch.command("reorder")
@click.argument("feature_id", type=int)
@click.argument("branch_ids", nargs=-1, required=True, type=int)
@click.pass_context
def reorder(ctx: click.Context, feature_id: int, branch_ids: tuple[int, ...]) -> None:
    """Set the stack order of FEATURE_ID to BRANCH_IDS (every stack branch, once)."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        format_branches(t.reorder_branches(feature_id, list(branch_ids)), console)


@branch.command("move")
@click.argument("branch_id", type=int)
@click.argument("position", type=click.IntRange(min=1))
@click.pass_context
def move(ctx: click.Context, branch_id: int, position: int) -> None:
    """Move a branch to POSITION in its stack."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        format_branches(t.move_branch(branch_id, position), console)
