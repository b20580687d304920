"""stacktrack feature -- manage features within a project."""

from __future__ import annotations

import click
from rich.markup import escape

from stacktrack.cli.formatting import format_branches, format_features


@click.group()
def feature() -> None:
    """Create, list, show, edit and remove features."""


@feature.command("add")
@click.argument("project_id", type=int)
@click.argument("identifier")
@click.argument("name")
@click.option("-d", "--description", default=None)
@click.option("--color", default=None, help="Hex color, e.g. #6366f1.")
@click.pass_context
def add(ctx: click.Context, project_id: int, identifier: str, name: str, description: str | None, color: str | None) -> None:
    """Create a feature (IDENTIFIER is usually a ticket number)."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        info = t.create_feature(project_id, identifier, name, description=description, color=color)
        console.print(
            f"Created feature [yellow]{info.id}[/yellow] "
            f"[cyan]{escape(info.identifier)}[/cyan] {escape(info.name)}"
        )


@feature.command("list")
@click.argument("project_id", type=int)
@click.pass_context
def list_(ctx: click.Context, project_id: int) -> None:
    """List a project's features."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        format_features(t.list_features(project_id), console)


@feature.command("show")
@click.argument("feature_id", type=int)
@click.pass_context
def show(ctx: click.Context, feature_id: int) -> None:
    """Show a feature and its branch stack."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        info = t.get_feature(feature_id)
        project = t.get_project(info.project_id)
        console.print(
            f"[cyan]{escape(info.identifier)}[/cyan] [bold]{escape(info.name)}[/bold]  "
            f"[dim]#{info.id} in {escape(project.name)}, base {escape(project.master_branch)}[/dim]"
        )
        if info.description:
            console.print(f"  {escape(info.description)}")
        console.print()
        format_branches(t.list_branches(feature_id), console)


@feature.command("edit")
@click.argument("feature_id", type=int)
@click.option("--identifier", default=None)
@click.option("--name", default=None)
@click.option("-d", "--description", default=None)
@click.option("--color", default=None)
@click.pass_context
def edit(ctx: click.Context, feature_id: int, **options: str | None) -> None:
    """Update feature fields."""
    from stacktrack.cli import _tracker_session

    changes = {k: v for k, v in options.items() if v is not None}
    with _tracker_session(ctx) as (t, console):
        if not changes:
            console.print("[dim]Nothing to update.[/dim]")
            return
        info = t.update_feature(feature_id, **changes)
        console.print(f"Updated feature [yellow]{info.id}[/yellow] [cyan]{escape(info.identifier)}[/cyan]")


@feature.command("rm")
@click.argument("feature_id", type=int)
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def rm(ctx: click.Context, feature_id: int, yes: bool) -> None:
    """Delete a feature and all of its branches."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        info = t.get_feature(feature_id)
        if not yes:
            click.confirm(
                f"Delete feature '{info.identifier}' and its {info.branch_count} branch(es)?",
                abort=True,
            )
        t.delete_feature(feature_id)
        console.print(f"Deleted feature [yellow]{feature_id}[/yellow]")
