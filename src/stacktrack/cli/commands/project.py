"""stacktrack project -- manage projects."""

from __future__ import annotations

import click
from rich.markup import escape

from stacktrack.cli.formatting import format_project_detail, format_projects


@click.group()
def project() -> None:
    """Create, list, show, edit and remove projects."""


@project.command("add")
@click.argument("name")
@click.option("-m", "--master", "master_branch", default=None, help="Trunk branch (default: main).")
@click.option("-d", "--description", default=None)
@click.option("--repo-url", default=None, help="Link to the git repository.")
@click.pass_context
def add(ctx: click.Context, name: str, master_branch: str | None, description: str | None, repo_url: str | None) -> None:
    """Create a project."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        info = t.create_project(
            name, description=description, master_branch=master_branch, repo_url=repo_url
        )
        console.print(
            f"Created project [yellow]{info.id}[/yellow] "
            f"[bold]{escape(info.name)}[/bold] on [green]{escape(info.master_branch)}[/green]"
        )


@project.command("list")
@click.pass_context
def list_(ctx: click.Context) -> None:
    """List projects, most recently updated first."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        format_projects(t.list_projects(), console)


@project.command("show")
@click.argument("project_id", type=int)
@click.pass_context
def show(ctx: click.Context, project_id: int) -> None:
    """Show a project and its features."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        format_project_detail(t.get_project(project_id), t.list_features(project_id), console)


@project.command("edit")
@click.argument("project_id", type=int)
@click.option("--name", default=None)
@click.option("-m", "--master", "master_branch", default=None)
@click.option("-d", "--description", default=None)
@click.option("--repo-url", default=None)
@click.pass_context
def edit(ctx: click.Context, project_id: int, **options: str | None) -> None:
    """Update project fields."""
    from stacktrack.cli import _tracker_session

    changes = {k: v for k, v in options.items() if v is not None}
    with _tracker_session(ctx) as (t, console):
        if not changes:
            console.print("[dim]Nothing to update.[/dim]")
            return
        info = t.update_project(project_id, **changes)
        console.print(f"Updated project [yellow]{info.id}[/yellow] [bold]{escape(info.name)}[/bold]")


@project.command("rm")
@click.argument("project_id", type=int)
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def rm(ctx: click.Context, project_id: int, yes: bool) -> None:
    """Delete a project with all its features and branches."""
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        info = t.get_project(project_id)
        if not yes:
            click.confirm(
                f"Delete project '{info.name}' and its {info.feature_count} feature(s)?",
                abort=True,
            )
        t.delete_project(project_id)
        console.print(f"Deleted project [yellow]{project_id}[/yellow]")
