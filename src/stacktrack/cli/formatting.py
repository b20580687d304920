"""Rich formatting helpers for the stacktrack CLI.

Provides functions that format SDK data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from stacktrack.models.branch import BranchStatus

if TYPE_CHECKING:
    from stacktrack.models.branch import BranchInfo
    from stacktrack.models.comparison import ComparisonCommands, ComparisonInfo
    from stacktrack.models.project import FeatureInfo, ProjectInfo

_STATUS_STYLE: dict[BranchStatus, str] = {
    BranchStatus.PLANNED: "dim",
    BranchStatus.ACTIVE: "green",
    BranchStatus.PR_RAISED: "cyan",
    BranchStatus.MERGED: "magenta",
    BranchStatus.BLOCKED: "red",
    BranchStatus.DEPRECATED: "dim strike",
}


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def configure_logging(verbose: bool) -> None:
    """Route stacktrack log records through rich when --verbose is given."""
    if not verbose:
        return
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    root = logging.getLogger("stacktrack")
    root.setLevel(logging.DEBUG)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(handler)


def format_projects(projects: list[ProjectInfo], console: Console) -> None:
    """Display projects as a table."""
    if not projects:
        console.print("[dim]No projects.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", style="yellow", justify="right")
    table.add_column("Name")
    table.add_column("Master", style="green")
    table.add_column("Features", justify="right")
    table.add_column("Branches", justify="right")
    table.add_column("Updated", style="dim")

    for p in projects:
        table.add_row(
            str(p.id),
            escape(p.name),
            escape(p.master_branch),
            str(p.feature_count),
            str(p.branch_count),
            p.updated_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def format_project_detail(project: ProjectInfo, features: list[FeatureInfo], console: Console) -> None:
    """Display one project and its features."""
    console.print(f"[bold]{escape(project.name)}[/bold]  [dim]#{project.id}[/dim]")
    console.print(f"  Master:   [green]{escape(project.master_branch)}[/green]")
    if project.repo_url:
        console.print(f"  Repo:     {escape(project.repo_url)}")
    if project.description:
        console.print(f"  About:    {escape(project.description)}")
    console.print(f"  Features: {project.feature_count}  Branches: {project.branch_count}")
    console.print()
    format_features(features, console)


def format_features(features: list[FeatureInfo], console: Console) -> None:
    """Display features as a table."""
    if not features:
        console.print("[dim]No features.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", style="yellow", justify="right")
    table.add_column("Ticket", style="cyan")
    table.add_column("Name")
    table.add_column("Branches", justify="right")
    table.add_column("Flagged", justify="right", style="green")

    for f in features:
        table.add_row(
            str(f.id),
            escape(f.identifier),
            f"[{f.color}]●[/{f.color}] {escape(f.name)}",
            str(f.branch_count),
            str(f.active_branch_count),
        )

    console.print(table)


def format_branches(branches: list[BranchInfo], console: Console) -> None:
    """Display a feature's branches in stack order."""
    if not branches:
        console.print("[dim]No branches.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Pos", justify="right")
    table.add_column("ID", style="yellow", justify="right")
    table.add_column("Branch")
    table.add_column("Status")
    table.add_column("PR")

    for b in branches:
        style = _STATUS_STYLE.get(b.status, "")
        name = escape(b.name)
        if b.is_planned:
            name += " [dim](planned)[/dim]"
        if not b.in_stack:
            name = f"[dim]{name}[/dim]"
        pr = f"#{b.pr_number}" if b.pr_number else ""
        if b.pr_status is not None:
            pr = f"{pr} {b.pr_status.value}".strip()
        table.add_row(
            str(b.position) if b.in_stack else "-",
            str(b.id),
            name,
            f"[{style}]{b.status.value}[/{style}]" if style else b.status.value,
            escape(pr),
        )

    console.print(table)


def format_comparison_commands(commands: ComparisonCommands, console: Console) -> None:
    """Display the git snippets for a parent/child pair."""
    console.print(
        f"[bold]{escape(commands.child)}[/bold] vs parent "
        f"[green]{escape(commands.parent)}[/green]"
    )
    for label, command in commands.as_dict().items():
        console.print(f"  [cyan]{label:<12}[/cyan] {escape(command)}", highlight=False)


def format_comparisons(comparisons: list[ComparisonInfo], console: Console) -> None:
    """Display saved comparison history."""
    if not comparisons:
        console.print("[dim]No comparisons recorded.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("When", style="dim")
    table.add_column("Parent", style="green")
    table.add_column("Child")
    table.add_column("Ancestor")
    table.add_column("Merge base", style="yellow")

    for c in comparisons:
        if c.is_ancestor is None:
            verdict = "[dim]?[/dim]"
        elif c.is_ancestor:
            verdict = "[green]yes[/green]"
        else:
            verdict = "[red]no[/red]"
        table.add_row(
            c.checked_at.strftime("%Y-%m-%d %H:%M"),
            escape(c.parent_branch),
            escape(c.child_branch),
            verdict,
            (c.merge_base or "")[:12],
        )

    console.print(table)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
