"""stacktrack verify -- print ancestry checks for a feature's stack."""

from __future__ import annotations

import json

import click
from rich.markup import escape


@click.command()
@click.argument("feature_id", type=int)
@click.option("--one-liner", "mode", flag_value="one_liner", help="Print only the one-liner.")
@click.option("--script", "mode", flag_value="script", help="Print only the bash script.")
@click.option("--json", "mode", flag_value="json", help="Print the result as JSON.")
@click.pass_context
def verify(ctx: click.Context, feature_id: int, mode: str | None) -> None:
    """Generate read-only git commands that check a feature's stack.

    Each branch is checked against the one before it, the first against
    the project's master branch.  Nothing is fetched or modified; run the
    output inside your repository.
    """
    from stacktrack.cli import _tracker_session

    with _tracker_session(ctx) as (t, console):
        result = t.verify_stack(feature_id)
        # Raw artifacts go through click.echo so rich never touches the shell text
        if mode == "one_liner":
            click.echo(result.one_liner)
        elif mode == "script":
            click.echo(result.script)
        elif mode == "json":
            click.echo(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))
        else:
            console.print(
                f"[bold]{result.branch_count}[/bold] branch(es) on "
                f"[green]{escape(result.base_branch)}[/green]"
            )
            console.print()
            console.print("[bold]One-liner:[/bold]")
            click.echo(result.one_liner)
            console.print()
            console.print("[bold]Script:[/bold]")
            click.echo(result.script)
