"""stacktrack CLI -- terminal interface for the branch-stack tracker.

This module is NEVER imported from stacktrack/__init__.py.
It is only loaded via the ``stacktrack`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

import click

from stacktrack.cli.formatting import configure_logging, format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from stacktrack.tracker import Tracker


@click.group()
@click.option(
    "--db",
    default=".stacktrack.db",
    envvar="STACKTRACK_DB",
    help="Path to the SQLite database.",
)
@click.option(
    "--url",
    default=None,
    envvar="STACKTRACK_DB_URL",
    help="SQLAlchemy database URL (overrides --db).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, db: str, url: str | None, verbose: bool) -> None:
    """stacktrack: track stacked branches and verify their ancestry."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["db_url"] = url
    configure_logging(verbose)


def _get_tracker(ctx: click.Context) -> "Tracker":
    """Open a Tracker from the Click context options."""
    from stacktrack.tracker import Tracker

    return Tracker.open(path=ctx.obj["db_path"], url=ctx.obj["db_url"])


@contextmanager
def _tracker_session(ctx: click.Context) -> Iterator[tuple[Tracker, Console]]:
    """Context manager that opens a Tracker, yields (tracker, console), and handles cleanup.

    Ensures the tracker is closed on exit and formats exceptions as CLI errors.
    """
    console = get_console()
    try:
        t = _get_tracker(ctx)
        try:
            yield t, console
        finally:
            t.close()
    except (SystemExit, click.Abort):
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from stacktrack.cli.commands.project import project  # noqa: E402
from stacktrack.cli.commands.feature import feature  # noqa: E402
from stacktrack.cli.commands.branch import branch  # noqa: E402
from stacktrack.cli.commands.verify import verify  # noqa: E402
from stacktrack.cli.commands.compare import compare, history  # noqa: E402

cli.add_command(project)
cli.add_command(feature)
cli.add_command(branch)
cli.add_command(verify)
cli.add_command(compare)
cli.add_command(history)
