"""Git snippets for comparing a child branch with its intended parent."""

from __future__ import annotations

from stacktrack.models.comparison import ComparisonCommands


def comparison_commands(parent: str, child: str) -> ComparisonCommands:
    """Build the inspection commands for a parent/child branch pair."""
    return ComparisonCommands(
        parent=parent,
        child=child,
        merge_base=f'echo "merge-base: $(git merge-base {parent} {child})"',
        is_ancestor=(
            f"git merge-base --is-ancestor {parent} {child} "
            f'&& echo "✅ {child} is based on {parent}" '
            f'|| echo "❌ NOT based on {parent}"'
        ),
        diff=f"git diff {parent}...{child}",
        log=f"git log {parent}..{child} --oneline",
        rebase=f"git rebase {parent} {child}",
        cherry=f"git cherry -v {parent} {child}",
    )
