"""Stack ancestry verification.

Builds the list of ancestry checks for a branch stack and renders them as
a shell one-liner and a full bash script.  Everything here is pure: the
generated shell only reads local refs and never fetches, pulls or
rewrites anything.

Branch names are interpolated verbatim.  Names containing shell
metacharacters produce unsafe scripts; git ref-name rules keep ordinary
branch names clear of them.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Sequence

from stacktrack.exceptions import InvalidStatusError
from stacktrack.models.branch import BranchStatus, is_stack_member
from stacktrack.models.verification import BranchSummary, StackCheck, StackVerification

NO_BRANCHES = "# No branches to verify"

_SCRIPT_HEADER = [
    "#!/bin/bash",
    "# Stack Verification Script (read-only)",
    "# Checks each branch is properly rebased on its parent",
    "# NOTE: Uses local refs only - no remote operations",
    "",
    "echo '🔍 Verifying branch stack (local refs)...'",
    "echo ''",
    "ERRORS=0",
    "",
]


def build_checks(base_branch: str, stack: Sequence[str]) -> list[StackCheck]:
    """Pair each stack entry with the branch it should be based on.

    The first entry is checked against *base_branch*, every later entry
    against its predecessor.
    """
    checks: list[StackCheck] = []
    basis = base_branch
    for index, name in enumerate(stack, start=1):
        checks.append(StackCheck(index=index, subject=name, basis=basis))
        basis = name
    return checks


def _ancestry(check: StackCheck) -> str:
    return f"git merge-base --is-ancestor {check.basis} {check.subject}"


def render_one_liner(checks: Sequence[StackCheck]) -> str:
    """Render checks as independent ``(... && ... || ...)`` groups joined by ``; ``.

    Every check runs regardless of earlier failures.
    """
    if not checks:
        return NO_BRANCHES
    return "; ".join(
        f'({_ancestry(c)} && echo "✅ {c.index}. {c.subject} ← {c.basis}" '
        f'|| echo "❌ {c.index}. NOT OK")'
        for c in checks
    )


def render_script(checks: Sequence[StackCheck]) -> str:
    """Render checks as a bash script that counts failures in ``ERRORS``.

    Exits 1 when any check fails.
    """
    if not checks:
        return NO_BRANCHES

    lines = list(_SCRIPT_HEADER)
    for c in checks:
        lines.extend([
            f"# Check {c.index}: {c.subject} is based on {c.basis}",
            f"if {_ancestry(c)} 2>/dev/null; then",
            f'  echo "✅ {c.index}. {c.subject}"',
            f'  echo "   └─ based on {c.basis}"',
            "else",
            f'  echo "❌ {c.index}. {c.subject}"',
            f'  echo "   └─ NOT based on {c.basis}"',
            "  ERRORS=$((ERRORS + 1))",
            "fi",
            "echo ''",
        ])
    lines.extend([
        "if [ $ERRORS -eq 0 ]; then",
        f'  echo "🎉 All {len(checks)} branches are properly stacked!"',
        "else",
        '  echo "⚠️  Found $ERRORS issue(s) in the stack"',
        "  exit 1",
        "fi",
    ])
    return "\n".join(lines)


def _field(entry: Any, name: str, default: Any = None) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name, default)
    return getattr(entry, name, default)


def _lenient_status(value: Any) -> BranchStatus:
    # Unknown or missing statuses still count as stack members
    try:
        return BranchStatus.parse(value)
    except InvalidStatusError:
        return BranchStatus.ACTIVE


def _summaries(stack: Sequence[Any]) -> list[BranchSummary]:
    """Normalize names, mappings or branch records into ordered summaries.

    Records that are deprecated or out of the stack are dropped; the rest
    are sorted by position (stable, so equal positions keep input order).
    A status outside the known vocabulary is reported as ``active``.
    """
    summaries: list[tuple[int, BranchSummary]] = []
    for index, entry in enumerate(stack, start=1):
        if isinstance(entry, str):
            summaries.append((index, BranchSummary(name=entry, position=index)))
            continue
        status = _lenient_status(_field(entry, "status", BranchStatus.ACTIVE))
        if not is_stack_member(_field(entry, "is_part_of_stack", True), status):
            continue
        position = _field(entry, "position")
        if position is None:
            position = index
        summaries.append((
            position,
            BranchSummary(
                id=_field(entry, "id"),
                name=_field(entry, "name"),
                position=position,
                status=status,
            ),
        ))
    summaries.sort(key=lambda pair: pair[0])
    return [s for _, s in summaries]


def generate_verification(base_branch: str, stack: Sequence[Any]) -> StackVerification:
    """Generate the one-liner and script verifying *stack* against *base_branch*.

    Args:
        base_branch: Trunk branch the first stack entry must descend from.
        stack: Branch names in stack order, or records (objects or mappings)
            with ``name``, ``position`` and ``status``.  Records that are
            deprecated or have ``is_part_of_stack`` cleared are skipped.

    Returns:
        StackVerification with ``branch_count``, ``one_liner`` and
        ``script``.  Both artifacts are ``"# No branches to verify"``
        when the stack is empty.
    """
    branches = _summaries(stack)
    checks = build_checks(base_branch, [b.name for b in branches])
    return StackVerification(
        branch_count=len(checks),
        base_branch=base_branch,
        branches=branches,
        one_liner=render_one_liner(checks),
        script=render_script(checks),
    )
