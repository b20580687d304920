"""Tests for stack verification script generation.

Covers check construction, one-liner and script rendering, the empty-stack
fallback, record filtering, and property-based structure checks.
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from stacktrack.models.branch import BranchStatus
from stacktrack.models.verification import StackCheck
from stacktrack.operations.verify import (
    NO_BRANCHES,
    build_checks,
    generate_verification,
    render_one_liner,
    render_script,
)
from tests.strategies import branch_name, stack_names

GOLDEN_ONE_LINER = (
    '(git merge-base --is-ancestor main alice-123-db && echo "✅ 1. alice-123-db ← main" '
    '|| echo "❌ 1. NOT OK"); '
    '(git merge-base --is-ancestor alice-123-db alice-123-api && echo "✅ 2. alice-123-api ← alice-123-db" '
    '|| echo "❌ 2. NOT OK")'
)

GOLDEN_SINGLE_SCRIPT = "\n".join([
    "#!/bin/bash",
    "# Stack Verification Script (read-only)",
    "# Checks each branch is properly rebased on its parent",
    "# NOTE: Uses local refs only - no remote operations",
    "",
    "echo '🔍 Verifying branch stack (local refs)...'",
    "echo ''",
    "ERRORS=0",
    "",
    "# Check 1: feat-db is based on main",
    "if git merge-base --is-ancestor main feat-db 2>/dev/null; then",
    '  echo "✅ 1. feat-db"',
    '  echo "   └─ based on main"',
    "else",
    '  echo "❌ 1. feat-db"',
    '  echo "   └─ NOT based on main"',
    "  ERRORS=$((ERRORS + 1))",
    "fi",
    "echo ''",
    "if [ $ERRORS -eq 0 ]; then",
    '  echo "🎉 All 1 branches are properly stacked!"',
    "else",
    '  echo "⚠️  Found $ERRORS issue(s) in the stack"',
    "  exit 1",
    "fi",
])


class TestBuildChecks:
    def test_first_check_uses_base(self) -> None:
        checks = build_checks("main", ["a", "b", "c"])
        assert checks == [
            StackCheck(index=1, subject="a", basis="main"),
            StackCheck(index=2, subject="b", basis="a"),
            StackCheck(index=3, subject="c", basis="b"),
        ]

    def test_empty(self) -> None:
        assert build_checks("main", []) == []


class TestGoldenOutput:
    def test_two_branch_one_liner(self) -> None:
        result = generate_verification("main", ["alice-123-db", "alice-123-api"])
        assert result.one_liner == GOLDEN_ONE_LINER
        assert result.branch_count == 2

    def test_single_branch_script(self) -> None:
        result = generate_verification("main", ["feat-db"])
        assert result.script == GOLDEN_SINGLE_SCRIPT

    def test_script_names_basis_per_check(self) -> None:
        script = generate_verification("develop", ["x", "y"]).script
        assert "# Check 2: y is based on x" in script
        assert '  echo "   └─ NOT based on x"' in script
        assert '🎉 All 2 branches are properly stacked!' in script


class TestEmptyStack:
    def test_both_artifacts_are_comment(self) -> None:
        result = generate_verification("main", [])
        assert result.one_liner == "# No branches to verify"
        assert result.script == "# No branches to verify"
        assert result.branch_count == 0
        assert result.branches == []

    def test_renderers_on_no_checks(self) -> None:
        assert render_one_liner([]) == NO_BRANCHES
        assert render_script([]) == NO_BRANCHES

    def test_all_records_filtered_out(self) -> None:
        stack = [{"name": "old", "position": 1, "status": "deprecated"}]
        assert generate_verification("main", stack).script == NO_BRANCHES


class TestRecordInput:
    def test_mappings_sorted_by_position(self) -> None:
        stack = [
            {"id": 2, "name": "second", "position": 2, "status": "active"},
            {"id": 1, "name": "first", "position": 1, "status": "pr_raised"},
        ]
        result = generate_verification("main", stack)
        assert [b.name for b in result.branches] == ["first", "second"]
        assert result.branches[0].status is BranchStatus.PR_RAISED
        assert "✅ 1. first ← main" in result.one_liner

    def test_deprecated_and_out_of_stack_skipped(self) -> None:
        stack = [
            {"name": "a", "position": 1, "status": "active"},
            {"name": "gone", "position": 2, "status": "deprecated"},
            {"name": "side", "position": 3, "status": "active", "is_part_of_stack": False},
            {"name": "b", "position": 4, "status": "merged"},
        ]
        result = generate_verification("main", stack)
        assert result.branch_count == 2
        assert "--is-ancestor a b" in result.one_liner
        assert "gone" not in result.script
        assert "side" not in result.script

    def test_objects_with_attributes(self) -> None:
        class Rec:
            def __init__(self, name: str, position: int) -> None:
                self.name = name
                self.position = position
                self.status = BranchStatus.ACTIVE

        result = generate_verification("main", [Rec("b", 2), Rec("a", 1)])
        assert [c.name for c in result.branches] == ["a", "b"]

    def test_unknown_status_kept_as_active(self) -> None:
        stack = [{"name": "a", "position": 1, "status": "in_progress"}]
        result = generate_verification("main", stack)
        assert result.branch_count == 1
        assert result.branches[0].status is BranchStatus.ACTIVE
        assert "--is-ancestor main a" in result.one_liner

    def test_missing_status_kept_as_active(self) -> None:
        stack = [
            {"name": "a", "position": 1, "status": None},
            {"name": "b", "position": None},
        ]
        result = generate_verification("main", stack)
        assert [b.name for b in result.branches] == ["a", "b"]
        assert all(b.status is BranchStatus.ACTIVE for b in result.branches)

    def test_deprecated_any_case_skipped(self) -> None:
        stack = [
            {"name": "a", "position": 1, "status": "Deprecated"},
            {"name": "b", "position": 2, "status": "shipped"},
        ]
        result = generate_verification("main", stack)
        assert [b.name for b in result.branches] == ["b"]

    def test_payload_envelope(self) -> None:
        payload = generate_verification("main", ["a"]).to_payload()
        assert payload["error"] is None
        assert payload["data"]["branchCount"] == 1
        assert payload["data"]["baseBranch"] == "main"
        assert payload["data"]["branches"][0] == {
            "id": None, "name": "a", "position": 1, "status": "active",
        }


class TestVerbatimNames:
    """Names go into the shell text unchanged; no quoting or escaping."""

    NAME = "feat$(x);y"

    def test_one_liner_keeps_name(self) -> None:
        result = generate_verification("main", [self.NAME])
        assert f"--is-ancestor main {self.NAME} &&" in result.one_liner
        assert f"1. {self.NAME} ← main" in result.one_liner

    def test_script_keeps_name(self) -> None:
        result = generate_verification("main", [self.NAME, "next"])
        assert f"if git merge-base --is-ancestor main {self.NAME} 2>/dev/null; then" in result.script
        assert f"--is-ancestor {self.NAME} next" in result.script
        assert f'echo "✅ 1. {self.NAME}"' in result.script


class TestProperties:
    @given(branch_name, stack_names)
    def test_one_liner_has_one_group_per_branch(self, base: str, names: list[str]) -> None:
        one_liner = generate_verification(base, names).one_liner
        groups = one_liner.split("; ")
        assert len(groups) == len(names)
        assert all(g.startswith("(git merge-base --is-ancestor ") and g.endswith(")") for g in groups)

    @given(branch_name, stack_names)
    def test_script_has_one_if_block_per_branch_in_order(self, base: str, names: list[str]) -> None:
        script = generate_verification(base, names).script
        lines = script.split("\n")
        ifs = [line for line in lines if line.startswith("if git merge-base")]
        assert len(ifs) == len(names)
        assert lines.count("  ERRORS=$((ERRORS + 1))") == len(names)
        starts = [script.index(f"# Check {i}: ") for i in range(1, len(names) + 1)]
        assert starts == sorted(starts)

    @given(branch_name, stack_names)
    def test_deterministic(self, base: str, names: list[str]) -> None:
        assert generate_verification(base, names) == generate_verification(base, names)

    @given(branch_name, stack_names)
    def test_never_touches_remote(self, base: str, names: list[str]) -> None:
        result = generate_verification(base, names)
        for artifact in (result.one_liner, result.script):
            assert "git fetch" not in artifact
            assert "git pull" not in artifact
            assert "git push" not in artifact

    @given(st.lists(branch_name, min_size=2, max_size=8))
    def test_each_check_pairs_with_predecessor(self, names: list[str]) -> None:
        checks = build_checks("main", names)
        for prev, check in zip(checks, checks[1:]):
            assert check.basis == prev.subject
            assert check.index == prev.index + 1
