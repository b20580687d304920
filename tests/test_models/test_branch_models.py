"""Tests for branch domain models: status vocabulary and stack membership."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from stacktrack.exceptions import InvalidInputError, InvalidStatusError
from stacktrack.models.branch import BranchInfo, BranchStatus, is_stack_member
from stacktrack.models.config import TrackerConfig


class TestBranchStatus:
    @pytest.mark.parametrize("value", [s.value for s in BranchStatus])
    def test_canonical_values(self, value: str) -> None:
        assert BranchStatus.parse(value).value == value

    def test_case_and_whitespace(self) -> None:
        assert BranchStatus.parse("  PR_Raised ") is BranchStatus.PR_RAISED

    @pytest.mark.parametrize(
        "legacy, expected",
        [
            ("created", BranchStatus.PLANNED),
            ("wip", BranchStatus.ACTIVE),
            ("pr_created", BranchStatus.PR_RAISED),
            ("in_review", BranchStatus.PR_RAISED),
            ("changes_requested", BranchStatus.BLOCKED),
            ("approved", BranchStatus.PR_RAISED),
        ],
    )
    def test_legacy_vocabulary(self, legacy: str, expected: BranchStatus) -> None:
        assert BranchStatus.parse(legacy) is expected

    def test_unknown(self) -> None:
        with pytest.raises(InvalidStatusError) as exc_info:
            BranchStatus.parse("shipped")
        assert exc_info.value.status == "shipped"
        assert isinstance(exc_info.value, InvalidInputError)

    @pytest.mark.parametrize("value", [None, 3])
    def test_non_string(self, value: object) -> None:
        with pytest.raises(InvalidStatusError):
            BranchStatus.parse(value)

    def test_enum_passthrough(self) -> None:
        assert BranchStatus.parse(BranchStatus.MERGED) is BranchStatus.MERGED


class TestStackMembership:
    def test_active_member(self) -> None:
        assert is_stack_member(True, BranchStatus.ACTIVE)

    def test_deprecated_excluded(self) -> None:
        assert not is_stack_member(True, "deprecated")

    def test_flag_excluded(self) -> None:
        assert not is_stack_member(False, BranchStatus.ACTIVE)

    def test_merged_still_member(self) -> None:
        assert is_stack_member(True, BranchStatus.MERGED)

    def test_branch_info_property(self) -> None:
        now = datetime.now(timezone.utc)
        info = BranchInfo(
            id=1, feature_id=1, name="x", position=1,
            status=BranchStatus.DEPRECATED, created_at=now, updated_at=now,
        )
        assert info.in_stack is False
        assert str(info) == "1. x [deprecated]"


class TestTrackerConfig:
    def test_defaults(self) -> None:
        config = TrackerConfig()
        assert config.db_path == ":memory:"
        assert config.default_master_branch == "main"
        assert config.default_feature_color == "#6366f1"

    def test_empty_master_rejected(self) -> None:
        with pytest.raises(ValueError):
            TrackerConfig(default_master_branch="  ")
