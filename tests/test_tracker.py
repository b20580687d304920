"""Tests for the Tracker facade: project, feature and branch CRUD."""

from __future__ import annotations

import pytest

from stacktrack import (
    BranchNotFoundError,
    BranchStatus,
    FeatureNotFoundError,
    InvalidInputError,
    InvalidStatusError,
    PrStatus,
    ProjectNotFoundError,
    Tracker,
    TrackerConfig,
)
from tests.conftest import make_stack, make_tracker


class TestLifecycle:
    def test_context_manager_closes(self) -> None:
        with Tracker.open() as t:
            t.create_project("api")
        assert "closed=True" in repr(t)

    def test_close_twice(self) -> None:
        t = make_tracker()
        t.close()
        t.close()

    def test_persists_to_file(self, tmp_path) -> None:
        db = str(tmp_path / "stacks.db")
        with Tracker.open(db) as t:
            p = t.create_project("api", master_branch="develop")
        with Tracker.open(db) as t:
            assert t.get_project(p.id).master_branch == "develop"

    def test_timestamps_match_after_reload(self, tmp_path) -> None:
        db = str(tmp_path / "stacks.db")
        with Tracker.open(db) as t:
            created = t.create_project("api")
        with Tracker.open(db) as t:
            loaded = t.get_project(created.id)
        assert created.created_at.tzinfo is None
        assert loaded.created_at.tzinfo is None
        assert loaded.created_at == created.created_at
        assert loaded.updated_at == created.updated_at

    def test_config_default_master(self) -> None:
        with Tracker.open(config=TrackerConfig(default_master_branch="trunk")) as t:
            assert t.create_project("api").master_branch == "trunk"


class TestProjects:
    def test_create_defaults(self, tracker) -> None:
        p = tracker.create_project("api")
        assert p.master_branch == "main"
        assert p.description is None
        assert p.feature_count == 0

    def test_empty_name_rejected(self, tracker) -> None:
        with pytest.raises(InvalidInputError):
            tracker.create_project("   ")

    def test_get_missing(self, tracker) -> None:
        with pytest.raises(ProjectNotFoundError) as exc_info:
            tracker.get_project(42)
        assert exc_info.value.project_id == 42

    def test_counts(self, tracker) -> None:
        project, feature, _ = make_stack(tracker, ["a", "b"])
        tracker.create_feature(project.id, "456", "Other")
        info = tracker.get_project(project.id)
        assert info.feature_count == 2
        assert info.branch_count == 2

    def test_list_most_recent_first(self, tracker) -> None:
        a = tracker.create_project("a")
        tracker.create_project("b")
        tracker.update_project(a.id, description="touched")
        assert [p.name for p in tracker.list_projects()][0] == "a"

    def test_update(self, tracker) -> None:
        p = tracker.create_project("api")
        updated = tracker.update_project(p.id, name="api-v2", master_branch="develop")
        assert updated.name == "api-v2"
        assert updated.master_branch == "develop"
        assert updated.updated_at >= p.updated_at

    def test_update_unknown_field(self, tracker) -> None:
        p = tracker.create_project("api")
        with pytest.raises(InvalidInputError, match="owner"):
            tracker.update_project(p.id, owner="me")

    def test_delete_cascades(self, tracker) -> None:
        project, feature, branches = make_stack(tracker, ["a"])
        tracker.delete_project(project.id)
        with pytest.raises(FeatureNotFoundError):
            tracker.get_feature(feature.id)
        with pytest.raises(BranchNotFoundError):
            tracker.get_branch(branches[0].id)


class TestFeatures:
    def test_create(self, tracker) -> None:
        p = tracker.create_project("api")
        f = tracker.create_feature(p.id, "11627", "Agent eval", description="evals")
        assert f.color == "#6366f1"
        assert f.project_id == p.id

    def test_bad_color(self, tracker) -> None:
        p = tracker.create_project("api")
        with pytest.raises(InvalidInputError):
            tracker.create_feature(p.id, "1", "x", color="blue")

    def test_unknown_project(self, tracker) -> None:
        with pytest.raises(ProjectNotFoundError):
            tracker.create_feature(7, "1", "x")

    def test_counts_active(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, ["a", "b"])
        tracker.create_branch(feature.id, "side", is_part_of_stack=False)
        info = tracker.get_feature(feature.id)
        assert info.branch_count == 3
        assert info.active_branch_count == 2

    def test_active_count_includes_deprecated(self, tracker) -> None:
        _, feature, (a, _) = make_stack(tracker, ["a", "b"])
        tracker.update_branch(a.id, status="deprecated")
        assert tracker.get_feature(feature.id).active_branch_count == 2
        assert tracker.verify_stack(feature.id).branch_count == 1

    def test_list(self, tracker) -> None:
        project, feature, _ = make_stack(tracker, ["a"])
        listed = tracker.list_features(project.id)
        assert [(f.id, f.branch_count) for f in listed] == [(feature.id, 1)]

    def test_update_and_delete(self, tracker) -> None:
        _, feature, branches = make_stack(tracker, ["a"])
        updated = tracker.update_feature(feature.id, color="#ff0000", name="Renamed")
        assert updated.color == "#ff0000"
        assert updated.name == "Renamed"
        tracker.delete_feature(feature.id)
        with pytest.raises(BranchNotFoundError):
            tracker.get_branch(branches[0].id)


class TestBranches:
    def test_create_appends(self, tracker) -> None:
        _, _, branches = make_stack(tracker, ["a", "b", "c"])
        assert [b.position for b in branches] == [1, 2, 3]

    def test_create_fields(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, [])
        b = tracker.create_branch(
            feature.id, "alice-1-db", short_name="db", status="pr_raised",
            pr_url="https://example.test/pr/1", pr_number=1, pr_status="open",
            notes="first", is_planned=True,
        )
        assert b.status is BranchStatus.PR_RAISED
        assert b.pr_status is PrStatus.OPEN
        assert b.is_planned is True
        assert b.short_name == "db"

    def test_legacy_status_accepted(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, [])
        assert tracker.create_branch(feature.id, "x", status="in_review").status is BranchStatus.PR_RAISED

    def test_bad_status(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, [])
        with pytest.raises(InvalidStatusError):
            tracker.create_branch(feature.id, "x", status="shipped")

    def test_bad_pr_status(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, [])
        with pytest.raises(InvalidInputError):
            tracker.create_branch(feature.id, "x", pr_status="draft")

    def test_empty_name(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, [])
        with pytest.raises(InvalidInputError):
            tracker.create_branch(feature.id, "")

    def test_unknown_feature(self, tracker) -> None:
        with pytest.raises(FeatureNotFoundError):
            tracker.create_branch(5, "x")

    def test_update_metadata(self, tracker) -> None:
        _, _, (b,) = make_stack(tracker, ["a"])
        updated = tracker.update_branch(b.id, pr_number=12, notes="review", status="merged")
        assert updated.pr_number == 12
        assert updated.status is BranchStatus.MERGED
        assert updated.position == 1

    def test_position_not_directly_updatable(self, tracker) -> None:
        _, _, (b,) = make_stack(tracker, ["a"])
        with pytest.raises(InvalidInputError, match="reorder"):
            tracker.update_branch(b.id, position=3)

    def test_list_project_branches(self, tracker) -> None:
        project, feature, _ = make_stack(tracker, ["a", "b"])
        listed = tracker.list_project_branches(project.id)
        assert [(b.feature_identifier, b.name) for b in listed] == [("123", "a"), ("123", "b")]

    def test_delete_missing(self, tracker) -> None:
        with pytest.raises(BranchNotFoundError):
            tracker.delete_branch(1)


class TestVerifyStack:
    def test_uses_project_master(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, ["alice-123-db", "alice-123-api"])
        result = tracker.verify_stack(feature.id)
        assert result.one_liner == (
            '(git merge-base --is-ancestor main alice-123-db && echo "✅ 1. alice-123-db ← main" '
            '|| echo "❌ 1. NOT OK"); '
            '(git merge-base --is-ancestor alice-123-db alice-123-api && echo "✅ 2. alice-123-api ← alice-123-db" '
            '|| echo "❌ 2. NOT OK")'
        )
        assert [b.id is not None for b in result.branches] == [True, True]

    def test_custom_master(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, ["x"], master="develop")
        assert "--is-ancestor develop x" in tracker.verify_stack(feature.id).script

    def test_skips_non_members(self, tracker) -> None:
        _, feature, (a, b, c) = make_stack(tracker, ["a", "b", "c"])
        tracker.update_branch(b.id, status="deprecated")
        result = tracker.verify_stack(feature.id)
        assert result.branch_count == 2
        assert "--is-ancestor a c" in result.one_liner

    def test_empty_feature(self, tracker) -> None:
        _, feature, _ = make_stack(tracker, [])
        result = tracker.verify_stack(feature.id)
        assert result.one_liner == result.script == "# No branches to verify"

    def test_unknown_feature(self, tracker) -> None:
        with pytest.raises(FeatureNotFoundError):
            tracker.verify_stack(3)
