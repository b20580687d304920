"""Tracker -- the public SDK entry point for stacktrack.

Ties together storage, position sequencing and stack verification into a
user-facing API.  Users interact with ``Tracker.open()``,
``t.create_project()``, ``t.create_branch()``, ``t.verify_stack()``, etc.

Not thread-safe.  Each thread should open its own ``Tracker``.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from stacktrack.exceptions import (
    BranchNotFoundError,
    FeatureNotFoundError,
    InvalidInputError,
    ProjectNotFoundError,
)
from stacktrack.models.branch import BranchInfo, BranchStatus, PrStatus, is_stack_member
from stacktrack.models.comparison import ComparisonCommands, ComparisonInfo
from stacktrack.models.config import TrackerConfig
from stacktrack.models.project import FeatureInfo, ProjectInfo
from stacktrack.operations.compare import comparison_commands
from stacktrack.operations.positions import (
    append_position,
    compact_positions,
    move_to,
    reorder_positions,
)
from stacktrack.operations.verify import generate_verification
from stacktrack.storage.engine import create_session_factory, create_tracker_engine, init_db
from stacktrack.storage.schema import BranchComparisonRow, BranchRow, FeatureRow, ProjectRow
from stacktrack.storage.sqlite import (
    SqliteBranchRepository,
    SqliteComparisonRepository,
    SqliteFeatureRepository,
    SqliteProjectRepository,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sqlalchemy import Engine
    from sqlalchemy.orm import Session

    from stacktrack.models.verification import StackVerification

logger = logging.getLogger(__name__)

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

_PROJECT_FIELDS = frozenset({"name", "description", "master_branch", "repo_url"})
_FEATURE_FIELDS = frozenset({"identifier", "name", "description", "color"})
_BRANCH_FIELDS = frozenset({
    "name",
    "short_name",
    "status",
    "pr_url",
    "pr_number",
    "pr_status",
    "notes",
    "is_part_of_stack",
    "is_planned",
})


def _now() -> datetime:
    # Naive UTC, the form SQLite hands back on reload
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _require_text(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{field} cannot be empty")
    return str(value).strip()


def _check_fields(changes: dict[str, Any], allowed: frozenset[str], kind: str) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise InvalidInputError(f"Unknown {kind} field(s): {', '.join(unknown)}")


def _parse_pr_status(value: str | PrStatus | None) -> PrStatus | None:
    if value is None or isinstance(value, PrStatus):
        return value
    try:
        return PrStatus(value.strip().lower())
    except ValueError:
        raise InvalidInputError(f"Unknown PR status: {value!r}") from None


def _project_info(row: ProjectRow, feature_count: int = 0, branch_count: int = 0) -> ProjectInfo:
    return ProjectInfo(
        id=row.id,
        name=row.name,
        description=row.description,
        master_branch=row.master_branch,
        repo_url=row.repo_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
        feature_count=feature_count,
        branch_count=branch_count,
    )


def _feature_info(row: FeatureRow, branch_count: int = 0, active_count: int = 0) -> FeatureInfo:
    return FeatureInfo(
        id=row.id,
        project_id=row.project_id,
        identifier=row.identifier,
        name=row.name,
        description=row.description,
        color=row.color,
        created_at=row.created_at,
        updated_at=row.updated_at,
        branch_count=branch_count,
        active_branch_count=active_count,
    )


def _branch_info(row: BranchRow, feature: FeatureRow | None = None) -> BranchInfo:
    return BranchInfo(
        id=row.id,
        feature_id=row.feature_id,
        name=row.name,
        short_name=row.short_name,
        position=row.position,
        status=row.status,
        pr_url=row.pr_url,
        pr_number=row.pr_number,
        pr_status=row.pr_status,
        notes=row.notes,
        is_part_of_stack=row.is_part_of_stack,
        is_planned=row.is_planned,
        created_at=row.created_at,
        updated_at=row.updated_at,
        feature_identifier=feature.identifier if feature is not None else None,
        feature_name=feature.name if feature is not None else None,
    )


def _comparison_info(row: BranchComparisonRow) -> ComparisonInfo:
    return ComparisonInfo(
        id=row.id,
        project_id=row.project_id,
        parent_branch=row.parent_branch,
        child_branch=row.child_branch,
        is_ancestor=row.is_ancestor,
        merge_base=row.merge_base,
        checked_at=row.checked_at,
    )


class Tracker:
    """Primary entry point for stacktrack.

    Create a tracker via :meth:`Tracker.open`.

    Example::

        with Tracker.open("stacks.db") as t:
            project = t.create_project("api", master_branch="main")
            feature = t.create_feature(project.id, "11627", "Agent eval")
            t.create_branch(feature.id, "alice-11627-db")
            t.create_branch(feature.id, "alice-11627-api")
            print(t.verify_stack(feature.id).one_liner)
    """

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        *,
        engine: Engine | None,
        session: Session,
        config: TrackerConfig,
        project_repo: SqliteProjectRepository,
        feature_repo: SqliteFeatureRepository,
        branch_repo: SqliteBranchRepository,
        comparison_repo: SqliteComparisonRepository,
    ) -> None:
        self._engine = engine
        self._session = session
        self._config = config
        self._project_repo = project_repo
        self._feature_repo = feature_repo
        self._branch_repo = branch_repo
        self._comparison_repo = comparison_repo
        self._closed = False

    @classmethod
    def open(
        cls,
        path: str = ":memory:",
        *,
        url: str | None = None,
        config: TrackerConfig | None = None,
    ) -> Tracker:
        """Open (or create) a stacktrack database.

        Args:
            path: SQLite path.  ``":memory:"`` for in-memory (default).
            url: Full SQLAlchemy URL; overrides *path* when given.
            config: Tracker configuration.  Defaults created if *None*.

        Returns:
            A ready-to-use ``Tracker`` instance.
        """
        if config is None:
            config = TrackerConfig(db_path=path, db_url=url)

        engine = create_tracker_engine(config.db_path, url=config.db_url)
        init_db(engine)
        session = create_session_factory(engine)()

        return cls(
            engine=engine,
            session=session,
            config=config,
            project_repo=SqliteProjectRepository(session),
            feature_repo=SqliteFeatureRepository(session),
            branch_repo=SqliteBranchRepository(session),
            comparison_repo=SqliteComparisonRepository(session),
        )

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[None]:
        """Run a block as one transaction: commit on success, roll back on error."""
        try:
            yield
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.warning("%s failed; transaction rolled back", operation)
            raise

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _project_row(self, project_id: int) -> ProjectRow:
        row = self._project_repo.get(project_id)
        if row is None:
            raise ProjectNotFoundError(project_id)
        return row

    def _feature_row(self, feature_id: int) -> FeatureRow:
        row = self._feature_repo.get(feature_id)
        if row is None:
            raise FeatureNotFoundError(feature_id)
        return row

    def _branch_row(self, branch_id: int) -> BranchRow:
        row = self._branch_repo.get(branch_id)
        if row is None:
            raise BranchNotFoundError(branch_id)
        return row

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(
        self,
        name: str,
        *,
        description: str | None = None,
        master_branch: str | None = None,
        repo_url: str | None = None,
    ) -> ProjectInfo:
        """Create a project.  ``master_branch`` defaults to the configured trunk."""
        now = _now()
        row = ProjectRow(
            name=_require_text(name, "Project name"),
            description=description or None,
            master_branch=_require_text(
                master_branch or self._config.default_master_branch, "Master branch"
            ),
            repo_url=repo_url or None,
            created_at=now,
            updated_at=now,
        )
        with self._atomic("create_project"):
            self._project_repo.save(row)
        logger.debug("Created project %d (%s)", row.id, row.name)
        return _project_info(row)

    def get_project(self, project_id: int) -> ProjectInfo:
        row = self._project_row(project_id)
        return _project_info(row, *self._project_repo.counts(project_id))

    def list_projects(self) -> list[ProjectInfo]:
        """All projects with feature and branch counts, most recently updated first."""
        return [
            _project_info(row, fc, bc)
            for row, fc, bc in self._project_repo.list_with_counts()
        ]

    def update_project(self, project_id: int, **changes: Any) -> ProjectInfo:
        """Update project fields (name, description, master_branch, repo_url)."""
        _check_fields(changes, _PROJECT_FIELDS, "project")
        row = self._project_row(project_id)
        if "name" in changes:
            changes["name"] = _require_text(changes["name"], "Project name")
        if "master_branch" in changes:
            changes["master_branch"] = _require_text(changes["master_branch"], "Master branch")
        with self._atomic("update_project"):
            for key, value in changes.items():
                setattr(row, key, value)
            row.updated_at = _now()
            self._project_repo.save(row)
        logger.debug("Updated project %d: %s", project_id, sorted(changes))
        return self.get_project(project_id)

    def delete_project(self, project_id: int) -> None:
        """Delete a project together with its features, branches and comparisons."""
        row = self._project_row(project_id)
        with self._atomic("delete_project"):
            self._project_repo.delete(row)
        self._session.expire_all()
        logger.debug("Deleted project %d", project_id)

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------

    def create_feature(
        self,
        project_id: int,
        identifier: str,
        name: str,
        *,
        description: str | None = None,
        color: str | None = None,
    ) -> FeatureInfo:
        """Create a feature (a ticket's worth of stacked branches) under a project."""
        self._project_row(project_id)
        color = color or self._config.default_feature_color
        if not _COLOR_RE.match(color):
            raise InvalidInputError(f"Color must be a hex value like #6366f1, got {color!r}")
        now = _now()
        row = FeatureRow(
            project_id=project_id,
            identifier=_require_text(identifier, "Feature identifier"),
            name=_require_text(name, "Feature name"),
            description=description or None,
            color=color,
            created_at=now,
            updated_at=now,
        )
        with self._atomic("create_feature"):
            self._feature_repo.save(row)
        logger.debug("Created feature %d (%s) in project %d", row.id, row.identifier, project_id)
        return _feature_info(row)

    def get_feature(self, feature_id: int) -> FeatureInfo:
        row = self._feature_row(feature_id)
        return _feature_info(row, *self._feature_repo.counts(feature_id))

    def list_features(self, project_id: int) -> list[FeatureInfo]:
        """A project's features with branch counts, most recently updated first."""
        self._project_row(project_id)
        return [
            _feature_info(row, bc, ac)
            for row, bc, ac in self._feature_repo.list_with_counts(project_id)
        ]

    def update_feature(self, feature_id: int, **changes: Any) -> FeatureInfo:
        """Update feature fields (identifier, name, description, color)."""
        _check_fields(changes, _FEATURE_FIELDS, "feature")
        row = self._feature_row(feature_id)
        for key in ("identifier", "name"):
            if key in changes:
                changes[key] = _require_text(changes[key], f"Feature {key}")
        if "color" in changes and not _COLOR_RE.match(changes["color"] or ""):
            raise InvalidInputError(
                f"Color must be a hex value like #6366f1, got {changes['color']!r}"
            )
        with self._atomic("update_feature"):
            for key, value in changes.items():
                setattr(row, key, value)
            row.updated_at = _now()
            self._feature_repo.save(row)
        logger.debug("Updated feature %d: %s", feature_id, sorted(changes))
        return self.get_feature(feature_id)

    def delete_feature(self, feature_id: int) -> None:
        """Delete a feature and all of its branches."""
        row = self._feature_row(feature_id)
        with self._atomic("delete_feature"):
            self._feature_repo.delete(row)
        self._session.expire_all()
        logger.debug("Deleted feature %d", feature_id)

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def create_branch(
        self,
        feature_id: int,
        name: str,
        *,
        short_name: str | None = None,
        status: str | BranchStatus = BranchStatus.ACTIVE,
        pr_url: str | None = None,
        pr_number: int | None = None,
        pr_status: str | PrStatus | None = None,
        notes: str | None = None,
        is_part_of_stack: bool = True,
        is_planned: bool = False,
    ) -> BranchInfo:
        """Append a branch to the end of a feature's stack."""
        self._feature_row(feature_id)
        parsed_status = BranchStatus.parse(status)
        if is_stack_member(is_part_of_stack, parsed_status):
            position = append_position(self._branch_repo.member_positions(feature_id))
        else:
            position = append_position(
                b.position for b in self._branch_repo.list_for_feature(feature_id)
            )
        now = _now()
        row = BranchRow(
            feature_id=feature_id,
            name=_require_text(name, "Branch name"),
            short_name=short_name or None,
            position=position,
            status=parsed_status,
            pr_url=pr_url or None,
            pr_number=pr_number,
            pr_status=_parse_pr_status(pr_status),
            notes=notes or None,
            is_part_of_stack=is_part_of_stack,
            is_planned=is_planned,
            created_at=now,
            updated_at=now,
        )
        with self._atomic("create_branch"):
            self._branch_repo.save(row)
        logger.debug("Created branch %d (%s) at position %d", row.id, row.name, position)
        return _branch_info(row)

    def get_branch(self, branch_id: int) -> BranchInfo:
        return _branch_info(self._branch_row(branch_id))

    def list_branches(self, feature_id: int, *, stack_only: bool = False) -> list[BranchInfo]:
        """A feature's branches in stack order.

        Args:
            feature_id: Owning feature.
            stack_only: If True, only branches that take part in the stack.
        """
        self._feature_row(feature_id)
        return [
            _branch_info(row)
            for row in self._branch_repo.list_for_feature(feature_id, members_only=stack_only)
        ]

    def list_project_branches(self, project_id: int) -> list[BranchInfo]:
        """Every branch of a project, grouped by feature identifier."""
        self._project_row(project_id)
        return [
            _branch_info(branch, feature)
            for branch, feature in self._branch_repo.list_for_project(project_id)
        ]

    def update_branch(self, branch_id: int, **changes: Any) -> BranchInfo:
        """Update branch metadata.

        Positions are not set directly; use :meth:`reorder_branches` or
        :meth:`move_branch`.  A branch that leaves the stack (deprecated or
        ``is_part_of_stack=False``) closes its gap; a branch that rejoins
        is appended to the end.
        """
        if "position" in changes:
            raise InvalidInputError(
                "position cannot be updated directly; use reorder_branches() or move_branch()"
            )
        _check_fields(changes, _BRANCH_FIELDS, "branch")
        row = self._branch_row(branch_id)
        if "name" in changes:
            changes["name"] = _require_text(changes["name"], "Branch name")
        if "status" in changes:
            changes["status"] = BranchStatus.parse(changes["status"])
        if "pr_status" in changes:
            changes["pr_status"] = _parse_pr_status(changes["pr_status"])

        was_member = is_stack_member(row.is_part_of_stack, row.status)
        positions_before = self._branch_repo.member_positions(row.feature_id)

        with self._atomic("update_branch"):
            for key, value in changes.items():
                setattr(row, key, value)
            row.updated_at = _now()
            now_member = is_stack_member(row.is_part_of_stack, row.status)
            if not was_member and now_member:
                row.position = append_position(positions_before)
            self._branch_repo.save(row)
            if was_member and not now_member:
                self._compact(row.feature_id)
        logger.debug("Updated branch %d: %s", branch_id, sorted(changes))
        return _branch_info(row)

    def delete_branch(self, branch_id: int) -> None:
        """Delete a branch and close the gap it leaves in the stack."""
        row = self._branch_row(branch_id)
        feature_id = row.feature_id
        was_member = is_stack_member(row.is_part_of_stack, row.status)
        with self._atomic("delete_branch"):
            self._branch_repo.delete(row)
            if was_member:
                self._compact(feature_id)
        logger.debug("Deleted branch %d from feature %d", branch_id, feature_id)

    def _compact(self, feature_id: int) -> None:
        members = self._branch_repo.list_for_feature(feature_id, members_only=True)
        positions = compact_positions((b.id, b.position) for b in members)
        changed = {
            b.id: positions[b.id] for b in members if b.position != positions[b.id]
        }
        if changed:
            self._branch_repo.set_positions(feature_id, changed, _now())

    def reorder_branches(self, feature_id: int, ordered_ids: Sequence[int]) -> list[BranchInfo]:
        """Give a feature's stack a new order in one transaction.

        Args:
            feature_id: Feature whose stack is reordered.
            ordered_ids: Every stack member's id exactly once, in the new
                order.  Branches outside the stack must not appear.

        Returns:
            The feature's branches in their new order.

        Raises:
            InvalidInputError: On duplicates, or if *ordered_ids* is not
                exactly the set of stack member ids.
        """
        self._feature_row(feature_id)
        positions = reorder_positions(list(ordered_ids))
        members = {b.id for b in self._branch_repo.list_for_feature(feature_id, members_only=True)}
        requested = set(positions)
        if requested != members:
            missing = sorted(members - requested)
            unexpected = sorted(requested - members)
            details = []
            if missing:
                details.append(f"missing {missing}")
            if unexpected:
                details.append(f"not in stack {unexpected}")
            raise InvalidInputError(
                f"Reorder of feature {feature_id} must list every stack branch once: "
                + "; ".join(details)
            )

        with self._atomic("reorder_branches"):
            self._branch_repo.set_positions(feature_id, positions, _now())
        logger.debug("Reordered feature %d: %s", feature_id, list(ordered_ids))
        return self.list_branches(feature_id)

    def move_branch(self, branch_id: int, new_position: int) -> list[BranchInfo]:
        """Move one stack branch to a 1-based position, shifting the others."""
        row = self._branch_row(branch_id)
        if not is_stack_member(row.is_part_of_stack, row.status):
            raise InvalidInputError(f"Branch {branch_id} is not part of the stack")
        current = [
            b.id for b in self._branch_repo.list_for_feature(row.feature_id, members_only=True)
        ]
        return self.reorder_branches(row.feature_id, move_to(current, branch_id, new_position))

    # ------------------------------------------------------------------
    # Verification and comparison
    # ------------------------------------------------------------------

    def verify_stack(self, feature_id: int) -> StackVerification:
        """Generate ancestry-check commands for a feature's stack.

        The first stack branch is checked against the project's master
        branch; deprecated and out-of-stack branches are skipped.
        """
        feature = self._feature_row(feature_id)
        project = self._project_row(feature.project_id)
        stack = [
            _branch_info(row)
            for row in self._branch_repo.list_for_feature(feature_id, members_only=True)
        ]
        return generate_verification(project.master_branch, stack)

    def compare(self, parent: str, child: str) -> ComparisonCommands:
        """Git commands for checking whether *child* is based on *parent*."""
        return comparison_commands(
            _require_text(parent, "Parent branch"), _require_text(child, "Child branch")
        )

    def save_comparison(
        self,
        project_id: int,
        parent_branch: str,
        child_branch: str,
        *,
        is_ancestor: bool | None = None,
        merge_base: str | None = None,
    ) -> ComparisonInfo:
        """Record the outcome of a parent/child check."""
        self._project_row(project_id)
        row = BranchComparisonRow(
            project_id=project_id,
            parent_branch=_require_text(parent_branch, "Parent branch"),
            child_branch=_require_text(child_branch, "Child branch"),
            is_ancestor=is_ancestor,
            merge_base=merge_base or None,
            checked_at=_now(),
        )
        with self._atomic("save_comparison"):
            self._comparison_repo.save(row)
        return _comparison_info(row)

    def recent_comparisons(
        self, project_id: int | None = None, limit: int | None = None
    ) -> list[ComparisonInfo]:
        """Newest saved comparisons first, optionally for one project."""
        if limit is None:
            limit = self._config.recent_comparisons_limit
        return [
            _comparison_info(row)
            for row in self._comparison_repo.recent(project_id, limit)
        ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the session and dispose the engine."""
        if self._closed:
            return
        self._closed = True
        self._session.close()
        if self._engine is not None:
            self._engine.dispose()

    def __enter__(self) -> Tracker:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._closed:
            return "Tracker(closed=True)"
        return f"Tracker(db={self._config.db_url or self._config.db_path!r})"
