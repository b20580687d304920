"""SQLite implementations of repository interfaces.

All repositories use SQLAlchemy 2.0-style queries (select() + session.execute()).
Each repository takes a Session in its constructor.  Repositories flush but
never commit; the Tracker owns transaction boundaries.
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Sequence

from sqlalchemy import and_, func, select, update
from sqlalchemy.orm import Session

from stacktrack.exceptions import BranchNotFoundError
from stacktrack.models.branch import BranchStatus
from stacktrack.storage.repositories import (
    BranchRepository,
    ComparisonRepository,
    FeatureRepository,
    ProjectRepository,
)
from stacktrack.storage.schema import (
    BranchComparisonRow,
    BranchRow,
    FeatureRow,
    ProjectRow,
)


def _member_clause():
    return and_(
        BranchRow.is_part_of_stack.is_(True),
        BranchRow.status != BranchStatus.DEPRECATED,
    )


class SqliteProjectRepository(ProjectRepository):
    """SQLite implementation of project repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, project_id: int) -> ProjectRow | None:
        stmt = select(ProjectRow).where(ProjectRow.id == project_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, project: ProjectRow) -> None:
        self._session.add(project)
        self._session.flush()

    def _count_columns(self):
        feature_count = (
            select(func.count(FeatureRow.id))
            .where(FeatureRow.project_id == ProjectRow.id)
            .correlate(ProjectRow)
            .scalar_subquery()
        )
        branch_count = (
            select(func.count(BranchRow.id))
            .join(FeatureRow, BranchRow.feature_id == FeatureRow.id)
            .where(FeatureRow.project_id == ProjectRow.id)
            .correlate(ProjectRow)
            .scalar_subquery()
        )
        return feature_count, branch_count

    def list_with_counts(self) -> Sequence[tuple[ProjectRow, int, int]]:
        feature_count, branch_count = self._count_columns()
        stmt = select(ProjectRow, feature_count, branch_count).order_by(
            ProjectRow.updated_at.desc(), ProjectRow.id.desc()
        )
        return [
            (row, int(fc or 0), int(bc or 0))
            for row, fc, bc in self._session.execute(stmt).all()
        ]

    def counts(self, project_id: int) -> tuple[int, int]:
        feature_count = self._session.execute(
            select(func.count(FeatureRow.id)).where(FeatureRow.project_id == project_id)
        ).scalar_one()
        branch_count = self._session.execute(
            select(func.count(BranchRow.id))
            .join(FeatureRow, BranchRow.feature_id == FeatureRow.id)
            .where(FeatureRow.project_id == project_id)
        ).scalar_one()
        return int(feature_count), int(branch_count)

    def delete(self, project: ProjectRow) -> None:
        self._session.delete(project)
        self._session.flush()


class SqliteFeatureRepository(FeatureRepository):
    """SQLite implementation of feature repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, feature_id: int) -> FeatureRow | None:
        stmt = select(FeatureRow).where(FeatureRow.id == feature_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, feature: FeatureRow) -> None:
        self._session.add(feature)
        self._session.flush()

    def list_with_counts(self, project_id: int) -> Sequence[tuple[FeatureRow, int, int]]:
        branch_count = (
            select(func.count(BranchRow.id))
            .where(BranchRow.feature_id == FeatureRow.id)
            .correlate(FeatureRow)
            .scalar_subquery()
        )
        active_count = (
            select(func.count(BranchRow.id))
            .where(
                BranchRow.feature_id == FeatureRow.id,
                BranchRow.is_part_of_stack.is_(True),
            )
            .correlate(FeatureRow)
            .scalar_subquery()
        )
        stmt = (
            select(FeatureRow, branch_count, active_count)
            .where(FeatureRow.project_id == project_id)
            .order_by(FeatureRow.updated_at.desc(), FeatureRow.id.desc())
        )
        return [
            (row, int(bc or 0), int(ac or 0))
            for row, bc, ac in self._session.execute(stmt).all()
        ]

    def counts(self, feature_id: int) -> tuple[int, int]:
        total = self._session.execute(
            select(func.count(BranchRow.id)).where(BranchRow.feature_id == feature_id)
        ).scalar_one()
        active = self._session.execute(
            select(func.count(BranchRow.id)).where(
                BranchRow.feature_id == feature_id,
                BranchRow.is_part_of_stack.is_(True),
            )
        ).scalar_one()
        return int(total), int(active)

    def delete(self, feature: FeatureRow) -> None:
        self._session.delete(feature)
        self._session.flush()


class SqliteBranchRepository(BranchRepository):
    """SQLite implementation of branch repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, branch_id: int) -> BranchRow | None:
        stmt = select(BranchRow).where(BranchRow.id == branch_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, branch: BranchRow) -> None:
        self._session.add(branch)
        self._session.flush()

    def list_for_feature(
        self, feature_id: int, *, members_only: bool = False
    ) -> Sequence[BranchRow]:
        stmt = select(BranchRow).where(BranchRow.feature_id == feature_id)
        if members_only:
            stmt = stmt.where(_member_clause())
        stmt = stmt.order_by(BranchRow.position, BranchRow.id)
        return list(self._session.execute(stmt).scalars().all())

    def list_for_project(self, project_id: int) -> Sequence[tuple[BranchRow, FeatureRow]]:
        stmt = (
            select(BranchRow, FeatureRow)
            .join(FeatureRow, BranchRow.feature_id == FeatureRow.id)
            .where(FeatureRow.project_id == project_id)
            .order_by(FeatureRow.identifier, BranchRow.position, BranchRow.id)
        )
        return [(b, f) for b, f in self._session.execute(stmt).all()]

    def member_positions(self, feature_id: int) -> list[int]:
        stmt = select(BranchRow.position).where(
            BranchRow.feature_id == feature_id, _member_clause()
        )
        return list(self._session.execute(stmt).scalars().all())

    def set_positions(
        self, feature_id: int, positions: Mapping[int, int], updated_at: datetime
    ) -> None:
        for branch_id, position in positions.items():
            result = self._session.execute(
                update(BranchRow)
                .where(BranchRow.id == branch_id, BranchRow.feature_id == feature_id)
                .values(position=position, updated_at=updated_at)
                .execution_options(synchronize_session="evaluate")
            )
            if result.rowcount != 1:
                raise BranchNotFoundError(branch_id)
        self._session.flush()

    def delete(self, branch: BranchRow) -> None:
        self._session.delete(branch)
        self._session.flush()


class SqliteComparisonRepository(ComparisonRepository):
    """SQLite implementation of the comparison history repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def save(self, comparison: BranchComparisonRow) -> None:
        self._session.add(comparison)
        self._session.flush()

    def recent(
        self, project_id: int | None = None, limit: int = 10
    ) -> Sequence[BranchComparisonRow]:
        stmt = select(BranchComparisonRow)
        if project_id is not None:
            stmt = stmt.where(BranchComparisonRow.project_id == project_id)
        stmt = stmt.order_by(
            BranchComparisonRow.checked_at.desc(), BranchComparisonRow.id.desc()
        ).limit(limit)
        return list(self._session.execute(stmt).scalars().all())
