"""Abstract repository interfaces for stacktrack storage.

Defines ABC interfaces for all database operations. No SQLAlchemy
imports here -- pure abstract contracts.

Concrete implementations are in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Mapping, Sequence

if TYPE_CHECKING:
    from datetime import datetime

    from stacktrack.storage.schema import (
        BranchComparisonRow,
        BranchRow,
        FeatureRow,
        ProjectRow,
    )


class ProjectRepository(ABC):
    """Abstract interface for project storage operations."""

    @abstractmethod
    def get(self, project_id: int) -> ProjectRow | None:
        """Get a project by id. Returns None if not found."""
        ...

    @abstractmethod
    def save(self, project: ProjectRow) -> None:
        """Insert or update a project."""
        ...

    @abstractmethod
    def list_with_counts(self) -> Sequence[tuple[ProjectRow, int, int]]:
        """List all projects with (feature_count, branch_count).

        Ordered by updated_at descending (most recently touched first).
        """
        ...

    @abstractmethod
    def counts(self, project_id: int) -> tuple[int, int]:
        """Return (feature_count, branch_count) for a project."""
        ...

    @abstractmethod
    def delete(self, project: ProjectRow) -> None:
        """Delete a project. Features, branches and comparisons cascade."""
        ...


class FeatureRepository(ABC):
    """Abstract interface for feature storage operations."""

    @abstractmethod
    def get(self, feature_id: int) -> FeatureRow | None:
        """Get a feature by id. Returns None if not found."""
        ...

    @abstractmethod
    def save(self, feature: FeatureRow) -> None:
        """Insert or update a feature."""
        ...

    @abstractmethod
    def list_with_counts(self, project_id: int) -> Sequence[tuple[FeatureRow, int, int]]:
        """List a project's features with (branch_count, active_branch_count).

        Ordered by updated_at descending.
        """
        ...

    @abstractmethod
    def counts(self, feature_id: int) -> tuple[int, int]:
        """Return (branch_count, active_branch_count) for a feature."""
        ...

    @abstractmethod
    def delete(self, feature: FeatureRow) -> None:
        """Delete a feature. Its branches cascade."""
        ...


class BranchRepository(ABC):
    """Abstract interface for branch storage operations."""

    @abstractmethod
    def get(self, branch_id: int) -> BranchRow | None:
        """Get a branch by id. Returns None if not found."""
        ...

    @abstractmethod
    def save(self, branch: BranchRow) -> None:
        """Insert or update a branch."""
        ...

    @abstractmethod
    def list_for_feature(
        self, feature_id: int, *, members_only: bool = False
    ) -> Sequence[BranchRow]:
        """List a feature's branches ordered by position, then id.

        Args:
            feature_id: Owning feature.
            members_only: If True, only branches that are part of the stack
                and not deprecated.
        """
        ...

    @abstractmethod
    def list_for_project(self, project_id: int) -> Sequence[tuple[BranchRow, FeatureRow]]:
        """List every branch of a project with its feature.

        Ordered by feature identifier, then position.
        """
        ...

    @abstractmethod
    def member_positions(self, feature_id: int) -> list[int]:
        """Positions currently held by the feature's stack members."""
        ...

    @abstractmethod
    def set_positions(
        self, feature_id: int, positions: Mapping[int, int], updated_at: datetime
    ) -> None:
        """Write new positions for branches of one feature.

        Does not commit; the caller owns the transaction.
        Raises BranchNotFoundError if an id does not belong to the feature.
        """
        ...

    @abstractmethod
    def delete(self, branch: BranchRow) -> None:
        """Delete a branch."""
        ...


class ComparisonRepository(ABC):
    """Abstract interface for saved branch comparisons."""

    @abstractmethod
    def save(self, comparison: BranchComparisonRow) -> None:
        """Insert a comparison record."""
        ...

    @abstractmethod
    def recent(
        self, project_id: int | None = None, limit: int = 10
    ) -> Sequence[BranchComparisonRow]:
        """Most recent comparisons, newest first, optionally for one project."""
        ...
