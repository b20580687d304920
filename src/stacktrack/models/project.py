"""Project and feature domain models for stacktrack."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ProjectInfo(BaseModel):
    """SDK-facing project information model.

    ``feature_count`` and ``branch_count`` are aggregates filled in by
    listing and lookup queries.
    """

    id: int
    name: str
    description: Optional[str] = None
    master_branch: str = "main"
    repo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    feature_count: int = 0
    branch_count: int = 0

    def __str__(self) -> str:
        return f"{self.name} ({self.master_branch})"


class FeatureInfo(BaseModel):
    """SDK-facing feature information model.

    A feature groups the stacked branches of one unit of work, usually a
    ticket (``identifier``).  ``active_branch_count`` counts branches that
    have ``is_part_of_stack`` set, deprecated ones included, so it can be
    larger than the number of branches that verification checks.
    """

    id: int
    project_id: int
    identifier: str
    name: str
    description: Optional[str] = None
    color: str = "#6366f1"
    created_at: datetime
    updated_at: datetime
    branch_count: int = 0
    active_branch_count: int = 0

    def __str__(self) -> str:
        return f"{self.identifier} {self.name}"
