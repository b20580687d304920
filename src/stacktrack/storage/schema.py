"""SQLAlchemy ORM schema for stacktrack.

Defines all database tables: projects, features, branches,
branch_comparisons, _stacktrack_meta.

BranchStatus and PrStatus are imported from the domain models -- they are
NOT redefined here. The ORM uses the same Python enums.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from stacktrack.models.branch import BranchStatus, PrStatus


class Base(DeclarativeBase):
    """Base class for all stacktrack ORM models."""

    pass


class ProjectRow(Base):
    """Top-level container: one git repository and its trunk branch."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    master_branch: Mapped[str] = mapped_column(String(255), nullable=False, default="main")
    repo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    features: Mapped[list["FeatureRow"]] = relationship(
        "FeatureRow",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class FeatureRow(Base):
    """A group of stacked branches, usually one ticket (e.g. 11627)."""

    __tablename__ = "features"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    identifier: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6366f1")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    project: Mapped["ProjectRow"] = relationship("ProjectRow", back_populates="features")
    branches: Mapped[list["BranchRow"]] = relationship(
        "BranchRow",
        back_populates="feature",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class BranchRow(Base):
    """A single git branch in a feature's stack.

    ``position`` orders the stack.  It is dense (1..N) across stack members
    only; non-members keep whatever value they had when they left.
    """

    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feature_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[BranchStatus] = mapped_column(nullable=False, default=BranchStatus.ACTIVE)
    pr_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    pr_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pr_status: Mapped[Optional[PrStatus]] = mapped_column(nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_part_of_stack: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_planned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    feature: Mapped["FeatureRow"] = relationship("FeatureRow", back_populates="branches")

    __table_args__ = (
        Index("ix_branches_feature_position", "feature_id", "position"),
    )


class BranchComparisonRow(Base):
    """History of parent/child ancestry checks run by a user."""

    __tablename__ = "branch_comparisons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_branch: Mapped[str] = mapped_column(String(255), nullable=False)
    child_branch: Mapped[str] = mapped_column(String(255), nullable=False)
    is_ancestor: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    merge_base: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    checked_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_branch_comparisons_project_time", "project_id", "checked_at"),
    )


class MetaRow(Base):
    """Key-value metadata for the stacktrack database itself (e.g., schema version)."""

    __tablename__ = "_stacktrack_meta"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
