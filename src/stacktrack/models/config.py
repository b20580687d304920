"""Configuration models for stacktrack."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, field_validator

DEFAULT_FEATURE_COLOR = "#6366f1"


class TrackerConfig(BaseModel):
    """Per-tracker configuration."""

    db_path: str = ":memory:"
    db_url: Optional[str] = None
    default_master_branch: str = "main"
    default_feature_color: str = DEFAULT_FEATURE_COLOR
    recent_comparisons_limit: int = 10

    @field_validator("default_master_branch")
    @classmethod
    def _non_empty_branch(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("default_master_branch cannot be empty")
        return v
