"""Branch comparison models.

ComparisonInfo is a recorded ancestry check between two branches.
ComparisonCommands holds the git snippets suggested for a pair of branches.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ComparisonInfo(BaseModel):
    """A saved parent/child branch comparison."""

    id: int
    project_id: int
    parent_branch: str
    child_branch: str
    is_ancestor: Optional[bool] = None
    merge_base: Optional[str] = None
    checked_at: datetime


@dataclass(frozen=True)
class ComparisonCommands:
    """Shell commands for inspecting how ``child`` relates to ``parent``.

    All commands read local refs only, except ``rebase`` which is offered
    as the fix and rewrites ``child``.
    """

    parent: str
    child: str
    merge_base: str
    is_ancestor: str
    diff: str
    log: str
    rebase: str
    cherry: str

    def as_dict(self) -> dict[str, str]:
        return {
            "merge_base": self.merge_base,
            "is_ancestor": self.is_ancestor,
            "diff": self.diff,
            "log": self.log,
            "rebase": self.rebase,
            "cherry": self.cherry,
        }
