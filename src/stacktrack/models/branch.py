"""Branch domain model for stacktrack.

BranchInfo is the SDK-facing model returned when querying branches.
BranchStatus is the closed vocabulary for branch lifecycle status.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from stacktrack.exceptions import InvalidStatusError


class BranchStatus(str, enum.Enum):
    """Lifecycle status of a tracked branch."""

    PLANNED = "planned"
    ACTIVE = "active"
    PR_RAISED = "pr_raised"
    MERGED = "merged"
    BLOCKED = "blocked"
    DEPRECATED = "deprecated"

    def __repr__(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str | BranchStatus) -> BranchStatus:
        """Parse a status string, accepting the legacy review-flow vocabulary.

        Raises InvalidStatusError for anything else.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidStatusError(value)
        key = value.strip().lower()
        try:
            return cls(key)
        except ValueError:
            pass
        legacy = _LEGACY_STATUS.get(key)
        if legacy is None:
            raise InvalidStatusError(value)
        return legacy


# Older review-flow statuses folded onto the canonical lifecycle.
_LEGACY_STATUS: dict[str, BranchStatus] = {
    "created": BranchStatus.PLANNED,
    "wip": BranchStatus.ACTIVE,
    "pr_created": BranchStatus.PR_RAISED,
    "in_review": BranchStatus.PR_RAISED,
    "changes_requested": BranchStatus.BLOCKED,
    "approved": BranchStatus.PR_RAISED,
}


class PrStatus(str, enum.Enum):
    """State of the pull request attached to a branch."""

    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


def is_stack_member(is_part_of_stack: bool, status: BranchStatus | str) -> bool:
    """True if a branch takes part in positions and ancestry checks."""
    return bool(is_part_of_stack) and BranchStatus.parse(status) is not BranchStatus.DEPRECATED


class BranchInfo(BaseModel):
    """SDK-facing branch information model.

    Returned by Tracker.get_branch(), Tracker.list_branches() and friends.
    Not an ORM model -- used for data transfer only.
    """

    id: int
    feature_id: int
    name: str
    short_name: Optional[str] = None
    position: int
    status: BranchStatus = BranchStatus.ACTIVE
    pr_url: Optional[str] = None
    pr_number: Optional[int] = None
    pr_status: Optional[PrStatus] = None
    notes: Optional[str] = None
    is_part_of_stack: bool = True
    is_planned: bool = False
    created_at: datetime
    updated_at: datetime

    # Populated by Tracker.list_project_branches() only
    feature_identifier: Optional[str] = None
    feature_name: Optional[str] = None

    @property
    def in_stack(self) -> bool:
        return is_stack_member(self.is_part_of_stack, self.status)

    def __str__(self) -> str:
        return f"{self.position}. {self.name} [{self.status.value}]"
