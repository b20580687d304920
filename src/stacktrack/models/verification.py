"""Stack verification models.

StackCheck is one ancestry check (frozen).  StackVerification is the
result of generating the verification artifacts for a feature's stack.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from stacktrack.models.branch import BranchStatus


@dataclass(frozen=True)
class StackCheck:
    """Assert that ``basis`` is an ancestor of ``subject``.

    Attributes:
        index: 1-based position of the check within the stack.
        subject: Branch being checked.
        basis: Branch it should be based on (the base branch for index 1,
            the previous stack entry otherwise).
    """

    index: int
    subject: str
    basis: str


class BranchSummary(BaseModel):
    """Branch reference echoed back with a verification result."""

    id: Optional[int] = None
    name: str
    position: int
    status: BranchStatus = BranchStatus.ACTIVE


class StackVerification(BaseModel):
    """One-liner and full script that verify a branch stack."""

    branch_count: int
    base_branch: str
    branches: list[BranchSummary] = []
    one_liner: str
    script: str

    def to_payload(self) -> dict:
        """Return the ``{data, error}`` envelope used by transport layers."""
        return {
            "data": {
                "branchCount": self.branch_count,
                "branches": [
                    b.model_dump(mode="json") for b in self.branches
                ],
                "baseBranch": self.base_branch,
                "oneLiner": self.one_liner,
                "script": self.script,
            },
            "error": None,
        }
