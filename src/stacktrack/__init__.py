"""stacktrack: a tracker for stacked-diff branch workflows.

Records projects, features and the ordered branch stacks under them, and
generates read-only shell scripts that check each branch is rebased on its
predecessor.
"""

from stacktrack._version import __version__

# Core entry point
from stacktrack.tracker import Tracker

# Domain models
from stacktrack.models.branch import BranchInfo, BranchStatus, PrStatus, is_stack_member
from stacktrack.models.comparison import ComparisonCommands, ComparisonInfo
from stacktrack.models.config import TrackerConfig
from stacktrack.models.project import FeatureInfo, ProjectInfo
from stacktrack.models.verification import BranchSummary, StackCheck, StackVerification

# Pure operations
from stacktrack.operations.compare import comparison_commands
from stacktrack.operations.positions import (
    append_position,
    compact_positions,
    move_to,
    reorder_positions,
)
from stacktrack.operations.verify import (
    NO_BRANCHES,
    build_checks,
    generate_verification,
    render_one_liner,
    render_script,
)

# Exceptions
from stacktrack.exceptions import (
    BranchNotFoundError,
    FeatureNotFoundError,
    InvalidInputError,
    InvalidStatusError,
    ProjectNotFoundError,
    StackTrackError,
)

__all__ = [
    "__version__",
    "Tracker",
    "BranchInfo",
    "BranchStatus",
    "BranchSummary",
    "ComparisonCommands",
    "ComparisonInfo",
    "FeatureInfo",
    "PrStatus",
    "ProjectInfo",
    "StackCheck",
    "StackVerification",
    "TrackerConfig",
    "is_stack_member",
    "comparison_commands",
    "append_position",
    "compact_positions",
    "move_to",
    "reorder_positions",
    "NO_BRANCHES",
    "build_checks",
    "generate_verification",
    "render_one_liner",
    "render_script",
    "BranchNotFoundError",
    "FeatureNotFoundError",
    "InvalidInputError",
    "InvalidStatusError",
    "ProjectNotFoundError",
    "StackTrackError",
]
