"""Domain models for stacktrack."""

from stacktrack.models.branch import BranchInfo, BranchStatus, PrStatus, is_stack_member
from stacktrack.models.comparison import ComparisonCommands, ComparisonInfo
from stacktrack.models.config import TrackerConfig
from stacktrack.models.project import FeatureInfo, ProjectInfo
from stacktrack.models.verification import BranchSummary, StackCheck, StackVerification

__all__ = [
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
]
