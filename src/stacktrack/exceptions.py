"""stacktrack exception hierarchy.

All stacktrack-specific exceptions inherit from StackTrackError.
"""


class StackTrackError(Exception):
    """Base exception for all stacktrack errors."""


class InvalidInputError(StackTrackError):
    """Raised when a caller passes malformed input.

    Covers duplicate ids in a reorder, a reorder that is not a permutation
    of the feature's stack, empty names and bad colors.
    """


class InvalidStatusError(InvalidInputError):
    """Raised when a branch status string is not in the known vocabulary."""

    def __init__(self, status: object) -> None:
        self.status = status
        super().__init__(f"Unknown branch status: {status!r}")


class ProjectNotFoundError(StackTrackError):
    """Raised when a project id lookup fails."""

    def __init__(self, project_id: int) -> None:
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class FeatureNotFoundError(StackTrackError):
    """Raised when a feature id lookup fails."""

    def __init__(self, feature_id: int) -> None:
        self.feature_id = feature_id
        super().__init__(f"Feature not found: {feature_id}")


class BranchNotFoundError(StackTrackError):
    """Raised when a branch id lookup fails."""

    def __init__(self, branch_id: int) -> None:
        self.branch_id = branch_id
        super().__init__(f"Branch not found: {branch_id}")
