"""Branch model and related enums"""
from enum import Enum
from dataclasses import dataclass
from typing import Optional


class BranchType(Enum):
    """Role of a branch in the dev -> pr lifecycle.

    The integer value is what gets written into branch metadata notes.
    """
    UNKNOWN = 0
    DEV = 1
    PR = 2

    def __str__(self):
        return self.name.lower()

    @classmethod
    def from_value(cls, value) -> Optional["BranchType"]:
        """Return the member for a wire value, or None if it is not one."""
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class SyncState(Enum):
    """Relationship between a local branch and its remote counterparts."""
    SYNCHRONIZED = "synchronized"
    FORK_AHEAD = "fork-ahead"  # origin has commits the clone lacks
    CLONE_AHEAD = "clone-ahead"  # local has commits origin lacks
    BOTH_CHANGED = "both-changed"
    BOTH_CHANGED_CONFLICT = "both-changed-conflict"
    MAIN_DIVERGED = "main-branch-diverged"
    NOT_TRACKING_ORIGIN = "does-not-track-origin"


@dataclass
class TrackedBranch:
    """Local branch with the upstream it tracks."""
    name: str
    upstream: Optional[str] = None
    gone: bool = False  # upstream ref was deleted on the remote
    current: bool = False


@dataclass
class PullRequestInfo:
    """Pull request found through the gh CLI."""
    title: str
    url: str
