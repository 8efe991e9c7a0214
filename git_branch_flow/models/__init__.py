"""Data models for git-branch-flow."""

from .branch import BranchType, SyncState, TrackedBranch, PullRequestInfo
from .metadata import BranchMetadata
from .topology import RemoteTopology

__all__ = [
    "BranchType",
    "SyncState",
    "TrackedBranch",
    "PullRequestInfo",
    "BranchMetadata",
    "RemoteTopology",
]
