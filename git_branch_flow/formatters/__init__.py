"""Formatting utilities for git-branch-flow.

- remediation: Recovery instructions for diverged history
- branch: Branch lists, sync states and pull request lines
"""

from .remediation import format_reset_remediation, format_divergence_message

from .branch import (
    format_sync_state,
    format_branch_list,
    format_pull_request,
)

__all__ = [
    "format_reset_remediation",
    "format_divergence_message",
    "format_sync_state",
    "format_branch_list",
    "format_pull_request",
]
