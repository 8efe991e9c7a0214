"""Branch and pull request formatting utilities."""

from typing import Iterable, Optional

from git_branch_flow.models.branch import PullRequestInfo, SyncState

SYNC_STATE_STYLES = {
    SyncState.SYNCHRONIZED: "green",
    SyncState.FORK_AHEAD: "cyan",
    SyncState.CLONE_AHEAD: "cyan",
    SyncState.BOTH_CHANGED: "yellow",
    SyncState.BOTH_CHANGED_CONFLICT: "red",
    SyncState.MAIN_DIVERGED: "red",
    SyncState.NOT_TRACKING_ORIGIN: "dim",
}


def format_sync_state(branch: str, state: SyncState) -> str:
    """
    Format a branch sync state as rich markup.

    Args:
        branch: Branch name
        state: Sync state of the branch

    Returns:
        Markup string
    """
    style = SYNC_STATE_STYLES.get(state, "white")
    return f"{branch}: [{style}]{state.value}[/{style}]"


def format_branch_list(branches: Iterable[str], bullet: str = "  - ") -> str:
    """Format branch names one per line."""
    return "\n".join(f"{bullet}{name}" for name in branches)


def format_pull_request(pr: Optional[PullRequestInfo]) -> str:
    if pr is None:
        return "no pull request"
    return f"{pr.title} ({pr.url})"
