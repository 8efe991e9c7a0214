"""Download (fast-forward) and main-branch (rebase) synchronization"""

from git_branch_flow.constants import (
    FAST_FORWARD_FAILURE_PHRASES,
    MERGE_CONFLICT_PHRASES,
    ORIGIN,
    REBASE_FAILURE_PHRASES,
    UPSTREAM,
)
from git_branch_flow.exceptions import (
    DivergenceError,
    StateError,
    UncommittedChangesError,
)
from git_branch_flow.formatters.remediation import format_divergence_message, format_reset_remediation
from git_branch_flow.logging_config import get_logger
from git_branch_flow.models.branch import SyncState
from git_branch_flow.services.git.operations import GitOperations, command_failure
from git_branch_flow.services.runner import CommandResult

logger = get_logger(__name__)


def is_fast_forward_failure(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in FAST_FORWARD_FAILURE_PHRASES)


def is_rebase_failure(text: str) -> bool:
    return any(phrase in text for phrase in REBASE_FAILURE_PHRASES)


def is_merge_conflict(text: str) -> bool:
    return any(phrase in text for phrase in MERGE_CONFLICT_PHRASES)


def merge_conflict(branch: str) -> DivergenceError:
    return DivergenceError(
        f"merging {ORIGIN}/{branch} into {branch} produced conflicts",
        state=SyncState.BOTH_CHANGED_CONFLICT,
        remediation="Resolve the conflicts and commit, or run: git merge --abort",
    )


def authoritative_remote(has_upstream: bool) -> str:
    """Remote whose main is the source of truth for realigning local main."""
    return UPSTREAM if has_upstream else ORIGIN


class SyncEngine:
    """Brings local branches up to date with origin and upstream."""

    def __init__(self, ops: GitOperations):
        self.ops = ops

    def download(self, main_branch: str, has_upstream: bool) -> SyncState:
        """Pull remote changes into main and the current branch.

        Fetches origin and notes, fast-forwards main from origin, merges
        origin/<branch> into the current feature branch and, with an upstream
        remote, fast-forwards main from upstream. The branch active on entry
        is checked out again on every exit path.

        Args:
            main_branch: Name of the main branch
            has_upstream: Whether an upstream remote is configured

        Returns:
            Sync state of the entry branch afterwards

        Raises:
            UncommittedChangesError: If the working tree is dirty
            DivergenceError: If main cannot be fast-forwarded or the feature merge conflicts
        """
        if self.ops.has_uncommitted_changes():
            raise UncommittedChangesError(
                "there are uncommitted changes in the repository, commit or stash them first"
            )

        self.ops.fetch(ORIGIN, prune=True)
        self.ops.fetch_notes(ORIGIN)

        entry_branch = self.ops.current_branch()
        if not entry_branch:
            raise StateError("HEAD is detached, check out a branch first")
        on_main = entry_branch == main_branch
        authority = authoritative_remote(has_upstream)

        try:
            if not on_main:
                self.ops.checkout(main_branch)
            self._fast_forward_main(main_branch, ORIGIN, authority)

            if not on_main:
                self.ops.checkout(entry_branch)
                if self.ops.has_remote_tracking_branch(entry_branch):
                    self._merge_remote_branch(entry_branch)

            if has_upstream:
                if not on_main:
                    self.ops.checkout(main_branch)
                self.ops.retry.run(
                    lambda: self._pull_fast_forward(main_branch, UPSTREAM, authority),
                    f"git pull --ff-only {UPSTREAM} {main_branch}",
                )
        finally:
            self._restore_branch(entry_branch)

        return self.branch_sync_state(entry_branch)

    def sync_main_branch(self, main_branch: str, has_upstream: bool) -> None:
        """Rebase main onto upstream (if any) and origin, then push it to origin.

        Must be called with main checked out.

        Raises:
            DivergenceError: If a rebase cannot apply local commits; the rebase is aborted
        """
        authority = authoritative_remote(has_upstream)
        remotes = [UPSTREAM, ORIGIN] if has_upstream else [ORIGIN]
        for remote in remotes:
            self.ops.retry.run(
                lambda remote=remote: self._pull_rebase(main_branch, remote, authority),
                f"git pull --rebase {remote} {main_branch}",
            )
        self.ops.push_branch(main_branch, ORIGIN, set_upstream=False)

    def pull_branch(self, branch: str) -> None:
        """Merge the remote branch tracked by the checked out branch, with retries.

        Raises:
            DivergenceError: If the merge conflicts; conflicts are not retried
        """
        self.ops.retry.run(lambda: self._pull_merge(branch), f"git pull --no-rebase ({branch})")

    def branch_sync_state(self, branch: str) -> SyncState:
        """Compare a local branch with origin/<branch>."""
        if not self.ops.has_remote_tracking_branch(branch):
            return SyncState.NOT_TRACKING_ORIGIN
        remote_ref = f"{ORIGIN}/{branch}"
        ahead = self.ops.rev_count(f"{remote_ref}..{branch}")
        behind = self.ops.rev_count(f"{branch}..{remote_ref}")
        if ahead and behind:
            return SyncState.BOTH_CHANGED
        if ahead:
            return SyncState.CLONE_AHEAD
        if behind:
            return SyncState.FORK_AHEAD
        return SyncState.SYNCHRONIZED

    def _fast_forward_main(self, main_branch: str, remote: str, authority: str) -> None:
        result = self.ops.run("merge", "--ff-only", f"{remote}/{main_branch}")
        if result.ok:
            return
        self._raise_if_diverged(main_branch, remote, authority, result)
        raise command_failure("merge --ff-only", main_branch, result)

    def _pull_fast_forward(self, main_branch: str, remote: str, authority: str) -> None:
        result = self.ops.run("pull", "--ff-only", remote, main_branch)
        if result.ok:
            return
        self._raise_if_diverged(main_branch, remote, authority, result)
        raise command_failure("pull --ff-only", main_branch, result)

    def _raise_if_diverged(self, main_branch: str, remote: str, authority: str,
                           result: CommandResult) -> None:
        if is_fast_forward_failure(result.output):
            raise DivergenceError(
                format_divergence_message(
                    main_branch, remote, f"cannot fast-forward merge {remote}/{main_branch}", authority
                ),
                state=SyncState.MAIN_DIVERGED,
                remediation=format_reset_remediation(main_branch, authority),
            )

    def _merge_remote_branch(self, branch: str) -> None:
        result = self.ops.run("merge", "--no-edit", f"{ORIGIN}/{branch}")
        if result.ok:
            return
        if is_merge_conflict(result.output):
            raise merge_conflict(branch)
        raise command_failure("merge", branch, result)

    def _pull_merge(self, branch: str) -> None:
        result = self.ops.run("pull", "--no-rebase", "--no-edit")
        if result.ok:
            return
        if is_merge_conflict(result.output):
            raise merge_conflict(branch)
        raise command_failure("pull", branch, result)

    def _pull_rebase(self, main_branch: str, remote: str, authority: str) -> None:
        result = self.ops.run("pull", "--rebase", remote, main_branch)
        if result.ok:
            return
        if is_rebase_failure(result.output):
            abort = self.ops.run("rebase", "--abort")
            if not abort.ok:
                logger.warning(f"git rebase --abort failed: {abort.output}")
            raise DivergenceError(
                format_divergence_message(
                    main_branch, remote, f"cannot rebase {main_branch} onto {remote}/{main_branch}", authority
                ),
                state=SyncState.MAIN_DIVERGED,
                remediation=format_reset_remediation(main_branch, authority),
            )
        raise command_failure("pull --rebase", main_branch, result)

    def _restore_branch(self, branch: str) -> None:
        if self.ops.current_branch() != branch:
            logger.debug(f"Restoring checkout of {branch}")
            self.ops.checkout(branch)
